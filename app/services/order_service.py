"""Order placement: cart validation, server-side pricing and atomic persistence."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_EVEN, Decimal

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.core.errors import Conflict, InvalidAmount, InvalidCart, NotFound, StorageError, ValidationFailed
from app.models import MenuItem, Order, OrderItem, Restaurant, User
from app.services.catalog_service import get_menu_items_by_ids, get_restaurant
from app.services.order_status import PENDING

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
CASH_ON_DELIVERY = "cash_on_delivery"
PAYMENT_METHODS: tuple[str, ...] = ("card", "wallet", CASH_ON_DELIVERY)
# Names sent by the web checkout form.
PAYMENT_METHOD_ALIASES: dict[str, str] = {"razorpay": "wallet", "cod": CASH_ON_DELIVERY}
PAYMENT_STATUSES: tuple[str, ...] = ("pending", "completed", "failed")
UPFRONT_PAYMENT_METHODS: set[str] = {"card", "wallet"}


def to_money(value: Decimal) -> Decimal:
    """Round to the currency's minimum unit using banker's rounding."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_EVEN)


def normalize_payment_method(value: str) -> str:
    """Map checkout form names onto stored payment methods."""
    method = (value or "").strip().lower()
    method = PAYMENT_METHOD_ALIASES.get(method, method)
    if method not in PAYMENT_METHODS:
        raise ValidationFailed(f"Unsupported payment method: {value}")
    return method


@dataclass(frozen=True)
class CartLine:
    menu_item_id: int
    quantity: int


@dataclass
class PricedLine:
    menu_item: MenuItem
    quantity: int
    unit_price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass
class PriceQuote:
    lines: list[PricedLine] = field(default_factory=list)
    subtotal: Decimal = Decimal("0.00")
    delivery_fee: Decimal = Decimal("0.00")
    tax: Decimal = Decimal("0.00")
    total: Decimal = Decimal("0.00")


def normalize_cart(lines: list[CartLine]) -> list[CartLine]:
    """Validate quantities and merge repeated menu items, keeping first-seen order."""
    if not lines:
        raise ValidationFailed("Cart is empty")
    merged: dict[int, int] = {}
    for line in lines:
        if line.quantity < 1:
            raise ValidationFailed(f"Quantity for menu item {line.menu_item_id} must be >= 1")
        merged[line.menu_item_id] = merged.get(line.menu_item_id, 0) + line.quantity
    return [CartLine(menu_item_id=item_id, quantity=qty) for item_id, qty in merged.items()]


def cart_fingerprint(restaurant_id: int, lines: list[CartLine]) -> str:
    canonical = ";".join(f"{line.menu_item_id}x{line.quantity}" for line in sorted(lines, key=lambda line: line.menu_item_id))
    return hashlib.sha256(f"{restaurant_id}|{canonical}".encode("utf-8")).hexdigest()


def resolve_cart(db: Session, restaurant: Restaurant, lines: list[CartLine]) -> list[PricedLine]:
    """Re-resolve every line against the catalog; client prices are never used."""
    menu_items = get_menu_items_by_ids(db, {line.menu_item_id for line in lines})
    priced: list[PricedLine] = []
    for line in lines:
        menu_item = menu_items.get(line.menu_item_id)
        if menu_item is None:
            raise NotFound(f"Menu item {line.menu_item_id} not found")
        if menu_item.restaurant_id != restaurant.id:
            raise InvalidCart("All items in a cart must come from the same restaurant")
        if not menu_item.is_available:
            raise InvalidCart(f"Menu item {menu_item.id} is not available")
        priced.append(PricedLine(menu_item=menu_item, quantity=line.quantity, unit_price=to_money(menu_item.price)))
    return priced


def price_cart(lines: list[PricedLine], delivery_fee: Decimal, tax_rate: Decimal) -> PriceQuote:
    """subtotal + delivery fee + tax, each rounded half-to-even to cents."""
    subtotal = to_money(sum((line.line_total for line in lines), Decimal("0")))
    fee = to_money(delivery_fee)
    tax = to_money(subtotal * tax_rate)
    return PriceQuote(lines=lines, subtotal=subtotal, delivery_fee=fee, tax=tax, total=to_money(subtotal + fee + tax))


def _find_by_idempotency_key(db: Session, user_id: int, key: str) -> Order | None:
    return db.scalar(select(Order).where(Order.user_id == user_id, Order.idempotency_key == key).limit(1))


def _replay(existing: Order, fingerprint: str) -> Order:
    if existing.cart_fingerprint != fingerprint:
        raise Conflict("Idempotency key was already used for a different order", order_id=existing.id)
    logger.info("[ORDER] Idempotent replay order_id=%s", existing.id)
    return existing


def build_order_items(quote: PriceQuote) -> list[OrderItem]:
    return [
        OrderItem(
            menu_item_id=line.menu_item.id,
            name=line.menu_item.name,
            quantity=line.quantity,
            price=line.unit_price,
        )
        for line in quote.lines
    ]


def place_order(
    db: Session,
    *,
    customer: User,
    restaurant_id: int,
    delivery_address: str,
    payment_method: str,
    lines: list[CartLine],
    tax_rate: Decimal,
    idempotency_key: str | None = None,
    notes: str | None = None,
) -> tuple[Order, bool]:
    """Validate, price and persist an order with its items in one transaction.

    Returns ``(order, created)``; ``created`` is False for an idempotent replay.
    """
    payment_method = normalize_payment_method(payment_method)
    if not delivery_address or not delivery_address.strip():
        raise ValidationFailed("Delivery address is required")

    cart = normalize_cart(lines)
    fingerprint = cart_fingerprint(restaurant_id, cart)
    if idempotency_key:
        existing = _find_by_idempotency_key(db, customer.id, idempotency_key)
        if existing is not None:
            return _replay(existing, fingerprint), False

    restaurant = get_restaurant(db, restaurant_id)
    quote = price_cart(resolve_cart(db, restaurant, cart), restaurant.delivery_fee, tax_rate)
    if requires_upfront_payment(payment_method) and quote.total <= 0:
        raise InvalidAmount("Orders paid upfront must have a total greater than 0")

    order = Order(
        user_id=customer.id,
        restaurant_id=restaurant.id,
        status=PENDING,
        payment_method=payment_method,
        payment_status="pending",
        delivery_address=delivery_address.strip(),
        subtotal_amount=quote.subtotal,
        delivery_fee=quote.delivery_fee,
        tax_amount=quote.tax,
        total_amount=quote.total,
        idempotency_key=idempotency_key or None,
        cart_fingerprint=fingerprint,
        notes=notes,
    )
    order.items = build_order_items(quote)
    try:
        db.add(order)
        db.flush()
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if idempotency_key:
            existing = _find_by_idempotency_key(db, customer.id, idempotency_key)
            if existing is not None:
                return _replay(existing, fingerprint), False
        logger.exception("[ORDER] Integrity failure creating order for user_id=%s", customer.id)
        raise StorageError() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("[ORDER] Failed to persist order for user_id=%s", customer.id)
        raise StorageError() from exc

    logger.info(
        "[ORDER] Created order_id=%s user_id=%s restaurant_id=%s total=%s",
        order.id,
        customer.id,
        restaurant.id,
        order.total_amount,
    )
    return order, True


def get_order(db: Session, order_id: int) -> Order:
    order = db.scalar(select(Order).options(selectinload(Order.items)).where(Order.id == order_id))
    if order is None:
        raise NotFound("Order not found")
    return order


def list_orders_for_user(db: Session, user_id: int) -> list[Order]:
    return list(
        db.scalars(select(Order).where(Order.user_id == user_id).order_by(Order.created_at.desc(), Order.id.desc())).all()
    )


def list_all_orders(db: Session) -> list[Order]:
    return list(
        db.scalars(
            select(Order)
            .options(selectinload(Order.items), selectinload(Order.user), selectinload(Order.restaurant))
            .order_by(Order.created_at.desc(), Order.id.desc())
        ).all()
    )


def count_orders(db: Session) -> int:
    return int(db.scalar(select(func.count(Order.id))) or 0)


def ensure_can_access_order(user: User, order: Order) -> None:
    """Admins see everything; customers only their own orders (404 to avoid leaking ids)."""
    if user.role == "ADMIN":
        return
    if order.user_id != user.id:
        raise NotFound("Order not found")


def requires_upfront_payment(payment_method: str) -> bool:
    return payment_method in UPFRONT_PAYMENT_METHODS
