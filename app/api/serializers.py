"""ORM -> response model conversion shared by endpoint modules."""

from app.models import Order
from app.schemas.order import (
    AdminOrderRead,
    OrderItemRead,
    OrderRead,
    OrderWithItems,
    PaymentIntentRead,
    RestaurantRef,
    UserRef,
)
from app.services.payment import PaymentIntent


def order_with_items(order: Order) -> OrderWithItems:
    return OrderWithItems(
        order=OrderRead.model_validate(order),
        items=[OrderItemRead.model_validate(item) for item in order.items],
    )


def admin_order(order: Order) -> AdminOrderRead:
    return AdminOrderRead(
        **OrderRead.model_validate(order).model_dump(),
        restaurant=RestaurantRef(id=order.restaurant.id, name=order.restaurant.name) if order.restaurant else None,
        user=UserRef(id=order.user.id, username=order.user.username) if order.user else None,
        item_count=len(order.items),
    )


def payment_intent(intent: PaymentIntent, order_id: int, provider: str) -> PaymentIntentRead:
    return PaymentIntentRead(
        intent_id=intent.intent_id,
        order_id=order_id,
        amount=intent.amount,
        currency=intent.currency,
        provider=provider,
    )


def stored_payment_intent(order: Order, currency: str, provider: str) -> PaymentIntentRead | None:
    """Intent already recorded on an order that is still awaiting payment."""
    if not order.payment_intent_id or order.payment_status == "completed":
        return None
    return PaymentIntentRead(
        intent_id=order.payment_intent_id,
        order_id=order.id,
        amount=order.total_amount,
        currency=currency,
        provider=provider,
    )
