"""Order status machine.

Forward chain: pending -> confirmed -> preparing -> out_for_delivery -> delivered.
``cancelled`` is reachable from pending/confirmed and ``payment_failed`` from
pending only. Writes are a compare-and-swap on (status, version) so two
concurrent requests on one order cannot both apply.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import Conflict, Forbidden, InvalidTransition, NotFound, StorageError, ValidationFailed
from app.models import Order, User
from app.services.audit_service import log_action, order_snapshot

logger = logging.getLogger(__name__)

PENDING = "pending"
CONFIRMED = "confirmed"
PREPARING = "preparing"
OUT_FOR_DELIVERY = "out_for_delivery"
DELIVERED = "delivered"
CANCELLED = "cancelled"
PAYMENT_FAILED = "payment_failed"

FORWARD_CHAIN: list[str] = [PENDING, CONFIRMED, PREPARING, OUT_FOR_DELIVERY, DELIVERED]
ORDER_STATUSES: list[str] = [*FORWARD_CHAIN, CANCELLED, PAYMENT_FAILED]
TERMINAL_STATUSES: set[str] = {DELIVERED, CANCELLED, PAYMENT_FAILED}
CUSTOMER_CANCELLABLE: set[str] = {PENDING, CONFIRMED}

ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    PENDING: {CONFIRMED, CANCELLED, PAYMENT_FAILED},
    CONFIRMED: {PREPARING, CANCELLED},
    PREPARING: {OUT_FOR_DELIVERY},
    OUT_FOR_DELIVERY: {DELIVERED},
    DELIVERED: set(),
    CANCELLED: set(),
    PAYMENT_FAILED: set(),
}

ROLE_ADMIN = "ADMIN"
ROLE_CUSTOMER = "CUSTOMER"

_STATUS_TIMESTAMPS: dict[str, str] = {
    CONFIRMED: "confirmed_at",
    DELIVERED: "delivered_at",
    CANCELLED: "cancelled_at",
}


def can_transition(current: str, new: str) -> bool:
    """Return whether order can move from current to new status."""
    return new in ALLOWED_TRANSITIONS.get(current, set())


def can_override(current: str, new: str) -> bool:
    """Admin override may skip forward along the chain but never regress or leave a terminal state."""
    if current in TERMINAL_STATUSES or new not in FORWARD_CHAIN or current not in FORWARD_CHAIN:
        return False
    return FORWARD_CHAIN.index(new) > FORWARD_CHAIN.index(current)


def check_actor(order: Order, target: str, actor_role: str, actor: User | None) -> None:
    """Enforce who may request a transition; raises Forbidden/NotFound."""
    if actor_role == ROLE_ADMIN:
        return
    if actor_role != ROLE_CUSTOMER:
        raise Forbidden("Unknown role")
    if actor is None or order.user_id != actor.id:
        raise NotFound("Order not found")
    if target != CANCELLED:
        raise Forbidden("Customers may only cancel their orders")


def compare_and_set_status(
    db: Session,
    order: Order,
    *,
    expected_status: str,
    new_status: str,
    payment_status: str | None = None,
) -> bool:
    """Atomically move order from expected_status to new_status.

    Returns False when another writer changed the row first. The caller owns
    the surrounding transaction.
    """
    now = datetime.now(timezone.utc)
    values: dict[str, object] = {
        "status": new_status,
        "status_updated_at": now,
        "version": Order.version + 1,
    }
    timestamp_field = _STATUS_TIMESTAMPS.get(new_status)
    if timestamp_field is not None and new_status != expected_status:
        values[timestamp_field] = now
    if payment_status is not None:
        values["payment_status"] = payment_status

    result = db.execute(
        update(Order)
        .where(
            Order.id == order.id,
            Order.status == expected_status,
            Order.version == order.version,
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def transition(
    db: Session,
    order_id: int,
    target_status: str,
    *,
    actor_role: str,
    actor: User | None = None,
    override: bool = False,
) -> Order:
    """Apply one status transition or raise without mutating anything."""
    if target_status not in ORDER_STATUSES:
        raise ValidationFailed(f"Unknown order status: {target_status}")

    order = db.get(Order, order_id)
    if order is None:
        raise NotFound("Order not found")

    check_actor(order, target_status, actor_role, actor)

    current = order.status
    if override and actor_role != ROLE_ADMIN:
        raise Forbidden("Only administrators may override status order")
    if not can_transition(current, target_status):
        if not (override and can_override(current, target_status)):
            if actor_role == ROLE_CUSTOMER and target_status == CANCELLED:
                raise InvalidTransition(f"Order can no longer be cancelled (status: {current})")
            raise InvalidTransition(f"Cannot move order from {current} to {target_status}")
        is_override = True
    else:
        is_override = False

    before = order_snapshot(order)
    try:
        swapped = compare_and_set_status(db, order, expected_status=current, new_status=target_status)
        if not swapped:
            db.rollback()
            logger.info("[ORDER] Lost status race order_id=%s target=%s", order_id, target_status)
            raise Conflict("Order was modified concurrently; reload and retry", order_id=order_id)
        db.refresh(order)
        log_action(
            db,
            actor=actor,
            action_type="ORDER_STATUS_OVERRIDE" if is_override else "ORDER_STATUS_CHANGE",
            order_id=order.id,
            before_snapshot=before,
            after_snapshot=order_snapshot(order),
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("[ORDER] Failed to persist status change for order_id=%s", order_id)
        raise StorageError() from exc

    if is_override:
        logger.warning(
            "[ADMIN] Status override order_id=%s %s -> %s by %s",
            order.id,
            current,
            target_status,
            actor.username if actor is not None else "system",
        )
    else:
        logger.info("[ORDER] order_id=%s %s -> %s (%s)", order.id, current, target_status, actor_role)
    return order


def compare_and_set_payment(
    db: Session,
    order: Order,
    *,
    expected_payment_status: str,
    payment_status: str,
    payment_intent_id: str | None = None,
) -> bool:
    """Compare-and-swap on payment fields only; order status is left as is."""
    values: dict[str, object] = {"payment_status": payment_status, "version": Order.version + 1}
    if payment_intent_id is not None:
        values["payment_intent_id"] = payment_intent_id
    result = db.execute(
        update(Order)
        .where(
            Order.id == order.id,
            Order.payment_status == expected_payment_status,
            Order.version == order.version,
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1
