"""Payment orchestration between the order ledger and the gateway adapter.

Gateway calls are made outside any open database transaction. A gateway
failure or timeout never changes the order; the caller may retry.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import AppError, Conflict, PaymentRejected, StorageError, ValidationFailed
from app.models import Order, User
from app.services.audit_service import log_action, order_snapshot
from app.services.order_service import ensure_can_access_order, get_order, requires_upfront_payment
from app.services.order_status import CONFIRMED, PENDING, compare_and_set_payment, compare_and_set_status
from app.services.payment import PaymentGateway, PaymentIntent, VerificationResult

logger = logging.getLogger(__name__)


def order_reference(order: Order) -> str:
    return f"order-{order.id}"


def _commit_or_fail(db: Session, order_id: int) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("[PAYMENT] Failed to persist payment update for order_id=%s", order_id)
        raise StorageError() from exc


def start_payment(db: Session, order: Order, gateway: PaymentGateway, currency: str) -> PaymentIntent:
    """Create a gateway intent for the stored order total and remember its id."""
    if not requires_upfront_payment(order.payment_method):
        raise ValidationFailed("This payment method does not use the payment gateway")
    if order.status != PENDING or order.payment_status == "completed":
        raise Conflict("Order is not awaiting payment", order_id=order.id)

    # Release any read transaction before the network call.
    db.commit()
    try:
        intent = gateway.create_intent(order.total_amount, order_reference(order), currency)
    except AppError as exc:
        logger.warning("[PAYMENT] Gateway refused intent for order_id=%s: %s", order.id, exc.kind)
        exc.extra.setdefault("order_id", order.id)
        raise

    expected = order.payment_status
    try:
        swapped = compare_and_set_payment(
            db,
            order,
            expected_payment_status=expected,
            payment_status="pending",
            payment_intent_id=intent.intent_id,
        )
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("[PAYMENT] Failed to store intent for order_id=%s", order.id)
        raise StorageError() from exc
    if not swapped:
        db.rollback()
        raise Conflict("Order was modified concurrently; reload and retry", order_id=order.id)
    _commit_or_fail(db, order.id)
    db.refresh(order)
    logger.info("[PAYMENT] Intent %s created for order_id=%s amount=%s", intent.intent_id, order.id, intent.amount)
    return intent


def create_payment_for_order(
    db: Session, order_id: int, actor: User, gateway: PaymentGateway, currency: str
) -> PaymentIntent:
    order = get_order(db, order_id)
    ensure_can_access_order(actor, order)
    return start_payment(db, order, gateway, currency)


def verify_payment(
    db: Session,
    *,
    order_id: int,
    intent_id: str,
    payment_id: str,
    signature: str,
    actor: User,
    gateway: PaymentGateway,
) -> Order:
    """Verify a provider completion and move payment/order state accordingly."""
    order = get_order(db, order_id)
    ensure_can_access_order(actor, order)
    if order.payment_status == "completed":
        return order
    if not order.payment_intent_id:
        raise Conflict("No payment was started for this order", order_id=order.id)

    db.commit()
    if intent_id != order.payment_intent_id:
        result = VerificationResult.REJECTED
    else:
        try:
            result = gateway.verify_completion(intent_id, order_reference(order), payment_id, signature)
        except AppError as exc:
            logger.warning("[PAYMENT] Gateway error verifying order_id=%s (%s); order left unchanged", order.id, exc.kind)
            exc.extra.setdefault("order_id", order.id)
            raise

    before = order_snapshot(order)
    try:
        if result is VerificationResult.VERIFIED:
            if order.status == PENDING:
                swapped = compare_and_set_status(
                    db, order, expected_status=PENDING, new_status=CONFIRMED, payment_status="completed"
                )
            else:
                logger.warning(
                    "[PAYMENT] Payment completed for order_id=%s in status %s; refund required",
                    order.id,
                    order.status,
                )
                swapped = compare_and_set_payment(
                    db, order, expected_payment_status=order.payment_status, payment_status="completed"
                )
            action_type = "PAYMENT_VERIFIED"
        else:
            swapped = compare_and_set_payment(
                db, order, expected_payment_status=order.payment_status, payment_status="failed"
            )
            action_type = "PAYMENT_REJECTED"
        if not swapped:
            db.rollback()
            raise Conflict("Order was modified concurrently; reload and retry", order_id=order.id)
        db.refresh(order)
        log_action(
            db,
            actor=actor,
            action_type=action_type,
            order_id=order.id,
            before_snapshot=before,
            after_snapshot=order_snapshot(order),
        )
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("[PAYMENT] Failed to record verification for order_id=%s", order.id)
        raise StorageError() from exc
    _commit_or_fail(db, order.id)

    if result is VerificationResult.REJECTED:
        logger.info("[PAYMENT] Verification rejected for order_id=%s", order.id)
        raise PaymentRejected(order_id=order.id)
    logger.info("[PAYMENT] Verified payment for order_id=%s", order.id)
    return order
