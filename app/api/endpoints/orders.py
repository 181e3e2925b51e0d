"""Order endpoints."""

import logging

from fastapi import APIRouter, Depends, Header, Response, status
from sqlalchemy.orm import Session

from app.api.deps import get_payment_gateway
from app.api.serializers import order_with_items, payment_intent, stored_payment_intent
from app.core.config import Settings, get_settings
from app.core.errors import Forbidden
from app.core.security import get_current_user
from app.db.session import get_db
from app.models.user import User
from app.schemas.order import OrderCreate, OrderPlacementResponse, OrderRead, OrderStatusUpdate, OrderWithItems
from app.services import order_status
from app.services.order_service import (
    CartLine,
    ensure_can_access_order,
    get_order as load_order,
    place_order,
    requires_upfront_payment,
)
from app.services.payment import PaymentGateway
from app.services.payment_service import start_payment

router: APIRouter = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=OrderPlacementResponse, status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreate,
    response: Response,
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    current_user: User = Depends(get_current_user),
) -> OrderPlacementResponse:
    """Price the cart server-side, persist the order and start payment if needed."""
    data = payload.order_data
    if data.user_id is not None and data.user_id != current_user.id:
        raise Forbidden("Orders can only be placed for your own account")

    order, created = place_order(
        db,
        customer=current_user,
        restaurant_id=data.restaurant_id,
        delivery_address=data.delivery_address,
        payment_method=data.payment_method,
        lines=[CartLine(menu_item_id=item.menu_item_id, quantity=item.quantity) for item in payload.items],
        tax_rate=settings.tax_rate,
        idempotency_key=idempotency_key.strip() if idempotency_key else None,
        notes=data.notes,
    )
    if data.total_amount is not None and data.total_amount != order.total_amount:
        logger.info(
            "[ORDER] Client total %s differs from server total %s for order_id=%s",
            data.total_amount,
            order.total_amount,
            order.id,
        )

    if not created:
        response.status_code = status.HTTP_200_OK
        body = order_with_items(order)
        return OrderPlacementResponse(
            order=body.order,
            items=body.items,
            payment=stored_payment_intent(order, settings.currency, gateway.provider_name),
        )

    intent = None
    if requires_upfront_payment(order.payment_method):
        intent = start_payment(db, order, gateway, settings.currency)
    body = order_with_items(order)
    return OrderPlacementResponse(
        order=body.order,
        items=body.items,
        payment=payment_intent(intent, order.id, gateway.provider_name) if intent is not None else None,
    )


@router.get("/{order_id}", response_model=OrderWithItems)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> OrderWithItems:
    order = load_order(db, order_id)
    ensure_can_access_order(current_user, order)
    return order_with_items(order)


@router.patch("/{order_id}/status", response_model=OrderRead)
def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> OrderRead:
    """Admins drive the order forward; customers may only cancel their own order."""
    order = order_status.transition(
        db,
        order_id,
        payload.status,
        actor_role=current_user.role,
        actor=current_user,
        override=payload.override,
    )
    return OrderRead.model_validate(order)
