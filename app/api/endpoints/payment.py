"""Payment gateway endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_payment_gateway
from app.api.serializers import payment_intent
from app.core.config import Settings, get_settings
from app.core.security import get_current_user
from app.db.session import get_db
from app.models import User
from app.schemas.order import OrderRead, PaymentIntentRead
from app.schemas.payment import PaymentCreateRequest, PaymentVerifyRequest, PaymentVerifyResponse
from app.services.payment import PaymentGateway
from app.services.payment_service import create_payment_for_order, verify_payment

router: APIRouter = APIRouter()


@router.post("/create", response_model=PaymentIntentRead)
def create_payment(
    payload: PaymentCreateRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    current_user: User = Depends(get_current_user),
) -> PaymentIntentRead:
    """Create (or re-create after a failure) a gateway intent for the stored order total."""
    intent = create_payment_for_order(db, payload.order_id, current_user, gateway, settings.currency)
    return payment_intent(intent, payload.order_id, gateway.provider_name)


@router.post("/verify", response_model=PaymentVerifyResponse)
def verify(
    payload: PaymentVerifyRequest,
    db: Session = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    current_user: User = Depends(get_current_user),
) -> PaymentVerifyResponse:
    order = verify_payment(
        db,
        order_id=payload.order_id,
        intent_id=payload.intent_id,
        payment_id=payload.payment_id,
        signature=payload.signature,
        actor=current_user,
        gateway=gateway,
    )
    return PaymentVerifyResponse(
        success=True,
        message="Payment verified successfully",
        order=OrderRead.model_validate(order),
    )
