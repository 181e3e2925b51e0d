"""Payment endpoint schemas."""

from pydantic import BaseModel, Field

from app.schemas.common import CamelRequest
from app.schemas.order import OrderRead


class PaymentCreateRequest(CamelRequest):
    order_id: int


class PaymentVerifyRequest(CamelRequest):
    order_id: int
    intent_id: str = Field(min_length=1)
    payment_id: str = Field(min_length=1)
    signature: str = Field(min_length=1)


class PaymentVerifyResponse(BaseModel):
    success: bool
    message: str
    order: OrderRead
