"""Order API schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.common import CamelRequest


class OrderItemPayload(CamelRequest):
    """Single cart line; ``price`` is a display hint and is ignored."""

    menu_item_id: int
    quantity: int = Field(default=1, ge=1)
    price: Decimal | None = None


class OrderData(CamelRequest):
    """Order header; ``total_amount`` is recomputed server-side."""

    user_id: int | None = None
    restaurant_id: int
    total_amount: Decimal | None = None
    delivery_address: str = Field(min_length=1)
    payment_method: str
    notes: str | None = None


class OrderCreate(CamelRequest):
    order_data: OrderData
    items: list[OrderItemPayload] = Field(min_length=1)


class OrderItemRead(BaseModel):
    id: int
    menu_item_id: int
    name: str
    quantity: int
    price: Decimal
    line_total: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderRead(BaseModel):
    id: int
    user_id: int
    restaurant_id: int
    status: str
    payment_method: str
    payment_status: str
    payment_intent_id: str | None
    delivery_address: str
    subtotal_amount: Decimal
    delivery_fee: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    created_at: datetime
    status_updated_at: datetime | None = None
    notes: str | None = None

    model_config = ConfigDict(from_attributes=True)


class OrderWithItems(BaseModel):
    order: OrderRead
    items: list[OrderItemRead]


class PaymentIntentRead(BaseModel):
    intent_id: str
    order_id: int
    amount: Decimal
    currency: str
    provider: str


class OrderPlacementResponse(OrderWithItems):
    payment: PaymentIntentRead | None = None


class OrderStatusUpdate(CamelRequest):
    status: str
    override: bool = False


class RestaurantRef(BaseModel):
    id: int
    name: str


class UserRef(BaseModel):
    id: int
    username: str


class AdminOrderRead(OrderRead):
    restaurant: RestaurantRef | None = None
    user: UserRef | None = None
    item_count: int
