"""Schema exports."""

from app.schemas.admin import StatsResponse
from app.schemas.auth import LoginRequest, LoginResponse, RegisterRequest, UserEnvelope, UserRead
from app.schemas.catalog import (
    MenuItemCreate,
    MenuItemRead,
    MenuItemUpdate,
    RestaurantCreate,
    RestaurantRead,
    RestaurantUpdate,
)
from app.schemas.common import ErrorResponse
from app.schemas.order import (
    AdminOrderRead,
    OrderCreate,
    OrderItemPayload,
    OrderItemRead,
    OrderPlacementResponse,
    OrderRead,
    OrderStatusUpdate,
    OrderWithItems,
    PaymentIntentRead,
)
from app.schemas.payment import PaymentCreateRequest, PaymentVerifyRequest, PaymentVerifyResponse

__all__ = [
    "AdminOrderRead",
    "ErrorResponse",
    "LoginRequest",
    "LoginResponse",
    "MenuItemCreate",
    "MenuItemRead",
    "MenuItemUpdate",
    "OrderCreate",
    "OrderItemPayload",
    "OrderItemRead",
    "OrderPlacementResponse",
    "OrderRead",
    "OrderStatusUpdate",
    "OrderWithItems",
    "PaymentCreateRequest",
    "PaymentIntentRead",
    "PaymentVerifyRequest",
    "PaymentVerifyResponse",
    "RegisterRequest",
    "RestaurantCreate",
    "RestaurantRead",
    "RestaurantUpdate",
    "StatsResponse",
    "UserEnvelope",
    "UserRead",
]
