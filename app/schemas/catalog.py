"""Restaurant and menu schemas."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.common import CamelRequest


class RestaurantRead(BaseModel):
    id: int
    name: str
    description: str | None
    cuisine: str
    image: str | None
    rating: Decimal
    delivery_time: str | None
    delivery_fee: Decimal
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class RestaurantCreate(CamelRequest):
    name: str = Field(min_length=1)
    description: str | None = None
    cuisine: str = Field(min_length=1)
    image: str | None = None
    rating: Decimal = Field(default=Decimal("0.0"), ge=0, le=5)
    delivery_time: str | None = None
    delivery_fee: Decimal = Field(ge=0, decimal_places=2)
    is_active: bool = True


class RestaurantUpdate(CamelRequest):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    cuisine: str | None = Field(default=None, min_length=1)
    image: str | None = None
    rating: Decimal | None = Field(default=None, ge=0, le=5)
    delivery_time: str | None = None
    delivery_fee: Decimal | None = Field(default=None, ge=0, decimal_places=2)
    is_active: bool | None = None


class MenuItemRead(BaseModel):
    id: int
    restaurant_id: int
    name: str
    description: str | None
    price: Decimal
    image: str | None
    category: str
    is_available: bool

    model_config = ConfigDict(from_attributes=True)


class MenuItemCreate(CamelRequest):
    restaurant_id: int
    name: str = Field(min_length=1)
    description: str | None = None
    price: Decimal = Field(ge=0, decimal_places=2)
    image: str | None = None
    category: str = Field(min_length=1)
    is_available: bool = True


class MenuItemUpdate(CamelRequest):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    price: Decimal | None = Field(default=None, ge=0, decimal_places=2)
    image: str | None = None
    category: str | None = Field(default=None, min_length=1)
    is_available: bool | None = None
