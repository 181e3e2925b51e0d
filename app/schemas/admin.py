"""Admin dashboard schemas."""

from decimal import Decimal

from pydantic import BaseModel


class StatsResponse(BaseModel):
    total_restaurants: int
    total_orders: int
    total_users: int
    total_revenue: Decimal
    orders_today: int
