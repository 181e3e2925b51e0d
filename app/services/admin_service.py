"""Admin dashboard aggregates."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Session

from app.models import Order
from app.services.catalog_service import count_restaurants
from app.services.order_service import CASH_ON_DELIVERY, count_orders, to_money
from app.services.order_status import CANCELLED, PAYMENT_FAILED
from app.services.user_service import count_users
from app.utils.time import utc_day_window


def revenue_total(db: Session) -> Decimal:
    """Sum of paid orders plus cash-on-delivery orders that were not abandoned."""
    collectable = or_(
        Order.payment_status == "completed",
        and_(Order.payment_method == CASH_ON_DELIVERY, Order.status.not_in([CANCELLED, PAYMENT_FAILED])),
    )
    total = db.scalar(select(func.coalesce(func.sum(Order.total_amount), 0)).where(collectable))
    return to_money(Decimal(str(total or 0)))


def collect_stats(db: Session) -> dict[str, int | Decimal]:
    today_start, today_end = utc_day_window()
    orders_today = db.scalar(
        select(func.count(Order.id)).where(Order.created_at >= today_start, Order.created_at < today_end)
    )
    return {
        "total_restaurants": count_restaurants(db),
        "total_orders": count_orders(db),
        "total_users": count_users(db),
        "total_revenue": revenue_total(db),
        "orders_today": int(orders_today or 0),
    }
