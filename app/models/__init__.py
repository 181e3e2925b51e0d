"""Application models package."""

from app.models.audit_log import AuditLog
from app.models.menu import MenuItem
from app.models.order import Order, OrderItem
from app.models.restaurant import Restaurant
from app.models.user import User

__all__ = ["AuditLog", "MenuItem", "Order", "OrderItem", "Restaurant", "User"]
