"""Per-user order history."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.errors import Forbidden
from app.core.security import get_current_user
from app.db.session import get_db
from app.models import Order, User
from app.schemas.order import OrderRead
from app.services.order_service import list_orders_for_user

router: APIRouter = APIRouter()


@router.get("/{user_id}/orders", response_model=list[OrderRead])
def list_user_orders(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[Order]:
    if current_user.role != "ADMIN" and current_user.id != user_id:
        raise Forbidden("You can only view your own orders")
    return list_orders_for_user(db, user_id)
