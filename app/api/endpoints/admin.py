"""Admin endpoints: catalog management, order oversight and stats."""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.serializers import admin_order
from app.core.security import require_admin
from app.db.session import get_db
from app.models import MenuItem, Restaurant, User
from app.schemas.admin import StatsResponse
from app.schemas.catalog import (
    MenuItemCreate,
    MenuItemRead,
    MenuItemUpdate,
    RestaurantCreate,
    RestaurantRead,
    RestaurantUpdate,
)
from app.schemas.order import AdminOrderRead, OrderRead, OrderStatusUpdate
from app.services import catalog_service, order_status
from app.services.admin_service import collect_stats
from app.services.order_service import list_all_orders

router = APIRouter(dependencies=[Depends(require_admin)])
logger = logging.getLogger(__name__)


@router.get("/stats", response_model=StatsResponse)
def get_stats(db: Session = Depends(get_db)) -> StatsResponse:
    return StatsResponse(**collect_stats(db))


@router.get("/restaurants", response_model=list[RestaurantRead])
def list_restaurants(db: Session = Depends(get_db)) -> list[Restaurant]:
    return catalog_service.list_all_restaurants(db)


@router.post("/restaurants", response_model=RestaurantRead, status_code=status.HTTP_201_CREATED)
def create_restaurant(payload: RestaurantCreate, db: Session = Depends(get_db)) -> Restaurant:
    restaurant = catalog_service.create_restaurant(db, **payload.model_dump())
    logger.info("[ADMIN] Created restaurant_id=%s", restaurant.id)
    return restaurant


@router.patch("/restaurants/{restaurant_id}", response_model=RestaurantRead)
def update_restaurant(
    restaurant_id: int, payload: RestaurantUpdate, db: Session = Depends(get_db)
) -> Restaurant:
    return catalog_service.update_restaurant(db, restaurant_id, payload.model_dump(exclude_unset=True))


@router.delete("/restaurants/{restaurant_id}", response_model=RestaurantRead)
def deactivate_restaurant(restaurant_id: int, db: Session = Depends(get_db)) -> Restaurant:
    """Restaurants are referenced by past orders, so removal is a soft deactivation."""
    restaurant = catalog_service.deactivate_restaurant(db, restaurant_id)
    logger.info("[ADMIN] Deactivated restaurant_id=%s", restaurant_id)
    return restaurant


@router.post("/menu-items", response_model=MenuItemRead, status_code=status.HTTP_201_CREATED)
def create_menu_item(payload: MenuItemCreate, db: Session = Depends(get_db)) -> MenuItem:
    return catalog_service.create_menu_item(db, **payload.model_dump())


@router.patch("/menu-items/{menu_item_id}", response_model=MenuItemRead)
def update_menu_item(menu_item_id: int, payload: MenuItemUpdate, db: Session = Depends(get_db)) -> MenuItem:
    return catalog_service.update_menu_item(db, menu_item_id, payload.model_dump(exclude_unset=True))


@router.get("/orders", response_model=list[AdminOrderRead])
def list_orders(db: Session = Depends(get_db)) -> list[AdminOrderRead]:
    return [admin_order(order) for order in list_all_orders(db)]


@router.patch("/orders/{order_id}/status", response_model=OrderRead)
def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> OrderRead:
    order = order_status.transition(
        db,
        order_id,
        payload.status,
        actor_role="ADMIN",
        actor=current_user,
        override=payload.override,
    )
    return OrderRead.model_validate(order)
