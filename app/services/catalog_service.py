"""Catalog store: restaurants and their menus."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import NotFound, StorageError, ValidationFailed
from app.models import MenuItem, Restaurant

logger = logging.getLogger(__name__)

RESTAURANT_EDITABLE_FIELDS: set[str] = {
    "name",
    "description",
    "cuisine",
    "image",
    "rating",
    "delivery_time",
    "delivery_fee",
    "is_active",
}
RESTAURANT_REQUIRED_FIELDS: set[str] = {"name", "cuisine", "rating", "delivery_fee", "is_active"}
MENU_ITEM_EDITABLE_FIELDS: set[str] = {"name", "description", "price", "image", "category", "is_available"}
MENU_ITEM_REQUIRED_FIELDS: set[str] = {"name", "price", "category", "is_available"}


def list_restaurants(db: Session, category: str | None = None) -> list[Restaurant]:
    """Return active restaurants, optionally filtered by cuisine (case-insensitive exact match)."""
    query = select(Restaurant).where(Restaurant.is_active.is_(True))
    if category is not None and category.strip():
        query = query.where(func.lower(Restaurant.cuisine) == category.strip().lower())
    return list(db.scalars(query.order_by(Restaurant.name.asc(), Restaurant.id.asc())).all())


def list_all_restaurants(db: Session) -> list[Restaurant]:
    """Return every restaurant including deactivated ones, for administration."""
    return list(db.scalars(select(Restaurant).order_by(Restaurant.id.asc())).all())


def get_restaurant(db: Session, restaurant_id: int) -> Restaurant:
    restaurant = db.get(Restaurant, restaurant_id)
    if restaurant is None or not restaurant.is_active:
        raise NotFound("Restaurant not found")
    return restaurant


def list_menu_items(db: Session, restaurant_id: int) -> list[MenuItem]:
    """Return available menu items of an active restaurant."""
    get_restaurant(db, restaurant_id)
    return list(
        db.scalars(
            select(MenuItem)
            .where(MenuItem.restaurant_id == restaurant_id, MenuItem.is_available.is_(True))
            .order_by(MenuItem.category.asc(), MenuItem.id.asc())
        ).all()
    )


def get_menu_item(db: Session, menu_item_id: int) -> MenuItem:
    item = db.get(MenuItem, menu_item_id)
    if item is None or not item.is_available or not item.restaurant.is_active:
        raise NotFound("Menu item not found")
    return item


def get_menu_items_by_ids(db: Session, menu_item_ids: set[int]) -> dict[int, MenuItem]:
    """Load menu items in one query, keyed by id, regardless of availability."""
    if not menu_item_ids:
        return {}
    rows = db.scalars(select(MenuItem).where(MenuItem.id.in_(menu_item_ids))).all()
    return {row.id: row for row in rows}


def _ensure_money(value: Any, field: str) -> None:
    if value is not None and Decimal(value) < 0:
        raise ValidationFailed(f"{field} must not be negative")


def _apply_changes(entity: Any, changes: dict[str, Any], editable: set[str], required: set[str]) -> None:
    updates = {field: value for field, value in changes.items() if field in editable}
    for field, value in updates.items():
        if value is None and field in required:
            raise ValidationFailed(f"{field} may not be null")
    for field, value in updates.items():
        setattr(entity, field, value)


def _commit(db: Session, entity: Any) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("[ADMIN] Failed to save %s", type(entity).__name__)
        raise StorageError() from exc
    db.refresh(entity)


def create_restaurant(db: Session, **fields: Any) -> Restaurant:
    _ensure_money(fields.get("delivery_fee"), "delivery_fee")
    restaurant = Restaurant(**fields)
    db.add(restaurant)
    _commit(db, restaurant)
    return restaurant


def update_restaurant(db: Session, restaurant_id: int, changes: dict[str, Any]) -> Restaurant:
    """Apply admin edits; deactivation is the only form of removal."""
    restaurant = db.get(Restaurant, restaurant_id)
    if restaurant is None:
        raise NotFound("Restaurant not found")
    _ensure_money(changes.get("delivery_fee"), "delivery_fee")
    _apply_changes(restaurant, changes, RESTAURANT_EDITABLE_FIELDS, RESTAURANT_REQUIRED_FIELDS)
    _commit(db, restaurant)
    return restaurant


def deactivate_restaurant(db: Session, restaurant_id: int) -> Restaurant:
    return update_restaurant(db, restaurant_id, {"is_active": False})


def create_menu_item(db: Session, **fields: Any) -> MenuItem:
    restaurant = db.get(Restaurant, fields.get("restaurant_id"))
    if restaurant is None:
        raise NotFound("Restaurant not found")
    _ensure_money(fields.get("price"), "price")
    item = MenuItem(**fields)
    db.add(item)
    _commit(db, item)
    return item


def update_menu_item(db: Session, menu_item_id: int, changes: dict[str, Any]) -> MenuItem:
    """Edit a menu item; existing order lines keep their own price copy."""
    item = db.get(MenuItem, menu_item_id)
    if item is None:
        raise NotFound("Menu item not found")
    _ensure_money(changes.get("price"), "price")
    _apply_changes(item, changes, MENU_ITEM_EDITABLE_FIELDS, MENU_ITEM_REQUIRED_FIELDS)
    _commit(db, item)
    return item


def count_restaurants(db: Session) -> int:
    return int(db.scalar(select(func.count(Restaurant.id))) or 0)
