"""Public catalog endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.models import MenuItem, Restaurant
from app.schemas.catalog import MenuItemRead, RestaurantRead
from app.services import catalog_service

router: APIRouter = APIRouter()


@router.get("", response_model=list[RestaurantRead])
def list_restaurants(
    category: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> list[Restaurant]:
    return catalog_service.list_restaurants(db, category=category)


@router.get("/{restaurant_id}", response_model=RestaurantRead)
def get_restaurant(restaurant_id: int, db: Session = Depends(get_db)) -> Restaurant:
    return catalog_service.get_restaurant(db, restaurant_id)


@router.get("/{restaurant_id}/menu", response_model=list[MenuItemRead])
def get_restaurant_menu(restaurant_id: int, db: Session = Depends(get_db)) -> list[MenuItem]:
    return catalog_service.list_menu_items(db, restaurant_id)
