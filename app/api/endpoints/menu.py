"""Single menu item lookup."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.models import MenuItem
from app.schemas.catalog import MenuItemRead
from app.services.catalog_service import get_menu_item as load_menu_item

router: APIRouter = APIRouter()


@router.get("/{menu_item_id}", response_model=MenuItemRead)
def get_menu_item(menu_item_id: int, db: Session = Depends(get_db)) -> MenuItem:
    return load_menu_item(db, menu_item_id)
