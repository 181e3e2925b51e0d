"""Database seeding helpers."""

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.security import get_password_hash
from app.models import MenuItem, Restaurant
from app.services.user_service import create_user, get_user_by_email

logger = logging.getLogger(__name__)

DEMO_CATALOG: list[dict] = [
    {
        "name": "Burger Palace",
        "description": "Delicious gourmet burgers and fries",
        "cuisine": "American",
        "rating": Decimal("4.8"),
        "delivery_time": "25-35 min",
        "delivery_fee": Decimal("3.99"),
        "menu": [
            ("Classic Burger", "Beef patty, cheddar, lettuce, tomato", Decimal("12.99"), "Burgers"),
            ("Bacon Deluxe", "Double patty with smoked bacon", Decimal("15.49"), "Burgers"),
            ("Truffle Fries", "Hand-cut fries with truffle oil", Decimal("5.99"), "Sides"),
        ],
    },
    {
        "name": "Mario's Pizzeria",
        "description": "Authentic Italian pizza and pasta",
        "cuisine": "Italian",
        "rating": Decimal("4.9"),
        "delivery_time": "20-30 min",
        "delivery_fee": Decimal("2.99"),
        "menu": [
            ("Margherita", "San Marzano tomato, mozzarella, basil", Decimal("12.99"), "Pizza"),
            ("Spaghetti Carbonara", "Guanciale, pecorino, egg yolk", Decimal("14.50"), "Pasta"),
            ("Tiramisu", "Mascarpone and espresso", Decimal("6.75"), "Desserts"),
        ],
    },
    {
        "name": "Green Garden Cafe",
        "description": "Fresh healthy salads and bowls",
        "cuisine": "Healthy",
        "rating": Decimal("4.7"),
        "delivery_time": "15-25 min",
        "delivery_fee": Decimal("4.99"),
        "menu": [
            ("Quinoa Bowl", "Quinoa, avocado, chickpeas, tahini", Decimal("11.25"), "Bowls"),
            ("Caesar Salad", "Romaine, parmesan, croutons", Decimal("9.80"), "Salads"),
        ],
    },
]


def ensure_admin_user(session: Session, settings: Settings) -> None:
    """Ensure the configured admin account exists."""
    if not settings.admin_email or not settings.admin_password:
        return

    existing_user = get_user_by_email(db=session, email=settings.admin_email)
    if existing_user is not None:
        return

    create_user(
        db=session,
        username=settings.admin_email.split("@")[0],
        email=settings.admin_email,
        hashed_password=get_password_hash(settings.admin_password),
        role="ADMIN",
    )
    logger.info("[BOOTSTRAP] Admin account created for %s", settings.admin_email)


def ensure_demo_catalog(session: Session) -> None:
    """Seed demo restaurants and menus into an empty catalog."""
    if session.scalar(select(Restaurant.id).limit(1)) is not None:
        return

    for entry in DEMO_CATALOG:
        restaurant = Restaurant(
            name=entry["name"],
            description=entry["description"],
            cuisine=entry["cuisine"],
            rating=entry["rating"],
            delivery_time=entry["delivery_time"],
            delivery_fee=entry["delivery_fee"],
            is_active=True,
        )
        session.add(restaurant)
        session.flush()
        for name, description, price, category in entry["menu"]:
            session.add(
                MenuItem(
                    restaurant_id=restaurant.id,
                    name=name,
                    description=description,
                    price=price,
                    category=category,
                    is_available=True,
                )
            )
    session.commit()
    logger.info("[BOOTSTRAP] Seeded %s demo restaurants", len(DEMO_CATALOG))
