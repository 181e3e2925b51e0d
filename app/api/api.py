"""API router composition."""

from fastapi import APIRouter

from app.api.endpoints import admin, auth, menu, orders, payment, restaurants, users

api_router: APIRouter = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(restaurants.router, prefix="/restaurants", tags=["catalog"])
api_router.include_router(menu.router, prefix="/menu", tags=["catalog"])
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(users.router, prefix="/users", tags=["orders"])
api_router.include_router(payment.router, prefix="/payment", tags=["payment"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
