"""Application configuration."""

from decimal import Decimal
from os import getenv

from fastapi import Request
from pydantic import BaseModel


class Settings(BaseModel):
    """Runtime settings for the application."""

    app_name: str = "Food Ordering API"
    app_env: str = getenv("APP_ENV", "dev")
    debug: bool = getenv("DEBUG", "0") == "1"
    log_level: str = getenv("LOG_LEVEL", "INFO")
    database_url: str = getenv("DATABASE_URL", "sqlite:///./food_ordering.db")
    jwt_secret_key: str = getenv("JWT_SECRET_KEY", "dev-only-change-me-to-a-long-random-secret")
    jwt_algorithm: str = getenv("JWT_ALGORITHM", "HS256")
    jwt_expire_minutes: int = int(getenv("JWT_EXPIRE_MINUTES", "60"))
    tax_rate: Decimal = Decimal(getenv("TAX_RATE", "0.08"))
    currency: str = getenv("CURRENCY", "usd")
    payment_provider: str = getenv("PAYMENT_PROVIDER", "mock")
    payment_api_url: str = getenv("PAYMENT_API_URL", "https://api.razorpay.com/v1")
    payment_key_id: str = getenv("PAYMENT_KEY_ID", "")
    payment_key_secret: str = getenv("PAYMENT_KEY_SECRET", "dev-payment-secret-change-me")
    payment_timeout_seconds: float = float(getenv("PAYMENT_TIMEOUT_SECONDS", "10"))
    admin_email: str = getenv("ADMIN_EMAIL", "")
    admin_password: str = getenv("ADMIN_PASSWORD", "")
    seed_demo_data: bool = getenv("SEED_DEMO_DATA", "0") == "1"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


settings: Settings = Settings()


def get_settings(request: Request) -> Settings:
    """Return the settings instance the running app was built with."""
    return request.app.state.settings
