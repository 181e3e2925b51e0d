"""
Payment gateway factory.

Usage:
    gateway = build_payment_gateway(settings)
    intent = gateway.create_intent(order.total_amount, f"order-{order.id}")

PAYMENT_PROVIDER=mock selects the in-process gateway; PAYMENT_PROVIDER=http
selects the REST adapter configured by PAYMENT_API_URL/PAYMENT_KEY_*.
"""

import logging

from app.core.config import Settings
from app.services.payment.base import PaymentGateway, PaymentIntent, VerificationResult, sign_completion
from app.services.payment.http_gateway import HttpPaymentGateway
from app.services.payment.mock import MockPaymentGateway

logger = logging.getLogger(__name__)


def build_payment_gateway(settings: Settings) -> PaymentGateway:
    """Return the configured gateway; called once per application."""
    provider = settings.payment_provider.strip().lower()
    if provider == "http":
        if not settings.payment_key_id:
            raise ValueError("PAYMENT_KEY_ID is required when PAYMENT_PROVIDER=http")
        logger.info("Payment gateway: HttpPaymentGateway (%s)", settings.payment_api_url)
        return HttpPaymentGateway(
            settings.payment_api_url,
            settings.payment_key_id,
            settings.payment_key_secret,
            timeout=settings.payment_timeout_seconds,
        )
    if provider != "mock":
        raise ValueError(f"Unknown PAYMENT_PROVIDER: {settings.payment_provider}")
    logger.info("Payment gateway: MockPaymentGateway")
    return MockPaymentGateway(settings.payment_key_secret, timeout=settings.payment_timeout_seconds)


__all__ = [
    "build_payment_gateway",
    "HttpPaymentGateway",
    "MockPaymentGateway",
    "PaymentGateway",
    "PaymentIntent",
    "VerificationResult",
    "sign_completion",
]
