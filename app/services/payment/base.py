"""
Payment gateway interface.

The rest of the application talks to payment providers only through
``PaymentGateway``. Implementations raise ``GatewayUnavailable`` for
retryable transport problems (including timeouts) and ``InvalidAmount``
for non-positive amounts; they never touch order state themselves.
"""

from __future__ import annotations

import hashlib
import hmac
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any


class VerificationResult(str, Enum):
    VERIFIED = "verified"
    REJECTED = "rejected"


@dataclass
class PaymentIntent:
    """
    Gateway-issued token for an authorized pending charge.

    Attributes:
        intent_id: Provider identifier, sent back on completion
        amount: Amount in major currency units
        currency: Lower-case currency code
        order_ref: Our order reference the intent was created for
        metadata: Extra provider data passed through to the client
    """

    intent_id: str
    amount: Decimal
    currency: str
    order_ref: str
    metadata: dict[str, Any] = field(default_factory=dict)


def sign_completion(secret: str, intent_id: str, payment_id: str) -> str:
    """HMAC-SHA256 over ``"{intent_id}|{payment_id}"`` as the provider computes it."""
    message = f"{intent_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def signature_matches(secret: str, intent_id: str, payment_id: str, signature: str) -> bool:
    expected = sign_completion(secret, intent_id, payment_id)
    return hmac.compare_digest(expected, (signature or "").strip().lower())


def to_minor_units(amount: Decimal) -> int:
    return int((amount * 100).to_integral_value())


class PaymentGateway(ABC):
    """
    Abstract payment provider adapter.

    Example:
        >>> intent = gateway.create_intent(Decimal("31.05"), "order-12")
        >>> gateway.verify_completion(intent.intent_id, "order-12", payment_id, signature)
        <VerificationResult.VERIFIED: 'verified'>
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the name of the payment provider (e.g. "mock", "http")."""

    @abstractmethod
    def create_intent(self, amount: Decimal, order_ref: str, currency: str = "usd") -> PaymentIntent:
        """
        Create a payment intent for ``amount``.

        Raises:
            InvalidAmount: amount <= 0 (not retryable)
            GatewayUnavailable: provider unreachable or timed out (retryable)
        """

    @abstractmethod
    def verify_completion(
        self,
        intent_id: str,
        order_ref: str,
        payment_id: str,
        signature: str,
    ) -> VerificationResult:
        """
        Check the provider-signed completion callback.

        Raises:
            GatewayUnavailable: provider could not be asked (retryable)
        """

    @abstractmethod
    def health_check(self) -> bool:
        """Return True if the provider is reachable."""
