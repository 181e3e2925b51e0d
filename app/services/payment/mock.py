"""
In-process payment gateway for development and tests.

Signs completions with the same shared secret the verifier checks, so the
signature path is exercised for real. Failure modes are explicit rather than
random so tests stay deterministic.
"""

from __future__ import annotations

import logging
import time
import uuid
from decimal import Decimal

from app.core.errors import GatewayUnavailable, InvalidAmount
from app.services.payment.base import (
    PaymentGateway,
    PaymentIntent,
    VerificationResult,
    sign_completion,
    signature_matches,
)

logger = logging.getLogger(__name__)

FAIL_UNAVAILABLE = "unavailable"
FAIL_TIMEOUT = "timeout"


class MockPaymentGateway(PaymentGateway):
    """
    Attributes:
        secret: Shared secret used to sign and verify completions
        fail_mode: None, "unavailable" or "timeout"
        latency: Simulated provider latency in seconds
        timeout: Seconds after which a slow call counts as a timeout
    """

    def __init__(
        self,
        secret: str,
        *,
        fail_mode: str | None = None,
        latency: float = 0.0,
        timeout: float = 10.0,
    ) -> None:
        self.secret = secret
        self.fail_mode = fail_mode
        self.latency = latency
        self.timeout = timeout
        self.intents: dict[str, PaymentIntent] = {}
        logger.info("MockPaymentGateway initialized (fail_mode=%s, latency=%ss)", fail_mode, latency)

    @property
    def provider_name(self) -> str:
        return "mock"

    def _simulate_call(self) -> None:
        if self.fail_mode == FAIL_UNAVAILABLE:
            raise GatewayUnavailable("Payment provider is unavailable, please retry")
        if self.fail_mode == FAIL_TIMEOUT or self.latency > self.timeout:
            raise GatewayUnavailable(f"Payment provider timed out after {self.timeout}s")
        if self.latency:
            time.sleep(self.latency)

    def create_intent(self, amount: Decimal, order_ref: str, currency: str = "usd") -> PaymentIntent:
        if amount <= 0:
            raise InvalidAmount()
        self._simulate_call()
        intent = PaymentIntent(
            intent_id=f"order_mock_{uuid.uuid4().hex[:20]}",
            amount=amount,
            currency=currency,
            order_ref=order_ref,
            metadata={"mock": True},
        )
        self.intents[intent.intent_id] = intent
        logger.debug("Mock: Created payment intent %s for %s", intent.intent_id, order_ref)
        return intent

    def complete(self, intent_id: str) -> tuple[str, str]:
        """Simulate the customer paying: return ``(payment_id, signature)``."""
        payment_id = f"pay_mock_{uuid.uuid4().hex[:20]}"
        return payment_id, sign_completion(self.secret, intent_id, payment_id)

    def verify_completion(
        self,
        intent_id: str,
        order_ref: str,
        payment_id: str,
        signature: str,
    ) -> VerificationResult:
        self._simulate_call()
        intent = self.intents.get(intent_id)
        if intent is None or intent.order_ref != order_ref:
            return VerificationResult.REJECTED
        if not payment_id or not signature_matches(self.secret, intent_id, payment_id, signature):
            return VerificationResult.REJECTED
        return VerificationResult.VERIFIED

    def health_check(self) -> bool:
        return self.fail_mode is None
