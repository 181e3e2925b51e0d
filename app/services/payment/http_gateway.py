"""
HTTP payment gateway adapter (orders/payments REST API with basic auth).

Every call carries an explicit timeout; transport errors, timeouts and 5xx
responses surface as ``GatewayUnavailable`` so callers leave orders untouched.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

import httpx

from app.core.errors import GatewayUnavailable, InvalidAmount, PaymentRejected
from app.services.payment.base import (
    PaymentGateway,
    PaymentIntent,
    VerificationResult,
    signature_matches,
    to_minor_units,
)

logger = logging.getLogger(__name__)

SETTLED_PAYMENT_STATES: set[str] = {"authorized", "captured"}


class HttpPaymentGateway(PaymentGateway):
    def __init__(
        self,
        base_url: str,
        key_id: str,
        key_secret: str,
        *,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.key_secret = key_secret
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            auth=(key_id, key_secret),
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    @property
    def provider_name(self) -> str:
        return "http"

    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            logger.warning("[PAYMENT] %s %s timed out", method, path)
            raise GatewayUnavailable("Payment provider timed out") from exc
        except httpx.TransportError as exc:
            logger.warning("[PAYMENT] %s %s failed: %s", method, path, exc)
            raise GatewayUnavailable() from exc

        if response.status_code >= 500:
            logger.warning("[PAYMENT] %s %s returned %s", method, path, response.status_code)
            raise GatewayUnavailable()
        if response.status_code >= 400:
            raise PaymentRejected(f"Payment provider refused the request ({response.status_code})")
        return response.json()

    def create_intent(self, amount: Decimal, order_ref: str, currency: str = "usd") -> PaymentIntent:
        if amount <= 0:
            raise InvalidAmount()
        body = self._request(
            "POST",
            "/orders",
            json={"amount": to_minor_units(amount), "currency": currency.upper(), "receipt": order_ref},
        )
        return PaymentIntent(
            intent_id=str(body["id"]),
            amount=amount,
            currency=currency,
            order_ref=order_ref,
            metadata={"status": body.get("status")},
        )

    def verify_completion(
        self,
        intent_id: str,
        order_ref: str,
        payment_id: str,
        signature: str,
    ) -> VerificationResult:
        if not payment_id or not signature_matches(self.key_secret, intent_id, payment_id, signature):
            return VerificationResult.REJECTED
        payment = self._request("GET", f"/payments/{payment_id}")
        if payment.get("order_id") != intent_id or payment.get("status") not in SETTLED_PAYMENT_STATES:
            logger.info("[PAYMENT] Payment %s for %s not settled (status=%s)", payment_id, order_ref, payment.get("status"))
            return VerificationResult.REJECTED
        return VerificationResult.VERIFIED

    def health_check(self) -> bool:
        try:
            self._request("GET", "/orders", params={"count": 1})
        except (GatewayUnavailable, PaymentRejected):
            return False
        return True

    def close(self) -> None:
        self._client.close()
