"""Request-scoped dependencies shared by endpoint modules."""

from fastapi import Request

from app.services.payment import PaymentGateway


def get_payment_gateway(request: Request) -> PaymentGateway:
    return request.app.state.payment_gateway
