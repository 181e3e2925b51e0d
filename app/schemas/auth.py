"""Authentication-related request and response schemas."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.common import CamelRequest


def _check_email(value: str) -> str:
    value = value.strip().lower()
    local, _, domain = value.partition("@")
    if not local or "." not in domain:
        raise ValueError("Invalid email address")
    return value


class RegisterRequest(CamelRequest):
    """Payload for customer registration."""

    username: str = Field(min_length=2, max_length=128)
    email: str
    password: str = Field(min_length=6)
    phone: str | None = None
    address: str | None = None

    normalize_email = field_validator("email")(_check_email)


class LoginRequest(CamelRequest):
    """Payload for user login."""

    email: str
    password: str = Field(min_length=1)

    normalize_email = field_validator("email")(_check_email)


class UserRead(BaseModel):
    """Public view of an account."""

    id: int
    username: str
    email: str
    role: str
    phone: str | None = None
    address: str | None = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("role")
    @classmethod
    def _lower_role(cls, value: str) -> str:
        return value.lower()


class UserEnvelope(BaseModel):
    user: UserRead


class LoginResponse(BaseModel):
    """User plus JWT for subsequent requests."""

    user: UserRead
    access_token: str
    token_type: str = "bearer"
