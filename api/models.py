"""
API request and response models for the account REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in accounts/models.py, which own
the internal domain representation. Route handlers map between the two.

Credential fields (password_hash, password_salt) exist only on the domain
side; no response model here can carry them.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from accounts.models import Address, User

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class AddressKindEnum(str, Enum):
    shipping = "shipping"
    billing = "billing"


# ---------------------------------------------------------------------------
# Shared shapes
# ---------------------------------------------------------------------------


class AddressModel(BaseModel):
    """One shipping or billing address, in request and response bodies."""

    model_config = ConfigDict(str_strip_whitespace=True)

    street: str = Field(min_length=1, max_length=255)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    postal_code: Optional[str] = Field(default=None, max_length=20)
    country: Optional[str] = Field(default=None, max_length=100)
    kind: AddressKindEnum = AddressKindEnum.shipping

    def to_domain(self) -> Address:
        return Address(
            street=self.street,
            city=self.city,
            state=self.state,
            postal_code=self.postal_code,
            country=self.country,
            kind=self.kind.value,
        )

    @classmethod
    def from_domain(cls, address: Address) -> "AddressModel":
        return cls(
            street=address.street,
            city=address.city,
            state=address.state,
            postal_code=address.postal_code,
            country=address.country,
            kind=AddressKindEnum(address.kind),
        )


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class AuthenticateRequest(BaseModel):
    """Request body for POST /api/v1/users/authenticate.

    No min_length on either field: blank credentials must produce the same
    401 as wrong ones, not a 422 that tells the caller which field was empty.
    """

    email: str = Field(default="", max_length=255)
    password: str = Field(default="", max_length=255)


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/users/register.

    Self-registration always creates a "User" account; there is no role
    field here. Password blankness is checked by the service (400). No
    whitespace stripping: leading and trailing spaces are part of a password.
    """

    email: str = Field(min_length=3, max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(max_length=255)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    addresses: list[AddressModel] = Field(default_factory=list, max_length=20)


class UserUpdate(BaseModel):
    """Request body for PUT /api/v1/users/{user_id}.

    Every field is optional. Omitted or blank fields leave the stored value
    unchanged; orders are appended to the existing list.
    """

    email: Optional[str] = Field(default=None, max_length=255, pattern=EMAIL_PATTERN)
    password: Optional[str] = Field(default=None, max_length=255)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    role: Optional[str] = Field(default=None, max_length=30)
    addresses: Optional[list[AddressModel]] = Field(default=None, max_length=20)
    orders: Optional[list[str]] = Field(default=None, max_length=100)

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_means_unchanged(cls, value):
        """Treat a blank email as omitted so it skips the pattern check."""
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def to_patch(self, user_id: str) -> User:
        """Build the domain patch the service merges into the stored record."""
        return User(
            id=user_id,
            email=self.email or "",
            first_name=self.first_name,
            last_name=self.last_name,
            role=self.role or "",
            addresses=[a.to_domain() for a in self.addresses or []],
            orders=list(self.orders or []),
        )


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public view of a user record."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    first_name: Optional[str]
    last_name: Optional[str]
    role: str
    addresses: list[AddressModel] = Field(default_factory=list)
    orders: list[str] = Field(default_factory=list)
    created_at: str = ""

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        """Build a UserResponse from a domain User, dropping credential fields."""
        return cls(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role,
            addresses=[AddressModel.from_domain(a) for a in user.addresses],
            orders=list(user.orders),
            created_at=user.created_at or "",
        )


class AuthenticateResponse(BaseModel):
    """Response for a successful POST /api/v1/users/authenticate."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    first_name: Optional[str]
    last_name: Optional[str]
    role: str
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
