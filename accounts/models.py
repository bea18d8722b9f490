"""
accounts/models.py -- Domain dataclasses for account entities.

Pattern: Data class (pure data containers; the only logic is the Address.kind
check in __post_init__). Stores and the service do the work; these classes
only own the shape of a user record.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from accounts.errors import InvalidInput


class Role:
    """Known values for User.role. The role is a free-form claim; these are the
    two the API's authorization checks recognise."""

    ADMIN = "Admin"
    USER = "User"


ADDRESS_KINDS = ("shipping", "billing")


@dataclass
class Address:
    """A shipping or billing address attached to a user.

    kind must be one of ADDRESS_KINDS; anything else raises InvalidInput.
    """

    street: str
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None
    kind: str = "shipping"

    def __post_init__(self) -> None:
        if self.kind not in ADDRESS_KINDS:
            raise InvalidInput(f"Unknown address kind {self.kind!r}; expected one of {', '.join(ADDRESS_KINDS)}.")

    def to_dict(self) -> dict:
        return {
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "postal_code": self.postal_code,
            "country": self.country,
            "kind": self.kind,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Address:
        return cls(
            street=data["street"],
            city=data.get("city"),
            state=data.get("state"),
            postal_code=data.get("postal_code"),
            country=data.get("country"),
            kind=data.get("kind") or "shipping",
        )


@dataclass
class User:
    """A customer or staff account.

    id is None until the store inserts the record; the store assigns an opaque
    hex identifier and nothing changes it afterwards.

    password_hash (64 bytes) and password_salt (128 bytes) are always written
    together by AccountService -- never set one without the other.

    orders holds order references. Updates append to it; every other
    collection or attribute is overwritten (see AccountService.update).
    """

    email: str
    id: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    role: str = Role.USER
    password_hash: bytes | None = None
    password_salt: bytes | None = None
    addresses: list[Address] = field(default_factory=list)
    orders: list[str] = field(default_factory=list)
    created_at: str = ""  # ISO 8601, set by store on insert
