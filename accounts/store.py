"""
accounts/store.py -- Persistence layer for user records.

Pattern: Repository + Data Mapper.
AccountStore is the repository interface the service depends on.
SQLAccountStore implements it with SQLAlchemy Core; _row_to_user and
_user_to_values are the mappers. InMemoryAccountStore implements it with a
dict for tests and throwaway local runs.

Every method is a single round-trip. There are no transactions spanning
calls, so AccountService's email check followed by insert() is not atomic.
The SQL store carries a UNIQUE(email) constraint as a backstop: a lost race
surfaces as Conflict from insert()/replace_by_id() instead of a duplicate.

Find methods return None when nothing matches -- "not found" is a value,
not an exception.

Security:
  All queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import copy
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, LargeBinary, MetaData, String, Table, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from accounts.errors import Conflict, InvalidInput
from accounts.models import Address, User

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(32), primary_key=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("first_name", String(100)),
    Column("last_name", String(100)),
    Column("role", String(30), nullable=False, server_default="User"),
    Column("password_hash", LargeBinary(64), nullable=False),
    Column("password_salt", LargeBinary(128), nullable=False),
    Column("addresses", JSON, nullable=False),  # list of Address dicts, in order
    Column("orders", JSON, nullable=False),  # list of order reference strings
    Column("created_at", String(32), nullable=False),
)


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers do not block behind a writer.

    Set per-connection because SQLite PRAGMAs are not inherited by new pool
    connections.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id() -> str:
    return uuid.uuid4().hex


def _require_credentials(user: User) -> None:
    if user.password_hash is None or user.password_salt is None:
        raise InvalidInput("User record has no password credential.")


# ---------------------------------------------------------------------------
# Repository interface
# ---------------------------------------------------------------------------


class AccountStore(ABC):
    """Collection of user records keyed by id.

    Implementations assign id and created_at on insert and must never change
    them afterwards. replace_by_id() keeps the stored id even if the record
    passed in carries a different one.
    """

    @abstractmethod
    def find_all(self) -> list[User]:
        """Return every user in insertion order."""

    @abstractmethod
    def find_by_id(self, user_id: str) -> User | None:
        """Return the user with this id, or None."""

    @abstractmethod
    def find_by_email(self, email: str) -> User | None:
        """Return the user with this exact email, or None."""

    @abstractmethod
    def insert(self, user: User) -> User:
        """Store a new user and return it with id and created_at assigned.

        Raises Conflict if the email is already taken and InvalidInput if the
        record has no password credential.
        """

    @abstractmethod
    def replace_by_id(self, user_id: str, user: User) -> bool:
        """Overwrite the stored record. Returns False if user_id was not found.

        Raises Conflict if the new email belongs to another record and
        InvalidInput if the record has no password credential.
        """

    @abstractmethod
    def delete_by_id(self, user_id: str) -> bool:
        """Remove the record. Returns True if something was deleted."""

    def ping(self) -> bool:
        """Return True if the backing storage is reachable."""
        return True

    def close(self) -> None:
        """Release any held resources. Default: nothing to release."""


# ---------------------------------------------------------------------------
# SQLAlchemy implementation
# ---------------------------------------------------------------------------


class SQLAccountStore(AccountStore):
    """SQLAlchemy Core store. One row per user; addresses/orders as JSON.

    Usage:
        store = SQLAccountStore("sqlite:///accounts.db")
        user = store.insert(User(email="a@example.com", password_hash=h, password_salt=s))
        store.find_by_email("a@example.com")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Used by /health."""
        try:
            with self.engine.connect() as conn:
                conn.exec_driver_sql("SELECT 1")
        except Exception:
            return False
        return True

    def find_all(self) -> list[User]:
        with self.engine.connect() as conn:
            rows = conn.execute(_users.select().order_by(_users.c.created_at, _users.c.id)).fetchall()
        return [_row_to_user(r) for r in rows]

    def find_by_id(self, user_id: str) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def find_by_email(self, email: str) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def insert(self, user: User) -> User:
        _require_credentials(user)
        stored = copy.deepcopy(user)
        stored.id = _new_id()
        stored.created_at = _now_iso()
        try:
            with self.engine.connect() as conn:
                conn.execute(_users.insert().values(id=stored.id, created_at=stored.created_at, **_user_to_values(stored)))
                conn.commit()
        except IntegrityError as exc:
            self._raise_integrity_error(exc, user.email, None)
        return stored

    def replace_by_id(self, user_id: str, user: User) -> bool:
        _require_credentials(user)
        try:
            with self.engine.connect() as conn:
                result = conn.execute(_users.update().where(_users.c.id == user_id).values(**_user_to_values(user)))
                conn.commit()
        except IntegrityError as exc:
            self._raise_integrity_error(exc, user.email, user_id)
        return result.rowcount > 0

    def _raise_integrity_error(self, exc: IntegrityError, email: str, user_id: str | None) -> None:
        """Translate a rejected write: Conflict if another record owns email, else InvalidInput."""
        owner = self.find_by_email(email)
        if owner is not None and owner.id != user_id:
            raise Conflict(f"Email {email} already exists.") from exc
        raise InvalidInput(f"User record rejected by the database: {exc.orig}") from exc

    def delete_by_id(self, user_id: str) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(_users.delete().where(_users.c.id == user_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------


class InMemoryAccountStore(AccountStore):
    """Dict-backed store for tests and local runs.

    Records are deep-copied on the way in and out, so mutating a returned
    User has no effect until it is passed back through replace_by_id() --
    the same behaviour callers get from the SQL store.
    """

    def __init__(self) -> None:
        self._users: dict[str, User] = {}

    def find_all(self) -> list[User]:
        return [copy.deepcopy(u) for u in self._users.values()]

    def find_by_id(self, user_id: str) -> User | None:
        user = self._users.get(user_id)
        return copy.deepcopy(user) if user is not None else None

    def find_by_email(self, email: str) -> User | None:
        for user in self._users.values():
            if user.email == email:
                return copy.deepcopy(user)
        return None

    def insert(self, user: User) -> User:
        _require_credentials(user)
        if self._email_owner(user.email) is not None:
            raise Conflict(f"Email {user.email} already exists.")
        stored = copy.deepcopy(user)
        stored.id = _new_id()
        stored.created_at = _now_iso()
        self._users[stored.id] = stored
        return copy.deepcopy(stored)

    def replace_by_id(self, user_id: str, user: User) -> bool:
        _require_credentials(user)
        current = self._users.get(user_id)
        if current is None:
            return False
        owner = self._email_owner(user.email)
        if owner is not None and owner != user_id:
            raise Conflict(f"Email {user.email} already exists.")
        stored = copy.deepcopy(user)
        stored.id = current.id
        stored.created_at = current.created_at
        self._users[user_id] = stored
        return True

    def delete_by_id(self, user_id: str) -> bool:
        return self._users.pop(user_id, None) is not None

    def _email_owner(self, email: str) -> str | None:
        for user_id, user in self._users.items():
            if user.email == email:
                return user_id
        return None


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _user_to_values(user: User) -> dict:
    # id and created_at are written once, by insert().
    return {
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "role": user.role,
        "password_hash": user.password_hash,
        "password_salt": user.password_salt,
        "addresses": [a.to_dict() for a in user.addresses],
        "orders": list(user.orders),
    }


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        first_name=row.first_name,
        last_name=row.last_name,
        role=row.role,
        password_hash=bytes(row.password_hash) if row.password_hash is not None else None,
        password_salt=bytes(row.password_salt) if row.password_salt is not None else None,
        addresses=[Address.from_dict(a) for a in (row.addresses or [])],
        orders=list(row.orders or []),
        created_at=row.created_at,
    )
