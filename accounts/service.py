"""
accounts/service.py -- Account operations: authenticate, create, update, delete.

AccountService is the only place that knows the business rules for user
records. It receives its AccountStore by injection; the API wires a
SQLAccountStore, tests wire an InMemoryAccountStore.

Rules enforced here (not in the store):
  - Email uniqueness is checked before insert and before an email change.
  - password_hash and password_salt are always replaced together.
  - Update merge policy: first_name, last_name, role and email overwrite only
    when the patch value is non-blank; addresses are replaced only when the
    patch supplies a non-empty list; orders are APPENDED to the stored list;
    a non-blank password re-hashes the credential.

Authentication failures return None. An unknown email and a wrong password
look identical to the caller, and both run one HMAC computation so response
time does not give the difference away either.

Errors (InvalidInput, Conflict, NotFound) propagate to the caller uncaught.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from accounts.errors import Conflict, InvalidInput, NotFound
from accounts.models import User
from accounts.passwords import create_password_hash, verify_password_hash
from accounts.store import AccountStore
from accounts.tokens import issue_token

logger = logging.getLogger("ecommerce.accounts")

# Timing equalization credential. Computed once at import so the first failed
# login is not measurably slower than later ones.
_DUMMY_HASH, _DUMMY_SALT = create_password_hash("ecommerce_timing_dummy")


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


class AccountService:
    """Account operations over an injected AccountStore.

    Usage:
        service = AccountService(InMemoryAccountStore())
        user = service.create(User(email="ann@example.com"), "s3cret-pass")
        if service.authenticate("ann@example.com", "s3cret-pass"):
            token = service.generate_token(user)
    """

    def __init__(self, store: AccountStore, secret: str | None = None) -> None:
        self.store = store
        self._secret = secret

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def authenticate(self, email: str | None, password: str | None) -> User | None:
        """Return the user if email/password match a stored credential, else None."""
        if _is_blank(email) or _is_blank(password):
            return None

        user = self.store.find_by_email(email)
        if user is None:
            verify_password_hash(password, _DUMMY_HASH, _DUMMY_SALT)
            return None

        try:
            matched = verify_password_hash(password, user.password_hash, user.password_salt)
        except InvalidInput:
            logger.warning("Stored credential for user %s is malformed; login refused", user.id)
            return None
        return user if matched else None

    def generate_token(self, user: User) -> str:
        """Issue a signed session token for an authenticated user."""
        return issue_token(user, secret=self._secret)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_all(self) -> list[User]:
        return self.store.find_all()

    def get_by_id(self, user_id: str) -> User | None:
        return self.store.find_by_id(user_id)

    def get_by_email(self, email: str) -> User | None:
        return self.store.find_by_email(email)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(self, user: User, password: str | None) -> User:
        """Hash the password, insert the user, and return it with its new id.

        The argument is left untouched. Raises InvalidInput for a blank
        password and Conflict when the email is already registered.
        """
        if _is_blank(password):
            raise InvalidInput("Password is required.")
        if self.store.find_by_email(user.email) is not None:
            raise Conflict(f"Email {user.email} already exists.")

        password_hash, password_salt = create_password_hash(password)
        created = self.store.insert(replace(user, password_hash=password_hash, password_salt=password_salt))
        logger.info("Created user %s (role=%s)", created.id, created.role)
        return created

    def update(self, patch: User, password: str | None = None) -> User:
        """Merge patch into the stored record identified by patch.id.

        Blank or missing patch fields leave the stored value unchanged; they
        never clear it. Orders are appended rather than replaced.

        Raises NotFound for an unknown id and Conflict when the patch moves the
        user onto an email that another account owns.
        """
        user = self.store.find_by_id(patch.id) if patch.id is not None else None
        if user is None:
            raise NotFound("User not found.")

        if not _is_blank(patch.email) and patch.email != user.email:
            if self.store.find_by_email(patch.email) is not None:
                raise Conflict(f"Email {patch.email} already exists.")
            user.email = patch.email

        if not _is_blank(patch.first_name):
            user.first_name = patch.first_name
        if not _is_blank(patch.last_name):
            user.last_name = patch.last_name
        if not _is_blank(patch.role):
            user.role = patch.role

        if patch.addresses:
            user.addresses = list(patch.addresses)

        if patch.orders:
            user.orders = list(user.orders) + list(patch.orders)

        if not _is_blank(password):
            user.password_hash, user.password_salt = create_password_hash(password)

        if not self.store.replace_by_id(user.id, user):
            # Deleted by a concurrent request after the lookup above.
            raise NotFound("User not found.")
        logger.info("Updated user %s", user.id)
        return user

    def delete(self, user_id: str) -> None:
        """Remove the user. Deleting an unknown id is a no-op."""
        if self.store.find_by_id(user_id) is None:
            return
        self.store.delete_by_id(user_id)
        logger.info("Deleted user %s", user_id)
