"""
accounts/errors.py -- Error kinds raised by the account core.

Every failure the service reports to its caller is an AccountError subclass
carrying a machine-readable code. The API layer maps codes to status codes
(invalid_input -> 400, not_found -> 404, conflict -> 409) in one exception
handler instead of try/except blocks in every route.

A failed login is NOT an error: AccountService.authenticate() returns None
so callers cannot tell an unknown email from a wrong password.
"""

from __future__ import annotations


class AccountError(Exception):
    """Base class for account-core failures."""

    code: str = "account_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInput(AccountError, ValueError):
    """Missing or malformed password, or a stored credential of the wrong length."""

    code = "invalid_input"


class Conflict(AccountError):
    """Another account already owns the requested email address."""

    code = "conflict"


class NotFound(AccountError):
    """The account targeted by an update does not exist."""

    code = "not_found"
