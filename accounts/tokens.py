"""
accounts/tokens.py -- Session token issuance and verification.

JWT via python-jose with HS256. A token carries the user id as the subject
claim and the user's role, plus iat/exp timestamps. Lifetime is
Settings.token_expire_days (7 days by default). There is no refresh, no
revocation list, and no audience or issuer claim -- any component holding
SECRET_KEY can verify a token on its own.

decode_token() returns None on any failure (bad signature, expired, missing
claims). The route layer turns that into a 401.

A non-ASCII signing secret is a configuration error: both functions raise
ValueError for it instead of encoding it.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from jose import JWTError, jwt

from core.config import get_settings

if TYPE_CHECKING:
    from accounts.models import User

_ALGORITHM = "HS256"


def _signing_key(secret: str | None) -> str:
    """Return the HS256 key: secret, or Settings.secret_key when None. Must be ASCII."""
    key = secret if secret is not None else get_settings().secret_key
    if not key.isascii():
        raise ValueError("Token signing secret must contain ASCII characters only.")
    return key


def issue_token(user: User, secret: str | None = None, expire_days: int = 0) -> str:
    """Encode a signed JWT with the user's id and role.

    Args:
        user:        Stored user; must have an id.
        secret:      Signing secret (ASCII). Defaults to Settings.secret_key.
        expire_days: Lifetime in days. If 0 (default), uses
                     Settings.token_expire_days.
    """
    if user.id is None:
        raise ValueError("Cannot issue a token for a user that has not been stored.")
    settings = get_settings()
    key = _signing_key(secret)
    days = expire_days if expire_days > 0 else settings.token_expire_days
    issued_at = datetime.now(timezone.utc)
    payload = {
        "sub": str(user.id),
        "role": user.role,
        "iat": issued_at,
        "exp": issued_at + timedelta(days=days),
    }
    return jwt.encode(payload, key, algorithm=_ALGORITHM)


def decode_token(token: str, secret: str | None = None) -> dict | None:
    """Verify a JWT and return its claims, or None if the token does not verify."""
    key = _signing_key(secret)
    try:
        payload = jwt.decode(token, key, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    if not payload.get("sub") or "role" not in payload:
        return None
    return payload
