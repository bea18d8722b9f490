"""
accounts/passwords.py -- Salted keyed-hash password credentials.

Scheme: HMAC-SHA512 of the UTF-8 password, keyed with a fresh 128-byte random
key. The key doubles as the salt and is stored next to the 64-byte digest.
Every call to create_password_hash() draws a new key, so hashing the same
password twice never yields the same pair.

Verification recomputes the HMAC with the stored salt and compares with
hmac.compare_digest, which inspects the full length regardless of where the
first differing byte is.

Stored values of the wrong length are a data problem, not a wrong password:
verify_password_hash() raises InvalidInput for them instead of returning False.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets

from accounts.errors import InvalidInput

HASH_LENGTH = 64  # SHA-512 digest size
SALT_LENGTH = 128  # SHA-512 block size; HMAC uses the key as-is


def _require_password(password: str | None) -> None:
    if password is None:
        raise InvalidInput("Password is required.")
    if not password.strip():
        raise InvalidInput("Password cannot be empty or whitespace only.")


def _keyed_hash(password: str, key: bytes) -> bytes:
    return hmac.new(key, password.encode("utf-8"), hashlib.sha512).digest()


def create_password_hash(password: str | None) -> tuple[bytes, bytes]:
    """Return (hash, salt) for a new credential.

    Raises InvalidInput for a None, empty, or whitespace-only password.
    """
    _require_password(password)
    salt = secrets.token_bytes(SALT_LENGTH)
    return _keyed_hash(password, salt), salt


def verify_password_hash(password: str | None, stored_hash: bytes | None, stored_salt: bytes | None) -> bool:
    """Return True if password matches the stored credential.

    Raises InvalidInput for a blank password or for a stored hash/salt whose
    length is not HASH_LENGTH/SALT_LENGTH bytes.
    """
    _require_password(password)
    if stored_hash is None or len(stored_hash) != HASH_LENGTH:
        raise InvalidInput(f"Invalid length of password hash ({HASH_LENGTH} bytes expected).")
    if stored_salt is None or len(stored_salt) != SALT_LENGTH:
        raise InvalidInput(f"Invalid length of password salt ({SALT_LENGTH} bytes expected).")
    return hmac.compare_digest(_keyed_hash(password, stored_salt), stored_hash)
