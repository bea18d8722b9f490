"""
api/dependencies.py -- FastAPI Depends() helpers for authentication.

Requests authenticate with an "Authorization: Bearer <token>" header carrying
a token issued by POST /api/v1/users/authenticate.

get_account_service() returns the AccountService wired into app.state.
try_get_current_user() is the soft variant (returns None on failure).
get_current_user() wraps it and raises HTTP 401 if unauthenticated.
require_admin() wraps get_current_user() and raises HTTP 403 unless the
stored role is Admin. The role is re-read from the store rather than trusted
from the token, so a demotion takes effect before the token expires.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from accounts.models import Role, User
from accounts.service import AccountService
from accounts.tokens import decode_token


def get_account_service(request: Request) -> AccountService:
    return request.app.state.account_service


def try_get_current_user(request: Request) -> User | None:
    """Resolve the bearer token to a stored user, or None on any failure."""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    payload = decode_token(auth_header[7:])
    if payload is None:
        return None
    return get_account_service(request).get_by_id(payload["sub"])


def get_current_user(request: Request) -> User:
    """Require authentication. Raises HTTP 401 if the request is not authenticated."""
    user = try_get_current_user(request)
    if user is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
        )
    return user


def require_admin(request: Request) -> User:
    """Require the Admin role. Raises HTTP 401 if unauthenticated, HTTP 403 otherwise."""
    user = get_current_user(request)
    if user.role != Role.ADMIN:
        raise HTTPException(
            status_code=403,
            detail={"code": "forbidden", "message": "Admin access required."},
        )
    return user
