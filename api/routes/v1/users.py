"""
api/routes/v1/users.py -- Account REST endpoints.

Routes:
  POST   /api/v1/users/authenticate  -- email/password login; returns a bearer token
  POST   /api/v1/users/register      -- self-registration (role is always "User")
  GET    /api/v1/users               -- list all users (admin only)
  GET    /api/v1/users/{user_id}     -- one user (admin only)
  PUT    /api/v1/users/{user_id}     -- merge-update a user (admin only)
  DELETE /api/v1/users/{user_id}     -- delete a user; idempotent (admin only)

Handlers only translate: request model -> domain object -> AccountService ->
response model. AccountError subclasses raised by the service propagate to
the handler in api/main.py, which maps them to 400/404/409.

Security:
  POST /authenticate is rate-limited per client IP.
  Wrong email and wrong password return the same "bad_credentials" 401.
  Cache-Control: no-store on authenticate responses (they carry a token).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import JSONResponse

from accounts.models import Role, User
from accounts.service import AccountService
from api.dependencies import get_account_service, require_admin
from api.limiter import limiter
from api.models import AuthenticateRequest, AuthenticateResponse, RegisterRequest, UserResponse, UserUpdate
from core.config import get_settings

# Auth policy:
# - POST   /users/authenticate: public -- issues the token every other route needs
# - POST   /users/register:     public -- creates "User" accounts only
# - GET    /users:              Admin
# - GET    /users/{id}:         Admin
# - PUT    /users/{id}:         Admin
# - DELETE /users/{id}:         Admin
router = APIRouter()


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/users/authenticate", response_model=AuthenticateResponse)
@limiter.limit(get_settings().authenticate_rate_limit)
def authenticate(
    request: Request,
    body: AuthenticateRequest,
    service: AccountService = Depends(get_account_service),
) -> JSONResponse:
    """Check email/password and return the user's profile with a signed token."""
    user = service.authenticate(body.email, body.password)
    if user is None:
        resp = JSONResponse(
            status_code=401,
            content={"error": {"code": "bad_credentials", "message": "Email or password is incorrect."}},
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    token = service.generate_token(user)
    resp = JSONResponse(
        status_code=200,
        content=AuthenticateResponse(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role,
            access_token=token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=get_settings().token_expire_days * 24 * 3600,
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/users/register", response_model=UserResponse, status_code=201)
def register(body: RegisterRequest, service: AccountService = Depends(get_account_service)) -> UserResponse:
    """Create a customer account. Returns 409 if the email is already registered."""
    user = User(
        email=body.email,
        first_name=body.first_name,
        last_name=body.last_name,
        role=Role.USER,
        addresses=[a.to_domain() for a in body.addresses],
    )
    created = service.create(user, body.password)
    return UserResponse.from_user(created)


# ---------------------------------------------------------------------------
# User management (admin only)
# ---------------------------------------------------------------------------


@router.get("/users", response_model=list[UserResponse])
def list_users(
    service: AccountService = Depends(get_account_service),
    current_user: User = Depends(require_admin),
) -> list[UserResponse]:
    """List all user accounts. Admin only."""
    return [UserResponse.from_user(u) for u in service.get_all()]


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(
    user_id: str,
    service: AccountService = Depends(get_account_service),
    current_user: User = Depends(require_admin),
) -> UserResponse:
    """Return one user account. Admin only."""
    user = service.get_by_id(user_id)
    if user is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": "User not found."},
        )
    return UserResponse.from_user(user)


@router.put("/users/{user_id}", response_model=UserResponse)
def update_user(
    user_id: str,
    body: UserUpdate,
    service: AccountService = Depends(get_account_service),
    current_user: User = Depends(require_admin),
) -> UserResponse:
    """Merge the body into the stored account. Admin only.

    Omitted or blank fields keep their stored values. Orders in the body are
    appended to the account's existing orders.
    """
    updated = service.update(body.to_patch(user_id), body.password)
    return UserResponse.from_user(updated)


@router.delete("/users/{user_id}", status_code=204)
def delete_user(
    user_id: str,
    service: AccountService = Depends(get_account_service),
    current_user: User = Depends(require_admin),
) -> Response:
    """Delete an account. Unknown ids also return 204. Admin only."""
    service.delete(user_id)
    return Response(status_code=204)
