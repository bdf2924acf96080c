"""
Auth endpoints — login (OAuth2 password flow), refresh, logout, profile.
"""

import logging

from fastapi import (APIRouter, Cookie, Depends, HTTPException, Request,
                     Response, status)
from fastapi.security import OAuth2PasswordRequestForm
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.api.v1.deps import get_current_user, get_db, require_permission
from backoffice.core.config import settings
from backoffice.core.permissions import role_permissions
from backoffice.core.security import (create_access_token, create_refresh_token,
                                      decode_refresh_token, get_password_hash,
                                      verify_password)
from backoffice.models.user import User
from backoffice.schemas.token import LogoutResponse, RefreshRequest, Token
from backoffice.schemas.user import PermissionsRead, UserCreate, UserRead
from backoffice.services.auth_state import Identity

# Rate limiter — keyed by client IP
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


def _issue_tokens(response: Response, user_id: int) -> Token:
    """Mint a token pair and mirror it into HttpOnly cookies."""
    access_token = create_access_token(user_id)
    refresh_token = create_refresh_token(user_id)

    response.set_cookie(
        key="access_token",
        value=f"Bearer {access_token}",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    response.set_cookie(
        key="refresh_token",
        value=refresh_token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
    )
    return Token(access_token=access_token, refresh_token=refresh_token)


@router.post("/login", response_model=Token)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login_for_access_token(
    request: Request,
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
) -> Token:
    """Sign in with email (or username) and password."""
    login = form_data.username.strip()
    result = await db.execute(
        select(User).where(or_(User.email == login.lower(), User.username == login))
    )
    user = result.scalar_one_or_none()

    if user is None or not verify_password(form_data.password, user.hashed_password):
        logger.info("Failed login for %s", login)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )

    logger.info("User %s signed in as %s", user.email, user.role)
    return _issue_tokens(response, user.id)


@router.post("/refresh", response_model=Token)
@limiter.limit(settings.REFRESH_RATE_LIMIT)
async def refresh_access_token_endpoint(
    request: Request,
    response: Response,
    body: RefreshRequest | None = None,
    refresh_token_cookie: str | None = Cookie(None, alias="refresh_token"),
    db: AsyncSession = Depends(get_db),
) -> Token:
    # Priority: Body > Cookie
    token_str = body.refresh_token if body and body.refresh_token else refresh_token_cookie
    if not token_str:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token missing",
        )

    payload = decode_refresh_token(token_str)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
        )

    user = await db.get(User, int(payload["sub"]))
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )
    return _issue_tokens(response, user.id)


@router.post("/logout", response_model=LogoutResponse)
async def logout(response: Response) -> LogoutResponse:
    """Clear auth cookies and end the session."""
    response.delete_cookie("access_token")
    response.delete_cookie("refresh_token")
    return LogoutResponse(message="Logged out")


# ── Profile & user management ──────────────────────────────────────
@router.get("/me", response_model=UserRead)
async def read_current_user(
    current_user: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Return profile of the currently authenticated user."""
    user = await db.get(User, current_user.id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("/permissions", response_model=PermissionsRead)
async def read_current_permissions(
    current_user: Identity = Depends(get_current_user),
) -> PermissionsRead:
    return PermissionsRead(role=current_user.role, permissions=role_permissions(current_user.role))


@router.post("/users", response_model=UserRead, status_code=201)
async def create_user(
    body: UserCreate,
    db: AsyncSession = Depends(get_db),
    _manager: Identity = Depends(require_permission("employees_create")),
) -> User:
    """Create a new staff account (roles allowed to create employees only)."""
    existing = await db.execute(select(User).where(User.email == body.email))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(
        email=body.email,
        username=body.username,
        hashed_password=get_password_hash(body.password),
        full_name=body.full_name,
        role=body.role,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info("Created %s account %s", user.role, user.email)
    return user
