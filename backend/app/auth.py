"""Session verification for the MedEquip marketplace backend.

Sessions are issued by Supabase Auth; this module only verifies the
access token (bearer header or the session cookie) and exposes the
caller's identity.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from .config import Settings, get_settings

# Make bearer optional to allow cookie fallback
security = HTTPBearer(auto_error=False)


def create_access_token(
    user_id: str,
    settings: Settings,
    email: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a Supabase-compatible access token (local dev and tests)."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=1))
    to_encode = {
        "sub": user_id,
        "aud": settings.jwt_audience,
        "role": "authenticated",
        "exp": expire,
        "iat": now,
        "session_id": str(uuid.uuid4()),
    }
    if email:
        to_encode["email"] = email
    return jwt.encode(to_encode, settings.supabase_jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Settings) -> dict:
    """Decode and validate an access token."""
    try:
        return jwt.decode(
            token,
            settings.supabase_jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthContext:
    """Identity from a verified session token."""

    def __init__(self, user_id: str, email: str | None = None):
        self.user_id = user_id
        self.email = email


def _extract_token(
    credentials: HTTPAuthorizationCredentials | None, request: Request, settings: Settings
) -> str | None:
    if credentials:
        return credentials.credentials
    return request.cookies.get(settings.session_cookie_name)


def _context_from_token(token: str, settings: Settings) -> AuthContext:
    payload = decode_token(token, settings)
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return AuthContext(user_id=user_id, email=payload.get("email"))


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    settings: Annotated[Settings, Depends(get_settings)],
    request: Request,
) -> AuthContext:
    """Get the authenticated caller from the bearer token or session cookie."""
    token = _extract_token(credentials, request, settings)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return _context_from_token(token, settings)


async def get_optional_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    settings: Annotated[Settings, Depends(get_settings)],
    request: Request,
) -> AuthContext | None:
    """Like get_current_user, but anonymous (None) instead of 401.

    An invalid or expired token is treated as anonymous too; public
    pages should still render for a visitor with a stale cookie.
    """
    token = _extract_token(credentials, request, settings)
    if not token:
        return None
    try:
        return _context_from_token(token, settings)
    except HTTPException:
        return None


# Type aliases for dependency injection
CurrentUser = Annotated[AuthContext, Depends(get_current_user)]
OptionalUser = Annotated[AuthContext | None, Depends(get_optional_user)]
