"""
FastAPI dependencies for authentication.

``require_user`` is the access gate placed in front of every protected
route.  It only checks the bearer token; it never queries the database.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import AsyncGenerator, Optional, Tuple

from fastapi import Depends, HTTPException, Request, status
from fastapi.security.utils import get_authorization_scheme_param
from sqlalchemy.ext.asyncio import AsyncSession

from auth.password import PasswordHasher
from auth.store import CredentialStore
from auth.tokens import TokenService, TokenVerificationError
from database.session import get_db_session

logger = logging.getLogger(__name__)


class NotAuthenticatedError(Exception):
    """No bearer token was presented."""


class ForbiddenError(Exception):
    """Credentials were presented but are not a valid, unexpired bearer token."""


@dataclass(frozen=True)
class AuthContext:
    user_id: str


def split_authorization(authorization: Optional[str]) -> Tuple[str, str]:
    """Split an ``Authorization`` value into ``(scheme, credentials)``."""
    scheme, credentials = get_authorization_scheme_param(authorization)
    return scheme, credentials.strip()


def authorize(authorization: Optional[str], tokens: TokenService) -> AuthContext:
    """
    Gate stage: turn an ``Authorization`` header into an ``AuthContext``.

    Raises ``NotAuthenticatedError`` when the header carries no credentials
    and ``ForbiddenError`` when credentials are present but are not a bearer
    token that verifies.
    """
    scheme, token = split_authorization(authorization)
    if not token:
        raise NotAuthenticatedError()
    if scheme.lower() != "bearer":
        raise ForbiddenError()
    try:
        claims = tokens.verify(token)
    except TokenVerificationError as exc:
        raise ForbiddenError() from exc
    return AuthContext(user_id=claims.user_id)


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


async def db_session(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[AsyncSession, None]:
    """Yield a DB session for route handlers."""
    yield session


async def get_credential_store(
    session: AsyncSession = Depends(db_session),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> CredentialStore:
    return CredentialStore(session, hasher)


async def require_user(
    request: Request,
    tokens: TokenService = Depends(get_token_service),
) -> AuthContext:
    """
    Verify the Bearer token and attach the caller's ``user_id`` to
    ``request.state`` before the route handler runs.
    """
    try:
        context = authorize(request.headers.get("Authorization"), tokens)
    except NotAuthenticatedError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except ForbiddenError as exc:
        logger.debug("Rejected bearer token on %s: %s", request.url.path, exc.__cause__)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or expired token",
        )

    request.state.user_id = context.user_id
    return context
