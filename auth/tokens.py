"""
JWT bearer token creation and verification.

Tokens are HS256 JWTs carrying only ``sub`` (the user id), ``iat`` and
``exp``.  The signing secret comes from ``config.jwt_secret``
(env var: ``JWT_SECRET``) and must be present when the app is built.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable

import jwt

from config.settings import Settings

ALGORITHM = "HS256"
DEFAULT_EXPIRY_SECONDS = 3600


class MissingSigningSecretError(RuntimeError):
    """No signing secret configured; the service must not start."""


class TokenVerificationError(Exception):
    """Base class for every reason a token is rejected."""


class InvalidTokenError(TokenVerificationError):
    pass


class ExpiredTokenError(TokenVerificationError):
    pass


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    issued_at: datetime
    expires_at: datetime


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TokenService:
    secret: str = field(repr=False)
    expiry_seconds: int = DEFAULT_EXPIRY_SECONDS
    clock: Callable[[], datetime] = field(default=_utcnow, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.secret or not self.secret.strip():
            raise MissingSigningSecretError("JWT secret key is not defined")

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(secret=settings.jwt_secret, expiry_seconds=settings.jwt_expiry_seconds)

    def issue(self, user_id: str) -> str:
        """Create a signed token for ``user_id`` valid for ``expiry_seconds``."""
        now = self.clock()
        payload = {
            "sub": str(user_id),
            "iat": now,
            "exp": now + timedelta(seconds=self.expiry_seconds),
        }
        return jwt.encode(payload, self.secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> TokenClaims:
        """
        Verify signature and expiry, returning the token's claims.

        Raises ``ExpiredTokenError`` for a well-signed token past its expiry
        and ``InvalidTokenError`` for anything else.
        """
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[ALGORITHM],
                options={"require": ["sub", "iat", "exp"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise ExpiredTokenError("token expired") from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidTokenError(str(exc)) from exc

        user_id = payload["sub"]
        if not isinstance(user_id, str) or not user_id:
            raise InvalidTokenError("token subject missing")
        return TokenClaims(
            user_id=user_id,
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
