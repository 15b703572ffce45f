"""
Credential store: user records keyed by unique email.

Hashing happens here so plaintext passwords never reach the database
layer, and runs in a worker thread so bcrypt never blocks the event loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from auth.models import User
from auth.password import PasswordHasher

logger = logging.getLogger(__name__)


class DuplicateEmailError(Exception):
    """A user with this email already exists."""


class CredentialStore:
    def __init__(self, session: AsyncSession, hasher: PasswordHasher):
        self._session = session
        self._hasher = hasher

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self._session.execute(
            select(User).where(User.email == email)
        )
        return result.scalar_one_or_none()

    async def create(self, name: str, email: str, password: str) -> User:
        """Hash ``password`` and persist a new user; raises ``DuplicateEmailError``."""
        if await self.find_by_email(email) is not None:
            raise DuplicateEmailError(email)

        password_hash = await asyncio.to_thread(self._hasher.hash, password)
        user = User(name=name, email=email, password_hash=password_hash)
        self._session.add(user)
        try:
            await self._session.flush()
        except IntegrityError as exc:
            # Lost a race with a concurrent registration for the same email.
            logger.info("Concurrent registration collided on a unique email")
            await self._session.rollback()
            raise DuplicateEmailError(email) from exc
        return user

    async def authenticate(self, email: str, password: str) -> Optional[User]:
        """Return the user when ``password`` matches, else ``None``."""
        user = await self.find_by_email(email)
        matched = await asyncio.to_thread(self._verify, user, password)
        if user is None or not matched:
            return None
        return user

    def _verify(self, user: Optional[User], password: str) -> bool:
        # Unknown emails still pay one bcrypt check.
        stored = user.password_hash if user is not None else self._hasher.dummy_hash
        return self._hasher.verify(password, stored)
