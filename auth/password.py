"""
Password hashing and verification.

Uses bcrypt for password hashing with automatic
salting and configurable work factor.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property

import bcrypt

# bcrypt only looks at the first 72 bytes of its input.
MAX_PASSWORD_BYTES = 72


class PasswordTooLongError(ValueError):
    """Raised when a plaintext cannot be represented by bcrypt."""


@dataclass(frozen=True)
class PasswordHasher:
    rounds: int = 12

    def hash(self, password: str) -> str:
        """Hash a password with bcrypt (fresh salt on every call)."""
        raw = password.encode("utf-8")
        if len(raw) > MAX_PASSWORD_BYTES:
            raise PasswordTooLongError(
                f"Password too long: at most {MAX_PASSWORD_BYTES} bytes are supported"
            )
        return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=self.rounds)).decode()

    def verify(self, password: str, password_hash: str) -> bool:
        """
        Constant-time comparison against a bcrypt hash.

        A mismatch, a malformed hash, empty input and a plaintext longer than
        bcrypt can represent all return ``False``.
        """
        if not password or not password_hash:
            return False
        raw = password.encode("utf-8")
        # bcrypt would compare only the first 72 bytes.
        if len(raw) > MAX_PASSWORD_BYTES:
            return False
        try:
            return bcrypt.checkpw(raw, password_hash.encode("utf-8"))
        except (ValueError, TypeError):
            return False

    @cached_property
    def dummy_hash(self) -> str:
        """A valid digest at this cost, for timing-equal failed lookups."""
        return self.hash("not-a-real-password")
