"""
User model re-export plus the outward-facing projection of a user.

``UserOut`` is the only shape in which a user leaves the service; it has no
field for the password hash.
"""

from pydantic import BaseModel, ConfigDict

from database.models import User  # noqa: F401


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str


__all__ = ["User", "UserOut"]
