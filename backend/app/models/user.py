from typing import Literal

from pydantic import BaseModel, EmailStr

from .base import BaseDBModel

UserRole = Literal["creator", "company", "admin"]


class User(BaseDBModel):
    """User model for API responses and authenticated requests."""

    username: str
    email: EmailStr
    role: UserRole = "creator"
    is_active: bool = True


class UserSummary(BaseModel):
    """Restricted view of a user shown next to a flag.

    Only identification fields are exposed; profile and payout data stay
    with the user subsystem.
    """

    id: str
    username: str
    email: str
    role: str

    class Config:
        from_attributes = True
