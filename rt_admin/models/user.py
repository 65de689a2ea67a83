"""Session user and roles."""

from enum import Enum

from pydantic import BaseModel, Field


class Role(str, Enum):
    """
    The two static roles.

    ADMIN manages residents and option lists; TREASURER (bendahara)
    manages money. Both may edit dues rates.
    """
    ADMIN = "admin"
    TREASURER = "bendahara"


class User(BaseModel):
    username: str = Field(..., min_length=1)
    role: Role
