"""SQLModel models package."""

from .post import Post
from .relationship import Relationship
from .user import User

__all__ = [
    "User",
    "Post",
    "Relationship",
]
