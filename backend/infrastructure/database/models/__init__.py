"""
SQLAlchemy database models.
"""

from .base import Base, TimestampMixin
from .creation import Creation, CreationType
from .user import SubscriptionTier, User, UserStatus

__all__ = [
    "Base",
    "TimestampMixin",
    "User",
    "UserStatus",
    "SubscriptionTier",
    "Creation",
    "CreationType",
]
