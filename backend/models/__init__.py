"""Database models."""

from database import Base

from models.account import Account
from models.profile_snapshot import ProfileSnapshot
from models.profile_data import ProfileData

__all__ = [
    "Base",
    "Account",
    "ProfileSnapshot",
    "ProfileData",
]
