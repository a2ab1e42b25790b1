# salon_admin/models/__init__.py
"""
Database models package
"""

from .admin import AdminLog
from .base import BaseModel, db
from .user import User

__all__ = [
    "db",
    "BaseModel",
    "User",
    "AdminLog",
]
