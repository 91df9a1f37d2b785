# mobicoop/core/users/__init__.py
"""
Домен пользователей.
"""

from mobicoop.core.users.models import User
from mobicoop.core.users.repository import UserRepository

__all__ = [
    "User",
    "UserRepository",
]
