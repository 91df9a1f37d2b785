# mobicoop/core/communities/__init__.py
"""
Домен сообществ.
"""

from mobicoop.core.communities.models import Community
from mobicoop.core.communities.repository import CommunityRepository

__all__ = [
    "Community",
    "CommunityRepository",
]
