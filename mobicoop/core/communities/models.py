# mobicoop/core/communities/models.py
"""
Модели данных сообществ.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class Community(BaseModel):
    """Сообщество пользователей (предприятие, район, клуб)."""

    id: int = Field(..., description="ID сообщества")
    name: str = Field(..., description="Название")
    description: Optional[str] = None
    members_hidden: bool = Field(False, description="Скрывать ли участников")
    proposals_hidden: bool = Field(False, description="Скрывать ли объявления")

    class Config:
        from_attributes = True
