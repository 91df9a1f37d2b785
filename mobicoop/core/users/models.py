# mobicoop/core/users/models.py
"""
Модели данных пользователей.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class User(BaseModel):
    """Модель пользователя."""

    id: int = Field(..., description="ID пользователя")
    given_name: Optional[str] = Field(None, description="Имя")
    family_name: Optional[str] = Field(None, description="Фамилия")
    email: Optional[str] = Field(None, description="Email")
    created_at: datetime = Field(default_factory=datetime.utcnow, description="Дата регистрации")

    class Config:
        from_attributes = True

    @property
    def full_name(self) -> str:
        """Полное имя пользователя."""
        return " ".join(part for part in (self.given_name, self.family_name) if part)
