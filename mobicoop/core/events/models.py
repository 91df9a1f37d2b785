# mobicoop/core/events/models.py
"""
Модели данных мероприятий.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class Event(BaseModel):
    """Мероприятие, к которому можно привязать объявление."""

    id: int = Field(..., description="ID мероприятия")
    name: str = Field(..., description="Название")
    from_date: Optional[datetime] = Field(None, description="Начало")
    to_date: Optional[datetime] = Field(None, description="Окончание")

    class Config:
        from_attributes = True
