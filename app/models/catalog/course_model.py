from __future__ import annotations

import enum
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import DateTime, Enum, Float, Integer, JSON, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base_class import Base


class Difficulty(str, enum.Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


class MartialArt(str, enum.Enum):
    BJJ = "BJJ"
    BOXING = "Boxing"
    MMA = "MMA"


class Course(Base):
    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    difficulty: Mapped[Difficulty] = mapped_column(
        Enum(Difficulty, name="difficulty", values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
    )
    martial_art: Mapped[MartialArt] = mapped_column(
        Enum(MartialArt, name="martialart", values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
    )
    # No foreign key: a course outlives its instructor and is then shown as "Unknown".
    instructor_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    duration: Mapped[str] = mapped_column(String(50), nullable=False)
    # Dollars; NULL or 0 means the course is free.
    price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    # [{"name", "duration_minutes", "sections": [{"title", "duration_minutes", "playback_id"}]}]
    volumes: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    @property
    def is_free(self) -> bool:
        return not self.price

    @property
    def total_sections(self) -> int:
        return sum(len(volume.get("sections") or []) for volume in self.volumes or [])

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Course(id={self.id}, title='{self.title}')>"
