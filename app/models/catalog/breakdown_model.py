from __future__ import annotations

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Enum, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base_class import Base
from app.models.catalog.course_model import MartialArt


class BreakdownType(str, enum.Enum):
    DISCUSSION = "Discussion"
    SPAR = "Spar"
    TECHNIQUE = "Technique"
    BREAKDOWN = "Breakdown"


class Breakdown(Base):
    """A standalone video, only reachable through an instructor subscription."""

    __tablename__ = "breakdowns"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    type: Mapped[BreakdownType] = mapped_column(
        Enum(BreakdownType, name="breakdowntype", values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
    )
    martial_art: Mapped[MartialArt] = mapped_column(
        Enum(MartialArt, name="martialart", values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
    )
    instructor_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    duration: Mapped[str] = mapped_column(String(50), nullable=False)
    playback_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Breakdown(id={self.id}, title='{self.title}')>"
