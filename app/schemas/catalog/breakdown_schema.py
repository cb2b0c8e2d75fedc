from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from app.models.catalog.breakdown_model import BreakdownType
from app.models.catalog.course_model import MartialArt
from app.schemas.catalog.course_schema import UNKNOWN_TEACHER


class BreakdownBase(BaseModel):
    title: str
    description: str
    image_url: Optional[str] = None
    type: BreakdownType
    martial_art: MartialArt
    instructor_id: int
    duration: str
    playback_id: Optional[str] = None


class BreakdownCreate(BreakdownBase):
    pass


class BreakdownOut(BreakdownBase):
    id: int
    created_at: Optional[datetime] = None
    teacher: str = UNKNOWN_TEACHER

    class Config:
        from_attributes = True


class WatchStatusOut(BaseModel):
    watched: bool
