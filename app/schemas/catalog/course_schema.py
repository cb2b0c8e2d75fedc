from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.models.catalog.course_model import Difficulty, MartialArt

UNKNOWN_TEACHER = "Unknown"


class SectionSchema(BaseModel):
    title: str
    duration_minutes: int = Field(..., ge=0)
    # Absent until the video platform has a playable asset.
    playback_id: Optional[str] = None


class VolumeSchema(BaseModel):
    name: str
    duration_minutes: int = Field(..., ge=0)
    sections: List[SectionSchema] = []


class CourseBase(BaseModel):
    title: str
    description: str
    image_url: Optional[str] = None
    difficulty: Difficulty
    martial_art: MartialArt
    instructor_id: int
    duration: str
    price: Optional[float] = Field(default=None, ge=0)
    volumes: List[VolumeSchema] = []


class CourseCreate(CourseBase):
    pass


class CourseOut(CourseBase):
    """A course with its instructor's name joined at read time."""

    id: int
    created_at: Optional[datetime] = None
    teacher: str = UNKNOWN_TEACHER
    total_sections: int = 0

    class Config:
        from_attributes = True


class AccessOut(BaseModel):
    has_access: bool
