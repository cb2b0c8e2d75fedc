from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from app.schemas.catalog.course_schema import CourseOut


class EnrollmentOut(BaseModel):
    id: int
    user_id: int
    course_id: int
    started_at: Optional[datetime] = None
    completed_sections: List[str] = []
    completed_at: Optional[datetime] = None
    progress: int = 0
    total_sections: int = 0

    class Config:
        from_attributes = True


class EnrollmentWithCourseOut(EnrollmentOut):
    course: CourseOut
