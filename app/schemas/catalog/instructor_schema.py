from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class InstructorBase(BaseModel):
    name: str = Field(..., min_length=1)
    bio: Optional[str] = None
    image_url: Optional[str] = None
    subscription_price: float = Field(..., ge=0)
    disciplines: List[str] = []


class InstructorCreate(InstructorBase):
    stripe_connected_account_id: Optional[str] = None


class InstructorOut(InstructorBase):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
