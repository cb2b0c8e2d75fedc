from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class PurchaseOut(BaseModel):
    id: int
    user_id: int
    course_id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SubscriptionOut(BaseModel):
    id: int
    user_id: int
    instructor_id: int
    active: bool
    stripe_subscription_id: Optional[str] = None
    stripe_customer_id: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CheckoutRequest(BaseModel):
    success_url: str
    cancel_url: str


class CheckoutSessionOut(BaseModel):
    url: str


class IdOut(BaseModel):
    id: int
