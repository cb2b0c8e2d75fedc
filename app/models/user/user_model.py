from sqlalchemy import Integer, String, Boolean, Date, DateTime, JSON, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.base_class import Base
from typing import Any, Dict, List, Optional, TYPE_CHECKING
from datetime import date, datetime

if TYPE_CHECKING:
    from ..commerce.purchase_model import Purchase
    from ..commerce.subscription_model import Subscription
    from ..progress.enrollment_model import Enrollment
    from ..progress.breakdown_watch_model import BreakdownWatch


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    # Subject of the identity provider's token.
    external_id: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    username: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)
    country: Mapped[str] = mapped_column(String(100), nullable=False)
    disciplines: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    years_of_experience: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    goals: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    # [{"discipline": "BJJ", "belt": "Blue", "stripe": 2, "dan": None}, ...]
    belts: Mapped[Optional[List[Dict[str, Any]]]] = mapped_column(JSON, nullable=True)
    onboarding_complete: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    purchases: Mapped[List["Purchase"]] = relationship(back_populates="user", cascade="all, delete-orphan")
    subscriptions: Mapped[List["Subscription"]] = relationship(back_populates="user", cascade="all, delete-orphan")
    enrollments: Mapped[List["Enrollment"]] = relationship(back_populates="user", cascade="all, delete-orphan")
    breakdown_watches: Mapped[List["BreakdownWatch"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}')>"
