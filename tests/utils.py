"""Utility helpers for test factories."""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from datetime import date

from app.core import security
from app.models.catalog.breakdown_model import Breakdown, BreakdownType
from app.models.catalog.course_model import Course, Difficulty, MartialArt
from app.models.catalog.instructor_model import Instructor
from app.models.user.user_model import User


def create_user(db, **kwargs) -> User:
    username = kwargs.get("username", "user")
    defaults = {
        "external_id": f"user_{username}",
        "name": "Test User",
        "username": username,
        "date_of_birth": date(1995, 5, 17),
        "country": "SG",
        "disciplines": ["BJJ"],
        "years_of_experience": 3,
        "goals": ["Compete"],
        "onboarding_complete": True,
    }
    defaults.update(kwargs)
    user = User(**defaults)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_instructor(db, **kwargs) -> Instructor:
    defaults = {
        "name": "Gordon Ryan",
        "bio": "Submission grappler",
        "subscription_price": 19.99,
        "disciplines": ["BJJ"],
        "stripe_connected_account_id": "acct_test",
    }
    defaults.update(kwargs)
    instructor = Instructor(**defaults)
    db.add(instructor)
    db.commit()
    db.refresh(instructor)
    return instructor


def build_volumes(*section_counts: int) -> list[dict]:
    """One volume per count, each holding that many sections."""
    return [
        {
            "name": f"Volume {volume_index + 1}",
            "duration_minutes": 10 * count,
            "sections": [
                {
                    "title": f"Section {volume_index}-{section_index}",
                    "duration_minutes": 10,
                    "playback_id": f"playback-{volume_index}-{section_index}",
                }
                for section_index in range(count)
            ],
        }
        for volume_index, count in enumerate(section_counts)
    ]


def create_course(db, instructor: Instructor | None = None, **kwargs) -> Course:
    defaults = {
        "title": "Leg Locks",
        "description": "Heel hooks from the ground up",
        "difficulty": Difficulty.INTERMEDIATE,
        "martial_art": MartialArt.BJJ,
        "instructor_id": instructor.id if instructor else 999,
        "duration": "2h",
        "price": 49.99,
        "volumes": build_volumes(2, 2),
    }
    defaults.update(kwargs)
    course = Course(**defaults)
    db.add(course)
    db.commit()
    db.refresh(course)
    return course


def create_breakdown(db, instructor: Instructor | None = None, **kwargs) -> Breakdown:
    defaults = {
        "title": "Title fight breakdown",
        "description": "Round by round",
        "type": BreakdownType.BREAKDOWN,
        "martial_art": MartialArt.MMA,
        "instructor_id": instructor.id if instructor else 999,
        "duration": "25m",
        "playback_id": "playback-breakdown",
    }
    defaults.update(kwargs)
    breakdown = Breakdown(**defaults)
    db.add(breakdown)
    db.commit()
    db.refresh(breakdown)
    return breakdown


def bearer(external_id: str) -> str:
    return f"Bearer {security.create_access_token(external_id)}"


def stripe_signature(payload: bytes, secret: str = "whsec_test", timestamp: int | None = None) -> str:
    """Build a ``stripe-signature`` header the way Stripe signs webhook bodies."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.{payload.decode('utf-8')}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


def stripe_event(event_type: str, data_object: dict, event_id: str = "evt_test") -> bytes:
    return json.dumps(
        {"id": event_id, "object": "event", "type": event_type, "data": {"object": data_object}}
    ).encode("utf-8")
