"""Centralised configuration for the SQLAdmin back-office."""

from __future__ import annotations

import json
from typing import Any

from markupsafe import Markup
from sqladmin import ModelView
from sqladmin.authentication import AuthenticationBackend
from starlette.requests import Request

from app.core.config import settings
from app.core.security import verify_password
from app.models.catalog.breakdown_model import Breakdown
from app.models.catalog.course_model import Course
from app.models.catalog.instructor_model import Instructor
from app.models.commerce.purchase_model import Purchase
from app.models.commerce.subscription_model import Subscription
from app.models.progress.enrollment_model import Enrollment
from app.models.user.user_model import User


def _json_preview(value: Any, *, max_chars: int = 160) -> Markup:
    """Render JSON content as a trimmed <pre> block for the admin."""
    if value in (None, "", [], {}):
        return Markup("<span style='color:#9ca3af;'>—</span>")

    if not isinstance(value, (dict, list)):
        text = str(value)
    else:
        try:
            text = json.dumps(value, ensure_ascii=False, indent=2)
        except TypeError:
            text = str(value)

    if len(text) > max_chars:
        text = text[:max_chars] + "…"

    return Markup(
        "<pre style='max-width:520px; white-space:pre-wrap; margin:0; font-size:12px;'>{}</pre>"
    ).format(text)


def _json_full(value: Any) -> Markup:
    return _json_preview(value, max_chars=10000)


class AdminAuth(AuthenticationBackend):
    """Single back-office account configured through the environment."""

    async def login(self, request: Request) -> bool:
        form = await request.form()
        username = form.get("username")
        password = form.get("password")

        if username == settings.ADMIN_USERNAME and verify_password(password, settings.ADMIN_PASSWORD_HASH):
            request.session.update({"token": "admin_logged_in", "user": username})
            return True
        return False

    async def logout(self, request: Request) -> bool:
        request.session.clear()
        return True

    async def authenticate(self, request: Request) -> bool:
        return "token" in request.session


class UserAdmin(ModelView, model=User):
    name = "User"
    name_plural = "Users"
    icon = "fa-solid fa-user"
    category = "Users & Payments"
    column_list = [
        User.id,
        User.username,
        User.name,
        User.external_id,
        User.country,
        User.years_of_experience,
        User.onboarding_complete,
        User.created_at,
    ]
    column_searchable_list = [User.username, User.name, User.external_id]
    column_sortable_list = [User.created_at, User.username]
    column_default_sort = [(User.created_at, True)]  # newest first
    column_formatters_detail = {
        User.belts: lambda m, _: _json_full(m.belts),
        User.disciplines: lambda m, _: _json_preview(m.disciplines),
        User.goals: lambda m, _: _json_preview(m.goals),
    }
    form_excluded_columns = ["purchases", "subscriptions", "enrollments", "breakdown_watches"]
    can_export = True
    page_size = 50


class InstructorAdmin(ModelView, model=Instructor):
    name = "Instructor"
    name_plural = "Instructors"
    icon = "fa-solid fa-user-ninja"
    category = "Catalog"
    column_list = [
        Instructor.id,
        Instructor.name,
        Instructor.subscription_price,
        Instructor.stripe_connected_account_id,
        Instructor.created_at,
    ]
    column_searchable_list = [Instructor.name]
    column_labels = {Instructor.stripe_connected_account_id: "Stripe account"}
    column_formatters = {Instructor.disciplines: lambda m, _: _json_preview(m.disciplines)}


class CourseAdmin(ModelView, model=Course):
    name = "Course"
    name_plural = "Courses"
    icon = "fa-solid fa-book"
    category = "Catalog"
    column_list = [
        Course.id,
        Course.title,
        Course.martial_art,
        Course.difficulty,
        Course.instructor_id,
        Course.price,
        Course.created_at,
    ]
    column_searchable_list = [Course.title]
    column_default_sort = [(Course.created_at, True)]
    column_formatters_detail = {Course.volumes: lambda m, _: _json_full(m.volumes)}


class BreakdownAdmin(ModelView, model=Breakdown):
    name = "Breakdown"
    name_plural = "Breakdowns"
    icon = "fa-solid fa-film"
    category = "Catalog"
    column_list = [
        Breakdown.id,
        Breakdown.title,
        Breakdown.type,
        Breakdown.martial_art,
        Breakdown.instructor_id,
        Breakdown.playback_id,
        Breakdown.created_at,
    ]
    column_searchable_list = [Breakdown.title]
    column_default_sort = [(Breakdown.created_at, True)]


class PurchaseAdmin(ModelView, model=Purchase):
    name = "Purchase"
    name_plural = "Purchases"
    icon = "fa-solid fa-receipt"
    category = "Users & Payments"
    column_list = [Purchase.id, Purchase.user_id, Purchase.course_id, Purchase.created_at]
    column_default_sort = [(Purchase.created_at, True)]
    can_export = True


class SubscriptionAdmin(ModelView, model=Subscription):
    name = "Subscription"
    name_plural = "Subscriptions"
    icon = "fa-solid fa-repeat"
    category = "Users & Payments"
    column_list = [
        Subscription.id,
        Subscription.user_id,
        Subscription.instructor_id,
        Subscription.active,
        Subscription.stripe_subscription_id,
        Subscription.stripe_customer_id,
        Subscription.updated_at,
    ]
    column_searchable_list = [Subscription.stripe_subscription_id, Subscription.stripe_customer_id]
    column_labels = {
        Subscription.stripe_subscription_id: "Stripe subscription",
        Subscription.stripe_customer_id: "Stripe customer",
    }
    can_export = True


class EnrollmentAdmin(ModelView, model=Enrollment):
    name = "Enrollment"
    name_plural = "Enrollments"
    icon = "fa-solid fa-graduation-cap"
    category = "Progress"
    column_list = [
        Enrollment.id,
        Enrollment.user_id,
        Enrollment.course_id,
        Enrollment.started_at,
        Enrollment.completed_at,
    ]
    column_formatters_detail = {
        Enrollment.completed_sections: lambda m, _: _json_preview(m.completed_sections),
    }
    can_create = False


ADMIN_VIEWS = (
    UserAdmin,
    InstructorAdmin,
    CourseAdmin,
    BreakdownAdmin,
    PurchaseAdmin,
    SubscriptionAdmin,
    EnrollmentAdmin,
)
