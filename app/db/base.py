"""Déclare l'ensemble des modèles SQLAlchemy pour la détection automatique par Alembic."""

from app.db.base_class import Base

# Utilisateurs
from app.models.user.user_model import User

# Catalogue
from app.models.catalog.instructor_model import Instructor
from app.models.catalog.course_model import Course
from app.models.catalog.breakdown_model import Breakdown

# Achats & abonnements
from app.models.commerce.purchase_model import Purchase
from app.models.commerce.subscription_model import Subscription

# Progression
from app.models.progress.enrollment_model import Enrollment
from app.models.progress.breakdown_watch_model import BreakdownWatch

__all__ = (
    "Base",
    "User",
    "Instructor",
    "Course",
    "Breakdown",
    "Purchase",
    "Subscription",
    "Enrollment",
    "BreakdownWatch",
)
