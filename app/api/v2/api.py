from fastapi import APIRouter
from .endpoints import (
    user_router,
    instructor_router,
    course_router,
    breakdown_router,
    purchase_router,
    enrollment_router,
    stripe_router,
    changes_ws,
)

api_router = APIRouter()

api_router.include_router(user_router.router, prefix="/users", tags=["Users"])
api_router.include_router(instructor_router.router, prefix="/instructors", tags=["Catalog"])
api_router.include_router(course_router.router, prefix="/courses", tags=["Catalog"])
api_router.include_router(breakdown_router.router, prefix="/breakdowns", tags=["Catalog"])
api_router.include_router(purchase_router.purchases_router, prefix="/purchases", tags=["Commerce"])
api_router.include_router(purchase_router.subscriptions_router, prefix="/subscriptions", tags=["Commerce"])
api_router.include_router(enrollment_router.router, prefix="/enrollments", tags=["Progress"])
api_router.include_router(stripe_router.router, prefix="/stripe", tags=["stripe"])
api_router.include_router(changes_ws.router, tags=["Changes"])
