from fastapi import APIRouter

from studyplan.api.routes import (
    assessments,
    availability,
    courses,
    plan,
    users,
)


api_router = APIRouter()
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(courses.router, prefix="/courses", tags=["courses"])
api_router.include_router(assessments.router, prefix="/assessments", tags=["assessments"])
api_router.include_router(availability.router, prefix="/availability", tags=["availability"])
api_router.include_router(plan.router, prefix="/plan", tags=["plan"])
