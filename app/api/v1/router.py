from fastapi import APIRouter

from app.api.v1.endpoints import (
    auth,
    catalogs,
    health,
    students,
    subjects,
    teachers,
    users,
)

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["Health"])
api_router.include_router(auth.router, prefix="/auth", tags=["Auth"])
api_router.include_router(subjects.router, prefix="/subjects", tags=["Subjects"])
api_router.include_router(students.router, prefix="/students", tags=["Students"])
api_router.include_router(teachers.router, prefix="/teachers", tags=["Teachers"])
api_router.include_router(
    catalogs.sections_router, prefix="/sections", tags=["Sections"]
)
api_router.include_router(
    catalogs.grade_levels_router, prefix="/grade-levels", tags=["Grade Levels"]
)
api_router.include_router(catalogs.strands_router, prefix="/strands", tags=["Strands"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])
