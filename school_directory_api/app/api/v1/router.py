"""
Top‑level router for version 1 of the API.

This router aggregates the domain routers under a unified prefix.
The course and review routers define their own paths because they
serve both top-level (``/courses``) and nested
(``/schools/{school_id}/courses``) routes.
"""

from fastapi import APIRouter

from .endpoints import auth, courses, reviews, schools, users

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(schools.router, prefix="/schools", tags=["schools"])
router.include_router(courses.router, tags=["courses"])
router.include_router(reviews.router, tags=["reviews"])
