"""
API endpoints for courses.

Courses are listed globally (``/courses``, paginated, with the school's
name and description embedded) or per school
(``/schools/{school_id}/courses``, unpaginated).  Adding a course
requires owning the school; changing or removing one requires owning
the course.  Admins bypass ownership.
"""

from typing import List

from fastapi import APIRouter, Depends, Request, status

from school_directory_api.app.core.security import require_roles
from school_directory_api.app.schemas.common import CountedResponse, DataResponse, MessageResponse
from school_directory_api.app.schemas.course import CourseCreate, CourseRead, CourseUpdate
from school_directory_api.app.services.course_service import CourseService

from .common import query_params, to_http_exception


router = APIRouter()


@router.get("/courses", summary="List courses")
async def list_courses(request: Request) -> dict:
    try:
        return await CourseService.list_courses(query_params(request))
    except Exception as e:
        raise to_http_exception(e)


@router.get(
    "/schools/{school_id}/courses",
    response_model=CountedResponse[List[CourseRead]],
    summary="List the courses of a school",
)
async def list_school_courses(school_id: int) -> dict:
    try:
        courses = await CourseService.list_school_courses(school_id)
    except Exception as e:
        raise to_http_exception(e)
    return {"success": True, "count": len(courses), "data": courses}


@router.get("/courses/{course_id}", response_model=DataResponse[CourseRead], summary="Get a course")
async def get_course(course_id: int) -> dict:
    try:
        return {"success": True, "data": await CourseService.get_course(course_id)}
    except Exception as e:
        raise to_http_exception(e)


@router.post(
    "/schools/{school_id}/courses",
    response_model=DataResponse[CourseRead],
    status_code=status.HTTP_201_CREATED,
    summary="Add a course to a school",
)
async def create_course(
    school_id: int,
    data: CourseCreate,
    current_user: dict = Depends(require_roles("publisher", "admin")),
) -> dict:
    """Add a course; the school's average cost is refreshed afterwards."""
    try:
        return {"success": True, "data": await CourseService.create_course(school_id, data, current_user)}
    except Exception as e:
        raise to_http_exception(e)


@router.put("/courses/{course_id}", response_model=DataResponse[CourseRead], summary="Update a course")
async def update_course(
    course_id: int,
    data: CourseUpdate,
    current_user: dict = Depends(require_roles("publisher", "admin")),
) -> dict:
    try:
        return {"success": True, "data": await CourseService.update_course(course_id, data, current_user)}
    except Exception as e:
        raise to_http_exception(e)


@router.delete("/courses/{course_id}", response_model=MessageResponse, summary="Delete a course")
async def delete_course(
    course_id: int,
    current_user: dict = Depends(require_roles("publisher", "admin")),
) -> dict:
    try:
        await CourseService.delete_course(course_id, current_user)
    except Exception as e:
        raise to_http_exception(e)
    return {"success": True, "data": {}}
