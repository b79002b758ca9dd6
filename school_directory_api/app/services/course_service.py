"""
Business logic for courses.

A course belongs to one school and to the publisher who added it.
Only the school's owner (or an admin) may add courses; only the
course's owner (or an admin) may change or remove one.  After every
successful write the school's ``average_cost`` is recomputed; a
failing recompute never fails the write.
"""

import logging
from typing import Any, Dict, List, Mapping

from ..core.exceptions import NotFoundError
from ..core.filters import Condition, Operator
from ..core.security import ensure_owner
from ..core.store import COURSES, SCHOOL_SUMMARY, SCHOOLS, Store
from ..schemas.course import CourseCreate, CourseUpdate
from .aggregate_service import AggregateService
from .query_compiler import advanced_results


logger = logging.getLogger(__name__)


class CourseService:
    """Service for courses offered by schools."""

    @classmethod
    async def list_courses(cls, params: Mapping[str, Any]) -> Dict[str, Any]:
        """Paginated course list, each with its school's name and description."""
        return await advanced_results(COURSES, params, include=SCHOOL_SUMMARY)

    @classmethod
    async def list_school_courses(cls, school_id: int) -> List[Dict[str, Any]]:
        return Store().find(COURSES, [Condition("school_id", Operator.EQ, school_id)])

    @classmethod
    async def get_course(cls, course_id: int) -> Dict[str, Any]:
        store = Store()
        course = store.get(COURSES, course_id)
        if not course:
            raise NotFoundError(f"No course with the id of {course_id}")
        return store.populate([course], SCHOOL_SUMMARY)[0]

    @classmethod
    async def create_course(cls, school_id: int, data: CourseCreate, current_user: dict) -> Dict[str, Any]:
        store = Store()
        school = store.get(SCHOOLS, school_id)
        if not school:
            raise NotFoundError(f"No school with the id of {school_id}")
        ensure_owner(school, current_user, f"add a course to school {school_id}")
        values = data.model_dump()
        values.update(school_id=school_id, user_id=current_user.get("user_id"))
        course = store.insert(COURSES, values)
        logger.info("User %s added course %s to school %s", current_user.get("user_id"), course["id"], school_id)
        await AggregateService.recompute_cost(school_id, store)
        return course

    @classmethod
    async def update_course(cls, course_id: int, data: CourseUpdate, current_user: dict) -> Dict[str, Any]:
        store = Store()
        course = store.get(COURSES, course_id)
        if not course:
            raise NotFoundError(f"No course with the id of {course_id}")
        ensure_owner(course, current_user, f"update course {course_id}")
        updated = store.update(COURSES, course_id, data.model_dump(exclude_unset=True, exclude_none=True))
        if updated is None:
            raise NotFoundError(f"No course with the id of {course_id}")
        logger.info("User %s updated course %s", current_user.get("user_id"), course_id)
        await AggregateService.recompute_cost(updated["school_id"], store)
        return updated

    @classmethod
    async def delete_course(cls, course_id: int, current_user: dict) -> None:
        """Remove a course, then recompute its school's average from the remaining ones."""
        store = Store()
        course = store.get(COURSES, course_id)
        if not course:
            raise NotFoundError(f"No course with the id of {course_id}")
        ensure_owner(course, current_user, f"delete course {course_id}")
        store.delete(COURSES, course_id)
        logger.info("User %s deleted course %s", current_user.get("user_id"), course_id)
        await AggregateService.recompute_cost(course["school_id"], store)
