"""
Business logic for reviews.

Users leave at most one review per school; the unique index on
``(school_id, user_id)`` enforces this and a second attempt surfaces
as ``ConflictError``.  Only the author (or an admin) may change or
remove a review.  After every successful write the school's
``average_rating`` is recomputed.
"""

import logging
import sqlite3
from typing import Any, Dict, List, Mapping

from ..core.exceptions import ConflictError, NotFoundError
from ..core.filters import Condition, Operator
from ..core.security import ensure_owner
from ..core.store import REVIEWS, SCHOOL_SUMMARY, SCHOOLS, Store
from ..schemas.review import ReviewCreate, ReviewUpdate
from .aggregate_service import AggregateService
from .query_compiler import advanced_results


logger = logging.getLogger(__name__)


class ReviewService:
    """Service for school reviews."""

    @classmethod
    async def list_reviews(cls, params: Mapping[str, Any]) -> Dict[str, Any]:
        return await advanced_results(REVIEWS, params, include=SCHOOL_SUMMARY)

    @classmethod
    async def list_school_reviews(cls, school_id: int) -> List[Dict[str, Any]]:
        return Store().find(REVIEWS, [Condition("school_id", Operator.EQ, school_id)])

    @classmethod
    async def get_review(cls, review_id: int) -> Dict[str, Any]:
        store = Store()
        review = store.get(REVIEWS, review_id)
        if not review:
            raise NotFoundError(f"No review found with the id of {review_id}")
        return store.populate([review], SCHOOL_SUMMARY)[0]

    @classmethod
    async def create_review(cls, school_id: int, data: ReviewCreate, current_user: dict) -> Dict[str, Any]:
        """Create the current user's review of a school.

        The uniqueness of (school, user) is left to the store.
        """
        store = Store()
        if not store.get(SCHOOLS, school_id, projection=("id",)):
            raise NotFoundError(f"No school with the id of {school_id}")
        user_id = current_user.get("user_id")
        values = data.model_dump()
        values.update(school_id=school_id, user_id=user_id)
        try:
            review = store.insert(REVIEWS, values)
        except sqlite3.IntegrityError as exc:
            logger.info("Rejected review of school %s by user %s: %s", school_id, user_id, exc)
            raise ConflictError(f"User {user_id} has already reviewed school {school_id}") from exc
        logger.info("User %s submitted review %s for school %s", user_id, review["id"], school_id)
        await AggregateService.recompute_rating(school_id, store)
        return review

    @classmethod
    async def update_review(cls, review_id: int, data: ReviewUpdate, current_user: dict) -> Dict[str, Any]:
        store = Store()
        review = store.get(REVIEWS, review_id)
        if not review:
            raise NotFoundError(f"No review with the id of {review_id}")
        ensure_owner(review, current_user, "update this review")
        updated = store.update(REVIEWS, review_id, data.model_dump(exclude_unset=True, exclude_none=True))
        if updated is None:
            raise NotFoundError(f"No review with the id of {review_id}")
        logger.info("User %s updated review %s", current_user.get("user_id"), review_id)
        await AggregateService.recompute_rating(updated["school_id"], store)
        return updated

    @classmethod
    async def delete_review(cls, review_id: int, current_user: dict) -> None:
        store = Store()
        review = store.get(REVIEWS, review_id)
        if not review:
            raise NotFoundError(f"No review with the id of {review_id}")
        ensure_owner(review, current_user, "delete this review")
        store.delete(REVIEWS, review_id)
        logger.info("User %s deleted review %s", current_user.get("user_id"), review_id)
        await AggregateService.recompute_rating(review["school_id"], store)
