"""
API endpoints for school reviews.

Anyone may read reviews.  Users (and admins) may review a school once;
a second review of the same school is rejected with 400.  Authors can
edit or delete their own reviews, admins any review.
"""

from typing import List

from fastapi import APIRouter, Depends, Request, status

from school_directory_api.app.core.security import require_roles
from school_directory_api.app.schemas.common import CountedResponse, DataResponse, MessageResponse
from school_directory_api.app.schemas.review import ReviewCreate, ReviewRead, ReviewUpdate
from school_directory_api.app.services.review_service import ReviewService

from .common import query_params, to_http_exception


router = APIRouter()


@router.get("/reviews", summary="List reviews")
async def list_reviews(request: Request) -> dict:
    try:
        return await ReviewService.list_reviews(query_params(request))
    except Exception as e:
        raise to_http_exception(e)


@router.get(
    "/schools/{school_id}/reviews",
    response_model=CountedResponse[List[ReviewRead]],
    summary="List the reviews of a school",
)
async def list_school_reviews(school_id: int) -> dict:
    try:
        reviews = await ReviewService.list_school_reviews(school_id)
    except Exception as e:
        raise to_http_exception(e)
    return {"success": True, "count": len(reviews), "data": reviews}


@router.get("/reviews/{review_id}", response_model=DataResponse[ReviewRead], summary="Get a single review")
async def get_review(review_id: int) -> dict:
    try:
        return {"success": True, "data": await ReviewService.get_review(review_id)}
    except Exception as e:
        raise to_http_exception(e)


@router.post(
    "/schools/{school_id}/reviews",
    response_model=DataResponse[ReviewRead],
    status_code=status.HTTP_201_CREATED,
    summary="Submit a review",
)
async def create_review(
    school_id: int,
    data: ReviewCreate,
    current_user: dict = Depends(require_roles("user", "admin")),
) -> dict:
    try:
        return {"success": True, "data": await ReviewService.create_review(school_id, data, current_user)}
    except Exception as e:
        raise to_http_exception(e)


@router.put("/reviews/{review_id}", response_model=DataResponse[ReviewRead], summary="Update a review")
async def update_review(
    review_id: int,
    data: ReviewUpdate,
    current_user: dict = Depends(require_roles("user", "admin")),
) -> dict:
    try:
        return {"success": True, "data": await ReviewService.update_review(review_id, data, current_user)}
    except Exception as e:
        raise to_http_exception(e)


@router.delete("/reviews/{review_id}", response_model=MessageResponse, summary="Delete a review")
async def delete_review(
    review_id: int,
    current_user: dict = Depends(require_roles("user", "admin")),
) -> dict:
    try:
        await ReviewService.delete_review(review_id, current_user)
    except Exception as e:
        raise to_http_exception(e)
    return {"success": True, "data": {}}
