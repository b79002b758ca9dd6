"""
API endpoints for schools.

Listing, reading and the radius search are public.  Publishing,
updating, deleting and photo uploads require the ``publisher`` or
``admin`` role; updates and deletes additionally require ownership,
checked in the service.  List filters and paging follow the common
query grammar (``select``, ``sort``, ``page``, ``limit``, ``field[op]``).
"""

from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status

from school_directory_api.app.core.security import require_roles
from school_directory_api.app.schemas.common import CountedResponse, DataResponse, MessageResponse
from school_directory_api.app.schemas.school import SchoolCreate, SchoolRead, SchoolUpdate
from school_directory_api.app.services.school_service import SchoolService

from .common import query_params, to_http_exception


router = APIRouter()


@router.get("", summary="List schools")
async def list_schools(request: Request) -> dict:
    """Paginated list of schools, each with its courses."""
    try:
        return await SchoolService.list_schools(query_params(request))
    except Exception as e:
        raise to_http_exception(e)


@router.get(
    "/radius/{zipcode}/{distance}",
    response_model=CountedResponse[List[SchoolRead]],
    summary="Schools within a distance",
)
async def schools_in_radius(zipcode: str, distance: float) -> dict:
    """Schools within ``distance`` miles of ``zipcode``."""
    try:
        schools = await SchoolService.schools_in_radius(zipcode, distance)
    except Exception as e:
        raise to_http_exception(e)
    return {"success": True, "count": len(schools), "data": schools}


@router.get("/{school_id}", response_model=DataResponse[SchoolRead], summary="Get a school")
async def get_school(school_id: int) -> dict:
    try:
        return {"success": True, "data": await SchoolService.get_school(school_id)}
    except Exception as e:
        raise to_http_exception(e)


@router.post(
    "",
    response_model=DataResponse[SchoolRead],
    status_code=status.HTTP_201_CREATED,
    summary="Publish a school",
)
async def create_school(
    data: SchoolCreate,
    current_user: dict = Depends(require_roles("publisher", "admin")),
) -> dict:
    """Create a school owned by the current user.

    Publishers may own a single school; admins are not limited.
    """
    try:
        return {"success": True, "data": await SchoolService.create_school(data, current_user)}
    except Exception as e:
        raise to_http_exception(e)


@router.put("/{school_id}", response_model=DataResponse[SchoolRead], summary="Update a school")
async def update_school(
    school_id: int,
    data: SchoolUpdate,
    current_user: dict = Depends(require_roles("publisher", "admin")),
) -> dict:
    try:
        return {"success": True, "data": await SchoolService.update_school(school_id, data, current_user)}
    except Exception as e:
        raise to_http_exception(e)


@router.delete("/{school_id}", response_model=MessageResponse, summary="Delete a school")
async def delete_school(
    school_id: int,
    current_user: dict = Depends(require_roles("publisher", "admin")),
) -> dict:
    """Delete a school along with its courses and reviews."""
    try:
        await SchoolService.delete_school(school_id, current_user)
    except Exception as e:
        raise to_http_exception(e)
    return {"success": True, "data": {}}


@router.put("/{school_id}/photo", summary="Upload a school photo")
async def upload_photo(
    school_id: int,
    file: UploadFile = File(None),
    current_user: dict = Depends(require_roles("publisher", "admin")),
) -> dict:
    if file is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Please upload a file")
    content = await file.read()
    try:
        name = await SchoolService.upload_photo(
            school_id, file.filename, file.content_type, content, current_user
        )
    except Exception as e:
        raise to_http_exception(e)
    return {"success": True, "data": name}
