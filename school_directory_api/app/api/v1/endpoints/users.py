"""
Administrative user management.

Every route requires the ``admin`` role.  Deleting a user removes the
schools, courses and reviews they own.
"""

from fastapi import APIRouter, Depends, Request, status

from school_directory_api.app.core.security import require_roles
from school_directory_api.app.schemas.common import DataResponse, MessageResponse
from school_directory_api.app.schemas.user import UserCreate, UserRead, UserUpdate
from school_directory_api.app.services.user_service import UserService

from .common import query_params, to_http_exception


router = APIRouter(dependencies=[Depends(require_roles("admin"))])


@router.get("", summary="List users")
async def list_users(request: Request) -> dict:
    try:
        return await UserService.list_users(query_params(request))
    except Exception as e:
        raise to_http_exception(e)


@router.get("/{user_id}", response_model=DataResponse[UserRead], summary="Get a user")
async def get_user(user_id: int) -> dict:
    try:
        return {"success": True, "data": await UserService.get_user(user_id)}
    except Exception as e:
        raise to_http_exception(e)


@router.post("", response_model=DataResponse[UserRead], status_code=status.HTTP_201_CREATED, summary="Create a user")
async def create_user(data: UserCreate) -> dict:
    try:
        return {"success": True, "data": await UserService.create_user(data)}
    except Exception as e:
        raise to_http_exception(e)


@router.put("/{user_id}", response_model=DataResponse[UserRead], summary="Update a user")
async def update_user(user_id: int, data: UserUpdate) -> dict:
    try:
        return {"success": True, "data": await UserService.update_user(user_id, data)}
    except Exception as e:
        raise to_http_exception(e)


@router.delete("/{user_id}", response_model=MessageResponse, summary="Delete a user")
async def delete_user(user_id: int) -> dict:
    try:
        await UserService.delete_user(user_id)
    except Exception as e:
        raise to_http_exception(e)
    return {"success": True, "data": {}}
