"""
Authentication endpoints: registration, login and the current user.

Tokens are bearer JWTs whose ``sub`` claim is the user id.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from school_directory_api.app.core.security import create_access_token, get_current_user
from school_directory_api.app.schemas.common import DataResponse
from school_directory_api.app.schemas.user import TokenResponse, UserLogin, UserRead, UserRegister
from school_directory_api.app.services.user_service import UserService

from .common import to_http_exception


router = APIRouter()


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a user",
)
async def register(data: UserRegister) -> dict:
    """Create an account and return a token for it."""
    try:
        user = await UserService.register(data)
    except Exception as e:
        raise to_http_exception(e)
    return {"success": True, "access_token": create_access_token({"sub": str(user["id"])})}


@router.post("/login", response_model=TokenResponse, summary="Log in")
async def login(data: UserLogin) -> dict:
    user = await UserService.authenticate(data.email, data.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return {"success": True, "access_token": create_access_token({"sub": str(user["id"])})}


@router.get("/me", response_model=DataResponse[UserRead], summary="Current user")
async def me(current_user: dict = Depends(get_current_user)) -> dict:
    try:
        return {"success": True, "data": await UserService.get_user(current_user["user_id"])}
    except Exception as e:
        raise to_http_exception(e)
