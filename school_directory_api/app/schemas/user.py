"""
Pydantic models for user data.

Passwords are accepted on input only and never returned.  Roles are
``user`` (may review schools), ``publisher`` (may publish a school and
its courses) and ``admin``.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field


EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

Role = Literal["user", "publisher", "admin"]


class UserBase(BaseModel):
    name: str = Field(..., min_length=1, examples=["Jane Doe"])
    email: str = Field(..., pattern=EMAIL_PATTERN, examples=["jane@example.com"])


class UserRegister(UserBase):
    """Self-registration.  Only ``user`` and ``publisher`` can be chosen."""

    password: str = Field(..., min_length=6)
    role: Literal["user", "publisher"] = "user"


class UserCreate(UserBase):
    """Administrative creation; any role may be assigned."""

    password: str = Field(..., min_length=6)
    role: Role = "user"


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN)
    role: Optional[Role] = None
    password: Optional[str] = Field(None, min_length=6)


class UserLogin(BaseModel):
    email: str
    password: str


class UserRead(UserBase):
    """Schema for reading a user from the API."""

    id: int
    role: Role
    created_at: str

    model_config = {
        "from_attributes": True,
    }


class TokenResponse(BaseModel):
    success: bool = True
    access_token: str
    token_type: str = "bearer"
