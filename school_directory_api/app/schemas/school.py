"""
Pydantic schemas for schools.

``average_cost`` and ``average_rating`` only appear on the read model:
they are maintained by the aggregate service and cannot be set by
clients.  Geocoded location fields are likewise output only.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


URL_PATTERN = r"^https?://[^\s/$.?#].[^\s]*$"
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class SchoolBase(BaseModel):
    name: str = Field(..., max_length=50, examples=["Northside Coding Academy"])
    description: str = Field(..., max_length=500)
    website: Optional[str] = Field(None, pattern=URL_PATTERN)
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN)
    address: str = Field(..., examples=["233 Bay State Rd Boston MA 02215"])

    @field_validator("name", "description", "address")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field must not be blank")
        return v


class SchoolCreate(SchoolBase):
    """Schema for creating a school."""


class SchoolUpdate(BaseModel):
    """Partial update; omitted fields are left as they are."""

    name: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    website: Optional[str] = Field(None, pattern=URL_PATTERN)
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN)
    address: Optional[str] = None


class SchoolRead(BaseModel):
    """Schema for reading a school from the API."""

    id: int
    name: str
    description: str
    website: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    formatted_address: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipcode: Optional[str] = None
    country: Optional[str] = None
    average_cost: Optional[int] = None
    average_rating: Optional[float] = None
    photo: str
    user_id: int
    created_at: str


class SchoolSummary(BaseModel):
    """The subset of a school embedded in course and review responses."""

    id: int
    name: str
    description: str
