"""
Pydantic schemas for school reviews.

A user may leave one review per school; the store enforces this with
a unique index so the schemas carry no such check.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .school import SchoolSummary


class ReviewCreate(BaseModel):
    """Schema for creating a new review."""

    title: str = Field(..., max_length=100, description="Short headline")
    text: str = Field(..., description="Review body")
    rating: int = Field(..., ge=1, le=10, description="Rating from 1 to 10")

    @field_validator("title", "text")
    @classmethod
    def strip_text(cls, v: str) -> str:
        """Trim whitespace and reject empty values."""
        v = v.strip()
        if not v:
            raise ValueError("Field must not be blank")
        return v


class ReviewUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=100)
    text: Optional[str] = None
    rating: Optional[int] = Field(None, ge=1, le=10)


class ReviewRead(BaseModel):
    """Schema for reading a review from the API."""

    id: int
    title: str
    text: str
    rating: int
    school_id: int
    user_id: int
    created_at: str
    school: Optional[SchoolSummary] = None
