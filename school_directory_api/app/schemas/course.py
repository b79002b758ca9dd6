"""Pydantic schemas for courses."""

from typing import Optional

from pydantic import BaseModel, Field

from .school import SchoolSummary


class CourseCreate(BaseModel):
    """Schema for adding a course to a school."""

    title: str = Field(..., min_length=1, examples=["Full Stack Web Development"])
    description: str = Field(..., min_length=1)
    weeks: str = Field(..., min_length=1, description="Course length in weeks")
    tuition: float = Field(..., ge=0, description="Tuition cost")
    scholarship_available: bool = False


class CourseUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    weeks: Optional[str] = Field(None, min_length=1)
    tuition: Optional[float] = Field(None, ge=0)
    scholarship_available: Optional[bool] = None


class CourseRead(BaseModel):
    id: int
    title: str
    description: str
    weeks: str
    tuition: float
    scholarship_available: bool
    school_id: int
    user_id: int
    created_at: str
    school: Optional[SchoolSummary] = None
