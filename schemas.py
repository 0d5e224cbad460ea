"""
Request schemas.

Each write endpoint parses its body into one of these models; unknown keys are
ignored, so immutable columns such as ``id`` or ``instructor_id`` can never be
set through an update payload.
"""

import json
import re
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from utils.helpers import as_utc

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MAX_PAGE_SIZE = 100

Role = Literal["student", "instructor", "admin"]
DifficultyLevel = Literal["beginner", "intermediate", "advanced"]
CourseSortField = Literal["created_at", "updated_at", "title", "price", "difficulty_level"]


class RequestSchema(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore", allow_inf_nan=False)


def _split_tags(value):
    # Forms send tags as a JSON array string or a comma-separated list.
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("["):
            try:
                return json.loads(text)
            except ValueError:
                raise ValueError("tags must be a list of strings")
        return [tag.strip() for tag in text.split(",") if tag.strip()]
    return value


def _reject_nulls(data, fields):
    if isinstance(data, dict):
        for field in fields:
            if field in data and data[field] is None:
                raise ValueError(f"{field} cannot be null")
    return data


# ---------------------------------------------------------------- auth

class RegisterSchema(RequestSchema):
    email: str
    password: str = Field(..., min_length=6)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)

    @field_validator("email")
    @classmethod
    def check_email(cls, value):
        if not EMAIL_PATTERN.match(value):
            raise ValueError("must be a valid email address")
        return value.lower()


class LoginSchema(RequestSchema):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RefreshTokenSchema(RequestSchema):
    refreshToken: str = Field(..., min_length=1)


class ForgotPasswordSchema(RequestSchema):
    email: str = Field(..., min_length=1)


class ResetPasswordSchema(RequestSchema):
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=6)


class ChangePasswordSchema(RequestSchema):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


class ProfileUpdateSchema(RequestSchema):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    avatar_url: Optional[str] = Field(None, max_length=500)
    bio: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def names_not_null(cls, data):
        return _reject_nulls(data, ("first_name", "last_name"))


# ---------------------------------------------------------------- listing queries

class PageQuery(RequestSchema):
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=MAX_PAGE_SIZE)


class SortedCourseQuery(PageQuery):
    sortBy: CourseSortField = "created_at"
    sortOrder: Literal["asc", "desc"] = "desc"


class CourseListQuery(SortedCourseQuery):
    category: Optional[str] = None
    difficulty_level: Optional[DifficultyLevel] = None
    instructor_id: Optional[str] = None
    price_min: Optional[float] = Field(None, ge=0)
    price_max: Optional[float] = Field(None, ge=0)
    search: Optional[str] = None


class InstructorCourseQuery(SortedCourseQuery):
    category: Optional[str] = None
    is_published: Optional[bool] = None


class UserListQuery(PageQuery):
    search: Optional[str] = None
    role: Optional[Role] = None


# ---------------------------------------------------------------- courses

class CourseCreateSchema(RequestSchema):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price: float = Field(0, ge=0)
    category: Optional[str] = Field(None, max_length=100)
    tags: List[str] = Field(default_factory=list)
    duration_weeks: Optional[int] = Field(None, ge=1)
    difficulty_level: DifficultyLevel = "beginner"
    cover_image_url: Optional[str] = Field(None, max_length=500)

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, value):
        return _split_tags(value)


class CourseUpdateSchema(RequestSchema):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    category: Optional[str] = Field(None, max_length=100)
    tags: Optional[List[str]] = None
    duration_weeks: Optional[int] = Field(None, ge=1)
    difficulty_level: Optional[DifficultyLevel] = None
    cover_image_url: Optional[str] = Field(None, max_length=500)

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, value):
        return _split_tags(value)

    @model_validator(mode="before")
    @classmethod
    def required_columns_not_null(cls, data):
        return _reject_nulls(data, ("title", "price", "tags", "difficulty_level"))


class SectionSchema(RequestSchema):
    title: str = Field(..., min_length=1, max_length=255)


class LessonCreateSchema(RequestSchema):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    content: Optional[str] = None
    video_url: Optional[str] = Field(None, max_length=500)
    duration_minutes: Optional[int] = Field(None, ge=0)
    is_preview: bool = False


class LessonUpdateSchema(RequestSchema):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    content: Optional[str] = None
    video_url: Optional[str] = Field(None, max_length=500)
    duration_minutes: Optional[int] = Field(None, ge=0)
    is_preview: Optional[bool] = None
    section_id: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def required_columns_not_null(cls, data):
        return _reject_nulls(data, ("title", "is_preview"))


class ReviewSchema(RequestSchema):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None


class StudyMaterialSchema(RequestSchema):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    file_url: str = Field(..., min_length=1, max_length=500)
    file_type: Optional[str] = Field(None, max_length=100)
    size_bytes: Optional[int] = Field(None, ge=0)
    section_id: Optional[str] = None
    lesson_id: Optional[str] = None


# ---------------------------------------------------------------- enrollments

class EnrollSchema(RequestSchema):
    course_id: str = Field(..., min_length=1)


class LessonCompletionSchema(RequestSchema):
    lesson_id: str = Field(..., min_length=1)


# ---------------------------------------------------------------- assignments

class AssignmentCreateSchema(RequestSchema):
    course_id: str = Field(..., min_length=1)
    section_id: Optional[str] = None
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    points: Optional[int] = Field(None, ge=0)

    @field_validator("due_date")
    @classmethod
    def due_date_in_utc(cls, value):
        return as_utc(value)


class AssignmentUpdateSchema(RequestSchema):
    section_id: Optional[str] = None
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    points: Optional[int] = Field(None, ge=0)

    @field_validator("due_date")
    @classmethod
    def due_date_in_utc(cls, value):
        return as_utc(value)

    @model_validator(mode="before")
    @classmethod
    def title_not_null(cls, data):
        return _reject_nulls(data, ("title",))


class SubmissionSchema(RequestSchema):
    content: Optional[str] = None
    attachments: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def has_something_to_submit(self):
        if not self.content and not self.attachments:
            raise ValueError("Submission content or attachments are required")
        return self


class GradeSchema(RequestSchema):
    grade: float = Field(..., ge=0)
    feedback: Optional[str] = None


class ReturnSubmissionSchema(RequestSchema):
    feedback: Optional[str] = None


# ---------------------------------------------------------------- users

class RoleUpdateSchema(RequestSchema):
    role: Role
