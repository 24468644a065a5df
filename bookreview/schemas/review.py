"""
Review Pydantic Schemas

Schemas:
- ReviewCreate: Create a new review
- ReviewUpdate: Update an existing review
- ReviewResponse: Review data with the reviewer's summary
- ReviewListResponse: Paginated list of reviews

Business Rules:
- Rating must be between 1 and 5 (fractional ratings allowed)
- Comment is required and cannot be blank
- One review per user per book (checked by the router, enforced by the DB)
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from bookreview.exceptions import ValidationError
from bookreview.schemas.user import UserSummary
from bookreview.utils.validators import validate_comment, validate_rating


class ReviewCreate(BaseModel):
    """
    Schema for creating a new review.

    Example request body:
    {
        "rating": 4.5,
        "comment": "One of the best books I've ever read..."
    }
    """

    rating: float = Field(
        ...,
        description="Rating from 1 to 5",
        examples=[4, 4.5],
    )

    comment: str = Field(
        ...,
        max_length=2000,
        description="Review text",
        examples=["This book changed my perspective on..."],
    )

    @field_validator("rating")
    @classmethod
    def rating_in_range(cls, v: float) -> float:
        return validate_rating(v)

    @field_validator("comment")
    @classmethod
    def comment_not_blank(cls, v: str) -> str:
        return validate_comment(v)


class ReviewUpdate(BaseModel):
    """
    Schema for updating an existing review.

    Both fields are optional; provided fields must still be valid.
    """

    rating: float | None = Field(default=None, description="Rating from 1 to 5")
    comment: str | None = Field(default=None, max_length=2000, description="Review text")

    @field_validator("rating")
    @classmethod
    def rating_in_range(cls, v: float | None) -> float:
        if v is None:
            raise ValidationError("Rating must be a number between 1 and 5")
        return validate_rating(v)

    @field_validator("comment")
    @classmethod
    def comment_not_blank(cls, v: str | None) -> str:
        if v is None:
            raise ValidationError("Comment cannot be empty")
        return validate_comment(v)


class ReviewResponse(BaseModel):
    """
    Schema for review responses.

    Includes the reviewer's summary (id, name, email).
    """

    id: int = Field(..., description="Unique review identifier")
    book_id: int = Field(..., description="ID of the reviewed book")
    user_id: int = Field(..., description="ID of the user who wrote the review")
    rating: float = Field(..., ge=1, le=5, description="Rating from 1 to 5")
    comment: str = Field(..., description="Review text")
    created_at: datetime = Field(..., description="When the review was created")
    updated_at: datetime = Field(..., description="When the review was last updated")

    user: UserSummary = Field(..., description="User who wrote the review")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "book_id": 42,
                "user_id": 7,
                "rating": 5,
                "comment": "A must-read classic!",
                "created_at": "2024-01-15T10:30:00Z",
                "updated_at": "2024-01-15T10:30:00Z",
                "user": {
                    "id": 7,
                    "name": "Jane Doe",
                    "email": "jane@example.com",
                },
            }
        },
    )


class ReviewListResponse(BaseModel):
    """Schema for paginated review list responses."""

    items: list[ReviewResponse] = Field(..., description="Reviews on this page")
    total: int = Field(..., ge=0, description="Total number of reviews")
    page: int = Field(..., ge=1, description="Current page number")
    limit: int = Field(..., ge=1, le=50, description="Items per page")
    pages: int = Field(..., ge=0, description="Total number of pages")
