"""
Book Pydantic Schemas

Handles:
- ISBN validation (exactly 13 digits)
- Trimming and required-field checks
- Pagination for list responses
- Read-only rating aggregates (never accepted as input)
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from bookreview.exceptions import ValidationError
from bookreview.schemas.review import ReviewResponse
from bookreview.utils.validators import optional_text, require_text, validate_isbn


class BookBase(BaseModel):
    """
    Base schema with shared book fields.

    average_rating and total_reviews are not part of any input schema;
    extra fields in request bodies are ignored.
    """

    isbn: str = Field(
        ...,
        description="13-digit ISBN",
        examples=["9780451524935"],
    )

    title: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Book title",
        examples=["1984"],
    )

    author: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Author name",
        examples=["George Orwell"],
    )

    genre: str | None = Field(
        default=None,
        max_length=100,
        description="Genre label",
        examples=["Dystopian"],
    )

    description: str | None = Field(
        default=None,
        max_length=2000,
        description="Book description or summary",
        examples=["A dystopian novel set in a totalitarian society..."],
    )

    @field_validator("isbn")
    @classmethod
    def isbn_is_valid(cls, v: str) -> str:
        return validate_isbn(v)

    @field_validator("title")
    @classmethod
    def title_must_not_be_empty(cls, v: str) -> str:
        return require_text(v, "Title")

    @field_validator("author")
    @classmethod
    def author_must_not_be_empty(cls, v: str) -> str:
        return require_text(v, "Author")

    @field_validator("genre", "description")
    @classmethod
    def optional_text_trimmed(cls, v: str | None) -> str | None:
        return optional_text(v)


class BookCreate(BookBase):
    """
    Schema for creating a new book.

    Example request body:
    {
        "isbn": "9780451524935",
        "title": "1984",
        "author": "George Orwell",
        "genre": "Dystopian"
    }
    """

    pass


class BookUpdate(BaseModel):
    """
    Schema for updating a book.

    All fields are optional; only the provided ones are changed.
    isbn, title and author may be omitted but not set to null.
    """

    isbn: str | None = Field(default=None, description="13-digit ISBN")
    title: str | None = Field(default=None, min_length=1, max_length=255)
    author: str | None = Field(default=None, min_length=1, max_length=255)
    genre: str | None = Field(default=None, max_length=100)
    description: str | None = Field(default=None, max_length=2000)

    @field_validator("isbn")
    @classmethod
    def isbn_is_valid(cls, v: str | None) -> str:
        if v is None:
            raise ValidationError("ISBN cannot be null")
        return validate_isbn(v)

    @field_validator("title", "author")
    @classmethod
    def required_text(cls, v: str | None, info: ValidationInfo) -> str:
        field = info.field_name.capitalize()
        if v is None:
            raise ValidationError(f"{field} cannot be null")
        return require_text(v, field)

    @field_validator("genre", "description")
    @classmethod
    def optional_text_trimmed(cls, v: str | None) -> str | None:
        return optional_text(v)


class BookResponse(BookBase):
    """
    Schema for book responses.

    from_attributes=True allows creating from SQLAlchemy model instances.
    """

    id: int = Field(..., description="Unique book identifier")
    average_rating: float = Field(
        ...,
        ge=0,
        le=5,
        description="Average review rating (0 means no reviews)",
    )
    total_reviews: int = Field(..., ge=0, description="Number of reviews")
    created_at: datetime = Field(..., description="When the book was added")
    updated_at: datetime = Field(..., description="When the book was last updated")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "isbn": "9780451524935",
                "title": "1984",
                "author": "George Orwell",
                "genre": "Dystopian",
                "description": "A dystopian novel set in a totalitarian society.",
                "average_rating": 4.5,
                "total_reviews": 2,
                "created_at": "2024-01-15T10:30:00Z",
                "updated_at": "2024-01-15T10:30:00Z",
            }
        },
    )


class BookListResponse(BaseModel):
    """
    Schema for paginated book list responses.

    Pagination metadata:
    - total: Total number of matching books
    - page: Current page number
    - limit: Number of items per page
    - pages: Total number of pages
    """

    items: list[BookResponse] = Field(..., description="Books on this page")
    total: int = Field(..., ge=0, description="Total number of matching books")
    page: int = Field(..., ge=1, description="Current page number")
    limit: int = Field(..., ge=1, le=50, description="Items per page")
    pages: int = Field(..., ge=0, description="Total number of pages")


class BookDetailResponse(BaseModel):
    """A book with the first page of its reviews."""

    book: BookResponse
    reviews: list[ReviewResponse] = Field(..., description="Reviews on this page")
    reviews_count: int = Field(..., ge=0, description="Total number of reviews")
    reviews_message: str | None = Field(
        default=None,
        description="Set when the book has no reviews on this page",
    )
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1, le=50)


class BookRatingStats(BaseModel):
    """Aggregated rating statistics for a book."""

    book_id: int = Field(..., description="Book ID")
    average_rating: float = Field(
        ...,
        ge=0,
        le=5,
        description="Average rating (0-5, 0 means no reviews)",
    )
    total_reviews: int = Field(..., ge=0, description="Total number of reviews")
