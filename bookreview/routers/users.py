"""
Users Router

Endpoints for the authenticated user's own account.

Endpoints:
- GET /users/me - Current user's profile (same as /auth/me)
- PUT /users/me/password - Change password
- GET /users/me/reviews - Current user's reviews
"""

from fastapi import APIRouter, Request, status
from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from bookreview.config import get_settings
from bookreview.dependencies import CurrentUser, DbSession, Pagination
from bookreview.models import Review
from bookreview.schemas import (
    PasswordChange,
    ReviewListResponse,
    ReviewResponse,
    UserResponse,
)
from bookreview.services import auth as auth_service
from bookreview.services.rate_limiter import limiter

settings = get_settings()

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    responses={
        401: {"description": "Not authenticated"},
    },
)


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user profile",
    description="Get the authenticated user's profile.",
)
@limiter.limit(settings.rate_limit_default)
def get_current_user_profile(
    request: Request,
    current_user: CurrentUser,
) -> UserResponse:
    return UserResponse.model_validate(current_user)


@router.put(
    "/me/password",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Change password",
    description="Change the current user's password. Requires the current password.",
)
@limiter.limit(settings.rate_limit_auth)
def change_password(
    request: Request,
    password_data: PasswordChange,
    db: DbSession,
    current_user: CurrentUser,
) -> None:
    """
    Change the current user's password.

    The refresh token in use is revoked, so the user has to log in again
    once the current access token expires.
    """
    auth_service.change_password(
        db,
        current_user,
        current_password=password_data.current_password,
        new_password=password_data.new_password,
    )


@router.get(
    "/me/reviews",
    response_model=ReviewListResponse,
    summary="Get current user's reviews",
    description="Get a paginated list of reviews written by the current user.",
)
@limiter.limit(settings.rate_limit_default)
def get_my_reviews(
    request: Request,
    db: DbSession,
    current_user: CurrentUser,
    pagination: Pagination,
) -> ReviewListResponse:
    count_stmt = select(func.count()).select_from(Review).where(Review.user_id == current_user.id)
    total = db.execute(count_stmt).scalar() or 0

    stmt = (
        select(Review)
        .options(selectinload(Review.user))
        .where(Review.user_id == current_user.id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .offset(pagination.skip)
        .limit(pagination.limit)
    )
    reviews = db.execute(stmt).scalars().all()

    return ReviewListResponse(
        items=[ReviewResponse.model_validate(r) for r in reviews],
        total=total,
        page=pagination.page,
        limit=pagination.limit,
        pages=pagination.pages_for(total),
    )
