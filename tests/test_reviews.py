"""
Tests for Reviews

Tests the review system:
- List reviews for a book
- Create a review (authenticated, one per user per book)
- Get a single review
- Update / delete a review (owner only)
- Rating aggregates kept in sync with the reviews
"""

import pytest
from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from bookreview.models import Book, Review, User
from bookreview.services.security import hash_password
from tests.conftest import get_auth_header


def rating_of(client: TestClient, book_id: int) -> tuple[float, int]:
    data = client.get(f"/api/v1/books/{book_id}/rating").json()
    return data["average_rating"], data["total_reviews"]


# =============================================================================
# List Reviews for Book
# =============================================================================
class TestListBookReviews:
    """Tests for GET /api/v1/books/{book_id}/reviews"""

    def test_list_reviews_empty(self, client: TestClient, sample_book: Book):
        response = client.get(f"/api/v1/books/{sample_book.id}/reviews")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["items"] == []
        assert data["total"] == 0
        assert data["page"] == 1

    def test_list_reviews_with_data(self, client: TestClient, sample_review: Review):
        response = client.get(f"/api/v1/books/{sample_review.book_id}/reviews")

        data = response.json()
        assert data["total"] == 1
        review = data["items"][0]
        assert review["rating"] == 4
        assert review["comment"] == "I really enjoyed reading this book."
        assert review["user"]["name"] == "Test User"

    def test_list_reviews_book_not_found(self, client: TestClient):
        response = client.get("/api/v1/books/99999/reviews")

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_list_reviews_pagination(
        self,
        client: TestClient,
        db_session: Session,
        sample_book: Book,
    ):
        users = []
        for i in range(7):
            user = User(
                email=f"reviewer{i}@example.com",
                hashed_password=hash_password("Password123"),
            )
            db_session.add(user)
            users.append(user)
        db_session.commit()

        for i, user in enumerate(users):
            db_session.add(
                Review(
                    book_id=sample_book.id,
                    user_id=user.id,
                    rating=(i % 5) + 1,
                    comment=f"Review {i}",
                )
            )
        db_session.commit()

        response = client.get(f"/api/v1/books/{sample_book.id}/reviews?limit=5")
        data = response.json()
        assert data["total"] == 7
        assert data["pages"] == 2
        assert len(data["items"]) == 5
        assert data["items"][0]["comment"] == "Review 6"

        response = client.get(f"/api/v1/books/{sample_book.id}/reviews?limit=5&page=2")
        assert len(response.json()["items"]) == 2

        # The book detail embeds the first 5 reviews by default
        response = client.get(f"/api/v1/books/{sample_book.id}")
        data = response.json()
        assert data["reviews_count"] == 7
        assert len(data["reviews"]) == 5


# =============================================================================
# Create Review
# =============================================================================
class TestCreateReview:
    """Tests for POST /api/v1/books/{book_id}/reviews"""

    def test_create_review_success(
        self, client: TestClient, sample_book: Book, sample_user: User
    ):
        response = client.post(
            f"/api/v1/books/{sample_book.id}/reviews",
            json={"rating": 4.5, "comment": "  Chilling and brilliant.  "},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["rating"] == 4.5
        assert data["comment"] == "Chilling and brilliant."
        assert data["book_id"] == sample_book.id
        assert data["user_id"] == sample_user.id
        assert data["user"]["email"] == sample_user.email

        assert rating_of(client, sample_book.id) == (4.5, 1)

    def test_create_review_requires_auth(self, client: TestClient, sample_book: Book):
        response = client.post(
            f"/api/v1/books/{sample_book.id}/reviews",
            json={"rating": 4, "comment": "Great"},
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_create_review_book_not_found(self, client: TestClient, sample_user: User):
        response = client.post(
            "/api/v1/books/99999/reviews",
            json={"rating": 4, "comment": "Great"},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_create_review_duplicate(
        self, client: TestClient, sample_review: Review, sample_user: User
    ):
        response = client.post(
            f"/api/v1/books/{sample_review.book_id}/reviews",
            json={"rating": 2, "comment": "Changed my mind"},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert "already reviewed" in response.json()["detail"]

    def test_create_review_duplicate_caught_by_constraint(
        self,
        client: TestClient,
        db_session: Session,
        sample_review: Review,
        sample_user: User,
        monkeypatch: pytest.MonkeyPatch,
    ):
        """A second review inserted after the existence check still yields 409."""
        monkeypatch.setattr(
            "bookreview.routers.reviews.has_reviewed", lambda *args, **kwargs: False
        )

        response = client.post(
            f"/api/v1/books/{sample_review.book_id}/reviews",
            json={"rating": 1, "comment": "Second opinion"},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert "already reviewed" in response.json()["detail"]

        count_stmt = select(func.count()).select_from(Review).where(
            Review.book_id == sample_review.book_id
        )
        assert db_session.execute(count_stmt).scalar() == 1
        assert rating_of(client, sample_review.book_id) == (4.0, 1)

    def test_create_review_invalid_rating(
        self, client: TestClient, sample_book: Book, sample_user: User
    ):
        for rating in [0, 5.5, -1]:
            response = client.post(
                f"/api/v1/books/{sample_book.id}/reviews",
                json={"rating": rating, "comment": "Hmm"},
                headers=get_auth_header(sample_user),
            )
            assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_create_review_blank_comment(
        self, client: TestClient, sample_book: Book, sample_user: User
    ):
        response = client.post(
            f"/api/v1/books/{sample_book.id}/reviews",
            json={"rating": 3, "comment": "   "},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


# =============================================================================
# Get Review
# =============================================================================
class TestGetReview:
    """Tests for GET /api/v1/reviews/{review_id}"""

    def test_get_review(self, client: TestClient, sample_review: Review):
        response = client.get(f"/api/v1/reviews/{sample_review.id}")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["id"] == sample_review.id

    def test_get_review_not_found(self, client: TestClient):
        response = client.get("/api/v1/reviews/99999")

        assert response.status_code == status.HTTP_404_NOT_FOUND


# =============================================================================
# Update Review
# =============================================================================
class TestUpdateReview:
    """Tests for PUT /api/v1/reviews/{review_id}"""

    def test_update_review_by_owner(
        self, client: TestClient, sample_review: Review, sample_user: User
    ):
        response = client.put(
            f"/api/v1/reviews/{sample_review.id}",
            json={"rating": 2},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["rating"] == 2
        assert data["comment"] == "I really enjoyed reading this book."

        assert rating_of(client, sample_review.book_id) == (2.0, 1)

    def test_update_review_comment_only_keeps_rating(
        self, client: TestClient, sample_review: Review, sample_user: User
    ):
        response = client.put(
            f"/api/v1/reviews/{sample_review.id}",
            json={"comment": "On reflection, even better."},
            headers=get_auth_header(sample_user),
        )

        assert response.json()["comment"] == "On reflection, even better."
        assert rating_of(client, sample_review.book_id) == (4.0, 1)

    def test_update_review_by_other_user_forbidden(
        self, client: TestClient, sample_review: Review, second_user: User
    ):
        response = client.put(
            f"/api/v1/reviews/{sample_review.id}",
            json={"rating": 1},
            headers=get_auth_header(second_user),
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert rating_of(client, sample_review.book_id) == (4.0, 1)

    def test_update_review_invalid_values(
        self, client: TestClient, sample_review: Review, sample_user: User
    ):
        for payload in [{"rating": 6}, {"comment": ""}, {"rating": None}]:
            response = client.put(
                f"/api/v1/reviews/{sample_review.id}",
                json=payload,
                headers=get_auth_header(sample_user),
            )
            assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_update_review_not_found(self, client: TestClient, sample_user: User):
        response = client.put(
            "/api/v1/reviews/99999",
            json={"rating": 3},
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND


# =============================================================================
# Delete Review
# =============================================================================
class TestDeleteReview:
    """Tests for DELETE /api/v1/reviews/{review_id}"""

    def test_delete_review_by_owner(
        self, client: TestClient, sample_review: Review, sample_user: User
    ):
        response = client.delete(
            f"/api/v1/reviews/{sample_review.id}",
            headers=get_auth_header(sample_user),
        )

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert client.get(f"/api/v1/reviews/{sample_review.id}").status_code == 404
        assert rating_of(client, sample_review.book_id) == (0.0, 0)

    def test_delete_review_by_other_user_forbidden(
        self, client: TestClient, sample_review: Review, second_user: User
    ):
        response = client.delete(
            f"/api/v1/reviews/{sample_review.id}",
            headers=get_auth_header(second_user),
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert client.get(f"/api/v1/reviews/{sample_review.id}").status_code == 200

    def test_delete_review_requires_auth(self, client: TestClient, sample_review: Review):
        response = client.delete(f"/api/v1/reviews/{sample_review.id}")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


# =============================================================================
# Rating Aggregation
# =============================================================================
class TestRatingAggregation:
    """Book rating fields follow every review create, update and delete."""

    def test_rating_sequence(
        self,
        client: TestClient,
        sample_book: Book,
        sample_user: User,
        second_user: User,
    ):
        first = client.post(
            f"/api/v1/books/{sample_book.id}/reviews",
            json={"rating": 5, "comment": "Perfect"},
            headers=get_auth_header(sample_user),
        )
        assert rating_of(client, sample_book.id) == (5.0, 1)

        client.post(
            f"/api/v1/books/{sample_book.id}/reviews",
            json={"rating": 3, "comment": "Fine"},
            headers=get_auth_header(second_user),
        )
        assert rating_of(client, sample_book.id) == (4.0, 2)

        client.delete(
            f"/api/v1/reviews/{first.json()['id']}",
            headers=get_auth_header(sample_user),
        )
        assert rating_of(client, sample_book.id) == (3.0, 1)

    def test_rating_rounded_to_two_decimals(
        self,
        client: TestClient,
        sample_book: Book,
        sample_user: User,
        second_user: User,
        db_session: Session,
    ):
        third_user = User(
            email="third@example.com",
            hashed_password=hash_password("Password123"),
        )
        db_session.add(third_user)
        db_session.commit()

        for user, rating in [(sample_user, 5), (second_user, 4), (third_user, 4)]:
            client.post(
                f"/api/v1/books/{sample_book.id}/reviews",
                json={"rating": rating, "comment": "ok"},
                headers=get_auth_header(user),
            )

        assert rating_of(client, sample_book.id) == (4.33, 3)

    def test_rating_stats_book_not_found(self, client: TestClient):
        response = client.get("/api/v1/books/99999/rating")

        assert response.status_code == status.HTTP_404_NOT_FOUND
