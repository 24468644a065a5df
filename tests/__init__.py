"""
Test Suite for the Book Review API

Test Organization:
- conftest.py: Shared fixtures (test database, client, sample data)
- test_auth.py / test_auth_service.py: registration, login, token rotation, logout
- test_books.py: /api/v1/books endpoints
- test_reviews.py: reviews, ownership and rating aggregation
- test_users.py: /api/v1/users/me endpoints

Running Tests:
    pytest
    pytest tests/test_books.py
    pytest tests/test_books.py::TestCreateBook::test_create_book_success -v
"""
