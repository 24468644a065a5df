"""
API Routers Package

Router Structure:
- auth.py: /api/v1/auth/* endpoints (register, login, refresh, logout)
- users.py: /api/v1/users/me/* endpoints
- books.py: /api/v1/books/* endpoints
- reviews.py: /api/v1/books/{id}/reviews, /api/v1/reviews/* endpoints

Each router is imported and registered in main.py.
"""

from bookreview.routers.auth import router as auth_router
from bookreview.routers.books import router as books_router
from bookreview.routers.reviews import router as reviews_router
from bookreview.routers.users import router as users_router

__all__ = [
    "auth_router",
    "users_router",
    "books_router",
    "reviews_router",
]
