"""
Book Review API Application Package

Package Structure:
- config.py: Application configuration using Pydantic Settings
- database.py: SQLAlchemy engine, session factory and declarative base
- exceptions.py: Error taxonomy rendered by the exception handlers
- main.py: FastAPI application factory and configuration
- dependencies.py: Dependency injection (sessions, pagination, auth guard)
- models/: SQLAlchemy ORM models (User, Book, Review)
- schemas/: Pydantic request/response schemas
- routers/: API route handlers
- services/: Business logic (credentials, tokens, rating aggregation)
- utils/: Input validators shared by schemas and services
"""

__version__ = "0.1.0"
