"""
Utilities Package

Helper functions used across the application:
- validators.py: input validation shared by schemas and services
"""
