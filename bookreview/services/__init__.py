"""
Services Package

Business logic that is separate from HTTP handling:
- auth.py: registration, login, refresh-token rotation, logout, auth guard
- rate_limiter.py: Rate limiting with slowapi
- ratings.py: Book rating aggregation
- security.py: Password hashing and refresh-token digests
- tokens.py: JWT issuing and verification (TokenService)
"""
