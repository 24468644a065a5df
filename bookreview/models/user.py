"""
User Model

Represents a registered user and their single active session.

Credential Fields:
- hashed_password: bcrypt hash, the plaintext is never stored
- refresh_token_hash: SHA-256 digest of the most recently issued refresh
  token, or NULL when the user has no active session. Issuing a new refresh
  token overwrites it, which invalidates the previous one.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookreview.database import Base

if TYPE_CHECKING:
    from bookreview.models.review import Review


class User(Base):
    """
    User model representing registered users in the system.

    Table: users

    Relationships:
    - reviews: One-to-Many relationship with Review model

    Indexes:
    - Primary key on id (automatic)
    - email: Unique index for login lookups (stored lower-cased)

    Example:
        user = User(
            email="john@example.com",
            name="John Doe",
            hashed_password=hash_password("secret123"),
        )
    """

    __tablename__ = "users"

    # -------------------------------------------------------------------------
    # Primary Key
    # -------------------------------------------------------------------------
    id: Mapped[int] = mapped_column(primary_key=True)

    # -------------------------------------------------------------------------
    # Authentication Fields
    # -------------------------------------------------------------------------
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
        comment="User's email address, lower-cased (used for login)"
    )

    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Bcrypt hashed password"
    )

    refresh_token_hash: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        default=None,
        comment="SHA-256 digest of the active refresh token"
    )

    # -------------------------------------------------------------------------
    # Profile Fields
    # -------------------------------------------------------------------------
    name: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
        comment="User's display name"
    )

    # -------------------------------------------------------------------------
    # Timestamps
    # -------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
        comment="When the user registered"
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
        comment="When the user record was last updated"
    )

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------
    reviews: Mapped[list["Review"]] = relationship(
        "Review",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"User(id={self.id}, email='{self.email}')"
