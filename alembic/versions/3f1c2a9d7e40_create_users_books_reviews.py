"""create_users_books_reviews

Revision ID: 3f1c2a9d7e40
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9d7e40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False,
                  comment="User's email address, lower-cased (used for login)"),
        sa.Column('hashed_password', sa.String(length=255), nullable=False,
                  comment='Bcrypt hashed password'),
        sa.Column('refresh_token_hash', sa.String(length=64), nullable=True,
                  comment='SHA-256 digest of the active refresh token'),
        sa.Column('name', sa.String(length=100), nullable=True,
                  comment="User's display name"),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  comment='When the user registered'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  comment='When the user record was last updated'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table(
        'books',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('isbn', sa.String(length=13), nullable=False,
                  comment='13-digit International Standard Book Number'),
        sa.Column('title', sa.String(length=255), nullable=False, comment='Book title'),
        sa.Column('author', sa.String(length=255), nullable=False, comment='Author name'),
        sa.Column('genre', sa.String(length=100), nullable=True, comment='Genre label'),
        sa.Column('description', sa.Text(), nullable=True,
                  comment='Book description or summary'),
        sa.Column('average_rating', sa.Float(), nullable=False, server_default='0',
                  comment='Average review rating (0-5), 0 if no reviews'),
        sa.Column('total_reviews', sa.Integer(), nullable=False, server_default='0',
                  comment='Number of reviews for this book'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('average_rating >= 0 AND average_rating <= 5',
                           name='ck_book_average_rating_range'),
        sa.CheckConstraint('total_reviews >= 0', name='ck_book_total_reviews'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_books_isbn'), 'books', ['isbn'], unique=True)
    op.create_index(op.f('ix_books_title'), 'books', ['title'], unique=False)
    op.create_index(op.f('ix_books_author'), 'books', ['author'], unique=False)

    op.create_table(
        'reviews',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('book_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('rating', sa.Float(), nullable=False, comment='Rating from 1 to 5'),
        sa.Column('comment', sa.Text(), nullable=False, comment='Review text content'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('rating >= 1 AND rating <= 5', name='ck_review_rating_range'),
        sa.ForeignKeyConstraint(['book_id'], ['books.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('book_id', 'user_id', name='uq_review_book_user'),
    )
    op.create_index(op.f('ix_reviews_id'), 'reviews', ['id'], unique=False)
    op.create_index(op.f('ix_reviews_book_id'), 'reviews', ['book_id'], unique=False)
    op.create_index(op.f('ix_reviews_user_id'), 'reviews', ['user_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_reviews_user_id'), table_name='reviews')
    op.drop_index(op.f('ix_reviews_book_id'), table_name='reviews')
    op.drop_index(op.f('ix_reviews_id'), table_name='reviews')
    op.drop_table('reviews')
    op.drop_index(op.f('ix_books_author'), table_name='books')
    op.drop_index(op.f('ix_books_title'), table_name='books')
    op.drop_index(op.f('ix_books_isbn'), table_name='books')
    op.drop_table('books')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')
