"""Add profile fields, decimal prices and the user_ratings view

Revision ID: 002
Revises: 001
Create Date: 2026-02-02 00:00:00.000000+00:00

What:
    - users.bio, users.avatar_url
    - tasks.price INTEGER → NUMERIC(10, 2)
    - user_ratings view: average rating and review count per reviewee
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

USER_RATINGS_VIEW = """
CREATE VIEW user_ratings AS
SELECT
    reviewee_id AS user_id,
    AVG(rating)::NUMERIC(3, 2) AS average_rating,
    COUNT(*) AS review_count
FROM reviews
GROUP BY reviewee_id
"""


def upgrade() -> None:
    op.add_column("users", sa.Column("bio", sa.Text(), nullable=True))
    op.add_column("users", sa.Column("avatar_url", sa.Text(), nullable=True))

    op.alter_column(
        "tasks",
        "price",
        existing_type=sa.Integer(),
        type_=sa.Numeric(10, 2),
        existing_nullable=False,
        postgresql_using="price::numeric(10, 2)",
    )

    op.execute(USER_RATINGS_VIEW)


def downgrade() -> None:
    op.execute("DROP VIEW IF EXISTS user_ratings")

    # Rounds any fractional prices
    op.alter_column(
        "tasks",
        "price",
        existing_type=sa.Numeric(10, 2),
        type_=sa.Integer(),
        existing_nullable=False,
        postgresql_using="round(price)::integer",
    )

    op.drop_column("users", "avatar_url")
    op.drop_column("users", "bio")
