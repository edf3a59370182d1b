"""Create pharmacist_profiles table

Revision ID: 0002_create_pharmacist_profiles
Revises: 0001_create_marketplace_tables
Create Date: 2026-10-17 09:40:00.000000

"""

from alembic import op
import sqlalchemy as sa
import os

# revision identifiers, used by Alembic.
revision = "0002_create_pharmacist_profiles"
down_revision = "0001_create_marketplace_tables"
branch_labels = None
depends_on = None

DB_SCHEMA = os.getenv("DB_SCHEMA", "public")

_INDEXED = ("last_name", "city", "area", "available")


def upgrade() -> None:
    op.create_table(
        "pharmacist_profiles",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("first_name", sa.String(), nullable=False),
        sa.Column("last_name", sa.String(), nullable=False),
        sa.Column("phone_number", sa.String(), nullable=True),
        sa.Column("cv_url", sa.String(), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("experience", sa.Text(), nullable=True),
        sa.Column("education", sa.Text(), nullable=True),
        sa.Column("city", sa.String(), nullable=False),
        sa.Column("area", sa.String(), nullable=True),
        sa.Column(
            "available", sa.Boolean(), server_default=sa.text("true"), nullable=False
        ),
        sa.Column(
            "created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False
        ),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(
            ["user_id"], [f"{DB_SCHEMA}.users.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
        schema=DB_SCHEMA,
    )
    for column in _INDEXED:
        op.create_index(
            op.f(f"ix_pharmacist_profiles_{column}"),
            "pharmacist_profiles",
            [column],
            unique=False,
            schema=DB_SCHEMA,
        )


def downgrade() -> None:
    for column in reversed(_INDEXED):
        op.drop_index(
            op.f(f"ix_pharmacist_profiles_{column}"),
            table_name="pharmacist_profiles",
            schema=DB_SCHEMA,
        )
    op.drop_table("pharmacist_profiles", schema=DB_SCHEMA)
