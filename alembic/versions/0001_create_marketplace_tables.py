"""Create users, pharmacy owner profiles and products tables

Revision ID: 0001_create_marketplace_tables
Revises:
Create Date: 2026-09-02 10:15:00.000000

"""

from alembic import op
import sqlalchemy as sa
import os

# revision identifiers, used by Alembic.
revision = "0001_create_marketplace_tables"
down_revision = None
branch_labels = None
depends_on = None

DB_SCHEMA = os.getenv("DB_SCHEMA", "public")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("role", sa.String(), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False
        ),
        sa.PrimaryKeyConstraint("id"),
        schema=DB_SCHEMA,
    )
    op.create_index(
        op.f("ix_users_email"), "users", ["email"], unique=True, schema=DB_SCHEMA
    )

    op.create_table(
        "pharmacy_owner_profiles",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("pharmacy_name", sa.String(), nullable=False),
        sa.Column("contact_person", sa.String(), nullable=False),
        sa.Column("phone_number", sa.String(), nullable=True),
        sa.Column("address", sa.String(), nullable=True),
        sa.Column("city", sa.String(), nullable=False),
        sa.Column("area", sa.String(), nullable=True),
        sa.Column(
            "subscription_status",
            sa.String(),
            server_default=sa.text("'none'"),
            nullable=False,
        ),
        sa.Column("subscription_expires_at", sa.DateTime(), nullable=True),
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
    op.create_index(
        op.f("ix_pharmacy_owner_profiles_city"),
        "pharmacy_owner_profiles",
        ["city"],
        unique=False,
        schema=DB_SCHEMA,
    )
    op.create_index(
        op.f("ix_pharmacy_owner_profiles_area"),
        "pharmacy_owner_profiles",
        ["area"],
        unique=False,
        schema=DB_SCHEMA,
    )

    op.create_table(
        "products",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("category", sa.String(), nullable=False),
        sa.Column("stock", sa.Integer(), nullable=False),
        sa.Column(
            "is_near_expiry",
            sa.Boolean(),
            server_default=sa.text("false"),
            nullable=False,
        ),
        sa.Column("expiry_date", sa.DateTime(), nullable=True),
        sa.Column("image_url", sa.String(), nullable=True),
        sa.Column("pharmacy_owner_id", sa.String(length=36), nullable=False),
        sa.Column(
            "created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False
        ),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        sa.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        sa.ForeignKeyConstraint(
            ["pharmacy_owner_id"], [f"{DB_SCHEMA}.pharmacy_owner_profiles.id"]
        ),
        sa.PrimaryKeyConstraint("id"),
        schema=DB_SCHEMA,
    )
    for column in ("name", "category", "is_near_expiry", "pharmacy_owner_id"):
        op.create_index(
            op.f(f"ix_products_{column}"),
            "products",
            [column],
            unique=False,
            schema=DB_SCHEMA,
        )


def downgrade() -> None:
    for column in ("pharmacy_owner_id", "is_near_expiry", "category", "name"):
        op.drop_index(
            op.f(f"ix_products_{column}"), table_name="products", schema=DB_SCHEMA
        )
    op.drop_table("products", schema=DB_SCHEMA)
    op.drop_index(
        op.f("ix_pharmacy_owner_profiles_area"),
        table_name="pharmacy_owner_profiles",
        schema=DB_SCHEMA,
    )
    op.drop_index(
        op.f("ix_pharmacy_owner_profiles_city"),
        table_name="pharmacy_owner_profiles",
        schema=DB_SCHEMA,
    )
    op.drop_table("pharmacy_owner_profiles", schema=DB_SCHEMA)
    op.drop_index(op.f("ix_users_email"), table_name="users", schema=DB_SCHEMA)
    op.drop_table("users", schema=DB_SCHEMA)
