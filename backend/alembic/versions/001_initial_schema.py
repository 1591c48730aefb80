"""Initial database schema - users, categories, commission rules

Revision ID: 001_initial
Revises: None
Create Date: 2025-06-14
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- Users ---
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column(
            "role",
            sa.Enum("CUSTOMER", "SERVICE_PROVIDER", "ADMIN", name="user_role"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"])

    # --- Categories ---
    op.create_table(
        "categories",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.String(500)),
        sa.Column("status", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("icon_url", sa.String(500)),
        sa.Column("parent_id", sa.Uuid, sa.ForeignKey("categories.id", ondelete="RESTRICT")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("parent_id", "name", name="uq_categories_parent_name"),
    )
    op.create_index("ix_categories_name", "categories", ["name"])
    op.create_index("ix_categories_parent_id", "categories", ["parent_id"])
    op.create_index(
        "uq_categories_top_level_name",
        "categories",
        ["name"],
        unique=True,
        postgresql_where=sa.text("parent_id IS NULL"),
    )

    # --- Commission rules ---
    op.create_table(
        "commission_rules",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column(
            "category_id",
            sa.Uuid,
            sa.ForeignKey("categories.id", ondelete="CASCADE"),
            unique=True,
        ),
        sa.Column("global_commission", sa.Numeric(5, 2)),
        sa.Column("flat_fee", sa.Numeric(12, 2)),
        sa.Column("category_commission", sa.Numeric(5, 2)),
        sa.Column("status", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            "(category_id IS NULL AND global_commission IS NOT NULL "
            "AND flat_fee IS NULL AND category_commission IS NULL) "
            "OR (category_id IS NOT NULL AND global_commission IS NULL "
            "AND ((flat_fee IS NULL) <> (category_commission IS NULL)))",
            name="ck_commission_rules_mode",
        ),
        sa.CheckConstraint("global_commission BETWEEN 0 AND 100", name="ck_commission_rules_global_range"),
        sa.CheckConstraint("category_commission BETWEEN 0 AND 100", name="ck_commission_rules_category_range"),
        sa.CheckConstraint("flat_fee >= 0", name="ck_commission_rules_flat_fee_positive"),
    )
    op.create_index(
        "uq_commission_rules_global",
        "commission_rules",
        [sa.text("(category_id IS NULL)")],
        unique=True,
        postgresql_where=sa.text("category_id IS NULL"),
    )


def downgrade() -> None:
    op.drop_index("uq_commission_rules_global", table_name="commission_rules")
    op.drop_table("commission_rules")
    op.drop_index("uq_categories_top_level_name", table_name="categories")
    op.drop_index("ix_categories_parent_id", table_name="categories")
    op.drop_index("ix_categories_name", table_name="categories")
    op.drop_table("categories")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    sa.Enum(name="user_role").drop(op.get_bind(), checkfirst=True)
