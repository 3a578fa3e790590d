"""Initial schema

Revision ID: 0001_init
Revises:
Create Date: 2026-10-18
"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    conn = op.get_bind()
    dialect = conn.dialect.name if conn is not None else "sqlite"
    true_def = sa.text("TRUE") if dialect == "postgresql" else sa.text("1")
    false_def = sa.text("FALSE") if dialect == "postgresql" else sa.text("0")
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("first_name", sa.String(length=255)),
        sa.Column("middle_name", sa.String(length=255)),
        sa.Column("last_name", sa.String(length=255)),
        sa.Column("name", sa.String(length=255)),
        sa.Column("age", sa.Integer()),
        sa.Column("date_of_birth", sa.Date()),
        sa.Column("gender", sa.String(length=255)),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("phonenumber", sa.String(length=20), unique=True),
        sa.Column("address", sa.String(length=255), unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role_id", sa.Integer(), nullable=False, server_default=sa.text("4")),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("email_verified_at", sa.DateTime()),
    )
    op.create_table(
        "restaurant_data",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("restaurant_name", sa.String(length=255), nullable=False),
        sa.Column("address", sa.String(length=255), nullable=False),
        sa.Column("postal_code", sa.String(length=20)),
        sa.Column("contact_number", sa.String(length=20), nullable=False, unique=True),
    )
    op.create_table(
        "employees",
        sa.Column("employee_id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("first_name", sa.String(length=255), nullable=False),
        sa.Column("middle_name", sa.String(length=255)),
        sa.Column("last_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("date_of_birth", sa.Date()),
        sa.Column("gender", sa.String(length=20)),
        sa.Column("role_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
    )
    op.create_table(
        "administrators",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
    )
    op.create_table(
        "user_subscriptions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("plan_name", sa.String(length=120), nullable=False),
        sa.Column("subscription_start_date", sa.Date(), nullable=False),
        sa.Column("subscription_end_date", sa.DateTime(), nullable=False),
        sa.Column("remaining_days", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_trial", sa.Boolean(), nullable=False, server_default=false_def),
        sa.Column("subscription_status", sa.String(length=20), nullable=False, server_default="active"),
    )
    op.create_index("ix_user_subscriptions_user_status", "user_subscriptions", ["user_id", "subscription_status"])
    op.create_table(
        "menu_plans",
        sa.Column("menu_plan_id", sa.Integer(), primary_key=True),
        sa.Column("restaurant_id", sa.Integer(), sa.ForeignKey("restaurant_data.id"), nullable=False),
        sa.Column("plan_name", sa.String(length=255), nullable=False),
        sa.Column("plan_type", sa.String(length=10), nullable=False),
        sa.Column("start_date", sa.Date()),
        sa.Column("end_date", sa.Date()),
        sa.Column("description", sa.Text()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=true_def),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=false_def),
    )
    op.create_index("ix_menu_plans_active_start", "menu_plans", ["is_active", "start_date"])
    op.create_table(
        "tables",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("table_number", sa.String(length=20), nullable=False, unique=True),
        sa.Column("table_name", sa.String(length=120), nullable=False),
        sa.Column("seats", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="available"),
    )
    op.create_table(
        "table_reservations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("table_id", sa.Integer(), sa.ForeignKey("tables.id"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("customer_name", sa.String(length=255), nullable=False),
        sa.Column("customer_phone", sa.String(length=40), nullable=False),
        sa.Column("customer_email", sa.String(length=255)),
        sa.Column("party_size", sa.Integer(), nullable=False),
        sa.Column("reservation_date", sa.Date(), nullable=False),
        sa.Column("reservation_time", sa.Time(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), server_default=sa.text("120")),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
    )
    op.create_index("ix_table_reservations_date_status", "table_reservations", ["reservation_date", "status"])
    op.create_table(
        "purchase_orders",
        sa.Column("purchase_order_id", sa.Integer(), primary_key=True),
        sa.Column("po_number", sa.String(length=50), unique=True),
        sa.Column("restaurant_id", sa.Integer(), sa.ForeignKey("restaurant_data.id"), nullable=False),
        sa.Column("supplier_name", sa.String(length=255)),
        sa.Column("supplier_email", sa.String(length=255)),
        sa.Column("status", sa.String(length=30), nullable=False, server_default="draft"),
        sa.Column("supplier_response", sa.String(length=20)),
        sa.Column("supplier_responded_at", sa.DateTime()),
    )


def downgrade() -> None:
    op.drop_table("purchase_orders")
    op.drop_index("ix_table_reservations_date_status", table_name="table_reservations")
    op.drop_table("table_reservations")
    op.drop_table("tables")
    op.drop_index("ix_menu_plans_active_start", table_name="menu_plans")
    op.drop_table("menu_plans")
    op.drop_index("ix_user_subscriptions_user_status", table_name="user_subscriptions")
    op.drop_table("user_subscriptions")
    op.drop_table("administrators")
    op.drop_table("employees")
    op.drop_table("restaurant_data")
    op.drop_table("users")
