"""Create users table for credentials and lockout state.

Revision ID: 001_create_users
Revises:
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa

revision: str = "001_create_users"
down_revision: str | None = None
branch_labels: str | None = None
depends_on: str | None = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("username", sa.Text, primary_key=True),
        sa.Column("password_hash", sa.Text, nullable=False),
        sa.Column("first_name", sa.Text, nullable=False, server_default=""),
        sa.Column("last_name", sa.Text, nullable=False, server_default=""),
        sa.Column(
            "is_active",
            sa.Boolean,
            nullable=False,
            server_default=sa.text("true"),
        ),
        sa.Column(
            "failed_login_attempts",
            sa.Integer,
            nullable=False,
            server_default=sa.text("0"),
        ),
        sa.Column("lock_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_check_constraint(
        "ck_users_failed_login_attempts",
        "users",
        "failed_login_attempts >= 0",
    )


def downgrade() -> None:
    op.drop_constraint("ck_users_failed_login_attempts", "users", type_="check")
    op.drop_table("users")
