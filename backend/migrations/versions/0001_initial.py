"""Initial schema – users and tickets

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18

Creates both core tables with their enum columns, foreign-key constraint
and the indexes used by the list queries.
"""

from alembic import op
import sqlalchemy as sa

# Alembic revision identifiers
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # -- users ----------------------------------------------------------
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("dept", sa.String(255), nullable=False),
        sa.Column("designation", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("contact_number", sa.String(32), nullable=False),
        sa.Column("employee_number", sa.String(64), nullable=False, unique=True),
        sa.Column(
            "role",
            sa.Enum("employee", "admin", name="user_role"),
            nullable=False,
            server_default="employee",
        ),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("idx_users_email", "users", ["email"])
    op.create_index("idx_users_employee_number", "users", ["employee_number"])

    # -- tickets --------------------------------------------------------
    op.create_table(
        "tickets",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "employee_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("issue_type", sa.String(128), nullable=False),
        sa.Column("sub_issue", sa.String(128), nullable=True),
        sa.Column(
            "priority",
            sa.Enum("low", "med", "high", "critical", name="ticket_priority"),
            nullable=False,
        ),
        sa.Column("description", sa.String(200), nullable=False),
        sa.Column(
            "status",
            sa.Enum("open", "pending", "resolved", "closed", name="ticket_status"),
            nullable=False,
            server_default="open",
        ),
        sa.Column("admin_comment", sa.String(500), nullable=True),
        sa.Column("attachment_path", sa.String(512), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )

    # "all tickets for employee X" and the default newest-first listing
    op.create_index("idx_tickets_employee_id", "tickets", ["employee_id"])
    op.create_index("idx_tickets_status", "tickets", ["status"])
    op.create_index("idx_tickets_created_at", "tickets", ["created_at"])


def downgrade() -> None:
    op.drop_index("idx_tickets_created_at", table_name="tickets")
    op.drop_index("idx_tickets_status", table_name="tickets")
    op.drop_index("idx_tickets_employee_id", table_name="tickets")
    op.drop_table("tickets")
    op.drop_index("idx_users_employee_number", table_name="users")
    op.drop_index("idx_users_email", table_name="users")
    op.drop_table("users")
