"""Initial schema: departments, admins, users, assignments, history, notifications.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-16
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


department_type = sa.Enum("UG", "PG", "RESEARCH", name="department_type")
role = sa.Enum("ADMIN", "STUDENT", "PROFESSOR", "HOD", name="role")
assignment_category = sa.Enum("ASSIGNMENT", "THESIS", "REPORT", name="assignment_category")
assignment_status = sa.Enum(
    "DRAFT", "SUBMITTED", "FORWARDED", "APPROVED", "REJECTED", "PENDING", name="assignment_status"
)
history_action = sa.Enum("SUBMITTED", "APPROVED", "REJECTED", "FORWARDED", name="history_action")
notification_type = sa.Enum(
    "ASSIGNMENT_SUBMITTED",
    "ASSIGNMENT_RESUBMITTED",
    "ASSIGNMENT_FORWARDED",
    "ASSIGNMENT_APPROVED",
    "ASSIGNMENT_REJECTED",
    name="notification_type",
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "departments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("type", department_type, nullable=False),
        sa.Column("address", sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_departments_id", "departments", ["id"])
    op.create_index("ix_departments_name", "departments", ["name"], unique=True)

    op.create_table(
        "admins",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_admins_id", "admins", ["id"])
    op.create_index("ix_admins_email", "admins", ["email"], unique=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("role", role, nullable=False),
        sa.Column(
            "department_id",
            sa.Integer(),
            sa.ForeignKey("departments.id", name="fk_users_department_id_departments"),
            nullable=True,
        ),
        *_timestamps(),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])
    op.create_index("ix_users_department_id", "users", ["department_id"])

    op.create_table(
        "assignments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", assignment_category, nullable=False),
        sa.Column("status", assignment_status, nullable=False),
        sa.Column("file_path", sa.String(length=1024), nullable=True),
        sa.Column(
            "student_id",
            sa.Integer(),
            sa.ForeignKey("users.id", name="fk_assignments_student_id_users", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "reviewer_id",
            sa.Integer(),
            sa.ForeignKey("users.id", name="fk_assignments_reviewer_id_users", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_assignments_id", "assignments", ["id"])
    op.create_index("ix_assignments_status", "assignments", ["status"])
    op.create_index("ix_assignments_student_id", "assignments", ["student_id"])
    op.create_index("ix_assignments_reviewer_id", "assignments", ["reviewer_id"])

    op.create_table(
        "assignment_history",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "assignment_id",
            sa.Integer(),
            sa.ForeignKey(
                "assignments.id",
                name="fk_assignment_history_assignment_id_assignments",
                ondelete="CASCADE",
            ),
            nullable=False,
        ),
        sa.Column(
            "reviewer_id",
            sa.Integer(),
            sa.ForeignKey("users.id", name="fk_assignment_history_reviewer_id_users", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("action", history_action, nullable=False),
        sa.Column("remark", sa.Text(), nullable=True),
        sa.Column("signature", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_assignment_history_id", "assignment_history", ["id"])
    op.create_index("ix_assignment_history_assignment_id", "assignment_history", ["assignment_id"])
    op.create_index("ix_assignment_history_reviewer_id", "assignment_history", ["reviewer_id"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", name="fk_notifications_user_id_users", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "assignment_id",
            sa.Integer(),
            sa.ForeignKey("assignments.id", name="fk_notifications_assignment_id_assignments", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("type", notification_type, nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("read", sa.Boolean(), server_default=sa.false(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_notifications_id", "notifications", ["id"])
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_assignment_id", "notifications", ["assignment_id"])
    op.create_index("ix_notifications_type", "notifications", ["type"])
    op.create_index("ix_notifications_read", "notifications", ["read"])


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("assignment_history")
    op.drop_table("assignments")
    op.drop_table("users")
    op.drop_table("admins")
    op.drop_table("departments")

    bind = op.get_bind()
    for enum in (
        notification_type,
        history_action,
        assignment_status,
        assignment_category,
        role,
        department_type,
    ):
        enum.drop(bind, checkfirst=True)
