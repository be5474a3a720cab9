"""create leave core tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


user_role = sa.Enum("admin", "teaching", "non-teaching", "hod", "director", name="user_role")
department_level = sa.Enum("UG", "PG", name="department_level")
leave_effect = sa.Enum("DEDUCT", "ADD", name="leave_effect")
leave_request_status = sa.Enum(
    "pending_hod",
    "pending_director",
    "approved",
    "rejected_by_hod",
    "rejected_by_director",
    name="leave_request_status",
)
period_adjustment_status = sa.Enum("pending", "adjusted", "not_required", name="period_adjustment_status")
adjustment_notification_status = sa.Enum("pending", "sent", "failed", name="adjustment_notification_status")
notification_type = sa.Enum(
    "leave_requested",
    "leave_approved_hod",
    "leave_rejected_hod",
    "leave_approved_director",
    "leave_rejected_director",
    "leave_approved",
    "leave_rejected",
    "substitute_assigned",
    name="notification_type",
)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=30), nullable=True),
        sa.Column("role", user_role, nullable=False),
        sa.Column("department_id", sa.String(length=36), nullable=True),
        sa.Column("joining_date", sa.Date(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_department_id", "users", ["department_id"], unique=False)

    op.create_table(
        "departments",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False, unique=True),
        sa.Column("level", department_level, nullable=False, server_default="UG"),
        sa.Column("class_names", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "leave_policies",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False, unique=True),
        sa.Column("allowed_leaves", sa.Float(), nullable=False),
        sa.Column("roles", sa.JSON(), nullable=False),
        sa.Column("is_forwarding", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_half_day_allowed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("leave_effect", leave_effect, nullable=False, server_default="DEDUCT"),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "leave_accounts",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("employee_id", sa.String(length=36), nullable=False),
        sa.Column("leave_policy_id", sa.String(length=36), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("total_leaves", sa.Float(), nullable=False, server_default="0"),
        sa.Column("used_leaves", sa.Float(), nullable=False, server_default="0"),
        sa.Column("carry_forward_leaves", sa.Float(), nullable=False, server_default="0"),
        sa.Column("credited_leaves", sa.Float(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("employee_id", "leave_policy_id", name="uq_leave_accounts_employee_policy"),
    )
    op.create_index("ix_leave_accounts_employee_id", "leave_accounts", ["employee_id"], unique=False)
    op.create_index("ix_leave_accounts_leave_policy_id", "leave_accounts", ["leave_policy_id"], unique=False)

    op.create_table(
        "leave_requests",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("employee_id", sa.String(length=36), nullable=False),
        sa.Column("leave_policy_id", sa.String(length=36), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("total_days", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("status", leave_request_status, nullable=False, server_default="pending_hod"),
        sa.Column("hod_approved_by_id", sa.String(length=36), nullable=True),
        sa.Column("hod_approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("hod_comments", sa.Text(), nullable=True),
        sa.Column("director_approved_by_id", sa.String(length=36), nullable=True),
        sa.Column("director_approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("director_comments", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_leave_requests_employee_id", "leave_requests", ["employee_id"], unique=False)
    op.create_index("ix_leave_requests_status", "leave_requests", ["status"], unique=False)

    op.create_table(
        "leave_period_adjustments",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("leave_request_id", sa.String(length=36), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("day", sa.String(length=16), nullable=False),
        sa.Column("period", sa.Integer(), nullable=False),
        sa.Column("class_name", sa.String(length=100), nullable=False),
        sa.Column("department_id", sa.String(length=36), nullable=True),
        sa.Column("subject_id", sa.String(length=36), nullable=True),
        sa.Column("substitute_faculty_id", sa.String(length=36), nullable=True),
        sa.Column("status", period_adjustment_status, nullable=False, server_default="pending"),
        sa.Column("notification_status", adjustment_notification_status, nullable=False, server_default="pending"),
    )
    op.create_index(
        "ix_leave_period_adjustments_leave_request_id",
        "leave_period_adjustments",
        ["leave_request_id"],
        unique=False,
    )
    op.create_index(
        "ix_leave_period_adjustments_substitute_faculty_id",
        "leave_period_adjustments",
        ["substitute_faculty_id"],
        unique=False,
    )

    op.create_table(
        "timetables",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("department_id", sa.String(length=36), nullable=False),
        sa.Column("class_name", sa.String(length=100), nullable=False),
        sa.Column("semester", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("entries", sa.JSON(), nullable=False),
        sa.Column("updated_by_id", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint(
            "department_id",
            "class_name",
            "semester",
            name="uq_timetables_department_class_semester",
        ),
    )
    op.create_index("ix_timetables_department_id", "timetables", ["department_id"], unique=False)

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("leave_request_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("notification_type", notification_type, nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"], unique=False)
    op.create_index("ix_notifications_leave_request_id", "notifications", ["leave_request_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_notifications_leave_request_id", table_name="notifications")
    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_timetables_department_id", table_name="timetables")
    op.drop_table("timetables")
    op.drop_index("ix_leave_period_adjustments_substitute_faculty_id", table_name="leave_period_adjustments")
    op.drop_index("ix_leave_period_adjustments_leave_request_id", table_name="leave_period_adjustments")
    op.drop_table("leave_period_adjustments")
    op.drop_index("ix_leave_requests_status", table_name="leave_requests")
    op.drop_index("ix_leave_requests_employee_id", table_name="leave_requests")
    op.drop_table("leave_requests")
    op.drop_index("ix_leave_accounts_leave_policy_id", table_name="leave_accounts")
    op.drop_index("ix_leave_accounts_employee_id", table_name="leave_accounts")
    op.drop_table("leave_accounts")
    op.drop_table("leave_policies")
    op.drop_table("departments")
    op.drop_index("ix_users_department_id", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    for enum in (
        notification_type,
        adjustment_notification_status,
        period_adjustment_status,
        leave_request_status,
        leave_effect,
        department_level,
        user_role,
    ):
        enum.drop(op.get_bind(), checkfirst=True)
