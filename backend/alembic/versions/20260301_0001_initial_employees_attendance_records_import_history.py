"""initial: employees, attendance_records, import_history

Revision ID: 0001_initial
Revises:
Create Date: 2026-03-01 00:00:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- employees ---
    op.create_table(
        "employees",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("leaves_per_month", sa.Integer(), nullable=False, server_default="2"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    # --- attendance_records ---
    op.create_table(
        "attendance_records",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("employee_id", sa.Uuid(), nullable=False),
        sa.Column("employee_name", sa.String(255), nullable=False),
        sa.Column("day", sa.Date(), nullable=False),
        sa.Column("day_of_week", sa.String(9), nullable=False),
        sa.Column("in_time", sa.Time(), nullable=True),
        sa.Column("out_time", sa.Time(), nullable=True),
        sa.Column("worked_hours", sa.Float(), nullable=False, server_default="0"),
        sa.Column("expected_hours", sa.Float(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("Present", "Leave", "Holiday", "Weekend", name="day_status_enum"),
            nullable=False,
        ),
        sa.Column("is_leave", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_holiday", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("month_label", sa.String(7), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("employee_id", "day", name="uq_attendance_employee_day"),
    )
    op.create_index("ix_attendance_month_label", "attendance_records", ["month_label"])
    op.create_index("ix_attendance_day", "attendance_records", ["day"])

    # --- import_history ---
    op.create_table(
        "import_history",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("filename", sa.String(255), nullable=False),
        sa.Column("month_label", sa.String(7), nullable=False),
        sa.Column(
            "uploaded_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "status",
            sa.Enum("success", "partial", name="import_status_enum"),
            nullable=False,
        ),
        sa.Column("logs", sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    op.drop_table("import_history")
    op.drop_index("ix_attendance_day", table_name="attendance_records")
    op.drop_index("ix_attendance_month_label", table_name="attendance_records")
    op.drop_table("attendance_records")
    op.drop_table("employees")
    if op.get_bind().dialect.name == "postgresql":
        op.execute("DROP TYPE IF EXISTS import_status_enum")
        op.execute("DROP TYPE IF EXISTS day_status_enum")
