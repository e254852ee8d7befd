"""create schedules

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None


schedule_status_enum = sa.Enum("confirmed", "cancelled", name="schedule_status")


def upgrade() -> None:
    op.create_table(
        "schedules",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("room_id", sa.String(length=36), sa.ForeignKey("rooms.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("course_id", sa.String(length=36), sa.ForeignKey("courses.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("instructor_id", sa.String(length=36), sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("status", schedule_status_enum, nullable=False, server_default="confirmed"),
        sa.Column("created_by", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("end_time > start_time", name="ck_schedules_time_order"),
    )
    op.create_index("ix_schedules_date", "schedules", ["date"])
    op.create_index("ix_schedules_status", "schedules", ["status"])
    op.create_index("ix_schedules_room_date", "schedules", ["room_id", "date", "start_time", "end_time"])
    op.create_index(
        "ix_schedules_instructor_date", "schedules", ["instructor_id", "date", "start_time", "end_time"]
    )


def downgrade() -> None:
    op.drop_index("ix_schedules_instructor_date", table_name="schedules")
    op.drop_index("ix_schedules_room_date", table_name="schedules")
    op.drop_index("ix_schedules_status", table_name="schedules")
    op.drop_index("ix_schedules_date", table_name="schedules")
    op.drop_table("schedules")
    schedule_status_enum.drop(op.get_bind(), checkfirst=True)
