"""add overlap exclusion constraints for confirmed schedules (PostgreSQL only)

Revision ID: 20261019_0004
Revises: 20261019_0003
Create Date: 2026-10-19 00:00:00.000000

A second line behind the booking row locks: PostgreSQL itself refuses two
confirmed schedules whose half-open time ranges overlap for the same room or
the same instructor. Other dialects rely on the locks alone.
"""
from alembic import op

revision = "20261019_0004"
down_revision = "20261019_0003"
branch_labels = None
depends_on = None


def upgrade() -> None:
    if op.get_bind().dialect.name != "postgresql":
        return
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
    op.execute(
        """
        ALTER TABLE schedules
        ADD CONSTRAINT ex_schedules_room_overlap
        EXCLUDE USING gist (
            room_id WITH =,
            tsrange(date + start_time, date + end_time, '[)') WITH &&
        ) WHERE (status = 'confirmed')
        """
    )
    op.execute(
        """
        ALTER TABLE schedules
        ADD CONSTRAINT ex_schedules_instructor_overlap
        EXCLUDE USING gist (
            instructor_id WITH =,
            tsrange(date + start_time, date + end_time, '[)') WITH &&
        ) WHERE (status = 'confirmed')
        """
    )


def downgrade() -> None:
    if op.get_bind().dialect.name != "postgresql":
        return
    op.execute("ALTER TABLE schedules DROP CONSTRAINT IF EXISTS ex_schedules_instructor_overlap")
    op.execute("ALTER TABLE schedules DROP CONSTRAINT IF EXISTS ex_schedules_room_overlap")
