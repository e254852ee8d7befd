"""Single-booking writes under database row locks.

Every create/update runs as one transaction:

    lock room row -> lock instructor row -> lock the room's confirmed schedules
    on that day -> lock the instructor's confirmed schedules on that day ->
    validate -> write -> commit

Validation without these locks is racy: two requests for the same free slot
can both pass before either commits. With the locks held, a second
transaction touching the same rows waits for the first to finish and then
validates against its result. All mutual exclusion lives in the database, so
several service processes can share one store.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import TypeVar

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.exceptions import AppError, ResourceNotFoundError, ScheduleConflictError, TransientStorageError
from app.db.session import apply_lock_timeout, is_exclusion_violation, is_transient_storage_error
from app.models.course import Course
from app.models.room import Room
from app.models.schedule import Schedule, ScheduleStatus
from app.models.user import User, UserRole
from app.services.audit import log_activity
from app.services.schedule_validation import validate_schedule
from app.services.time_ranges import format_time, parse_date, parse_time

logger = logging.getLogger(__name__)

T = TypeVar("T")

SCHEDULE_FIELDS = ("room_id", "course_id", "instructor_id", "date", "start_time", "end_time")
CONCURRENT_CONFLICT_MESSAGE = "Schedule conflicts with a booking committed concurrently"


def schedule_fields(data) -> dict:
    """Normalize a payload (pydantic model or mapping) into column values."""
    if hasattr(data, "model_dump"):
        data = data.model_dump()
    return {
        "room_id": data.get("room_id"),
        "course_id": data.get("course_id"),
        "instructor_id": data.get("instructor_id"),
        "date": parse_date(data.get("date")),
        "start_time": parse_time(data.get("start_time")),
        "end_time": parse_time(data.get("end_time")),
    }


def schedule_snapshot(schedule: Schedule) -> dict:
    return {
        "room_id": schedule.room_id,
        "course_id": schedule.course_id,
        "instructor_id": schedule.instructor_id,
        "date": schedule.date.isoformat(),
        "start_time": format_time(schedule.start_time),
        "end_time": format_time(schedule.end_time),
        "status": schedule.status.value,
    }


def acquire_booking_locks(db: Session, items: Iterable[Mapping]) -> None:
    """Lock every row a booking decision depends on, in the global order.

    Rooms first, then instructors, then each room's confirmed schedules for the
    day, then each instructor's. Keys are sorted inside each group, so a
    single booking and a whole batch take locks in the same total order and
    can never wait on each other in a cycle.
    """
    items = list(items)
    room_ids = sorted({item["room_id"] for item in items})
    instructor_ids = sorted({item["instructor_id"] for item in items})
    room_days = sorted({(item["room_id"], item["date"]) for item in items if item["date"] is not None})
    instructor_days = sorted({(item["instructor_id"], item["date"]) for item in items if item["date"] is not None})

    for room_id in room_ids:
        db.execute(select(Room.id).where(Room.id == room_id).with_for_update()).all()

    for instructor_id in instructor_ids:
        db.execute(
            select(User.id).where(User.id == instructor_id, User.role == UserRole.instructor).with_for_update()
        ).all()

    for room_id, day in room_days:
        db.execute(
            select(Schedule.id)
            .where(
                Schedule.room_id == room_id,
                Schedule.date == day,
                Schedule.status == ScheduleStatus.confirmed,
            )
            .with_for_update()
        ).all()

    for instructor_id, day in instructor_days:
        db.execute(
            select(Schedule.id)
            .where(
                Schedule.instructor_id == instructor_id,
                Schedule.date == day,
                Schedule.status == ScheduleStatus.confirmed,
            )
            .with_for_update()
        ).all()


@contextmanager
def unlocked_reads(db: Session, *, operation: str) -> Iterator[None]:
    """Translate storage failures of lock-free reads (advisory validation).

    Busy databases and dropped connections become ``TransientStorageError``;
    anything else propagates after rolling back.
    """
    try:
        yield
    except DBAPIError as exc:
        db.rollback()
        if not is_transient_storage_error(exc):
            raise
        logger.warning("%s hit a transient storage error: %s", operation, exc)
        raise TransientStorageError() from exc


def run_in_transaction(db: Session, settings: Settings, work: Callable[[], T], *, operation: str) -> T:
    """Run ``work`` in a fresh transaction and commit it.

    Application errors (conflicts, missing rows) roll back and propagate as-is.
    Deadlocks, lock timeouts and dropped connections roll back and rerun the
    whole transaction with linear backoff; once ``booking_retry_attempts`` is
    used up they surface as ``TransientStorageError``.
    """
    attempts = settings.booking_retry_attempts
    last_error: BaseException | None = None

    for attempt in range(1, attempts + 1):
        if db.in_transaction():
            db.rollback()
        try:
            apply_lock_timeout(db, settings.lock_timeout_ms)
            result = work()
            db.commit()
            return result
        except TransientStorageError as exc:
            db.rollback()
            last_error = exc
        except AppError:
            db.rollback()
            raise
        except IntegrityError as exc:
            db.rollback()
            if is_exclusion_violation(exc):
                logger.info("%s rejected by the storage exclusion constraint", operation)
                raise ScheduleConflictError(
                    "Schedule validation failed", [CONCURRENT_CONFLICT_MESSAGE]
                ) from exc
            raise
        except DBAPIError as exc:
            db.rollback()
            if not is_transient_storage_error(exc):
                raise
            last_error = exc
        except Exception:
            db.rollback()
            raise

        if attempt < attempts:
            logger.warning(
                "%s hit a transient storage error (attempt %s/%s): %s", operation, attempt, attempts, last_error
            )
            time.sleep(settings.booking_retry_backoff_seconds * attempt)

    logger.warning("%s gave up after %s attempts: %s", operation, attempts, last_error)
    raise TransientStorageError() from last_error


class ScheduleBookingService:
    def __init__(self, db: Session, settings: Settings | None = None) -> None:
        self.db = db
        self.settings = settings or get_settings()

    def _ensure_references(self, fields: Mapping) -> None:
        checks = (
            ("Room", Room.id, fields["room_id"]),
            ("Course", Course.id, fields["course_id"]),
            ("Instructor", User.id, fields["instructor_id"]),
        )
        for resource_type, column, value in checks:
            found = self.db.execute(select(column).where(column == value)).scalar_one_or_none()
            if found is None:
                raise ResourceNotFoundError(resource_type, str(value))

    def create(self, data, *, actor_id: str | None) -> Schedule:
        fields = schedule_fields(data)

        def work() -> Schedule:
            self._ensure_references(fields)
            acquire_booking_locks(self.db, [fields])
            validation = validate_schedule(self.db, fields)
            if not validation.is_valid:
                logger.info(
                    "Schedule rejected for room %s on %s: %s",
                    fields["room_id"],
                    fields["date"],
                    "; ".join(validation.errors),
                )
                raise ScheduleConflictError("Schedule validation failed", validation.errors, validation.details)

            schedule = Schedule(**fields, status=ScheduleStatus.confirmed, created_by=actor_id)
            self.db.add(schedule)
            self.db.flush()
            log_activity(
                self.db,
                actor_id=actor_id,
                action="schedule.create",
                entity_id=schedule.id,
                details=schedule_snapshot(schedule),
            )
            return schedule

        schedule = run_in_transaction(self.db, self.settings, work, operation="create_schedule")
        self.db.refresh(schedule)
        logger.info("Schedule created: id=%s by user %s", schedule.id, actor_id)
        return schedule

    def update(self, schedule_id: str, changes, *, actor_id: str | None) -> Schedule:
        raw = changes.model_dump(exclude_unset=True) if hasattr(changes, "model_dump") else dict(changes)
        updates = {key: value for key, value in raw.items() if key in SCHEDULE_FIELDS and value is not None}
        if "date" in updates:
            updates["date"] = parse_date(updates["date"])
        for key in ("start_time", "end_time"):
            if key in updates:
                updates[key] = parse_time(updates[key])

        def merged_fields(schedule: Schedule) -> dict:
            current = {key: getattr(schedule, key) for key in SCHEDULE_FIELDS}
            return {**current, **updates}

        def work() -> Schedule:
            current = self.db.execute(select(Schedule).where(Schedule.id == schedule_id)).scalar_one_or_none()
            if current is None:
                raise ResourceNotFoundError("Schedule", schedule_id)
            merged = merged_fields(current)
            self._ensure_references(merged)

            acquire_booking_locks(self.db, [merged])
            locked = self.db.execute(
                select(Schedule)
                .where(Schedule.id == schedule_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()
            if locked is None:
                raise ResourceNotFoundError("Schedule", schedule_id)

            target = merged_fields(locked)
            scope = ("room_id", "instructor_id", "date")
            if any(target[key] != merged[key] for key in scope):
                # Moved by another writer between the read and the locks.
                raise TransientStorageError("Schedule changed while acquiring locks")

            validation = validate_schedule(self.db, target, exclude_id=schedule_id)
            if not validation.is_valid:
                logger.info("Schedule update rejected: id=%s: %s", schedule_id, "; ".join(validation.errors))
                raise ScheduleConflictError(
                    "Schedule update validation failed", validation.errors, validation.details
                )

            before = schedule_snapshot(locked)
            for key, value in updates.items():
                setattr(locked, key, value)
            self.db.flush()
            log_activity(
                self.db,
                actor_id=actor_id,
                action="schedule.update",
                entity_id=schedule_id,
                details={"before": before, "after": schedule_snapshot(locked)},
            )
            return locked

        schedule = run_in_transaction(self.db, self.settings, work, operation="update_schedule")
        self.db.refresh(schedule)
        logger.info("Schedule updated: id=%s by user %s", schedule_id, actor_id)
        return schedule

    def cancel(self, schedule_id: str, *, actor_id: str | None) -> Schedule:
        """Soft-delete: a cancelled schedule no longer takes part in conflict checks."""

        def work() -> Schedule:
            schedule = self.db.execute(
                select(Schedule)
                .where(Schedule.id == schedule_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()
            if schedule is None:
                raise ResourceNotFoundError("Schedule", schedule_id)
            if schedule.status == ScheduleStatus.cancelled:
                return schedule
            schedule.status = ScheduleStatus.cancelled
            self.db.flush()
            log_activity(self.db, actor_id=actor_id, action="schedule.cancel", entity_id=schedule_id)
            return schedule

        schedule = run_in_transaction(self.db, self.settings, work, operation="cancel_schedule")
        self.db.refresh(schedule)
        logger.info("Schedule cancelled: id=%s by user %s", schedule_id, actor_id)
        return schedule
