from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.course import Course
from app.models.room import Room
from app.models.schedule import Schedule, ScheduleStatus
from app.models.user import User
from app.services.time_ranges import format_time, parse_date, ranges_overlap


@dataclass
class ConflictCheck:
    has_conflict: bool = False
    conflicting_schedules: list[dict] = field(default_factory=list)


def _describe(row) -> dict:
    schedule: Schedule = row.Schedule
    return {
        "id": schedule.id,
        "room_id": schedule.room_id,
        "course_id": schedule.course_id,
        "instructor_id": schedule.instructor_id,
        "date": schedule.date.isoformat(),
        "start_time": format_time(schedule.start_time),
        "end_time": format_time(schedule.end_time),
        "status": schedule.status.value,
        "room_code": row.room_code,
        "room_name": row.room_name,
        "course_code": row.course_code,
        "course_name": row.course_name,
        "instructor_name": row.instructor_name,
    }


def _confirmed_on_day(db: Session, criterion, day, exclude_id: str | None) -> list:
    stmt = (
        select(
            Schedule,
            Room.code.label("room_code"),
            Room.name.label("room_name"),
            Course.code.label("course_code"),
            Course.name.label("course_name"),
            User.name.label("instructor_name"),
        )
        .join(Room, Room.id == Schedule.room_id)
        .join(Course, Course.id == Schedule.course_id)
        .join(User, User.id == Schedule.instructor_id)
        .where(criterion, Schedule.date == day, Schedule.status == ScheduleStatus.confirmed)
        .order_by(Schedule.start_time)
    )
    if exclude_id:
        stmt = stmt.where(Schedule.id != exclude_id)
    return list(db.execute(stmt).all())


def _check(db: Session, criterion, date, start_time, end_time, exclude_id: str | None) -> ConflictCheck:
    day = parse_date(date)
    if day is None:
        return ConflictCheck()
    conflicting = [
        _describe(row)
        for row in _confirmed_on_day(db, criterion, day, exclude_id)
        if ranges_overlap(start_time, end_time, row.Schedule.start_time, row.Schedule.end_time)
    ]
    return ConflictCheck(has_conflict=bool(conflicting), conflicting_schedules=conflicting)


def check_room_conflict(
    db: Session,
    room_id: str,
    date,
    start_time,
    end_time,
    exclude_id: str | None = None,
) -> ConflictCheck:
    """Confirmed bookings of ``room_id`` on ``date`` that overlap the window.

    Only meaningful for writes when the caller already holds the booking locks.
    """
    return _check(db, Schedule.room_id == room_id, date, start_time, end_time, exclude_id)


def check_instructor_conflict(
    db: Session,
    instructor_id: str,
    date,
    start_time,
    end_time,
    exclude_id: str | None = None,
) -> ConflictCheck:
    return _check(db, Schedule.instructor_id == instructor_id, date, start_time, end_time, exclude_id)
