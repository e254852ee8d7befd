from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

from sqlalchemy.orm import Session

from app.services.conflict_queries import check_instructor_conflict, check_room_conflict
from app.services.resource_checks import validate_instructor_assignment, validate_room_capacity
from app.services.time_ranges import normalize_date, to_seconds


class ViolationKind(str, Enum):
    time_logic = "time_logic"
    room_conflict = "room_conflict"
    instructor_conflict = "instructor_conflict"
    capacity = "capacity"
    assignment = "assignment"
    intra_batch_conflict = "intra_batch_conflict"


@dataclass
class ValidationResult:
    errors: list[str] = field(default_factory=list)
    details: dict = field(default_factory=dict)
    kinds: list[ViolationKind] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add(self, kind: ViolationKind, message: str) -> None:
        self.kinds.append(kind)
        self.errors.append(message)

    def as_dict(self) -> dict:
        return {"isValid": self.is_valid, "errors": list(self.errors), "details": dict(self.details)}


def _room_conflict_message(conflicts: list[dict]) -> str:
    described = ", ".join(
        f"{item['room_code']} on {item['date']} from {item['start_time']} to {item['end_time']} ({item['course_name']})"
        for item in conflicts
    )
    return f"Room conflict detected: {described}"


def _instructor_conflict_message(conflicts: list[dict]) -> str:
    described = ", ".join(
        f"{item['instructor_name']} on {item['date']} from {item['start_time']} to {item['end_time']} "
        f"({item['course_name']} in {item['room_code']})"
        for item in conflicts
    )
    return f"Instructor conflict detected: {described}"


def validate_schedule(db: Session, data: Mapping, exclude_id: str | None = None) -> ValidationResult:
    """Run every booking check against the current database state.

    All five checks always run so the caller gets the complete error list:
    time order, room overlap, instructor overlap, room capacity and the
    instructor's course assignment. ``exclude_id`` leaves one schedule out of
    the overlap checks (the one being updated).

    The result is only authoritative for a write when the caller holds the
    booking locks for the room, the instructor and their schedules on that day.
    """
    result = ValidationResult()
    day = normalize_date(data.get("date"))
    start_time = data.get("start_time")
    end_time = data.get("end_time")

    start_seconds, end_seconds = to_seconds(start_time), to_seconds(end_time)
    if start_seconds is None or end_seconds is None or end_seconds <= start_seconds:
        result.add(ViolationKind.time_logic, "End time must be after start time")

    room_check = check_room_conflict(db, data.get("room_id"), day, start_time, end_time, exclude_id)
    if room_check.has_conflict:
        result.add(ViolationKind.room_conflict, _room_conflict_message(room_check.conflicting_schedules))
        result.details["roomConflicts"] = room_check.conflicting_schedules

    instructor_check = check_instructor_conflict(db, data.get("instructor_id"), day, start_time, end_time, exclude_id)
    if instructor_check.has_conflict:
        result.add(
            ViolationKind.instructor_conflict,
            _instructor_conflict_message(instructor_check.conflicting_schedules),
        )
        result.details["instructorConflicts"] = instructor_check.conflicting_schedules

    capacity = validate_room_capacity(db, data.get("room_id"), data.get("course_id"))
    if not capacity.is_valid:
        result.add(ViolationKind.capacity, capacity.message)
        result.details["capacityValidation"] = capacity.as_dict()

    assignment = validate_instructor_assignment(db, data.get("instructor_id"), data.get("course_id"))
    if not assignment.is_assigned:
        result.add(ViolationKind.assignment, assignment.message)
        result.details["assignmentValidation"] = assignment.as_dict()

    return result
