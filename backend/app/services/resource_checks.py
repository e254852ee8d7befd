from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.course import Course, CourseInstructor
from app.models.room import Room
from app.models.user import User, UserRole


@dataclass
class CapacityCheck:
    is_valid: bool
    room_capacity: int
    required_capacity: int
    message: str

    def as_dict(self) -> dict:
        return {
            "isValid": self.is_valid,
            "roomCapacity": self.room_capacity,
            "requiredCapacity": self.required_capacity,
            "message": self.message,
        }


@dataclass
class AssignmentCheck:
    is_assigned: bool
    message: str

    def as_dict(self) -> dict:
        return {"isAssigned": self.is_assigned, "message": self.message}


def validate_room_capacity(db: Session, room_id: str, course_id: str) -> CapacityCheck:
    room_capacity = db.execute(select(Room.capacity).where(Room.id == room_id)).scalar_one_or_none()
    if room_capacity is None:
        return CapacityCheck(False, 0, 0, "Room not found")

    required = db.execute(select(Course.required_capacity).where(Course.id == course_id)).first()
    if required is None:
        return CapacityCheck(False, room_capacity, 0, "Course not found")

    required_capacity = required[0] or 0
    if room_capacity >= required_capacity:
        return CapacityCheck(True, room_capacity, required_capacity, "Room capacity is sufficient")
    return CapacityCheck(
        False,
        room_capacity,
        required_capacity,
        f"Room capacity ({room_capacity}) is less than required capacity ({required_capacity})",
    )


def validate_instructor_assignment(db: Session, instructor_id: str, course_id: str) -> AssignmentCheck:
    instructor_name = db.execute(
        select(User.name).where(User.id == instructor_id, User.role == UserRole.instructor)
    ).scalar_one_or_none()
    if instructor_name is None:
        return AssignmentCheck(False, "Instructor not found or user is not an instructor")

    assignment_id = db.execute(
        select(CourseInstructor.id).where(
            CourseInstructor.course_id == course_id,
            CourseInstructor.instructor_id == instructor_id,
        )
    ).scalar_one_or_none()
    if assignment_id is None:
        return AssignmentCheck(False, f"Instructor {instructor_name} is not assigned to this course")
    return AssignmentCheck(True, "Instructor is assigned to the course")
