"""Seed a small catalog (users, a room, a course and its instructor) for manual testing.

Run:
  PYTHONPATH=backend python scripts/seed_demo_data.py

Prints a bearer token for the demo coordinator so the schedule endpoints can
be exercised with curl right away.
"""

from __future__ import annotations

import os

from sqlalchemy import select

from app.core.security import create_access_token
from app.db.bootstrap import ensure_runtime_schema_compatibility
from app.db.session import SessionLocal
from app.models.course import Course, CourseInstructor
from app.models.room import Room, RoomType
from app.models.user import User, UserRole


def _env_email(key: str, default: str) -> str:
    value = os.getenv(key, "").strip()
    return value or default


DEMO_USERS = {
    "admin": {"name": "Demo Admin", "email": _env_email("DEMO_ADMIN_EMAIL", "admin.demo@example.com"), "role": UserRole.admin},
    "coordinator": {
        "name": "Demo Coordinator",
        "email": _env_email("DEMO_COORDINATOR_EMAIL", "coordinator.demo@example.com"),
        "role": UserRole.coordinator,
    },
    "instructor": {
        "name": "Demo Instructor",
        "email": _env_email("DEMO_INSTRUCTOR_EMAIL", "instructor.demo@example.com"),
        "role": UserRole.instructor,
    },
}


def _upsert_user(db, *, name: str, email: str, role: UserRole) -> User:
    user = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if user is None:
        user = User(name=name, email=email, role=role)
        db.add(user)
    else:
        user.name = name
        user.role = role
        user.is_active = True
    db.flush()
    return user


def _get_or_create_room(db, code: str) -> Room:
    room = db.execute(select(Room).where(Room.code == code)).scalar_one_or_none()
    if room is None:
        room = Room(code=code, name="Demo Lecture Hall", type=RoomType.classroom, capacity=60, location="Block A")
        db.add(room)
        db.flush()
    return room


def _get_or_create_course(db, code: str) -> Course:
    course = db.execute(select(Course).where(Course.code == code)).scalar_one_or_none()
    if course is None:
        course = Course(code=code, name="Demo Algorithms", required_capacity=40)
        db.add(course)
        db.flush()
    return course


def main() -> None:
    ensure_runtime_schema_compatibility()
    with SessionLocal() as db:
        users = {key: _upsert_user(db, **profile) for key, profile in DEMO_USERS.items()}
        room = _get_or_create_room(db, "DEMO-101")
        course = _get_or_create_course(db, "DEMO-CS201")

        instructor = users["instructor"]
        assigned = db.execute(
            select(CourseInstructor).where(
                CourseInstructor.course_id == course.id,
                CourseInstructor.instructor_id == instructor.id,
            )
        ).scalar_one_or_none()
        if assigned is None:
            db.add(CourseInstructor(course_id=course.id, instructor_id=instructor.id))
        db.commit()

        print(f"room_id={room.id}")
        print(f"course_id={course.id}")
        print(f"instructor_id={instructor.id}")
        print(f"coordinator_token={create_access_token(users['coordinator'].id, expires_minutes=24 * 60)}")


if __name__ == "__main__":
    main()
