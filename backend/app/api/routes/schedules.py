from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, require_roles
from app.core.config import get_settings
from app.core.exceptions import ResourceNotFoundError
from app.models.course import Course
from app.models.room import Room
from app.models.schedule import Schedule
from app.models.user import User, UserRole
from app.schemas.schedule import (
    BulkCreateOut,
    ScheduleCreate,
    ScheduleDetailOut,
    ScheduleOut,
    ScheduleUpdate,
    ScheduleValidationOut,
)
from app.services.bulk_schedules import BulkScheduleService
from app.services.schedule_locking import ScheduleBookingService, schedule_fields, unlocked_reads
from app.services.schedule_validation import validate_schedule

router = APIRouter()

settings = get_settings()

schedule_writers = require_roles(UserRole.admin, UserRole.coordinator)


@router.post("/validate", response_model=ScheduleValidationOut)
def validate_schedule_payload(
    payload: ScheduleCreate,
    exclude_id: str | None = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ScheduleValidationOut:
    # Advisory only: no locks are taken, a later write may still be rejected.
    with unlocked_reads(db, operation="validate_schedule"):
        result = validate_schedule(db, schedule_fields(payload), exclude_id=exclude_id)
    return ScheduleValidationOut(**result.as_dict())


@router.post("/bulk", response_model=BulkCreateOut, status_code=status.HTTP_201_CREATED)
def bulk_create_schedules(
    payload: list[ScheduleCreate] = Body(...),
    actor_id: str = Depends(schedule_writers),
    db: Session = Depends(get_db),
) -> BulkCreateOut:
    if not payload:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="At least one schedule is required")
    if len(payload) > settings.bulk_max_items:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Bulk requests are limited to {settings.bulk_max_items} schedules",
        )
    ids = BulkScheduleService(db, settings).create_many(payload, actor_id=actor_id)
    return BulkCreateOut(created=len(ids), ids=ids)


@router.post("", response_model=ScheduleOut, status_code=status.HTTP_201_CREATED)
def create_schedule(
    payload: ScheduleCreate,
    actor_id: str = Depends(schedule_writers),
    db: Session = Depends(get_db),
) -> ScheduleOut:
    return ScheduleBookingService(db, settings).create(payload, actor_id=actor_id)


@router.get("/{schedule_id}", response_model=ScheduleDetailOut)
def get_schedule(
    schedule_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ScheduleDetailOut:
    row = db.execute(
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
        .where(Schedule.id == schedule_id)
    ).one_or_none()
    if row is None:
        raise ResourceNotFoundError("Schedule", schedule_id)

    base = ScheduleOut.model_validate(row.Schedule).model_dump()
    return ScheduleDetailOut(
        **base,
        room_code=row.room_code,
        room_name=row.room_name,
        course_code=row.course_code,
        course_name=row.course_name,
        instructor_name=row.instructor_name,
    )


@router.put("/{schedule_id}", response_model=ScheduleOut)
def update_schedule(
    schedule_id: str,
    payload: ScheduleUpdate,
    actor_id: str = Depends(schedule_writers),
    db: Session = Depends(get_db),
) -> ScheduleOut:
    return ScheduleBookingService(db, settings).update(schedule_id, payload, actor_id=actor_id)


@router.delete("/{schedule_id}")
def cancel_schedule(
    schedule_id: str,
    actor_id: str = Depends(schedule_writers),
    db: Session = Depends(get_db),
) -> dict:
    schedule = ScheduleBookingService(db, settings).cancel(schedule_id, actor_id=actor_id)
    return {"success": True, "message": "Schedule cancelled successfully", "id": schedule.id}
