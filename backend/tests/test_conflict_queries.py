from datetime import date, time

from app.models.schedule import Schedule, ScheduleStatus
from app.services.conflict_queries import check_instructor_conflict, check_room_conflict


def add_schedule(db, catalog, *, start, end, room_id=None, instructor_id=None, day=date(2026, 11, 2), status=None):
    schedule = Schedule(
        room_id=room_id or catalog.hall_id,
        course_id=catalog.algorithms_id,
        instructor_id=instructor_id or catalog.smith_id,
        date=day,
        start_time=start,
        end_time=end,
        status=status or ScheduleStatus.confirmed,
    )
    db.add(schedule)
    db.commit()
    return schedule.id


def test_room_conflict_reports_overlapping_booking_with_labels(db_session, catalog):
    schedule_id = add_schedule(db_session, catalog, start=time(9), end=time(10))

    result = check_room_conflict(db_session, catalog.hall_id, "2026-11-02", "09:30", "11:00")

    assert result.has_conflict
    (conflict,) = result.conflicting_schedules
    assert conflict["id"] == schedule_id
    assert conflict["room_code"] == "R101"
    assert conflict["course_name"] == "Algorithms"
    assert conflict["instructor_name"] == "Dr. Smith"
    assert conflict["start_time"] == "09:00:00"
    assert conflict["date"] == "2026-11-02"


def test_adjacent_booking_is_not_a_conflict(db_session, catalog):
    add_schedule(db_session, catalog, start=time(9), end=time(10))

    assert not check_room_conflict(db_session, catalog.hall_id, "2026-11-02", "10:00", "11:00").has_conflict
    assert not check_room_conflict(db_session, catalog.hall_id, "2026-11-02", "08:00", "09:00").has_conflict


def test_cancelled_and_other_day_bookings_are_ignored(db_session, catalog):
    add_schedule(db_session, catalog, start=time(9), end=time(10), status=ScheduleStatus.cancelled)
    add_schedule(db_session, catalog, start=time(9), end=time(10), day=date(2026, 11, 3))

    assert not check_room_conflict(db_session, catalog.hall_id, "2026-11-02", "09:00", "10:00").has_conflict


def test_exclude_id_skips_the_schedule_being_updated(db_session, catalog):
    schedule_id = add_schedule(db_session, catalog, start=time(9), end=time(10))

    result = check_room_conflict(db_session, catalog.hall_id, "2026-11-02", "09:00", "10:00", exclude_id=schedule_id)

    assert not result.has_conflict


def test_instructor_conflict_spans_rooms(db_session, catalog):
    add_schedule(db_session, catalog, start=time(13), end=time(14), room_id=catalog.lab_id)

    result = check_instructor_conflict(db_session, catalog.smith_id, "2026-11-02", "13:30", "14:30")
    other = check_instructor_conflict(db_session, catalog.jones_id, "2026-11-02", "13:30", "14:30")

    assert result.has_conflict
    assert result.conflicting_schedules[0]["room_code"] == "LAB2"
    assert not other.has_conflict


def test_unparsable_date_finds_nothing(db_session, catalog):
    add_schedule(db_session, catalog, start=time(9), end=time(10))

    assert not check_room_conflict(db_session, catalog.hall_id, "not-a-date", "09:00", "10:00").has_conflict
