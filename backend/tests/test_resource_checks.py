from app.services.resource_checks import validate_instructor_assignment, validate_room_capacity


def test_capacity_sufficient(db_session, catalog):
    check = validate_room_capacity(db_session, catalog.hall_id, catalog.algorithms_id)

    assert check.is_valid
    assert check.as_dict() == {
        "isValid": True,
        "roomCapacity": 50,
        "requiredCapacity": 40,
        "message": "Room capacity is sufficient",
    }


def test_capacity_too_small(db_session, catalog):
    check = validate_room_capacity(db_session, catalog.lab_id, catalog.algorithms_id)

    assert not check.is_valid
    assert check.message == "Room capacity (20) is less than required capacity (40)"


def test_capacity_missing_room_or_course(db_session, catalog):
    assert validate_room_capacity(db_session, "missing", catalog.algorithms_id).message == "Room not found"
    assert validate_room_capacity(db_session, catalog.hall_id, "missing").message == "Course not found"


def test_assigned_instructor(db_session, catalog):
    check = validate_instructor_assignment(db_session, catalog.smith_id, catalog.algorithms_id)

    assert check.is_assigned
    assert check.as_dict() == {"isAssigned": True, "message": "Instructor is assigned to the course"}


def test_unassigned_instructor_is_named(db_session, catalog):
    check = validate_instructor_assignment(db_session, catalog.lee_id, catalog.algorithms_id)

    assert not check.is_assigned
    assert check.message == "Instructor Dr. Lee is not assigned to this course"


def test_non_instructor_user_is_rejected(db_session, catalog):
    check = validate_instructor_assignment(db_session, catalog.coordinator_id, catalog.algorithms_id)

    assert not check.is_assigned
    assert check.message == "Instructor not found or user is not an instructor"
