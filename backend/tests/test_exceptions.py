from app.core.exceptions import (
    AppError,
    ConflictError,
    DataIntegrityError,
    ResourceNotFoundError,
    SlotValidationError,
)


def test_conflict_error_structure():
    slot = {"id": "s1", "startTime": "09:00", "endTime": "10:00"}
    err = ConflictError(message="Overlap", conflicting_slot=slot)
    assert err.status_code == 409
    assert err.details == {"conflicting_slot": slot}
    assert isinstance(err, AppError)


def test_data_integrity_error_names_entity():
    err = DataIntegrityError("bad day", "schedule_slot", "s9")
    assert err.status_code == 500
    assert err.details == {"entity_type": "schedule_slot", "entity_id": "s9"}


def test_validation_and_not_found_codes():
    assert SlotValidationError("bad").status_code == 422
    missing = ResourceNotFoundError("Course", "c1")
    assert missing.status_code == 404
    assert missing.message == "Course with id c1 not found"


def test_app_error_defaults():
    err = AppError("Generic error")
    assert err.status_code == 500
    assert err.details == {}
