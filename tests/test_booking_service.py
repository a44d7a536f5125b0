from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.domain.appointments.service import AppointmentService
from app.errors import ConflictError, NotFoundError, ReferentialViolationError, ValidationError
from app.models import Appointment, Pet, ServiceConfiguration

START = datetime(2026, 1, 1, 10, 0, tzinfo=timezone.utc)


def naive(value: datetime) -> datetime:
    """Compare instants regardless of whether the backend kept the offset"""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def book(db, catalog, start=START, pet_id=None, service_id=None, **kwargs):
    return AppointmentService(db).book(
        user_id=catalog.user_id,
        pet_id=pet_id or catalog.rex_id,
        service_id=service_id or catalog.wash_id,
        start_time=start,
        **kwargs,
    )


def test_end_to_end_booking_scenario(db, catalog):
    service = AppointmentService(db)

    first = book(db, catalog, start="2026-01-01T10:00:00Z")
    assert naive(first.end_time) == datetime(2026, 1, 1, 10, 30)
    assert first.price_snapshot == Decimal("40")
    assert first.duration_snapshot == 30
    assert first.status == "booked"

    with pytest.raises(ConflictError) as exc_info:
        book(db, catalog, start="2026-01-01T10:15:00Z")
    assert exc_info.value.message == "appointment overlaps existing booking"

    service.cancel(first.id)

    second = book(db, catalog, start="2026-01-01T10:15:00Z")
    assert second.status == "booked"
    assert naive(second.end_time) == datetime(2026, 1, 1, 10, 45)


def test_booking_stores_description_and_timestamps(db, catalog):
    appointment = book(db, catalog, description="Sensitive skin, use oatmeal shampoo")

    assert appointment.id is not None
    assert appointment.description == "Sensitive skin, use oatmeal shampoo"
    assert appointment.created_at is not None
    assert appointment.updated_at is not None


def test_touching_intervals_do_not_overlap(db, catalog):
    book(db, catalog, start=START)
    back_to_back = book(db, catalog, start=START + timedelta(minutes=30))
    assert naive(back_to_back.start_time) == datetime(2026, 1, 1, 10, 30)


def test_overlap_is_scoped_to_the_pet(db, catalog):
    book(db, catalog, pet_id=catalog.rex_id)
    other = book(db, catalog, pet_id=catalog.bruno_id)

    # Bruno is Large: 60 minutes at 65
    assert other.duration_snapshot == 60
    assert other.price_snapshot == Decimal("65")


def test_overlap_with_a_longer_existing_booking_is_rejected(db, catalog):
    book(db, catalog, pet_id=catalog.bruno_id, start=START)  # 10:00 - 11:00

    with pytest.raises(ConflictError):
        book(db, catalog, pet_id=catalog.bruno_id, start=START + timedelta(minutes=59))


def test_failed_booking_leaves_no_row(db, catalog):
    book(db, catalog)
    with pytest.raises(ConflictError):
        book(db, catalog, start=START + timedelta(minutes=10))

    assert db.query(Appointment).count() == 1


def test_snapshot_is_immune_to_configuration_changes(db, catalog):
    appointment = book(db, catalog)

    config = db.get(ServiceConfiguration, (catalog.dog_id, catalog.wash_id, catalog.small_id))
    config.price = Decimal("99.00")
    config.duration_minutes = 90
    db.commit()

    db.expire_all()
    stored = db.get(Appointment, appointment.id)
    assert stored.price_snapshot == Decimal("40")
    assert stored.duration_snapshot == 30


def test_unknown_pet_is_not_found(db, catalog):
    with pytest.raises(NotFoundError) as exc_info:
        book(db, catalog, pet_id=9999)
    assert exc_info.value.message == "pet not found"


def test_inactive_configuration_is_not_found(db, catalog):
    with pytest.raises(NotFoundError) as exc_info:
        book(db, catalog, service_id=catalog.haircut_id)
    assert exc_info.value.message == "service configuration not found"
    assert db.query(Appointment).count() == 0


def test_pet_without_weight_class_has_no_configuration(db, catalog):
    with pytest.raises(NotFoundError) as exc_info:
        book(db, catalog, pet_id=catalog.misty_id)
    assert exc_info.value.message == "service configuration not found"


def test_reclassified_pet_books_at_new_price(db, catalog):
    first = book(db, catalog)

    pet = db.get(Pet, catalog.rex_id)
    pet.weight_class_id = catalog.large_id
    db.commit()

    second = book(db, catalog, start=START + timedelta(days=1))
    assert second.price_snapshot == Decimal("65")
    db.refresh(first)
    assert first.price_snapshot == Decimal("40")


def test_unknown_user_is_a_referential_violation(db, catalog):
    service = AppointmentService(db)
    with pytest.raises(ReferentialViolationError) as exc_info:
        service.book(user_id=4242, pet_id=catalog.rex_id, service_id=catalog.wash_id, start_time=START)
    assert exc_info.value.message == "invalid user, pet, or service"
    assert db.query(Appointment).count() == 0


@pytest.mark.parametrize(
    "field, value",
    [
        ("user_id", 0),
        ("pet_id", -3),
        ("service_id", "abc"),
        ("start_time", "not-a-date"),
        ("start_time", None),
    ],
)
def test_invalid_input_is_rejected_before_io(db, catalog, field, value):
    kwargs = {
        "user_id": catalog.user_id,
        "pet_id": catalog.rex_id,
        "service_id": catalog.wash_id,
        "start_time": START,
    }
    kwargs[field] = value

    with pytest.raises(ValidationError) as exc_info:
        AppointmentService(db).book(**kwargs)
    assert exc_info.value.message == f"invalid {field}"


def test_start_time_near_datetime_max_is_invalid(db, catalog):
    with pytest.raises(ValidationError) as exc_info:
        book(db, catalog, start="9999-12-31T23:59:00Z")
    assert exc_info.value.message == "invalid start_time"
    assert db.query(Appointment).count() == 0

    appointment = book(db, catalog)
    with pytest.raises(ValidationError):
        AppointmentService(db).reschedule(appointment.id, "9999-12-31T23:45:00Z")


def test_find_by_id(db, catalog):
    service = AppointmentService(db)
    appointment = book(db, catalog)

    assert service.find_by_id(appointment.id).id == appointment.id
    assert service.find_by_id(str(appointment.id)).id == appointment.id
    assert service.find_by_id(9999) is None
    with pytest.raises(ValidationError):
        service.find_by_id("0")


def test_cancel_is_idempotent(db, catalog):
    service = AppointmentService(db)
    appointment = book(db, catalog)

    assert service.cancel(appointment.id).status == "cancelled"
    assert service.cancel(appointment.id).status == "cancelled"


def test_cancel_unknown_appointment(db, catalog):
    with pytest.raises(NotFoundError) as exc_info:
        AppointmentService(db).cancel(9999)
    assert exc_info.value.message == "appointment not found"


def test_reschedule_preserves_duration_snapshot(db, catalog):
    service = AppointmentService(db)
    appointment = book(db, catalog)

    config = db.get(ServiceConfiguration, (catalog.dog_id, catalog.wash_id, catalog.small_id))
    config.duration_minutes = 120
    db.commit()

    moved = service.reschedule(appointment.id, "2026-01-02T09:00:00Z")
    assert moved.id == appointment.id
    assert moved.duration_snapshot == 30
    assert naive(moved.start_time) == datetime(2026, 1, 2, 9, 0)
    assert naive(moved.end_time) == datetime(2026, 1, 2, 9, 30)


def test_reschedule_within_its_own_window(db, catalog):
    service = AppointmentService(db)
    appointment = book(db, catalog)

    moved = service.reschedule(appointment.id, START + timedelta(minutes=15))
    assert naive(moved.start_time) == datetime(2026, 1, 1, 10, 15)


def test_reschedule_into_another_booking_conflicts(db, catalog):
    service = AppointmentService(db)
    book(db, catalog, start=START)
    later = book(db, catalog, start=START + timedelta(hours=2))

    with pytest.raises(ConflictError) as exc_info:
        service.reschedule(later.id, START + timedelta(minutes=20))
    assert exc_info.value.message == "new time overlaps existing booking"

    db.expire_all()
    unchanged = db.get(Appointment, later.id)
    assert naive(unchanged.start_time) == datetime(2026, 1, 1, 12, 0)


def test_reschedule_revives_cancelled_appointment(db, catalog):
    service = AppointmentService(db)
    appointment = book(db, catalog)
    service.cancel(appointment.id)

    revived = service.reschedule(appointment.id, START + timedelta(days=3))
    assert revived.status == "booked"


def test_reschedule_of_cancelled_appointment_still_checks_overlap(db, catalog):
    service = AppointmentService(db)
    cancelled = book(db, catalog)
    service.cancel(cancelled.id)
    book(db, catalog)

    with pytest.raises(ConflictError):
        service.reschedule(cancelled.id, START)


@pytest.mark.parametrize("final_status", ["completed", "no_show"])
def test_finished_appointments_cannot_be_rescheduled(db, catalog, final_status):
    service = AppointmentService(db)
    appointment = book(db, catalog)
    service.transition(appointment.id, final_status)

    with pytest.raises(ValidationError) as exc_info:
        service.reschedule(appointment.id, START + timedelta(days=1))
    assert final_status in exc_info.value.message


def test_reschedule_unknown_appointment(db, catalog):
    with pytest.raises(NotFoundError):
        AppointmentService(db).reschedule(9999, START)


def test_status_transitions(db, catalog):
    service = AppointmentService(db)
    appointment = book(db, catalog)

    assert service.transition(appointment.id, "confirmed").status == "confirmed"
    assert service.transition(appointment.id, "completed").status == "completed"

    with pytest.raises(ValidationError) as exc_info:
        service.transition(appointment.id, "booked")
    assert exc_info.value.message == "cannot change status from completed to booked"


def test_cancelled_appointment_cannot_be_confirmed(db, catalog):
    service = AppointmentService(db)
    appointment = book(db, catalog)
    service.cancel(appointment.id)

    with pytest.raises(ValidationError):
        service.transition(appointment.id, "confirmed")


def test_unknown_status_is_rejected(db, catalog):
    service = AppointmentService(db)
    appointment = book(db, catalog)

    with pytest.raises(ValidationError) as exc_info:
        service.transition(appointment.id, "archived")
    assert exc_info.value.message == "invalid status"


def test_list_appointments_filters(db, catalog):
    service = AppointmentService(db)
    first = book(db, catalog, start=START)
    book(db, catalog, start=START + timedelta(hours=1))
    book(db, catalog, pet_id=catalog.bruno_id)
    service.cancel(first.id)

    assert len(service.list_appointments()) == 3
    assert len(service.list_appointments(pet_id=catalog.rex_id)) == 2
    assert len(service.list_appointments(pet_id=catalog.rex_id, include_cancelled=False)) == 1
    assert len(service.list_appointments(user_id=catalog.user_id)) == 3
