# tests/test_booking_lifecycle.py
"""Booking create / edit / cancel / complete against an in-memory database."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import date
from carrental.config import settings
from carrental.exceptions import (
    ConflictError,
    EntityValidationError,
    IllegalStateTransitionError,
    InvalidInputError,
    NotFoundError,
)
from carrental.models import Booking, Customer, Driver
from carrental.schemas.booking import BookingComplete, BookingUpdate
from carrental.services import booking_service, driver_service
from carrental.services.availability_service import available_drivers, is_vehicle_available


def complete_payload(**overrides):
    fields = dict(end_time="18:30", final_meter_reading=1250, additional_charges=0, remaining_payment=0)
    fields.update(overrides)
    return BookingComplete(**fields)


class TestCreate:
    def test_creates_active_booking(self, db, seed, booking_payload):
        booking = booking_service.create_booking(db, booking_payload(), seed.employee.id)
        assert booking.id is not None
        assert booking.status == "active"
        assert booking.start_time == settings.DEFAULT_START_TIME
        assert booking.booked_by == seed.employee.id

    def test_assigned_driver_becomes_unavailable(self, db, seed, booking_payload):
        booking_service.create_booking(db, booking_payload(), seed.employee.id)
        db.refresh(seed.ali)
        assert seed.ali.available is False

    def test_customer_upserted(self, db, seed, booking_payload):
        booking_service.create_booking(db, booking_payload(), seed.employee.id)
        booking_service.create_booking(
            db,
            booking_payload(vehicle_id=seed.civic.id, driver_id=seed.umar.id, customer_name="Hamza Ali Khan"),
            seed.employee.id,
        )
        customers = db.query(Customer).all()
        assert len(customers) == 1
        assert customers[0].booking_count == 2
        assert customers[0].full_name == "Hamza Ali Khan"

    def test_overlap_on_shared_endpoint_conflicts(self, db, seed, booking_payload):
        booking_service.create_booking(db, booking_payload(), seed.employee.id)
        with pytest.raises(ConflictError):
            booking_service.create_booking(
                db,
                booking_payload(driver_id=seed.umar.id, start_date=date(2024, 6, 5), end_date=date(2024, 6, 8)),
                seed.employee.id,
            )
        assert db.query(Booking).count() == 1

    def test_disjoint_ranges_both_succeed(self, db, seed, booking_payload):
        booking_service.create_booking(db, booking_payload(), seed.employee.id)
        booking_service.create_booking(
            db,
            booking_payload(driver_id=seed.umar.id, start_date=date(2024, 6, 6), end_date=date(2024, 6, 8)),
            seed.employee.id,
        )
        assert db.query(Booking).count() == 2

    def test_cancelled_booking_does_not_block(self, db, seed, booking_payload):
        first = booking_service.create_booking(db, booking_payload(), seed.employee.id)
        booking_service.cancel_booking(db, first.id, None, seed.employee.id)
        assert is_vehicle_available(db, seed.corolla.id, date(2024, 6, 1), date(2024, 6, 5))

    def test_advance_above_total_rejected(self, db, seed, booking_payload):
        with pytest.raises(EntityValidationError) as exc:
            booking_service.create_booking(db, booking_payload(advance_paid=12000), seed.employee.id)
        assert exc.value.detail == "Advance paid cannot be greater than total bill"
        assert db.query(Booking).count() == 0
        assert db.query(Customer).count() == 0

    def test_discount_requires_reference(self, db, seed, booking_payload):
        with pytest.raises(EntityValidationError):
            booking_service.create_booking(db, booking_payload(discount_percentage=10), seed.employee.id)

    def test_discount_with_reference(self, db, seed, booking_payload):
        booking = booking_service.create_booking(
            db, booking_payload(discount_percentage=10, discount_reference="Manager"), seed.employee.id
        )
        assert booking.discount_reference == "Manager"

    def test_unknown_vehicle(self, db, seed, booking_payload):
        with pytest.raises(NotFoundError):
            booking_service.create_booking(db, booking_payload(vehicle_id=999), seed.employee.id)

    def test_driver_preference_requires_driver(self, db, seed, booking_payload):
        with pytest.raises(InvalidInputError):
            booking_service.create_booking(db, booking_payload(driver_id=None), seed.employee.id)

    def test_unknown_driver(self, db, seed, booking_payload):
        with pytest.raises(NotFoundError):
            booking_service.create_booking(db, booking_payload(driver_id=999), seed.employee.id)

    def test_deactivated_driver_cannot_be_booked(self, db, seed, booking_payload):
        driver_service.deactivate_driver(db, seed.ali.id)
        with pytest.raises(NotFoundError):
            booking_service.create_booking(db, booking_payload(), seed.employee.id)
        assert db.query(Booking).count() == 0

    def test_self_drive_requires_license(self, db, seed, booking_payload):
        with pytest.raises(InvalidInputError):
            booking_service.create_booking(
                db, booking_payload(driver_preference="self", driver_id=None), seed.employee.id
            )

    def test_self_drive_keeps_drivers_free(self, db, seed, booking_payload):
        booking = booking_service.create_booking(
            db,
            booking_payload(driver_preference="self", customer_license_number="LIC-9"),
            seed.employee.id,
        )
        assert booking.driver_id is None
        db.refresh(seed.ali)
        assert seed.ali.available is True

    def test_out_of_city_requires_city(self, db, seed, booking_payload):
        with pytest.raises(InvalidInputError):
            booking_service.create_booking(db, booking_payload(trip_type="out-of-city"), seed.employee.id)


class TestCancel:
    def test_cancel_frees_driver(self, db, seed, booking_payload):
        booking = booking_service.create_booking(db, booking_payload(), seed.employee.id)
        booking = booking_service.cancel_booking(db, booking.id, None, seed.admin.id)
        assert booking.status == "cancelled"
        assert booking.cancellation_reason == "No reason provided"
        assert booking.cancelled_by == seed.admin.id
        assert db.get(Driver, seed.ali.id).available is True

    def test_second_cancel_rejected(self, db, seed, booking_payload):
        booking = booking_service.create_booking(db, booking_payload(), seed.employee.id)
        booking_service.cancel_booking(db, booking.id, "Customer request", seed.employee.id)
        with pytest.raises(IllegalStateTransitionError):
            booking_service.cancel_booking(db, booking.id, "again", seed.employee.id)

    def test_unknown_booking(self, db, seed):
        with pytest.raises(NotFoundError):
            booking_service.cancel_booking(db, 42, None, seed.employee.id)


class TestComplete:
    def test_completion_billing(self, db, seed, booking_payload):
        booking = booking_service.create_booking(
            db, booking_payload(total_bill=5000, advance_paid=2000), seed.employee.id
        )
        booking, billing = booking_service.complete_booking(
            db,
            booking.id,
            complete_payload(additional_charges=500, remaining_payment=1000, additional_charges_description="Fuel"),
            seed.employee.id,
        )
        assert billing.total_amount == 5500
        assert billing.discounted_total == 5500
        assert billing.final_remaining_balance == 2500
        assert booking.status == "completed"
        assert booking.total_bill == 5500
        assert booking.end_time == "18:30"
        assert booking.final_meter_reading == 1250
        assert db.get(Driver, seed.ali.id).available is True

    def test_iso_end_time(self, db, seed, booking_payload):
        booking = booking_service.create_booking(db, booking_payload(), seed.employee.id)
        booking, _ = booking_service.complete_booking(
            db, booking.id, complete_payload(end_time="2024-06-05T07:45:00Z"), seed.employee.id
        )
        assert booking.end_time == "07:45"

    def test_invalid_end_time(self, db, seed, booking_payload):
        booking = booking_service.create_booking(db, booking_payload(), seed.employee.id)
        with pytest.raises(InvalidInputError):
            booking_service.complete_booking(db, booking.id, complete_payload(end_time="late"), seed.employee.id)

    def test_unknown_booking_checked_before_end_time(self, db, seed):
        with pytest.raises(NotFoundError):
            booking_service.complete_booking(db, 999, complete_payload(end_time="late"), seed.employee.id)

    def test_meter_cannot_go_backwards(self, db, seed, booking_payload):
        booking = booking_service.create_booking(db, booking_payload(), seed.employee.id)
        with pytest.raises(InvalidInputError):
            booking_service.complete_booking(
                db, booking.id, complete_payload(final_meter_reading=999), seed.employee.id
            )
        db.refresh(booking)
        assert booking.status == "active"

    def test_cannot_complete_twice(self, db, seed, booking_payload):
        booking = booking_service.create_booking(db, booking_payload(), seed.employee.id)
        booking_service.complete_booking(db, booking.id, complete_payload(), seed.employee.id)
        with pytest.raises(IllegalStateTransitionError):
            booking_service.complete_booking(db, booking.id, complete_payload(), seed.employee.id)

    def test_cannot_complete_cancelled(self, db, seed, booking_payload):
        booking = booking_service.create_booking(db, booking_payload(), seed.employee.id)
        booking_service.cancel_booking(db, booking.id, None, seed.employee.id)
        with pytest.raises(IllegalStateTransitionError):
            booking_service.complete_booking(db, booking.id, complete_payload(), seed.employee.id)


class TestEdit:
    def test_partial_update(self, db, seed, booking_payload):
        booking = booking_service.create_booking(db, booking_payload(), seed.employee.id)
        booking = booking_service.update_booking(
            db, booking.id, BookingUpdate(trip_description="Airport run"), seed.employee.id
        )
        assert booking.trip_description == "Airport run"
        assert booking.total_bill == 10000

    def test_date_change_into_conflict_rejected(self, db, seed, booking_payload):
        booking_service.create_booking(db, booking_payload(), seed.employee.id)
        later = booking_service.create_booking(
            db,
            booking_payload(driver_id=seed.umar.id, start_date=date(2024, 6, 10), end_date=date(2024, 6, 12)),
            seed.employee.id,
        )
        with pytest.raises(ConflictError):
            booking_service.update_booking(
                db, later.id, BookingUpdate(start_date=date(2024, 6, 4)), seed.employee.id
            )
        db.refresh(later)
        assert later.start_date == date(2024, 6, 10)

    def test_own_range_does_not_conflict(self, db, seed, booking_payload):
        booking = booking_service.create_booking(db, booking_payload(), seed.employee.id)
        booking = booking_service.update_booking(
            db, booking.id, BookingUpdate(end_date=date(2024, 6, 7)), seed.employee.id
        )
        assert booking.end_date == date(2024, 6, 7)

    def test_recheck_can_be_disabled(self, db, seed, booking_payload, monkeypatch):
        monkeypatch.setattr(settings, "RECHECK_AVAILABILITY_ON_EDIT", False)
        booking_service.create_booking(db, booking_payload(), seed.employee.id)
        later = booking_service.create_booking(
            db,
            booking_payload(driver_id=seed.umar.id, start_date=date(2024, 6, 10), end_date=date(2024, 6, 12)),
            seed.employee.id,
        )
        later = booking_service.update_booking(
            db, later.id, BookingUpdate(start_date=date(2024, 6, 4)), seed.employee.id
        )
        assert later.start_date == date(2024, 6, 4)

    def test_switch_to_self_drive_frees_driver(self, db, seed, booking_payload):
        booking = booking_service.create_booking(db, booking_payload(), seed.employee.id)
        booking = booking_service.update_booking(
            db,
            booking.id,
            BookingUpdate(driver_preference="self", customer_license_number="LIC-1"),
            seed.employee.id,
        )
        assert booking.driver_id is None
        assert db.get(Driver, seed.ali.id).available is True

    def test_driver_swap_keeps_flags_consistent(self, db, seed, booking_payload):
        booking = booking_service.create_booking(db, booking_payload(), seed.employee.id)
        booking_service.update_booking(db, booking.id, BookingUpdate(driver_id=seed.umar.id), seed.employee.id)
        assert db.get(Driver, seed.ali.id).available is True
        assert db.get(Driver, seed.umar.id).available is False

    def test_swap_to_deactivated_driver_rejected(self, db, seed, booking_payload):
        booking = booking_service.create_booking(db, booking_payload(), seed.employee.id)
        driver_service.deactivate_driver(db, seed.umar.id)
        with pytest.raises(NotFoundError):
            booking_service.update_booking(db, booking.id, BookingUpdate(driver_id=seed.umar.id), seed.employee.id)
        db.refresh(booking)
        assert booking.driver_id == seed.ali.id

    def test_date_change_locks_vehicle(self, db, seed, booking_payload, monkeypatch):
        booking = booking_service.create_booking(db, booking_payload(), seed.employee.id)
        get_vehicle = booking_service._get_vehicle
        locked = []

        def spy(db, vehicle_id, lock=False):
            if lock:
                locked.append(vehicle_id)
            return get_vehicle(db, vehicle_id, lock)

        monkeypatch.setattr(booking_service, "_get_vehicle", spy)
        booking_service.update_booking(db, booking.id, BookingUpdate(end_date=date(2024, 6, 8)), seed.employee.id)
        assert locked == [seed.corolla.id]

    def test_description_edit_takes_no_vehicle_lock(self, db, seed, booking_payload, monkeypatch):
        booking = booking_service.create_booking(db, booking_payload(), seed.employee.id)
        locked = []
        monkeypatch.setattr(booking_service, "_get_vehicle", lambda db, vehicle_id, lock=False: locked.append(vehicle_id))
        booking_service.update_booking(db, booking.id, BookingUpdate(trip_description="Airport"), seed.employee.id)
        assert locked == []

    def test_invariants_rechecked(self, db, seed, booking_payload):
        booking = booking_service.create_booking(db, booking_payload(), seed.employee.id)
        with pytest.raises(EntityValidationError):
            booking_service.update_booking(db, booking.id, BookingUpdate(advance_paid=20000), seed.employee.id)
        db.refresh(booking)
        assert booking.advance_paid == 3000

    def test_completed_booking_frozen(self, db, seed, booking_payload):
        booking = booking_service.create_booking(db, booking_payload(), seed.employee.id)
        booking_service.complete_booking(db, booking.id, complete_payload(), seed.employee.id)
        with pytest.raises(IllegalStateTransitionError):
            booking_service.update_booking(db, booking.id, BookingUpdate(total_bill=1), seed.employee.id)
        with pytest.raises(IllegalStateTransitionError):
            booking_service.get_booking_for_edit(db, booking.id)


class TestReads:
    def test_status_filter_and_driver_search(self, db, seed, booking_payload):
        first = booking_service.create_booking(db, booking_payload(), seed.employee.id)
        booking_service.create_booking(
            db,
            booking_payload(vehicle_id=seed.civic.id, driver_id=seed.umar.id),
            seed.admin.id,
        )
        booking_service.cancel_booking(db, first.id, None, seed.employee.id)

        assert [b.id for b in booking_service.list_bookings(db, status="CANCELLED")] == [first.id]
        assert len(booking_service.active_bookings_for(db, seed.admin.id)) == 1
        assert booking_service.active_bookings_for(db, seed.employee.id) == []
        free = available_drivers(db, date(2024, 6, 3), date(2024, 6, 4))
        assert [d.name for d in free] == ["Ali"]

    def test_invalid_status(self, db, seed):
        with pytest.raises(InvalidInputError):
            booking_service.bookings_by_status(db, "archived")
