# carrental/services/booking_service.py
"""
Booking lifecycle: create, edit, cancel, complete.

State machine:
    active → completed
    active → cancelled
Both targets are terminal; only `active` bookings can be changed.

Each operation is one unit of work: customer upsert, booking write and driver
availability flip are committed together or rolled back together.
Vehicle (and driver) rows are locked with SELECT ... FOR UPDATE before the
availability check when BOOKING_ROW_LOCKS is on, so two requests for the same
vehicle cannot both pass the check on PostgreSQL.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
from carrental.config import settings
from carrental.exceptions import (
    ConflictError,
    EntityValidationError,
    IllegalStateTransitionError,
    InvalidInputError,
    NotFoundError,
)
from carrental.models.booking import Booking, BOOKING_STATUSES, DRIVER_PREFERENCES, TRIP_TYPES
from carrental.models.driver import Driver
from carrental.models.vehicle import Vehicle
from carrental.schemas.booking import BookingCreate, BookingUpdate, BookingComplete
from carrental.services.availability_service import is_vehicle_available
from carrental.services.billing import CompletionBilling, compute_completion_billing
from carrental.services.customer_service import find_or_create_by_identity
from carrental.utils.time_parser import is_hhmm, to_hhmm
from carrental.utils.logger import get_logger

logger = get_logger(__name__)

# PATCH fields that may be cleared with an explicit null
NULLABLE_FIELDS = {"driver_id", "city_name", "trip_description", "discount_reference", "customer_license_number"}
EDITABLE_FIELDS = set(BookingUpdate.model_fields)


# ── Lookups ─────────────────────────────────────────────────────────────────
def _locked(query):
    return query.with_for_update() if settings.BOOKING_ROW_LOCKS else query


def _get_vehicle(db: Session, vehicle_id: int, lock: bool = False) -> Optional[Vehicle]:
    q = db.query(Vehicle).filter(Vehicle.id == vehicle_id, Vehicle.deleted.is_(False))
    return (_locked(q) if lock else q).first()


def _get_driver(db: Session, driver_id: int, lock: bool = False) -> Optional[Driver]:
    q = db.query(Driver).filter(Driver.id == driver_id, Driver.active.is_(True))
    return (_locked(q) if lock else q).first()


def get_booking(db: Session, booking_id: int, lock: bool = False) -> Booking:
    q = db.query(Booking).filter(Booking.id == booking_id)
    booking = (_locked(q) if lock else q).first()
    if not booking:
        raise NotFoundError("Booking not found")
    return booking


def _require_active(booking: Booking, action: str):
    if booking.status != "active":
        logger.warning(f"Rejected {action} on booking {booking.id}: status={booking.status}")
        raise IllegalStateTransitionError(f"Only active bookings can be {action}")


# ── Invariants ──────────────────────────────────────────────────────────────
def validate_booking(booking: Booking):
    """Raise EntityValidationError for the first violated booking invariant."""
    discount = booking.discount_percentage or 0

    if booking.total_bill is None or booking.total_bill < 0:
        raise EntityValidationError("Total bill cannot be negative")
    if booking.advance_paid is None or booking.advance_paid < 0:
        raise EntityValidationError("Advance paid cannot be negative")
    if booking.advance_paid > booking.total_bill:
        raise EntityValidationError("Advance paid cannot be greater than total bill")
    if discount < 0:
        raise EntityValidationError("Discount percentage cannot be negative")
    if discount > 100:
        raise EntityValidationError("Discount percentage cannot exceed 100")
    if discount > 0 and not booking.discount_reference:
        raise EntityValidationError("Discount reference is required when a discount is applied")
    if booking.trip_type not in TRIP_TYPES:
        raise EntityValidationError("Invalid trip type")
    if booking.driver_preference not in DRIVER_PREFERENCES:
        raise EntityValidationError("Invalid driver preference")
    if booking.end_date < booking.start_date:
        raise EntityValidationError("End date must be after or equal to start date")
    if booking.trip_type == "outofcity" and not booking.city_name:
        raise EntityValidationError("City name is required for out-of-city trips")
    if booking.driver_preference == "driver" and not booking.driver_id:
        raise EntityValidationError("Driver ID is required when driver preference is 'driver'")
    if booking.driver_preference == "self" and not booking.customer_license_number:
        raise EntityValidationError("License number is required when driver preference is 'self'")
    if not is_hhmm(booking.trip_start_time):
        raise EntityValidationError("Trip start time must be in HH:mm format")
    if booking.start_time and not is_hhmm(booking.start_time):
        raise EntityValidationError("Start time must be in HH:mm format")


# ── Create ──────────────────────────────────────────────────────────────────
def create_booking(db: Session, payload: BookingCreate, actor_id: int) -> Booking:
    vehicle = _get_vehicle(db, payload.vehicle_id, lock=True)
    if not vehicle:
        raise NotFoundError("Vehicle not found")

    driver = None
    if payload.driver_preference == "driver":
        if not payload.driver_id:
            raise InvalidInputError("Driver ID is required when driver preference is 'driver'")
        driver = _get_driver(db, payload.driver_id, lock=True)
        if not driver:
            raise NotFoundError("Driver not found")
    elif not payload.customer_license_number:
        raise InvalidInputError("License number is required when driver preference is 'self'")

    if not is_vehicle_available(db, vehicle.id, payload.start_date, payload.end_date):
        logger.warning(
            f"Booking conflict: vehicle {vehicle.registration_number} "
            f"{payload.start_date}..{payload.end_date}"
        )
        db.rollback()
        raise ConflictError("Vehicle is not available for selected dates")

    if payload.trip_type == "outofcity" and not payload.city_name:
        raise InvalidInputError("City name is required for out-of-city trips")

    discount = payload.discount_percentage or 0
    booking = Booking(
        vehicle_id=vehicle.id,
        driver_id=driver.id if driver else None,
        trip_type=payload.trip_type,
        city_name=payload.city_name if payload.trip_type == "outofcity" else None,
        trip_description=payload.trip_description,
        driver_preference=payload.driver_preference,
        customer_license_number=payload.customer_license_number if payload.driver_preference == "self" else None,
        start_date=payload.start_date,
        end_date=payload.end_date,
        trip_start_time=payload.trip_start_time,
        start_time=payload.start_time or settings.DEFAULT_START_TIME,
        meter_reading=payload.meter_reading,
        total_bill=payload.total_bill,
        advance_paid=payload.advance_paid,
        discount_percentage=discount,
        discount_reference=payload.discount_reference if discount > 0 else None,
        booked_by=actor_id,
        status="active",
    )
    validate_booking(booking)

    try:
        customer = find_or_create_by_identity(
            db,
            full_name=payload.customer_name,
            phone_number=payload.cell_number,
            id_card_number=payload.id_card_number,
            care_of=payload.care_of,
        )
        booking.customer = customer
        db.add(booking)
        if driver:
            driver.available = False
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(booking)
    logger.info(
        f"Booking {booking.id} created: vehicle={vehicle.registration_number} "
        f"{booking.start_date}..{booking.end_date} driver={booking.driver_id} by user {actor_id}"
    )
    return booking


# ── Edit ────────────────────────────────────────────────────────────────────
def update_booking(db: Session, booking_id: int, patch: BookingUpdate, actor_id: int) -> Booking:
    """
    Partial update of an active booking. Fields absent from the request keep
    their stored value. When the date range or vehicle changes, availability is
    re-checked against the new range unless RECHECK_AVAILABILITY_ON_EDIT is off.
    """
    booking = get_booking(db, booking_id, lock=True)
    _require_active(booking, "edited")

    changes = {
        field: value
        for field, value in patch.model_dump(exclude_unset=True).items()
        if field in EDITABLE_FIELDS and (value is not None or field in NULLABLE_FIELDS)
    }
    if not changes:
        return booking

    old_driver_id = booking.driver_id
    old_range = (booking.vehicle_id, booking.start_date, booking.end_date)

    try:
        target_range = (
            changes.get("vehicle_id", booking.vehicle_id),
            changes.get("start_date", booking.start_date),
            changes.get("end_date", booking.end_date),
        )
        recheck = settings.RECHECK_AVAILABILITY_ON_EDIT and target_range != old_range
        # lock the target vehicle before the availability check
        if recheck or target_range[0] != booking.vehicle_id:
            if not _get_vehicle(db, target_range[0], lock=True):
                raise NotFoundError("Vehicle not found")

        preference = changes.get("driver_preference", booking.driver_preference)
        if preference == "self":
            if not changes.get("customer_license_number", booking.customer_license_number):
                raise InvalidInputError("License number is required when driver preference is 'self'")
            changes["driver_id"] = None
        else:
            driver_id = changes.get("driver_id", booking.driver_id)
            if not driver_id:
                raise InvalidInputError("Driver ID is required when driver preference is 'driver'")
            if driver_id != old_driver_id and not _get_driver(db, driver_id, lock=True):
                raise NotFoundError("Driver not found")
            changes["customer_license_number"] = None

        if changes.get("trip_type") == "withincity":
            changes["city_name"] = None
        if "discount_percentage" in changes and not changes["discount_percentage"]:
            changes.setdefault("discount_reference", None)

        for field, value in changes.items():
            setattr(booking, field, value)
        validate_booking(booking)

        new_range = (booking.vehicle_id, booking.start_date, booking.end_date)
        if recheck:
            if not is_vehicle_available(db, *new_range, exclude_booking_id=booking.id):
                logger.warning(f"Edit of booking {booking.id} conflicts for {new_range}")
                raise ConflictError("Vehicle is not available for selected dates")

        if booking.driver_id != old_driver_id:
            _set_driver_available(db, old_driver_id, True)
            _set_driver_available(db, booking.driver_id, False)

        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(booking)
    logger.info(f"Booking {booking.id} updated by user {actor_id}: {sorted(changes)}")
    return booking


# ── Cancel ──────────────────────────────────────────────────────────────────
def cancel_booking(db: Session, booking_id: int, reason: Optional[str], actor_id: int) -> Booking:
    booking = get_booking(db, booking_id, lock=True)
    _require_active(booking, "cancelled")

    try:
        booking.status = "cancelled"
        booking.cancellation_reason = reason or "No reason provided"
        booking.cancelled_at = datetime.utcnow()
        booking.cancelled_by = actor_id
        _release_driver(db, booking)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(booking)
    logger.info(f"Booking {booking.id} cancelled by user {actor_id}: {booking.cancellation_reason}")
    return booking


# ── Complete ────────────────────────────────────────────────────────────────
def complete_booking(db: Session, booking_id: int, payload: BookingComplete, actor_id: int):
    """Close an active booking. Returns (booking, CompletionBilling)."""
    booking = get_booking(db, booking_id, lock=True)
    _require_active(booking, "ended")

    end_time = to_hhmm(payload.end_time)
    if not end_time:
        raise InvalidInputError("Invalid end time format")

    if payload.final_meter_reading < booking.meter_reading:
        raise InvalidInputError("Final meter reading cannot be less than initial meter reading")

    billing: CompletionBilling = compute_completion_billing(
        total_bill=booking.total_bill,
        additional_charges=payload.additional_charges,
        advance_paid=booking.advance_paid,
        remaining_payment=payload.remaining_payment,
        discount_percentage=booking.discount_percentage,
    )

    try:
        booking.status = "completed"
        booking.end_time = end_time
        booking.final_meter_reading = payload.final_meter_reading
        booking.total_bill = billing.total_amount
        booking.additional_charges = payload.additional_charges
        booking.additional_charges_description = payload.additional_charges_description
        booking.remaining_payment_received = payload.remaining_payment
        booking.completed_at = datetime.utcnow()
        booking.completed_by = actor_id
        _release_driver(db, booking)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(booking)
    logger.info(
        f"Booking {booking.id} completed by user {actor_id}: "
        f"total={billing.total_amount} balance={billing.final_remaining_balance}"
    )
    return booking, billing


# ── Driver availability ─────────────────────────────────────────────────────
def _set_driver_available(db: Session, driver_id: Optional[int], available: bool):
    if not driver_id:
        return
    driver = _get_driver(db, driver_id, lock=True)
    if driver:
        driver.available = available


def _release_driver(db: Session, booking: Booking):
    if booking.driver_preference == "driver":
        _set_driver_available(db, booking.driver_id, True)


# ── Reads ───────────────────────────────────────────────────────────────────
def list_bookings(db: Session, status: Optional[str] = None, start_date=None, end_date=None):
    """All bookings, newest first. The date window keeps bookings fully inside it."""
    q = db.query(Booking)
    if status:
        q = q.filter(Booking.status == status.lower())
    if start_date and end_date:
        q = q.filter(Booking.start_date >= start_date, Booking.end_date <= end_date)
    return q.order_by(Booking.created_at.desc(), Booking.id.desc()).all()


def bookings_by_status(db: Session, status: str):
    if status not in BOOKING_STATUSES:
        raise InvalidInputError("Invalid status")
    return db.query(Booking).filter(Booking.status == status).order_by(Booking.start_date.desc()).all()


def active_bookings_for(db: Session, actor_id: int):
    return (
        db.query(Booking)
        .filter(Booking.status == "active", Booking.booked_by == actor_id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
        .all()
    )


def get_booking_for_edit(db: Session, booking_id: int) -> Booking:
    booking = get_booking(db, booking_id)
    if booking.status in ("completed", "cancelled"):
        raise IllegalStateTransitionError("Cannot edit completed or cancelled bookings")
    return booking
