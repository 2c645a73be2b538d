# carrental/services/availability_service.py
"""
Date-range availability for vehicles and drivers.

A candidate range [start, end] conflicts with an existing booking [s, e] whose
status is blocking (active/pending) iff  s <= end AND e >= start.
Boundaries are inclusive: a booking ending on 06-05 blocks one starting on 06-05.
"""

from datetime import date
from typing import Optional
from sqlalchemy.orm import Session
from carrental.models.booking import Booking, BLOCKING_STATUSES
from carrental.models.driver import Driver
from carrental.exceptions import InvalidInputError
from carrental.utils.logger import get_logger

logger = get_logger(__name__)


def _overlapping(query, start_date: date, end_date: date):
    return query.filter(
        Booking.status.in_(BLOCKING_STATUSES),
        Booking.start_date <= end_date,
        Booking.end_date >= start_date,
    )


def is_vehicle_available(
    db: Session,
    vehicle_id: int,
    start_date: date,
    end_date: date,
    exclude_booking_id: Optional[int] = None,
) -> bool:
    """True when no blocking booking of this vehicle overlaps [start_date, end_date]."""
    q = _overlapping(db.query(Booking).filter(Booking.vehicle_id == vehicle_id), start_date, end_date)
    if exclude_booking_id is not None:
        q = q.filter(Booking.id != exclude_booking_id)
    conflict = q.first()
    if conflict:
        logger.debug(f"Vehicle {vehicle_id} blocked by booking {conflict.id} for {start_date}..{end_date}")
    return conflict is None


def unavailable_vehicle_ids(db: Session, start_date: date, end_date: date) -> set:
    rows = _overlapping(db.query(Booking.vehicle_id), start_date, end_date).distinct().all()
    return {row[0] for row in rows}


def busy_driver_ids(db: Session, start_date: date, end_date: date) -> set:
    rows = (
        _overlapping(db.query(Booking.driver_id), start_date, end_date)
        .filter(Booking.driver_id.isnot(None))
        .distinct()
        .all()
    )
    return {row[0] for row in rows}


def available_drivers(db: Session, start_date: date, end_date: date) -> list:
    """Active drivers with no blocking booking overlapping the range."""
    if start_date > end_date:
        raise InvalidInputError("End date must be on or after start date")
    busy = busy_driver_ids(db, start_date, end_date)
    q = db.query(Driver).filter(Driver.active.is_(True))
    if busy:
        q = q.filter(Driver.id.notin_(busy))
    return q.order_by(Driver.name).all()
