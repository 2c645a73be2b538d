# carrental/routers/bookings.py
"""Booking lifecycle: create, list, view, edit, cancel, complete."""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from carrental.database import get_db
from carrental.deps import Actor, require_roles
from carrental.schemas.booking import BookingCreate, BookingUpdate, BookingCancel, BookingComplete
from carrental.services import booking_service
from carrental.services.booking_formatter import (
    booking_row,
    booking_detail,
    booking_edit_view,
    cancellation_view,
    completion_view,
    created_booking_view,
)

router = APIRouter()
staff = require_roles("admin", "employee")


@router.post("/bookings", status_code=status.HTTP_201_CREATED, summary="Create a booking")
def create_booking(body: BookingCreate, db: Session = Depends(get_db), actor: Actor = Depends(staff)):
    """
    Validates the vehicle, driver or self-drive licence, and date-range
    availability, then stores the booking together with the customer upsert.
    Overlapping dates on the same vehicle return 409.
    """
    booking = booking_service.create_booking(db, body, actor.id)
    return {"message": "Booking created successfully", **created_booking_view(booking)}


@router.get("/bookings", summary="List bookings")
def list_bookings(
    status: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(staff),
):
    bookings = booking_service.list_bookings(db, status, start_date, end_date)
    return [booking_row(b) for b in bookings]


@router.get("/bookings/status/{booking_status}", summary="List bookings with a given status")
def bookings_by_status(booking_status: str, db: Session = Depends(get_db), actor: Actor = Depends(staff)):
    return [booking_row(b) for b in booking_service.bookings_by_status(db, booking_status)]


@router.get("/bookings/active", summary="Active bookings made by the caller")
def my_active_bookings(db: Session = Depends(get_db), actor: Actor = Depends(staff)):
    return [booking_row(b) for b in booking_service.active_bookings_for(db, actor.id)]


@router.get("/bookings/{booking_id}/details", summary="Booking detail with billing")
def booking_details(booking_id: int, db: Session = Depends(get_db), actor: Actor = Depends(staff)):
    return booking_detail(booking_service.get_booking(db, booking_id))


@router.get("/bookings/{booking_id}/edit", summary="Booking values for the edit form")
def booking_for_edit(booking_id: int, db: Session = Depends(get_db), actor: Actor = Depends(staff)):
    return booking_edit_view(booking_service.get_booking_for_edit(db, booking_id))


@router.patch("/bookings/{booking_id}", summary="Edit an active booking")
def update_booking(
    booking_id: int, body: BookingUpdate, db: Session = Depends(get_db), actor: Actor = Depends(staff)
):
    booking = booking_service.update_booking(db, booking_id, body, actor.id)
    return {"message": "Booking updated successfully", "booking": booking_detail(booking)}


@router.patch("/bookings/{booking_id}/cancel", summary="Cancel an active booking")
def cancel_booking(
    booking_id: int,
    body: Optional[BookingCancel] = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(staff),
):
    reason = body.cancellation_reason if body else None
    booking = booking_service.cancel_booking(db, booking_id, reason, actor.id)
    return {"message": "Booking cancelled successfully", "booking": cancellation_view(booking)}


@router.patch("/bookings/{booking_id}/end", summary="Complete an active booking")
def end_booking(
    booking_id: int, body: BookingComplete, db: Session = Depends(get_db), actor: Actor = Depends(staff)
):
    """Adds extra charges, reapplies the discount and frees the driver."""
    booking, billing = booking_service.complete_booking(db, booking_id, body, actor.id)
    return {"message": "Booking completed successfully", "booking": completion_view(booking, billing)}
