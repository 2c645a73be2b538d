# carrental/services/booking_formatter.py
"""
Response shapes for booking endpoints.
All amounts come from services/billing.py so every view agrees on the figures.
"""

from carrental.models.booking import Booking
from carrental.services.billing import CompletionBilling, booking_billing, booking_revenue, trip_duration_days


def _vehicle_summary(booking: Booking) -> dict:
    v = booking.vehicle
    return {
        "id": v.id,
        "model": v.model,
        "year": v.year,
        "color": v.color,
        "registration_number": v.registration_number,
    }


def _customer_summary(booking: Booking) -> dict:
    c = booking.customer
    return {
        "id": c.id,
        "name": c.full_name,
        "phone": c.phone_number,
        "id_card": c.id_card_number,
        "care_of": c.care_of,
        "booking_count": c.booking_count,
    }


def _driver_name(booking: Booking) -> str:
    return booking.driver.name if booking.driver else "Self Drive"


def booking_row(booking: Booking) -> dict:
    """One line in a booking listing."""
    billing = booking_billing(booking)
    return {
        "id": booking.id,
        "customer_name": booking.customer.full_name,
        "customer_phone": booking.customer.phone_number,
        "vehicle": f"{booking.vehicle.model} ({booking.vehicle.registration_number})",
        "vehicle_id": booking.vehicle_id,
        "driver_name": _driver_name(booking),
        "trip_type": booking.trip_type,
        "city_name": booking.city_name,
        "start_date": booking.start_date,
        "end_date": booking.end_date,
        "status": booking.status,
        "total_amount": booking.total_bill,
        "discounted_total": billing.discounted_total,
        "advance_paid": booking.advance_paid,
        "remaining_amount": billing.remaining,
        "created_at": booking.created_at,
    }


def created_booking_view(booking: Booking) -> dict:
    return {
        "booking": booking_row(booking),
        "billing": booking_billing(booking).to_dict(),
        "customer": _customer_summary(booking),
    }


def booking_detail(booking: Booking) -> dict:
    billing = booking_billing(booking)
    detail = {
        "id": booking.id,
        "status": booking.status,
        "vehicle": _vehicle_summary(booking),
        "customer": _customer_summary(booking),
        "driver": {
            "id": booking.driver.id,
            "name": booking.driver.name,
            "phone": booking.driver.phone,
        } if booking.driver else None,
        "driver_preference": booking.driver_preference,
        "customer_license_number": booking.customer_license_number,
        "trip": {
            "type": booking.trip_type,
            "city_name": booking.city_name,
            "description": booking.trip_description,
            "start_date": booking.start_date,
            "end_date": booking.end_date,
            "trip_start_time": booking.trip_start_time,
            "start_time": booking.start_time,
            "end_time": booking.end_time,
            "duration_days": trip_duration_days(booking.start_date, booking.end_date),
        },
        "meter_reading": booking.meter_reading,
        "final_meter_reading": booking.final_meter_reading,
        "billing": billing.to_dict(),
        "discount_reference": booking.discount_reference,
        "net_revenue": booking_revenue(booking) if booking.status != "cancelled" else 0,
        "booked_by": booking.booker.name if booking.booker else None,
        "created_at": booking.created_at,
    }
    if booking.status == "completed":
        detail["completion"] = {
            "additional_charges": booking.additional_charges or 0,
            "additional_charges_description": booking.additional_charges_description or "",
            "remaining_payment_received": booking.remaining_payment_received or 0,
            "total_kilometers": (booking.final_meter_reading or 0) - booking.meter_reading,
            "completed_at": booking.completed_at,
        }
    if booking.status == "cancelled":
        detail["cancellation"] = {
            "reason": booking.cancellation_reason,
            "cancelled_at": booking.cancelled_at,
        }
    return detail


def booking_edit_view(booking: Booking) -> dict:
    """Stored values in the same shape the PATCH body accepts."""
    return {
        "id": booking.id,
        "vehicle_id": booking.vehicle_id,
        "driver_id": booking.driver_id,
        "trip_type": booking.trip_type,
        "city_name": booking.city_name,
        "start_date": booking.start_date,
        "end_date": booking.end_date,
        "trip_start_time": booking.trip_start_time,
        "start_time": booking.start_time,
        "trip_description": booking.trip_description,
        "meter_reading": booking.meter_reading,
        "total_bill": booking.total_bill,
        "advance_paid": booking.advance_paid,
        "discount_percentage": booking.discount_percentage,
        "discount_reference": booking.discount_reference,
        "driver_preference": booking.driver_preference,
        "customer_license_number": booking.customer_license_number,
        "customer": _customer_summary(booking),
        "vehicle": _vehicle_summary(booking),
    }


def cancellation_view(booking: Booking) -> dict:
    billing = booking_billing(booking)
    return {
        "id": booking.id,
        "status": booking.status,
        "cancellation_reason": booking.cancellation_reason,
        "cancelled_at": booking.cancelled_at,
        "billing": billing.to_dict(),
        # shown to the operator only; no refund is recorded
        "refund_amount": booking.advance_paid,
    }


def completion_view(booking: Booking, billing: CompletionBilling) -> dict:
    return {
        "id": booking.id,
        "status": booking.status,
        "end_time": booking.end_time,
        "initial_meter_reading": booking.meter_reading,
        "final_meter_reading": booking.final_meter_reading,
        "total_kilometers": booking.final_meter_reading - booking.meter_reading,
        "additional_charges_description": booking.additional_charges_description or "",
        "completed_at": booking.completed_at,
        "billing": billing.to_dict(),
    }
