# carrental/services/customer_service.py
"""
Customer lookup, upsert-by-identity and profile management.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session
from carrental.config import settings
from carrental.exceptions import ConflictError, NotFoundError
from carrental.models.booking import Booking
from carrental.models.customer import Customer
from carrental.services.billing import booking_billing, booking_revenue
from carrental.utils.logger import get_logger

logger = get_logger(__name__)


def find_or_create_by_identity(
    db: Session,
    full_name: str,
    phone_number: str,
    id_card_number: str,
    care_of: Optional[str] = None,
) -> Customer:
    """
    Upsert the customer making a booking. Does not commit.

    A phone match takes precedence over an ID card match, so if the phone and
    the ID card belong to two different customers the phone owner is used and
    the ID card stays on the other record.
    """
    customer = db.query(Customer).filter(Customer.phone_number == phone_number).first()
    if customer is None:
        customer = db.query(Customer).filter(Customer.id_card_number == id_card_number).first()

    now = datetime.utcnow()
    if customer is None:
        customer = Customer(
            full_name=full_name,
            phone_number=phone_number,
            id_card_number=id_card_number,
            care_of=care_of,
            booking_count=1,
            last_booking_date=now,
        )
        db.add(customer)
        logger.info(f"New customer {phone_number} ({full_name})")
        return customer

    customer.booking_count = (customer.booking_count or 0) + 1
    customer.last_booking_date = now
    if full_name and customer.full_name != full_name:
        customer.full_name = full_name
    if care_of is not None and customer.care_of != care_of:
        customer.care_of = care_of
    return customer


def get_customer(db: Session, customer_id: int) -> Customer:
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise NotFoundError("Customer not found")
    return customer


def list_customers(db: Session):
    return db.query(Customer).order_by(Customer.created_at.desc()).all()


def search_customers(db: Session, query: str):
    """Substring match on phone, ID card or name, case-insensitive."""
    pattern = f"%{query}%"
    return (
        db.query(Customer)
        .filter(or_(
            Customer.phone_number.ilike(pattern),
            Customer.id_card_number.ilike(pattern),
            Customer.full_name.ilike(pattern),
        ))
        .limit(settings.CUSTOMER_SEARCH_LIMIT)
        .all()
    )


def create_customer(db: Session, full_name: str, phone_number: str, id_card_number: str,
                    care_of: Optional[str] = None, email: Optional[str] = None,
                    address: Optional[str] = None) -> Customer:
    existing = db.query(Customer).filter(
        or_(Customer.phone_number == phone_number, Customer.id_card_number == id_card_number)
    ).first()
    if existing:
        raise ConflictError("Customer already exists with this phone number or ID card number")
    customer = Customer(
        full_name=full_name,
        phone_number=phone_number,
        id_card_number=id_card_number,
        care_of=care_of,
        email=email,
        address=address,
        booking_count=0,
    )
    db.add(customer)
    db.commit()
    db.refresh(customer)
    logger.info(f"Customer {customer.id} added")
    return customer


def update_customer(db: Session, customer_id: int, changes: dict) -> Customer:
    """Partial update; phone and ID card must stay unique."""
    customer = get_customer(db, customer_id)

    phone = changes.get("phone_number")
    if phone and phone != customer.phone_number:
        if db.query(Customer).filter(Customer.phone_number == phone).first():
            raise ConflictError("Phone number already in use")
        customer.phone_number = phone

    id_card = changes.get("id_card_number")
    if id_card and id_card != customer.id_card_number:
        if db.query(Customer).filter(Customer.id_card_number == id_card).first():
            raise ConflictError("ID card number already in use")
        customer.id_card_number = id_card

    for field in ("full_name", "care_of", "email", "address"):
        if changes.get(field):
            setattr(customer, field, changes[field])

    db.commit()
    db.refresh(customer)
    return customer


def customer_details(db: Session, customer_id: int) -> dict:
    """Profile plus booking history and spend statistics."""
    customer = get_customer(db, customer_id)
    bookings = (
        db.query(Booking)
        .filter(Booking.customer_id == customer.id)
        .order_by(Booking.start_date.desc())
        .all()
    )

    history = []
    for b in bookings:
        billing = booking_billing(b)
        history.append({
            "id": b.id,
            "car_model": b.vehicle.model,
            "car_year": b.vehicle.year,
            "registration_number": b.vehicle.registration_number,
            "driver_name": b.driver.name if b.driver else "Self Drive",
            "start_date": b.start_date,
            "end_date": b.end_date,
            "total_amount": booking_revenue(b),
            "status": b.status,
            "trip_type": b.trip_type,
            "city_name": b.city_name,
            "advance_paid": b.advance_paid,
            "remaining_amount": billing.remaining,
            "discount_percentage": b.discount_percentage or 0,
            "meter_reading": b.meter_reading,
        })

    billable = sum(1 for row in history if row["status"] != "cancelled")
    spent = sum(row["total_amount"] for row in history if row["status"] != "cancelled")
    return {
        "customer": {
            "id": customer.id,
            "name": customer.full_name,
            "phone": customer.phone_number,
            "id_card": customer.id_card_number,
            "email": customer.email or "",
            "address": customer.address or "",
            "join_date": customer.created_at.date().isoformat() if customer.created_at else None,
            "booking_count": customer.booking_count,
            "last_booking_date": customer.last_booking_date,
        },
        "bookings": history,
        "statistics": {
            "total_bookings": len(history),
            "total_spent": spent,
            "completed_bookings": sum(1 for row in history if row["status"] == "completed"),
            "active_bookings": sum(1 for row in history if row["status"] == "active"),
            "average_booking_amount": spent / billable if billable else 0,
        },
    }
