# carrental/models/booking.py
"""
Bookings table, the central entity.
Created `active`; moves once to `completed` or `cancelled` and is frozen after that.
Cross-field invariants are checked in booking_service.validate_booking() before
commit and backed by CHECK constraints here.
"""

from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, DateTime, Date, Float, Text, ForeignKey, CheckConstraint, Index,
)
from sqlalchemy.orm import relationship
from carrental.database import Base

BOOKING_STATUSES = ("active", "completed", "cancelled")
# Statuses that hold a vehicle/driver for their date range
BLOCKING_STATUSES = ("active", "pending")
TRIP_TYPES = ("withincity", "outofcity")
DRIVER_PREFERENCES = ("driver", "self")


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("total_bill >= 0", name="ck_booking_total_bill"),
        CheckConstraint("advance_paid >= 0", name="ck_booking_advance_paid"),
        CheckConstraint("advance_paid <= total_bill", name="ck_booking_advance_le_total"),
        CheckConstraint("discount_percentage >= 0 AND discount_percentage <= 100", name="ck_booking_discount"),
        CheckConstraint("end_date >= start_date", name="ck_booking_dates"),
        Index("ix_booking_dates", "start_date", "end_date"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    driver_id = Column(Integer, ForeignKey("drivers.id"), index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    booked_by = Column(Integer, ForeignKey("users.id"), nullable=False)

    trip_type = Column(String(20), nullable=False)           # withincity | outofcity
    city_name = Column(String(100))                          # required for outofcity
    trip_description = Column(String(500))
    driver_preference = Column(String(10), nullable=False)   # driver | self
    customer_license_number = Column(String(50))

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    trip_start_time = Column(String(5), nullable=False)      # HH:mm
    start_time = Column(String(5), default="12:00")
    end_time = Column(String(5))                             # set on completion

    meter_reading = Column(Float, nullable=False)
    total_bill = Column(Float, nullable=False)
    advance_paid = Column(Float, nullable=False)
    discount_percentage = Column(Float, default=0, nullable=False)
    discount_reference = Column(String(200))

    status = Column(String(20), default="active", nullable=False, index=True)

    # Completion
    final_meter_reading = Column(Float)
    additional_charges = Column(Float)
    additional_charges_description = Column(Text)
    remaining_payment_received = Column(Float)
    completed_at = Column(DateTime)
    completed_by = Column(Integer, ForeignKey("users.id"))

    # Cancellation
    cancellation_reason = Column(Text)
    cancelled_at = Column(DateTime)
    cancelled_by = Column(Integer, ForeignKey("users.id"))

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    vehicle = relationship("Vehicle")
    driver = relationship("Driver")
    customer = relationship("Customer")
    booker = relationship("User", foreign_keys=[booked_by])

    def __repr__(self):
        return f"<Booking {self.id} vehicle={self.vehicle_id} {self.start_date}..{self.end_date} status={self.status}>"
