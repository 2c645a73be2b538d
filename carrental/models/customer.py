# carrental/models/customer.py
"""
Customers table.
Rows are upserted by natural key (phone or ID card number) on every booking;
booking_count and last_booking_date are denormalised counters kept by that upsert.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime
from carrental.database import Base


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    full_name = Column(String(200), nullable=False)
    care_of = Column(String(200))
    email = Column(String(255))
    address = Column(String(500))
    phone_number = Column(String(11), unique=True, nullable=False, index=True)
    id_card_number = Column(String(20), unique=True, nullable=False, index=True)
    booking_count = Column(Integer, default=0, nullable=False)
    last_booking_date = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Customer {self.id} {self.full_name} bookings={self.booking_count}>"
