# carrental/models/vehicle.py
"""
Fleet vehicles table.
Registration, chassis and engine numbers are globally unique.
Vehicles with booking history are never hard-deleted, only flagged `deleted`.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from carrental.database import Base


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    model = Column(String(100), nullable=False, index=True)
    year = Column(Integer, nullable=False)
    color = Column(String(50), nullable=False)
    variant = Column(String(100), default="")
    registration_number = Column(String(50), unique=True, nullable=False, index=True)
    chassis_number = Column(String(100), unique=True, nullable=False)
    engine_number = Column(String(100), unique=True, nullable=False)
    image = Column(String(500))
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    deleted = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("User")

    def __repr__(self):
        return f"<Vehicle {self.registration_number} model={self.model} deleted={self.deleted}>"
