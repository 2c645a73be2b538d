# carrental/models/driver.py
"""
Company drivers table.
`available` is flipped by the booking lifecycle: false while assigned to an
active booking, true again once that booking is cancelled or completed.
`active` is the soft-deactivation flag.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Boolean
from carrental.database import Base

DEFAULT_AVATAR = "https://cdn.pixabay.com/photo/2015/10/05/22/37/blank-profile-picture-973460_960_720.png"


class Driver(Base):
    __tablename__ = "drivers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    license_number = Column(String(50), nullable=False)
    id_number = Column(String(20), nullable=False)
    address = Column(String(500), nullable=False)
    phone = Column(String(20))
    available = Column(Boolean, default=True, nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    avatar = Column(String(500), default=DEFAULT_AVATAR)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Driver {self.id} {self.name} available={self.available}>"
