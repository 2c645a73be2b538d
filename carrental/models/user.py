# carrental/models/user.py
"""
Users table: admins, employees and stakeholders share one table, split by role.
Stakeholders own vehicles and carry the commission percentage the operator keeps
on revenue earned by those vehicles.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Boolean, Float
from carrental.database import Base

ROLES = ("admin", "employee", "stakeholder")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    phone = Column(String(20))
    id_card_number = Column(String(20), index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="employee", index=True)  # admin | employee | stakeholder
    blocked = Column(Boolean, default=False, nullable=False)
    commission_percentage = Column(Float)  # stakeholders only
    avatar = Column(String(500))
    address = Column(String(500))
    age = Column(Integer)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<User {self.id} {self.email} role={self.role}>"
