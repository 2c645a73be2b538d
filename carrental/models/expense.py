# carrental/models/expense.py
"""
Expense ledger. Plain entries with no state machine; optionally tied to a vehicle
so per-vehicle profit can subtract them.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Float, Text, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from carrental.database import Base

EXPENSE_CATEGORIES = (
    "Car",
    "Maintenance",
    "Rent",
    "Fuel",
    "Salary",
    "Insurance",
    "Utilities",
    "Marketing",
    "Other",
)


class Expense(Base):
    __tablename__ = "expenses"
    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_expense_amount_non_negative"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    amount = Column(Float, nullable=False)
    date = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    category = Column(String(50), nullable=False, index=True)
    office = Column(String(100))
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), index=True)
    added_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    vehicle = relationship("Vehicle")
    author = relationship("User")

    def __repr__(self):
        return f"<Expense {self.id} {self.category} amount={self.amount}>"
