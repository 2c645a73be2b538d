# carrental/schemas/expense.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, Literal

ExpenseCategory = Literal[
    "Car", "Maintenance", "Rent", "Fuel", "Salary", "Insurance", "Utilities", "Marketing", "Other",
]


class ExpenseCreate(BaseModel):
    title: str = Field(min_length=1)
    amount: float = Field(ge=0)
    category: ExpenseCategory
    description: Optional[str] = None
    date: Optional[datetime] = None
    office: Optional[str] = None
    vehicle_id: Optional[int] = None


class ExpenseOut(BaseModel):
    id: int
    title: str
    description: Optional[str]
    amount: float
    date: datetime
    category: str
    office: Optional[str]
    vehicle_id: Optional[int]
    added_by: int
    created_at: Optional[datetime]

    class Config:
        from_attributes = True
