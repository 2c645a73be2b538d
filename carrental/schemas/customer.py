# carrental/schemas/customer.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

PHONE_PATTERN = r"^[0-9]{11}$"
EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"


class CustomerCreate(BaseModel):
    full_name: str = Field(min_length=1)
    phone_number: str = Field(pattern=PHONE_PATTERN)
    id_card_number: str = Field(min_length=1)
    care_of: Optional[str] = None
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN)
    address: Optional[str] = None


class CustomerUpdate(BaseModel):
    full_name: Optional[str] = None
    phone_number: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    id_card_number: Optional[str] = None
    care_of: Optional[str] = None
    email: Optional[str] = Field(None, pattern=EMAIL_PATTERN)
    address: Optional[str] = None


class CustomerOut(BaseModel):
    id: int
    full_name: str
    care_of: Optional[str]
    email: Optional[str]
    address: Optional[str]
    phone_number: str
    id_card_number: str
    booking_count: int
    last_booking_date: Optional[datetime]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True
