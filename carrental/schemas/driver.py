# carrental/schemas/driver.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class DriverCreate(BaseModel):
    name: str = Field(min_length=1)
    license_number: str = Field(min_length=1)
    id_number: str = Field(min_length=1)
    address: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    image: Optional[str] = None


class DriverOut(BaseModel):
    id: int
    name: str
    license_number: str
    id_number: str
    address: str
    phone: Optional[str]
    available: bool
    active: bool
    avatar: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class DriverName(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True
