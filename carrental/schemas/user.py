# carrental/schemas/user.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

STAKEHOLDER_EMAIL_PATTERN = r"^\w+([\.-]?\w+)*@\w+([\.-]?\w+)*(\.\w{2,3})+$"


class EmployeeCreate(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(pattern=r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
    password: str = Field(min_length=6)
    id_card: str = Field(min_length=1)
    address: str = Field(min_length=1)
    age: int = Field(gt=0)
    profile_picture: Optional[str] = None


class PasswordChange(BaseModel):
    new_password: str = Field(min_length=6)


class StakeholderCreate(BaseModel):
    full_name: str = Field(min_length=1)
    id_card_number: str = Field(pattern=r"^[0-9]{13}$")
    email: str = Field(pattern=STAKEHOLDER_EMAIL_PATTERN)
    cell_phone: str = Field(pattern=r"^[0-9]{11}$")
    commission_percentage: float = Field(ge=0, le=100)
    avatar: Optional[str] = None


class UserOut(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str]
    id_card_number: Optional[str]
    role: str
    blocked: bool
    commission_percentage: Optional[float]
    avatar: Optional[str]
    address: Optional[str]
    age: Optional[int]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True
