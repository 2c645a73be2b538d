# carrental/schemas/vehicle.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class VehicleCreate(BaseModel):
    model: str = Field(min_length=1)
    year: int
    color: str = Field(min_length=1)
    registration_number: str = Field(min_length=1)
    chassis_number: str = Field(min_length=1)
    engine_number: str = Field(min_length=1)
    variant: Optional[str] = ""
    image: Optional[str] = None
    owner_id: Optional[int] = None     # admins may register a vehicle for a stakeholder


class VehicleOut(BaseModel):
    id: int
    model: str
    year: int
    color: str
    variant: Optional[str]
    registration_number: str
    chassis_number: str
    engine_number: str
    image: Optional[str]
    owner_id: int
    deleted: bool
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True
