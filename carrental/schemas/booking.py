# carrental/schemas/booking.py
from pydantic import BaseModel, Field, field_validator
from datetime import date
from typing import Optional, Literal
from carrental.utils.time_parser import HHMM_PATTERN

TRIP_TYPE_ALIASES = {"within-city": "withincity", "out-of-city": "outofcity"}


def _normalise_trip_type(value):
    if isinstance(value, str):
        return TRIP_TYPE_ALIASES.get(value.lower(), value.lower())
    return value


class BookingCreate(BaseModel):
    vehicle_id: int
    driver_id: Optional[int] = None
    trip_type: Literal["withincity", "outofcity"]
    city_name: Optional[str] = None
    start_date: date
    end_date: date
    trip_start_time: str = Field(pattern=HHMM_PATTERN)
    start_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    trip_description: Optional[str] = Field(None, max_length=500)
    meter_reading: float = Field(ge=0)
    total_bill: float
    advance_paid: float
    discount_percentage: float = 0
    discount_reference: Optional[str] = None
    driver_preference: Literal["driver", "self"]
    customer_license_number: Optional[str] = None
    # Customer identity, upserted on every booking
    customer_name: str = Field(min_length=1)
    cell_number: str = Field(pattern=r"^[0-9]{11}$")
    id_card_number: str = Field(min_length=1)
    care_of: Optional[str] = None

    @field_validator("trip_type", mode="before")
    @classmethod
    def normalise_trip_type(cls, value):
        return _normalise_trip_type(value)


class BookingUpdate(BaseModel):
    """Every field optional; only fields present in the request are applied."""
    vehicle_id: Optional[int] = None
    driver_id: Optional[int] = None
    trip_type: Optional[Literal["withincity", "outofcity"]] = None
    city_name: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    trip_start_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    start_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    trip_description: Optional[str] = Field(None, max_length=500)
    meter_reading: Optional[float] = Field(None, ge=0)
    total_bill: Optional[float] = None
    advance_paid: Optional[float] = None
    discount_percentage: Optional[float] = None
    discount_reference: Optional[str] = None
    driver_preference: Optional[Literal["driver", "self"]] = None
    customer_license_number: Optional[str] = None

    @field_validator("trip_type", mode="before")
    @classmethod
    def normalise_trip_type(cls, value):
        return _normalise_trip_type(value)


class BookingCancel(BaseModel):
    cancellation_reason: Optional[str] = None


class BookingComplete(BaseModel):
    end_time: str                      # HH:mm or ISO datetime
    final_meter_reading: float
    additional_charges: float = Field(0, ge=0)
    additional_charges_description: str = ""
    remaining_payment: float = Field(0, ge=0)
