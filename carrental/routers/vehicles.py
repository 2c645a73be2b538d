# carrental/routers/vehicles.py
"""Fleet: registration, availability, per-vehicle financials and reports."""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from carrental.database import get_db
from carrental.deps import Actor, get_actor, require_roles
from carrental.schemas.vehicle import VehicleCreate, VehicleOut
from carrental.services import finance_service, vehicle_service

router = APIRouter()


@router.get("/vehicles/availability", summary="Fleet grouped by model with availability")
def fleet_availability(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    """A vehicle is unavailable when an active or pending booking overlaps the range, endpoints included."""
    return finance_service.fleet_availability(db, start_date, end_date)


@router.get("/vehicles/mine", summary="Vehicles owned by the calling stakeholder")
def my_vehicles(db: Session = Depends(get_db), actor: Actor = Depends(require_roles("stakeholder"))):
    return {"cars": finance_service.stakeholder_vehicles(db, actor.user)}


@router.get("/vehicles", response_model=list[VehicleOut], summary="List vehicles")
def list_vehicles(model: str = None, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return vehicle_service.list_vehicles(db, model)


@router.post("/vehicles", response_model=VehicleOut, status_code=status.HTTP_201_CREATED, summary="Register a vehicle")
def register_vehicle(body: VehicleCreate, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return vehicle_service.create_vehicle(db, body, actor.user)


@router.get("/vehicles/{vehicle_id}", response_model=VehicleOut, summary="Vehicle by id")
def get_vehicle(vehicle_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    return vehicle_service.get_vehicle_for(db, vehicle_id, actor.user)


@router.get("/vehicles/{vehicle_id}/financials", summary="Lifetime revenue, commission and profit")
def vehicle_financials(vehicle_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    vehicle = vehicle_service.get_vehicle_for(db, vehicle_id, actor.user)
    return finance_service.vehicle_financials(db, vehicle, date.today())


@router.get("/vehicles/{vehicle_id}/report", summary="Six-month performance report")
def vehicle_report(vehicle_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    vehicle = vehicle_service.get_vehicle_for(db, vehicle_id, actor.user)
    return finance_service.vehicle_report(db, vehicle, date.today())


@router.delete("/vehicles/{vehicle_id}", summary="Remove a vehicle")
def remove_vehicle(vehicle_id: int, db: Session = Depends(get_db), actor: Actor = Depends(require_roles("admin"))):
    vehicle = vehicle_service.delete_vehicle(db, vehicle_id)
    return {"status": "removed", "registration_number": vehicle.registration_number}
