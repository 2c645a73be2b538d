# carrental/routers/drivers.py
"""Driver roster and date-range driver availability."""

from datetime import date
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from carrental.database import get_db
from carrental.deps import Actor, require_roles
from carrental.schemas.driver import DriverCreate, DriverOut, DriverName
from carrental.services import driver_service
from carrental.services.availability_service import available_drivers

router = APIRouter()
staff = require_roles("admin", "employee")


@router.get("/drivers", response_model=list[DriverOut], summary="List active drivers")
def list_drivers(db: Session = Depends(get_db), actor: Actor = Depends(staff)):
    return driver_service.list_drivers(db)


@router.post("/drivers", response_model=DriverOut, status_code=status.HTTP_201_CREATED, summary="Add a driver")
def add_driver(body: DriverCreate, db: Session = Depends(get_db), actor: Actor = Depends(staff)):
    return driver_service.create_driver(db, body)


@router.get("/drivers/names", response_model=list[DriverName], summary="Driver ids and names")
def driver_names(db: Session = Depends(get_db), actor: Actor = Depends(staff)):
    return driver_service.driver_names(db)


@router.get("/drivers/available", response_model=list[DriverOut], summary="Drivers free for a date range")
def drivers_available(start_date: date, end_date: date, db: Session = Depends(get_db), actor: Actor = Depends(staff)):
    return available_drivers(db, start_date, end_date)


@router.delete("/drivers/{driver_id}", summary="Deactivate a driver")
def remove_driver(driver_id: int, db: Session = Depends(get_db), actor: Actor = Depends(require_roles("admin"))):
    driver = driver_service.deactivate_driver(db, driver_id)
    return {"status": "deactivated", "id": driver.id}
