# carrental/routers/dashboard.py
"""Dashboard and monthly report aggregates."""

from datetime import date
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from carrental.database import get_db
from carrental.deps import Actor, require_roles
from carrental.services import finance_service

router = APIRouter()
staff = require_roles("admin", "employee")


@router.get("/dashboard", summary="Current-month headline figures")
def dashboard(db: Session = Depends(get_db), actor: Actor = Depends(staff)):
    return finance_service.dashboard(db, date.today())


@router.get("/reports/monthly", summary="Monthly report")
def monthly_report(month: str, year: int, db: Session = Depends(get_db), actor: Actor = Depends(staff)):
    """month is a full English month name, e.g. `january`."""
    return finance_service.monthly_report(db, month, year)
