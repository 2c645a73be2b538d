# carrental/routers/stakeholders.py
"""Stakeholders: vehicle owners paid revenue net of commission."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from carrental.database import get_db
from carrental.deps import Actor, require_roles
from carrental.schemas.user import StakeholderCreate, UserOut
from carrental.services import user_service

router = APIRouter()
admin = require_roles("admin")


@router.get("/stakeholders", response_model=list[UserOut], summary="List stakeholders")
def list_stakeholders(db: Session = Depends(get_db), actor: Actor = Depends(admin)):
    return user_service.list_stakeholders(db)


@router.post("/stakeholders", status_code=status.HTTP_201_CREATED, summary="Register a stakeholder")
def add_stakeholder(body: StakeholderCreate, db: Session = Depends(get_db), actor: Actor = Depends(admin)):
    """The account starts with DEFAULT_STAKEHOLDER_PASSWORD."""
    stakeholder = user_service.create_stakeholder(db, body)
    return {
        "message": "Stakeholder registered successfully",
        "stakeholder": UserOut.model_validate(stakeholder),
    }
