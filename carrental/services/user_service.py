# carrental/services/user_service.py
"""
Employee and stakeholder accounts.
Accounts are never deleted; deactivation sets `blocked`, which also locks the
user out of every actor-scoped endpoint.
"""

from sqlalchemy import or_
from sqlalchemy.orm import Session
from carrental.config import settings
from carrental.exceptions import ConflictError, IllegalStateTransitionError, NotFoundError
from carrental.models.booking import Booking, BLOCKING_STATUSES
from carrental.models.user import User
from carrental.schemas.user import EmployeeCreate, StakeholderCreate
from carrental.utils.passwords import hash_password
from carrental.utils.logger import get_logger

logger = get_logger(__name__)


def get_active_user(db: Session, user_id: int):
    """Unblocked user by id, or None."""
    return db.query(User).filter(User.id == user_id, User.blocked.is_(False)).first()


def _get_employee(db: Session, employee_id: int) -> User:
    employee = db.query(User).filter(User.id == employee_id, User.role == "employee").first()
    if not employee:
        raise NotFoundError("Employee not found")
    return employee


# ── Employees ───────────────────────────────────────────────────────────────
def employee_row(u: User) -> dict:
    return {
        "id": u.id,
        "name": u.name,
        "id_card": u.id_card_number,
        "address": u.address,
        "email": u.email,
        "age": u.age,
        "date_of_joining": u.created_at.date() if u.created_at else None,
        "status": "inactive" if u.blocked else "active",
        "image": u.avatar,
    }


def list_employees(db: Session):
    return db.query(User).filter(User.role == "employee").order_by(User.created_at.desc()).all()


def create_employee(db: Session, body: EmployeeCreate) -> User:
    if db.query(User).filter(User.email == body.email).first():
        raise ConflictError("A user with this email already exists")
    employee = User(
        name=body.name,
        email=body.email,
        password_hash=hash_password(body.password),
        id_card_number=body.id_card,
        address=body.address,
        age=body.age,
        avatar=body.profile_picture,
        role="employee",
    )
    db.add(employee)
    db.commit()
    db.refresh(employee)
    logger.info(f"Employee {employee.id} ({employee.email}) added")
    return employee


def change_employee_password(db: Session, employee_id: int, new_password: str) -> User:
    employee = _get_employee(db, employee_id)
    employee.password_hash = hash_password(new_password)
    db.commit()
    logger.info(f"Password changed for employee {employee.id}")
    return employee


def deactivate_employee(db: Session, employee_id: int) -> User:
    employee = _get_employee(db, employee_id)
    live = (
        db.query(Booking)
        .filter(Booking.booked_by == employee.id, Booking.status.in_(BLOCKING_STATUSES))
        .first()
    )
    if live:
        raise IllegalStateTransitionError("Cannot delete employee with active or pending bookings")
    employee.blocked = True
    db.commit()
    logger.info(f"Employee {employee.id} deactivated")
    return employee


# ── Stakeholders ────────────────────────────────────────────────────────────
def list_stakeholders(db: Session):
    return db.query(User).filter(User.role == "stakeholder").order_by(User.created_at.desc()).all()


def create_stakeholder(db: Session, body: StakeholderCreate) -> User:
    existing = db.query(User).filter(or_(
        User.email == body.email,
        User.id_card_number == body.id_card_number,
        User.phone == body.cell_phone,
    )).first()
    if existing:
        raise ConflictError("A user with this email, CNIC, or phone number already exists")

    stakeholder = User(
        name=body.full_name,
        id_card_number=body.id_card_number,
        email=body.email,
        phone=body.cell_phone,
        commission_percentage=body.commission_percentage,
        avatar=body.avatar,
        password_hash=hash_password(settings.DEFAULT_STAKEHOLDER_PASSWORD),
        role="stakeholder",
        age=0,
        address="To be updated",
    )
    db.add(stakeholder)
    db.commit()
    db.refresh(stakeholder)
    logger.info(f"Stakeholder {stakeholder.id} ({stakeholder.email}) registered at {stakeholder.commission_percentage}%")
    return stakeholder
