# carrental/services/vehicle_service.py
"""
Vehicle registration, lookup and soft deletion.
Used by the vehicles router and by reports.
"""

from sqlalchemy import or_
from sqlalchemy.orm import Session
from carrental.exceptions import ConflictError, IllegalStateTransitionError, NotFoundError, PermissionDeniedError
from carrental.models.booking import Booking, BLOCKING_STATUSES
from carrental.models.user import User
from carrental.models.vehicle import Vehicle
from carrental.schemas.vehicle import VehicleCreate
from carrental.utils.logger import get_logger

logger = get_logger(__name__)


def get_vehicle(db: Session, vehicle_id: int) -> Vehicle:
    vehicle = db.query(Vehicle).filter(Vehicle.id == vehicle_id, Vehicle.deleted.is_(False)).first()
    if not vehicle:
        raise NotFoundError("Vehicle not found")
    return vehicle


def get_vehicle_for(db: Session, vehicle_id: int, actor: User) -> Vehicle:
    """Vehicle visible to the actor: admins and employees see all, stakeholders only their own."""
    vehicle = get_vehicle(db, vehicle_id)
    if actor.role == "stakeholder" and vehicle.owner_id != actor.id:
        raise PermissionDeniedError("You don't have permission to view this car's details")
    return vehicle


def list_vehicles(db: Session, model: str = None):
    q = db.query(Vehicle).filter(Vehicle.deleted.is_(False))
    if model:
        q = q.filter(Vehicle.model.ilike(model))
    return q.order_by(Vehicle.model, Vehicle.id).all()


def create_vehicle(db: Session, body: VehicleCreate, actor: User) -> Vehicle:
    """
    Register a vehicle. Stakeholders always own what they register; an admin
    may register on behalf of a stakeholder through owner_id.
    """
    if actor.role not in ("admin", "stakeholder"):
        raise PermissionDeniedError("Only admins and stakeholders can add cars")

    owner_id = actor.id
    if actor.role == "admin" and body.owner_id is not None:
        if not db.query(User).filter(User.id == body.owner_id).first():
            raise NotFoundError("Owner not found")
        owner_id = body.owner_id

    duplicate = db.query(Vehicle).filter(or_(
        Vehicle.registration_number == body.registration_number,
        Vehicle.chassis_number == body.chassis_number,
        Vehicle.engine_number == body.engine_number,
    )).first()
    if duplicate:
        raise ConflictError("A car with this registration, chassis or engine number already exists")

    vehicle = Vehicle(
        model=body.model,
        year=body.year,
        color=body.color,
        variant=body.variant or "",
        registration_number=body.registration_number,
        chassis_number=body.chassis_number,
        engine_number=body.engine_number,
        image=body.image,
        owner_id=owner_id,
    )
    db.add(vehicle)
    db.commit()
    db.refresh(vehicle)
    logger.info(f"Vehicle {vehicle.registration_number} registered for owner {owner_id} by user {actor.id}")
    return vehicle


def delete_vehicle(db: Session, vehicle_id: int) -> Vehicle:
    """Soft delete. Refused while the vehicle holds an active or pending booking."""
    vehicle = get_vehicle(db, vehicle_id)
    live = (
        db.query(Booking)
        .filter(Booking.vehicle_id == vehicle.id, Booking.status.in_(BLOCKING_STATUSES))
        .first()
    )
    if live:
        raise IllegalStateTransitionError("Vehicle cannot be deleted because it is currently booked.")
    vehicle.deleted = True
    db.commit()
    logger.info(f"Vehicle {vehicle.registration_number} deleted")
    return vehicle
