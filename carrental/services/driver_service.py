# carrental/services/driver_service.py
"""
Driver roster. Drivers are never hard-deleted; deactivation clears `active`
so they drop out of listings and availability searches.
"""

from sqlalchemy.orm import Session
from carrental.exceptions import IllegalStateTransitionError, NotFoundError
from carrental.models.booking import Booking, BLOCKING_STATUSES
from carrental.models.driver import Driver, DEFAULT_AVATAR
from carrental.schemas.driver import DriverCreate
from carrental.utils.logger import get_logger

logger = get_logger(__name__)


def create_driver(db: Session, body: DriverCreate) -> Driver:
    driver = Driver(
        name=body.name,
        license_number=body.license_number,
        id_number=body.id_number,
        address=body.address,
        phone=body.phone,
        avatar=body.image or DEFAULT_AVATAR,
        available=True,
        active=True,
    )
    db.add(driver)
    db.commit()
    db.refresh(driver)
    logger.info(f"Driver {driver.id} ({driver.name}) added")
    return driver


def list_drivers(db: Session):
    return db.query(Driver).filter(Driver.active.is_(True)).order_by(Driver.name).all()


def driver_names(db: Session):
    return db.query(Driver.id, Driver.name).filter(Driver.active.is_(True)).order_by(Driver.name).all()


def deactivate_driver(db: Session, driver_id: int) -> Driver:
    driver = db.query(Driver).filter(Driver.id == driver_id, Driver.active.is_(True)).first()
    if not driver:
        raise NotFoundError("Driver not found")
    assigned = (
        db.query(Booking)
        .filter(Booking.driver_id == driver.id, Booking.status.in_(BLOCKING_STATUSES))
        .first()
    )
    if assigned:
        raise IllegalStateTransitionError("Driver cannot be removed while assigned to an active booking")
    driver.active = False
    db.commit()
    logger.info(f"Driver {driver.id} deactivated")
    return driver
