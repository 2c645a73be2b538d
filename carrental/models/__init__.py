# Car Rental Backend: Database Models
# Import all models here for SQLAlchemy discovery

from carrental.models.user import User            # noqa
from carrental.models.vehicle import Vehicle      # noqa
from carrental.models.driver import Driver        # noqa
from carrental.models.customer import Customer    # noqa
from carrental.models.booking import Booking      # noqa
from carrental.models.expense import Expense      # noqa
