# Fleet Dashboard — Database Models
# Import all models here for SQLAlchemy discovery

from app.models.subsidiary import Subsidiary, UserProfile, UserSubsidiaryPermission, ScopePreference  # noqa
from app.models.vehicle import Vehicle                                   # noqa
from app.models.driver import Driver                                     # noqa
from app.models.vehicle_document import VehicleDocument                  # noqa
from app.models.fuel_log import FuelLog                                  # noqa
from app.models.maintenance_log import MaintenanceLog, MaintenancePartUsed  # noqa
from app.models.odometer_reading import OdometerReading                  # noqa
from app.models.fuel_tank import FuelTank                                # noqa
from app.models.budget import Budget                                     # noqa
from app.models.vendor import Vendor, FuelPurchase                       # noqa
