# Import all models to ensure they are registered with SQLAlchemy
from shared.models.users import User
from .leasing.tenants import Tenant
from .properties.properties import Property
from .leasing.leases import Lease
from .leasing.installments import Installment
from .maintenance.maintenance_charges import MaintenanceCharge
