"""
Import all models here so that:
1. Alembic can auto-detect them when generating migrations
2. Relationships between models resolve correctly

Order matters: import parent tables before child tables.
"""

from fleetapp.models.role import RoleName
from fleetapp.models.user import User
from fleetapp.models.vehicle import Vehicle
from fleetapp.models.trip import Trip
from fleetapp.models.vehicle_assignment import VehicleAssignment
from fleetapp.models.audit_log import AuditLog

__all__ = [
    "RoleName",
    "User",
    "Vehicle",
    "Trip",
    "VehicleAssignment",
    "AuditLog",
]
