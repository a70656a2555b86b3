import logging

from sqlalchemy import delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fleetapp.models.role import RoleName
from fleetapp.models.trip import Trip
from fleetapp.models.user import User
from fleetapp.models.vehicle import Vehicle
from fleetapp.models.vehicle_assignment import VehicleAssignment
from fleetapp.services.metrics import round_metrics
from fleetapp.utils.audit import log_action
from fleetapp.utils.exceptions import ConflictException, NotFoundException

logger = logging.getLogger(__name__)


def _serialize(a: VehicleAssignment) -> dict:
    return {
        "assignmentId": a.id,
        "vehicle": {
            "id":            a.vehicle.id,
            "vehicleNumber": a.vehicle.vehicleNumber,
            "model":         a.vehicle.model,
        },
        "driver": {
            "id":    a.driver.id,
            "name":  a.driver.name,
            "email": a.driver.email,
        },
        "assignedAt": a.assignedAt.isoformat() if a.assignedAt else None,
    }


class AssignmentService:

    def assign(self, db: Session, vehicle_id: int, driver_id: int, actor_id: int) -> dict:
        vehicle = db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()
        if not vehicle:
            raise NotFoundException("Vehicle")
        driver = db.query(User).filter(User.id == driver_id, User.role == RoleName.DRIVER).first()
        if not driver:
            raise NotFoundException("Driver")

        # No existence pre-check: the unique (vehicleId, driverId) index decides.
        assignment = VehicleAssignment(vehicleId=vehicle_id, driverId=driver_id)
        db.add(assignment)
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            logger.warning(f"Duplicate assignment vehicle={vehicle_id} driver={driver_id}")
            raise ConflictException("Vehicle already assigned to this driver")

        log_action(db, actor_id, "ASSIGN", "VehicleAssignment", assignment.id,
                   f"{driver.name} assigned to vehicle {vehicle.vehicleNumber}")
        db.commit()
        db.refresh(assignment)
        return _serialize(assignment)

    def unassign(self, db: Session, vehicle_id: int, driver_id: int, actor_id: int) -> None:
        result = db.execute(
            delete(VehicleAssignment)
            .where(VehicleAssignment.vehicleId == vehicle_id,
                   VehicleAssignment.driverId == driver_id)
            .execution_options(synchronize_session="fetch")
        )
        if result.rowcount == 0:
            db.rollback()
            raise NotFoundException("Assignment")

        log_action(db, actor_id, "UNASSIGN", "VehicleAssignment", None,
                   f"Driver #{driver_id} unassigned from vehicle #{vehicle_id}")
        db.commit()

    def list_assignments(self, db: Session) -> list[dict]:
        """Assignments grouped by vehicle, with trip stats per (vehicle, driver) pair."""
        rows = (
            db.query(
                VehicleAssignment,
                func.count(Trip.id),
                func.avg(Trip.efficiency),
            )
            .join(VehicleAssignment.vehicle)
            .join(VehicleAssignment.driver)
            .outerjoin(Trip, (Trip.vehicleId == VehicleAssignment.vehicleId)
                             & (Trip.driverId == VehicleAssignment.driverId))
            .group_by(VehicleAssignment.id, Vehicle.id, User.id)
            .order_by(Vehicle.vehicleNumber, User.name)
            .all()
        )

        vehicles: dict[int, dict] = {}
        for a, trip_count, avg_efficiency in rows:
            entry = vehicles.setdefault(a.vehicleId, {
                "vehicleId":     a.vehicle.id,
                "vehicleNumber": a.vehicle.vehicleNumber,
                "model":         a.vehicle.model,
                "drivers":       [],
            })
            entry["drivers"].append(round_metrics({
                "driverId":      a.driver.id,
                "driverName":    a.driver.name,
                "driverEmail":   a.driver.email,
                "assignedAt":    a.assignedAt.isoformat() if a.assignedAt else None,
                "tripCount":     trip_count or 0,
                "avgEfficiency": float(avg_efficiency) if avg_efficiency is not None else None,
            }))
        return list(vehicles.values())

    def assigned_vehicles(self, db: Session, driver_id: int) -> list[dict]:
        items = (
            db.query(VehicleAssignment)
            .filter(VehicleAssignment.driverId == driver_id)
            .order_by(VehicleAssignment.assignedAt.desc(), VehicleAssignment.id.desc())
            .all()
        )
        return [{
            "id":              a.vehicle.id,
            "vehicleNumber":   a.vehicle.vehicleNumber,
            "model":           a.vehicle.model,
            "fuelType":        a.vehicle.fuelType,
            "lastServiceDate": a.vehicle.lastServiceDate.isoformat() if a.vehicle.lastServiceDate else None,
            "assignedAt":      a.assignedAt.isoformat() if a.assignedAt else None,
        } for a in items]

    def driver_ids_for_vehicle(self, db: Session, vehicle_id: int) -> frozenset:
        rows = db.query(VehicleAssignment.driverId).filter(VehicleAssignment.vehicleId == vehicle_id).all()
        return frozenset(r[0] for r in rows)


assignment_service = AssignmentService()
