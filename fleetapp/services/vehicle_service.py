import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fleetapp.models.trip import Trip
from fleetapp.models.user import User
from fleetapp.models.vehicle import Vehicle
from fleetapp.schemas.vehicle import VehicleCreateRequest, VehicleUpdateRequest
from fleetapp.services.access_policy import Action, ResourceKind, Target, enforce
from fleetapp.services.assignment_service import assignment_service
from fleetapp.utils.audit import log_action
from fleetapp.utils.exceptions import NotFoundException, ConflictException, ReferentialConflictException

logger = logging.getLogger(__name__)


def _serialize(v: Vehicle) -> dict:
    return {
        "id":              v.id,
        "vehicleNumber":   v.vehicleNumber,
        "model":           v.model,
        "fuelType":        v.fuelType,
        "lastServiceDate": v.lastServiceDate.isoformat() if v.lastServiceDate else None,
        "createdAt":       v.createdAt.isoformat() if v.createdAt else None,
    }


class VehicleService:

    def list_vehicles(self, db: Session) -> list[dict]:
        items = db.query(Vehicle).order_by(Vehicle.createdAt.desc(), Vehicle.id.desc()).all()
        return [_serialize(v) for v in items]

    def list_available(self, db: Session) -> list[dict]:
        """Compact listing used to fill trip forms; open to every role."""
        items = db.query(Vehicle).order_by(Vehicle.vehicleNumber).all()
        return [{
            "id":            v.id,
            "vehicleNumber": v.vehicleNumber,
            "model":         v.model,
            "fuelType":      v.fuelType,
        } for v in items]

    def get_vehicle(self, db: Session, vehicle_id: int, principal: User) -> dict:
        v = db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()
        if not v:
            raise NotFoundException("Vehicle")
        enforce(principal, Action.READ, Target(
            kind=ResourceKind.VEHICLE,
            record_id=v.id,
            assigned_driver_ids=assignment_service.driver_ids_for_vehicle(db, v.id),
        ))
        return _serialize(v)

    def create_vehicle(self, db: Session, data: VehicleCreateRequest, actor_id: int) -> dict:
        v = Vehicle(
            vehicleNumber=data.vehicleNumber,
            model=data.model,
            fuelType=data.fuelType,
            lastServiceDate=data.lastServiceDate,
        )
        db.add(v)
        self._flush_unique_number(db, data.vehicleNumber)
        log_action(db, actor_id, "CREATE", "Vehicle", v.id,
                   f"Created vehicle {v.vehicleNumber} ({v.model})")
        db.commit()
        db.refresh(v)
        return _serialize(v)

    def update_vehicle(self, db: Session, vehicle_id: int, data: VehicleUpdateRequest, actor_id: int) -> dict:
        v = db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()
        if not v:
            raise NotFoundException("Vehicle")

        if data.vehicleNumber: v.vehicleNumber = data.vehicleNumber
        if data.model:         v.model         = data.model
        if data.fuelType:      v.fuelType      = data.fuelType
        if "lastServiceDate" in data.model_fields_set:
            v.lastServiceDate = data.lastServiceDate   # explicit null clears the record

        self._flush_unique_number(db, v.vehicleNumber)
        log_action(db, actor_id, "UPDATE", "Vehicle", v.id, f"Updated vehicle {v.vehicleNumber}")
        db.commit()
        db.refresh(v)
        return _serialize(v)

    def delete_vehicle(self, db: Session, vehicle_id: int, actor: User) -> None:
        v = db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()
        if not v:
            raise NotFoundException("Vehicle")

        trip_count = db.query(func.count(Trip.id)).filter(Trip.vehicleId == vehicle_id).scalar()
        enforce(actor, Action.DELETE, Target(
            kind=ResourceKind.VEHICLE, record_id=v.id, dependent_trips=trip_count,
        ))

        log_action(db, actor.id, "DELETE", "Vehicle", v.id, f"Deleted vehicle {v.vehicleNumber}")
        db.delete(v)   # vehicle assignments cascade
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            logger.warning(f"Delete of vehicle {v.vehicleNumber} blocked by dependent trips")
            raise ReferentialConflictException("Vehicle")
        db.commit()

    def _flush_unique_number(self, db: Session, number: str) -> None:
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            logger.warning(f"Duplicate vehicle number rejected: {number}")
            raise ConflictException("Vehicle number already exists", field="vehicleNumber")


vehicle_service = VehicleService()
