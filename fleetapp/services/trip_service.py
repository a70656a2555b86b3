from datetime import datetime, timezone

from sqlalchemy.orm import Session

from fleetapp.models.role import RoleName
from fleetapp.models.trip import Trip
from fleetapp.models.user import User
from fleetapp.models.vehicle import Vehicle
from fleetapp.schemas.trip import TripCreateRequest, TripUpdateRequest
from fleetapp.services.access_policy import Action, ResourceKind, Target, enforce
from fleetapp.services.metrics import compute_efficiency
from fleetapp.utils.audit import log_action
from fleetapp.utils.exceptions import NotFoundException


def _serialize(t: Trip) -> dict:
    return {
        "id":            t.id,
        "driverId":      t.driverId,
        "driverName":    t.driver.name,
        "vehicleId":     t.vehicleId,
        "vehicleNumber": t.vehicle.vehicleNumber,
        "model":         t.vehicle.model,
        "startLocation": t.startLocation,
        "endLocation":   t.endLocation,
        "distanceKm":    t.distanceKm,
        "fuelUsedLtr":   t.fuelUsedLtr,
        "timeTakenHr":   t.timeTakenHr,
        "efficiency":    t.efficiency,
        "tripDate":      t.tripDate.isoformat() if t.tripDate else None,
    }


class TripService:

    def _load(self, db: Session, trip_id: int, principal: User, action: Action) -> Trip:
        t = db.query(Trip).filter(Trip.id == trip_id).first()
        if not t:
            raise NotFoundException("Trip")
        enforce(principal, action, Target(kind=ResourceKind.TRIP, record_id=t.id, owner_id=t.driverId))
        return t

    def _require_vehicle(self, db: Session, vehicle_id: int) -> Vehicle:
        v = db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()
        if not v:
            raise NotFoundException("Vehicle")
        return v

    def list_trips(self, db: Session, principal: User) -> list[dict]:
        q = db.query(Trip)
        if principal.role == RoleName.DRIVER:
            q = q.filter(Trip.driverId == principal.id)
        items = q.order_by(Trip.tripDate.desc(), Trip.id.desc()).all()
        return [_serialize(t) for t in items]

    def get_trip(self, db: Session, trip_id: int, principal: User) -> dict:
        return _serialize(self._load(db, trip_id, principal, Action.READ))

    def create_trip(self, db: Session, data: TripCreateRequest, principal: User) -> dict:
        # Drivers always log their own trips; admins and managers may log for a driver.
        if principal.role == RoleName.DRIVER or data.driverId is None:
            driver_id = principal.id
        else:
            driver_id = data.driverId
            if not db.query(User).filter(User.id == driver_id, User.role == RoleName.DRIVER).first():
                raise NotFoundException("Driver")

        enforce(principal, Action.CREATE, Target(kind=ResourceKind.TRIP, owner_id=driver_id))
        vehicle = self._require_vehicle(db, data.vehicleId)

        t = Trip(
            driverId=driver_id,
            vehicleId=vehicle.id,
            startLocation=data.startLocation,
            endLocation=data.endLocation,
            distanceKm=data.distanceKm,
            fuelUsedLtr=data.fuelUsedLtr,
            timeTakenHr=data.timeTakenHr,
            efficiency=compute_efficiency(data.distanceKm, data.fuelUsedLtr),
            tripDate=data.tripDate or datetime.now(timezone.utc),
        )
        db.add(t)
        db.flush()
        log_action(db, principal.id, "CREATE", "Trip", t.id,
                   f"Trip {t.startLocation} -> {t.endLocation} on {vehicle.vehicleNumber}")
        db.commit()
        db.refresh(t)
        return _serialize(t)

    def update_trip(self, db: Session, trip_id: int, data: TripUpdateRequest, principal: User) -> dict:
        t = self._load(db, trip_id, principal, Action.UPDATE)

        if data.vehicleId is not None:
            t.vehicleId = self._require_vehicle(db, data.vehicleId).id
        if data.startLocation:          t.startLocation = data.startLocation
        if data.endLocation:            t.endLocation   = data.endLocation
        if data.distanceKm is not None: t.distanceKm    = data.distanceKm
        if data.fuelUsedLtr is not None: t.fuelUsedLtr  = data.fuelUsedLtr
        if data.timeTakenHr is not None: t.timeTakenHr  = data.timeTakenHr
        t.efficiency = compute_efficiency(t.distanceKm, t.fuelUsedLtr)

        log_action(db, principal.id, "UPDATE", "Trip", t.id, f"Updated trip #{t.id}")
        db.commit()
        db.refresh(t)
        return _serialize(t)

    def delete_trip(self, db: Session, trip_id: int, principal: User) -> None:
        t = self._load(db, trip_id, principal, Action.DELETE)
        log_action(db, principal.id, "DELETE", "Trip", t.id, f"Deleted trip #{t.id}")
        db.delete(t)
        db.commit()


trip_service = TripService()
