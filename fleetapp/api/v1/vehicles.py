from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from fleetapp.database import get_db
from fleetapp.dependencies import get_current_user, require_access
from fleetapp.models.user import User
from fleetapp.schemas.vehicle import VehicleCreateRequest, VehicleUpdateRequest, AssignVehicleRequest
from fleetapp.schemas.common import success_response
from fleetapp.services.access_policy import Action, ResourceKind
from fleetapp.services.assignment_service import assignment_service
from fleetapp.services.user_service import user_service
from fleetapp.services.vehicle_service import vehicle_service

router = APIRouter(prefix="/vehicles")


@router.get("", summary="List vehicles (Admin, Manager)")
def list_vehicles(
    db: Session = Depends(get_db),
    _:  User    = Depends(require_access(Action.READ, ResourceKind.VEHICLE)),
):
    return success_response("Vehicles retrieved successfully", vehicle_service.list_vehicles(db))


# ─── Static paths first so they are not captured by /{vehicle_id} ─────────────
@router.get("/available", summary="Vehicles for trip forms (any role)")
def list_available(
    db: Session = Depends(get_db),
    _:  User    = Depends(require_access(Action.READ, ResourceKind.AVAILABLE_VEHICLES)),
):
    return success_response("Available vehicles retrieved", vehicle_service.list_available(db))


@router.get("/assigned", summary="Vehicles assigned to the current driver")
def list_assigned(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_access(Action.READ, ResourceKind.ASSIGNED_VEHICLES)),
):
    data = assignment_service.assigned_vehicles(db, current_user.id)
    return success_response("Assigned vehicles retrieved", data)


@router.get("/drivers", summary="Driver list for assignment forms (Admin, Manager)")
def list_drivers(
    db: Session = Depends(get_db),
    _:  User    = Depends(require_access(Action.READ, ResourceKind.DRIVER_LIST)),
):
    return success_response("Drivers retrieved", user_service.list_drivers(db))


@router.get("/assignments", summary="Current vehicle-driver assignments (Admin, Manager)")
def list_assignments(
    db: Session = Depends(get_db),
    _:  User    = Depends(require_access(Action.READ, ResourceKind.ASSIGNMENT)),
):
    return success_response("Assignments retrieved", assignment_service.list_assignments(db))


@router.post("/assignments", status_code=status.HTTP_201_CREATED, summary="Assign vehicle to driver")
def assign_vehicle(
    body: AssignVehicleRequest,
    db:   Session = Depends(get_db),
    current_user: User = Depends(require_access(Action.CREATE, ResourceKind.ASSIGNMENT)),
):
    data = assignment_service.assign(db, body.vehicleId, body.driverId, current_user.id)
    return success_response("Vehicle assigned successfully", data)


@router.delete("/assignments/{vehicle_id}/{driver_id}", summary="Unassign vehicle from driver")
def unassign_vehicle(
    vehicle_id: int,
    driver_id:  int,
    db:         Session = Depends(get_db),
    current_user: User  = Depends(require_access(Action.DELETE, ResourceKind.ASSIGNMENT)),
):
    assignment_service.unassign(db, vehicle_id, driver_id, current_user.id)
    return success_response("Vehicle unassigned successfully", None)


# ─── Single vehicle ───────────────────────────────────────────────────────────
@router.get("/{vehicle_id}", summary="Get vehicle by ID")
def get_vehicle(
    vehicle_id: int,
    db:         Session = Depends(get_db),
    current_user: User  = Depends(get_current_user),
):
    return success_response("Vehicle retrieved", vehicle_service.get_vehicle(db, vehicle_id, current_user))


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create vehicle (Admin, Manager)")
def create_vehicle(
    body: VehicleCreateRequest,
    db:   Session = Depends(get_db),
    current_user: User = Depends(require_access(Action.CREATE, ResourceKind.VEHICLE)),
):
    data = vehicle_service.create_vehicle(db, body, current_user.id)
    return success_response("Vehicle created successfully", data)


@router.put("/{vehicle_id}", summary="Update vehicle (Admin, Manager)")
def update_vehicle(
    vehicle_id: int,
    body:       VehicleUpdateRequest,
    db:         Session = Depends(get_db),
    current_user: User  = Depends(require_access(Action.UPDATE, ResourceKind.VEHICLE)),
):
    data = vehicle_service.update_vehicle(db, vehicle_id, body, current_user.id)
    return success_response("Vehicle updated successfully", data)


@router.delete("/{vehicle_id}", summary="Delete vehicle (Admin)")
def delete_vehicle(
    vehicle_id: int,
    db:         Session = Depends(get_db),
    current_user: User  = Depends(require_access(Action.DELETE, ResourceKind.VEHICLE)),
):
    vehicle_service.delete_vehicle(db, vehicle_id, current_user)
    return success_response("Vehicle deleted successfully", None)
