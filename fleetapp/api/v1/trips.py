from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from fleetapp.database import get_db
from fleetapp.dependencies import require_access
from fleetapp.models.user import User
from fleetapp.schemas.trip import TripCreateRequest, TripUpdateRequest
from fleetapp.schemas.common import success_response
from fleetapp.services.access_policy import Action, ResourceKind
from fleetapp.services.trip_service import trip_service

router = APIRouter(prefix="/trips")


@router.get("", summary="List trips (drivers see their own)")
def list_trips(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_access(Action.READ, ResourceKind.TRIP)),
):
    return success_response("Trips retrieved successfully", trip_service.list_trips(db, current_user))


@router.get("/{trip_id}", summary="Get trip by ID")
def get_trip(
    trip_id: int,
    db:      Session = Depends(get_db),
    current_user: User = Depends(require_access(Action.READ, ResourceKind.TRIP)),
):
    return success_response("Trip retrieved", trip_service.get_trip(db, trip_id, current_user))


@router.post("", status_code=status.HTTP_201_CREATED, summary="Log a trip")
def create_trip(
    body: TripCreateRequest,
    db:   Session = Depends(get_db),
    current_user: User = Depends(require_access(Action.CREATE, ResourceKind.TRIP)),
):
    data = trip_service.create_trip(db, body, current_user)
    return success_response("Trip created successfully", data)


@router.put("/{trip_id}", summary="Update trip")
def update_trip(
    trip_id: int,
    body:    TripUpdateRequest,
    db:      Session = Depends(get_db),
    current_user: User = Depends(require_access(Action.UPDATE, ResourceKind.TRIP)),
):
    data = trip_service.update_trip(db, trip_id, body, current_user)
    return success_response("Trip updated successfully", data)


@router.delete("/{trip_id}", summary="Delete trip")
def delete_trip(
    trip_id: int,
    db:      Session = Depends(get_db),
    current_user: User = Depends(require_access(Action.DELETE, ResourceKind.TRIP)),
):
    trip_service.delete_trip(db, trip_id, current_user)
    return success_response("Trip deleted successfully", None)
