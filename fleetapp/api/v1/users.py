from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from fleetapp.database import get_db
from fleetapp.dependencies import require_access
from fleetapp.models.role import RoleName
from fleetapp.models.user import User
from fleetapp.schemas.user import UserCreateRequest, UserUpdateRequest
from fleetapp.schemas.common import success_response
from fleetapp.services.access_policy import Action, ResourceKind
from fleetapp.services.user_service import user_service

router = APIRouter(prefix="/users")


# GET /users: Admin only
@router.get("", status_code=status.HTTP_200_OK, summary="List all users")
def list_users(
    role: Optional[RoleName] = Query(None),
    db:   Session            = Depends(get_db),
    _:    User               = Depends(require_access(Action.READ, ResourceKind.USER)),
):
    return success_response("Users retrieved successfully", user_service.list_users(db, role))


# GET /users/{id}: Admin only
@router.get("/{user_id}", status_code=status.HTTP_200_OK, summary="Get user by ID")
def get_user(
    user_id: int,
    db:      Session = Depends(get_db),
    _:       User    = Depends(require_access(Action.READ, ResourceKind.USER)),
):
    return success_response("User retrieved", user_service.get_user(db, user_id))


# POST /users: Admin only (registration)
@router.post("", status_code=status.HTTP_201_CREATED, summary="Register a new user")
def create_user(
    body: UserCreateRequest,
    db:   Session = Depends(get_db),
    current_user: User = Depends(require_access(Action.CREATE, ResourceKind.USER)),
):
    data = user_service.create_user(db, body, current_user.id)
    return success_response("User registered successfully", data)


# PUT /users/{id}: Admin only
@router.put("/{user_id}", status_code=status.HTTP_200_OK, summary="Update user")
def update_user(
    user_id: int,
    body:    UserUpdateRequest,
    db:      Session = Depends(get_db),
    current_user: User = Depends(require_access(Action.UPDATE, ResourceKind.USER)),
):
    data = user_service.update_user(db, user_id, body, current_user.id)
    return success_response("User updated successfully", data)


# DELETE /users/{id}: Admin only, never self, never with trips
@router.delete("/{user_id}", status_code=status.HTTP_200_OK, summary="Delete user")
def delete_user(
    user_id: int,
    db:      Session = Depends(get_db),
    current_user: User = Depends(require_access(Action.DELETE, ResourceKind.USER)),
):
    user_service.delete_user(db, user_id, current_user)
    return success_response("User deleted successfully", None)
