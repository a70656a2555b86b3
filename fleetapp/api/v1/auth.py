from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from fleetapp.database import get_db
from fleetapp.dependencies import get_current_user
from fleetapp.models.user import User
from fleetapp.schemas.auth import LoginRequest
from fleetapp.schemas.common import SuccessResponse, success_response
from fleetapp.services.auth_service import auth_service

router = APIRouter(prefix="/auth")


# ─── POST /auth/login ─────────────────────────────────────────────────────────
@router.post(
    "/login",
    status_code=status.HTTP_200_OK,
    summary="Login and receive a bearer access token",
    response_model=SuccessResponse,
)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    result = auth_service.login(db, data)
    return success_response("Login successful", result)


# ─── GET /auth/me ─────────────────────────────────────────────────────────────
@router.get("/me", status_code=status.HTTP_200_OK, summary="Get current user profile")
def get_me(current_user: User = Depends(get_current_user)):
    return success_response("Profile retrieved", {
        "id":           current_user.id,
        "name":         current_user.name,
        "role":         current_user.role.value,
        "email":        current_user.email,
        "mobileNumber": current_user.mobileNumber,
    })
