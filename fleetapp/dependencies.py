from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from fleetapp.database import get_db
from fleetapp.models.user import User
from fleetapp.services.access_policy import Action, ResourceKind, Target, enforce
from fleetapp.utils.security import verify_access_token
from fleetapp.utils.exceptions import UnauthorizedException

# Bearer token extractor
bearer_scheme = HTTPBearer(auto_error=False)


# ─── Get Current User ─────────────────────────────────────────────────────────
def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Validate JWT Bearer token and return the current User (the principal).
    Raises 401 if the token is missing, invalid or expired, or its user is gone.
    """
    if not credentials:
        raise UnauthorizedException("No authentication token provided")

    payload = verify_access_token(credentials.credentials)
    user_id = payload.get("sub")

    if user_id is None:
        raise UnauthorizedException("Invalid token payload")

    user = db.query(User).filter(User.id == int(user_id)).first()
    if not user:
        raise UnauthorizedException("User for this token no longer exists")

    return user


# ─── Access Guards ────────────────────────────────────────────────────────────
def require_access(action: Action, kind: ResourceKind):
    """
    Factory that returns a FastAPI dependency checking the kind-level access
    rules for the current user. Record-level rules (trip owner, vehicle
    assignment, dependent trips) are enforced by the services.

    Usage:
        @router.post("/vehicles")
        def create_vehicle(current_user = Depends(require_access(Action.CREATE, ResourceKind.VEHICLE))):
            ...
    """
    def dependency(current_user: User = Depends(get_current_user)) -> User:
        enforce(current_user, action, Target(kind=kind))
        return current_user
    return dependency
