from sqlalchemy.orm import Session

from fleetapp.models.user import User
from fleetapp.schemas.auth import LoginRequest
from fleetapp.utils.security import verify_password, create_access_token
from fleetapp.utils.audit import log_action
from fleetapp.utils.exceptions import UnauthorizedException
from fleetapp.config import settings


class AuthService:

    def login(self, db: Session, data: LoginRequest) -> dict:
        user = db.query(User).filter(User.email == data.email).first()

        if not user or not verify_password(data.password, user.password):
            raise UnauthorizedException("Invalid email or password")

        token = create_access_token(user.id, user.role.value, user.email)

        log_action(db, user.id, "LOGIN", "User", user.id, f"{user.name} logged in")
        db.commit()

        return {
            "accessToken": token,
            "tokenType":   "Bearer",
            "expiresIn":   settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            "user": {
                "id":    user.id,
                "name":  user.name,
                "role":  user.role.value,
                "email": user.email,
            }
        }


auth_service = AuthService()
