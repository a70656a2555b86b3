import logging

from sqlalchemy import delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fleetapp.config import settings
from fleetapp.models.role import RoleName
from fleetapp.models.trip import Trip
from fleetapp.models.user import User
from fleetapp.models.vehicle_assignment import VehicleAssignment
from fleetapp.schemas.user import UserCreateRequest, UserUpdateRequest
from fleetapp.services.access_policy import Action, ResourceKind, Target, enforce
from fleetapp.utils.security import hash_password
from fleetapp.utils.audit import log_action
from fleetapp.utils.exceptions import NotFoundException, ConflictException, ReferentialConflictException

logger = logging.getLogger(__name__)


def _serialize_user(u: User) -> dict:
    return {
        "id":           u.id,
        "name":         u.name,
        "role":         u.role.value,
        "email":        u.email,
        "mobileNumber": u.mobileNumber,
        "createdAt":    u.createdAt.isoformat() if u.createdAt else None,
    }


class UserService:

    # ─── List ─────────────────────────────────────────────────────────────────
    def list_users(self, db: Session, role: RoleName | None = None) -> list[dict]:
        q = db.query(User)
        if role is not None:
            q = q.filter(User.role == role)
        users = q.order_by(User.createdAt.desc(), User.id.desc()).all()
        return [_serialize_user(u) for u in users]

    def list_drivers(self, db: Session) -> list[dict]:
        drivers = db.query(User).filter(User.role == RoleName.DRIVER).order_by(User.name).all()
        return [{
            "id":           d.id,
            "name":         d.name,
            "email":        d.email,
            "mobileNumber": d.mobileNumber,
        } for d in drivers]

    # ─── Get by ID ────────────────────────────────────────────────────────────
    def get_user(self, db: Session, user_id: int) -> dict:
        u = db.query(User).filter(User.id == user_id).first()
        if not u:
            raise NotFoundException("User")
        return _serialize_user(u)

    # ─── Create ───────────────────────────────────────────────────────────────
    def create_user(self, db: Session, data: UserCreateRequest, actor_id: int | None) -> dict:
        u = User(
            name=data.name,
            role=data.role,
            email=data.email,
            password=hash_password(data.password),
            mobileNumber=data.mobileNumber,
        )
        db.add(u)
        self._flush_unique_email(db, data.email)
        log_action(db, actor_id, "CREATE", "User", u.id,
                   f"Registered {u.role.value} {u.name} ({u.email})")
        db.commit()
        db.refresh(u)
        return _serialize_user(u)

    # ─── Update ───────────────────────────────────────────────────────────────
    def update_user(self, db: Session, user_id: int, data: UserUpdateRequest, actor_id: int) -> dict:
        u = db.query(User).filter(User.id == user_id).first()
        if not u:
            raise NotFoundException("User")

        was_driver = u.role == RoleName.DRIVER
        if data.name:                     u.name         = data.name
        if data.role:                     u.role         = data.role
        if data.email:                    u.email        = data.email
        if data.mobileNumber is not None: u.mobileNumber = data.mobileNumber
        if data.password:                 u.password     = hash_password(data.password)

        if was_driver and u.role != RoleName.DRIVER:
            # Only drivers hold assignments.
            dropped = db.execute(
                delete(VehicleAssignment)
                .where(VehicleAssignment.driverId == u.id)
                .execution_options(synchronize_session="fetch")
            ).rowcount
            logger.info(f"User #{u.id} is no longer a driver; removed {dropped} vehicle assignment(s)")

        self._flush_unique_email(db, u.email)
        log_action(db, actor_id, "UPDATE", "User", u.id, f"Updated user {u.name}")
        db.commit()
        db.refresh(u)
        return _serialize_user(u)

    # ─── Delete ───────────────────────────────────────────────────────────────
    def delete_user(self, db: Session, user_id: int, actor: User) -> None:
        u = db.query(User).filter(User.id == user_id).first()
        if not u:
            raise NotFoundException("User")

        trip_count = db.query(func.count(Trip.id)).filter(Trip.driverId == user_id).scalar()
        enforce(actor, Action.DELETE, Target(
            kind=ResourceKind.USER, record_id=u.id, dependent_trips=trip_count,
        ))

        log_action(db, actor.id, "DELETE", "User", u.id, f"Deleted user {u.name} ({u.email})")
        db.delete(u)   # vehicle assignments cascade
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            logger.warning(f"Delete of user {u.email} blocked by dependent trips")
            raise ReferentialConflictException("User")
        db.commit()

    # ─── Seed ─────────────────────────────────────────────────────────────────
    def ensure_default_admin(self, db: Session) -> bool:
        """Create the configured admin account when no admin exists. Returns True if created."""
        if db.query(User).filter(User.role == RoleName.ADMIN).first():
            return False
        db.add(User(
            name=settings.DEFAULT_ADMIN_NAME,
            role=RoleName.ADMIN,
            email=settings.DEFAULT_ADMIN_EMAIL,
            password=hash_password(settings.DEFAULT_ADMIN_PASSWORD),
        ))
        db.commit()
        logger.info(f"Default admin user created: {settings.DEFAULT_ADMIN_EMAIL}")
        return True

    def _flush_unique_email(self, db: Session, email: str) -> None:
        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            logger.warning(f"Duplicate email rejected: {email}")
            raise ConflictException("Email already registered", field="email")


user_service = UserService()
