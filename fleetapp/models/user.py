from sqlalchemy import Column, Integer, String, Enum, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleetapp.database import Base
from fleetapp.models.role import RoleName


class User(Base):
    __tablename__ = "users"

    id           = Column(Integer, primary_key=True, index=True)
    name         = Column(String(150), nullable=False)
    role         = Column(Enum(RoleName, values_callable=lambda e: [r.value for r in e],
                               name="role_name"), nullable=False)
    email        = Column(String(255), unique=True, nullable=False, index=True)
    password     = Column(String(255), nullable=False)
    mobileNumber = Column(String(30), nullable=True)
    createdAt    = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    # Trips are guarded, never cascaded: a user with trips cannot be deleted.
    trips       = relationship("Trip", back_populates="driver", passive_deletes="all")
    assignments = relationship("VehicleAssignment", back_populates="driver",
                               cascade="all, delete-orphan", passive_deletes=True)
    audit_logs  = relationship("AuditLog", back_populates="user")

    def __repr__(self):
        return f"<User id={self.id} email={self.email} role={self.role}>"
