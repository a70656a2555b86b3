from sqlalchemy import Column, Integer, ForeignKey, TIMESTAMP, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleetapp.database import Base


class VehicleAssignment(Base):
    __tablename__ = "vehicle_assignments"
    __table_args__ = (
        UniqueConstraint("vehicleId", "driverId", name="uq_vehicle_assignment_pair"),
    )

    id         = Column(Integer, primary_key=True, index=True)
    vehicleId  = Column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False)
    driverId   = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    assignedAt = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    vehicle = relationship("Vehicle", back_populates="assignments")
    driver  = relationship("User", back_populates="assignments")

    def __repr__(self):
        return f"<VehicleAssignment id={self.id} vehicleId={self.vehicleId} driverId={self.driverId}>"
