from sqlalchemy import Column, Integer, String, Float, ForeignKey, TIMESTAMP, event
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleetapp.database import Base
from fleetapp.services.metrics import compute_efficiency


class Trip(Base):
    __tablename__ = "trips"

    id            = Column(Integer, primary_key=True, index=True)
    driverId      = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    vehicleId     = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    startLocation = Column(String(255), nullable=False)
    endLocation   = Column(String(255), nullable=False)
    distanceKm    = Column(Float, nullable=False)
    fuelUsedLtr   = Column(Float, nullable=False)
    timeTakenHr   = Column(Float, nullable=False)
    efficiency    = Column(Float, nullable=False)   # distanceKm / fuelUsedLtr, set on flush
    tripDate      = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                           nullable=False, index=True)

    # ─── Relationships ─────────────────────────────────────────────────────────
    driver  = relationship("User", back_populates="trips")
    vehicle = relationship("Vehicle", back_populates="trips")

    def __repr__(self):
        return f"<Trip id={self.id} driverId={self.driverId} vehicleId={self.vehicleId}>"


@event.listens_for(Trip, "before_insert")
@event.listens_for(Trip, "before_update")
def _recompute_efficiency(mapper, connection, target: Trip) -> None:
    # Whatever the caller wrote, the stored value always matches distance and fuel.
    target.efficiency = compute_efficiency(target.distanceKm, target.fuelUsedLtr)
