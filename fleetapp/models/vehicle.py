from sqlalchemy import Column, Integer, String, Date, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleetapp.database import Base


class Vehicle(Base):
    __tablename__ = "vehicles"

    id              = Column(Integer, primary_key=True, index=True)
    vehicleNumber   = Column(String(50), unique=True, nullable=False, index=True)
    model           = Column(String(100), nullable=False)
    fuelType        = Column(String(50), nullable=False)
    lastServiceDate = Column(Date, nullable=True)
    createdAt       = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    trips       = relationship("Trip", back_populates="vehicle", passive_deletes="all")
    assignments = relationship("VehicleAssignment", back_populates="vehicle",
                               cascade="all, delete-orphan", passive_deletes=True)

    def __repr__(self):
        return f"<Vehicle id={self.id} number={self.vehicleNumber}>"
