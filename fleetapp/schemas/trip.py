from datetime import datetime
from pydantic import BaseModel, Field, field_validator
from typing import Optional


def _location(v):
    if v is not None and not v.strip():
        raise ValueError("Location cannot be empty")
    return v.strip() if v else v


class TripCreateRequest(BaseModel):
    vehicleId:     int
    startLocation: str
    endLocation:   str
    distanceKm:    float = Field(gt=0, allow_inf_nan=False)
    fuelUsedLtr:   float = Field(gt=0, allow_inf_nan=False)
    timeTakenHr:   float = Field(gt=0, allow_inf_nan=False)
    driverId:      Optional[int]      = None   # admin / manager only
    tripDate:      Optional[datetime] = None

    @field_validator("startLocation", "endLocation")
    @classmethod
    def not_empty(cls, v): return _location(v)


class TripUpdateRequest(BaseModel):
    vehicleId:     Optional[int]   = None
    startLocation: Optional[str]   = None
    endLocation:   Optional[str]   = None
    distanceKm:    Optional[float] = Field(None, gt=0, allow_inf_nan=False)
    fuelUsedLtr:   Optional[float] = Field(None, gt=0, allow_inf_nan=False)
    timeTakenHr:   Optional[float] = Field(None, gt=0, allow_inf_nan=False)

    @field_validator("startLocation", "endLocation")
    @classmethod
    def not_empty(cls, v): return _location(v)
