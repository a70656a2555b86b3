from datetime import date
from pydantic import BaseModel, field_validator
from typing import Optional


class VehicleCreateRequest(BaseModel):
    vehicleNumber:   str
    model:           str
    fuelType:        str
    lastServiceDate: Optional[date] = None

    @field_validator("vehicleNumber")
    @classmethod
    def check_number(cls, v):
        if not v.strip(): raise ValueError("Vehicle number cannot be empty")
        return v.strip().upper()

    @field_validator("model", "fuelType")
    @classmethod
    def not_empty(cls, v):
        if not v.strip(): raise ValueError("Field cannot be empty")
        return v.strip()


class VehicleUpdateRequest(BaseModel):
    vehicleNumber:   Optional[str]  = None
    model:           Optional[str]  = None
    fuelType:        Optional[str]  = None
    lastServiceDate: Optional[date] = None

    @field_validator("vehicleNumber")
    @classmethod
    def check_number(cls, v):
        if v is not None and not v.strip(): raise ValueError("Vehicle number cannot be empty")
        return v.strip().upper() if v else v

    @field_validator("model", "fuelType")
    @classmethod
    def not_empty(cls, v):
        if v is not None and not v.strip(): raise ValueError("Field cannot be empty")
        return v.strip() if v else v


class AssignVehicleRequest(BaseModel):
    vehicleId: int
    driverId:  int
