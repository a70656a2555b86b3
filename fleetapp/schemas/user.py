from pydantic import BaseModel, EmailStr, field_validator
from typing import Optional

from fleetapp.models.role import RoleName


def validate_password_length(v: str) -> str:
    if len(v) < 6:
        raise ValueError("Password must be at least 6 characters")
    return v


class UserCreateRequest(BaseModel):
    name:         str
    role:         RoleName
    email:        EmailStr
    password:     str
    mobileNumber: Optional[str] = None

    @field_validator("password")
    @classmethod
    def check_password(cls, v): return validate_password_length(v)

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        if not v.strip(): raise ValueError("Name cannot be empty")
        return v.strip()


class UserUpdateRequest(BaseModel):
    name:         Optional[str] = None
    role:         Optional[RoleName] = None
    email:        Optional[EmailStr] = None
    mobileNumber: Optional[str] = None
    password:     Optional[str] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        if v is not None and not v.strip(): raise ValueError("Name cannot be empty")
        return v.strip() if v else v

    @field_validator("password")
    @classmethod
    def check_password(cls, v):
        return validate_password_length(v) if v is not None else v
