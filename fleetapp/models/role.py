import enum


class RoleName(str, enum.Enum):
    ADMIN   = "admin"
    MANAGER = "manager"
    DRIVER  = "driver"
