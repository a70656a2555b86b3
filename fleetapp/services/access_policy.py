"""
Role-based access decisions.

One decision table for every request. Route dependencies check the
kind-level rules (``require_access``); services call ``enforce`` again with
record facts (trip owner, assigned drivers, dependent trips) once the record
has been loaded.
"""
import enum
from dataclasses import dataclass, field

from fleetapp.models.role import RoleName
from fleetapp.utils.exceptions import ForbiddenException, ReferentialConflictException


class Action(str, enum.Enum):
    READ   = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class ResourceKind(str, enum.Enum):
    USER               = "user"
    VEHICLE            = "vehicle"
    TRIP               = "trip"
    ASSIGNMENT         = "assignment"
    DRIVER_LIST        = "driver_list"
    AVAILABLE_VEHICLES = "available_vehicles"
    ASSIGNED_VEHICLES  = "assigned_vehicles"
    DASHBOARD          = "dashboard"
    REPORT             = "report"
    AUDIT_LOG          = "audit_log"


class Decision(str, enum.Enum):
    ALLOW                = "allow"
    DENY                 = "deny"
    REFERENTIAL_CONFLICT = "referential_conflict"


@dataclass(frozen=True)
class Target:
    """
    What is being accessed.

    kind:                resource kind
    record_id:           id of the user/vehicle/trip, when a single record is addressed
    owner_id:            driver that owns the trip (for create: the driver it will belong to)
    assigned_driver_ids: drivers currently assigned to the vehicle
    dependent_trips:     trips referencing the user/vehicle about to be deleted
    """
    kind:                ResourceKind
    record_id:           int | None = None
    owner_id:            int | None = None
    assigned_driver_ids: frozenset = field(default_factory=frozenset)
    dependent_trips:     int = 0


_R, _C, _U, _D = Action.READ, Action.CREATE, Action.UPDATE, Action.DELETE

_MANAGER_RULES: dict[ResourceKind, frozenset] = {
    ResourceKind.VEHICLE:            frozenset({_R, _C, _U}),
    ResourceKind.TRIP:               frozenset({_R, _C, _U, _D}),
    ResourceKind.ASSIGNMENT:         frozenset({_R, _C, _U, _D}),
    ResourceKind.DRIVER_LIST:        frozenset({_R}),
    ResourceKind.AVAILABLE_VEHICLES: frozenset({_R}),
    ResourceKind.DASHBOARD:          frozenset({_R}),
}


def _role_of(principal) -> RoleName:
    return RoleName(principal.role)


def _driver_allows(principal, action: Action, target: Target) -> bool:
    if target.kind == ResourceKind.TRIP:
        # Kind-level check (no owner known yet) lets the request through;
        # the record-level check then pins the owner.
        return target.owner_id is None or target.owner_id == principal.id
    if target.kind == ResourceKind.VEHICLE:
        # Only single vehicles they are assigned to; the full fleet listing stays closed.
        return action == Action.READ and principal.id in target.assigned_driver_ids
    if target.kind in (ResourceKind.AVAILABLE_VEHICLES, ResourceKind.ASSIGNED_VEHICLES):
        return action == Action.READ
    return False


def _base_decision(principal, action: Action, target: Target) -> bool:
    role = _role_of(principal)
    if role == RoleName.ADMIN:
        return True
    if role == RoleName.MANAGER:
        return action in _MANAGER_RULES.get(target.kind, frozenset())
    if role == RoleName.DRIVER:
        return _driver_allows(principal, action, target)
    return False


def authorize(principal, action: Action, target: Target) -> Decision:
    """Evaluate the decision table for ``principal`` doing ``action`` on ``target``."""
    if (
        target.kind == ResourceKind.USER
        and action == Action.DELETE
        and target.record_id is not None
        and target.record_id == principal.id
    ):
        return Decision.DENY

    if not _base_decision(principal, action, target):
        return Decision.DENY

    if (
        action == Action.DELETE
        and target.kind in (ResourceKind.USER, ResourceKind.VEHICLE)
        and target.dependent_trips > 0
    ):
        return Decision.REFERENTIAL_CONFLICT

    return Decision.ALLOW


def enforce(principal, action: Action, target: Target) -> None:
    """Raise the matching error unless ``authorize`` allows the access."""
    decision = authorize(principal, action, target)
    if decision == Decision.ALLOW:
        return
    if decision == Decision.REFERENTIAL_CONFLICT:
        raise ReferentialConflictException(target.kind.value)
    if target.kind == ResourceKind.USER and action == Action.DELETE and target.record_id == principal.id:
        raise ForbiddenException("You cannot delete your own account")
    raise ForbiddenException(
        f"Role '{_role_of(principal).value}' may not {action.value} this {target.kind.value.replace('_', ' ')}"
    )
