from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session
from typing import Optional

from fleetapp.database import get_db
from fleetapp.dependencies import require_access
from fleetapp.models.audit_log import AuditLog
from fleetapp.models.user import User
from fleetapp.schemas.common import success_response, paginated_response
from fleetapp.services.access_policy import Action, ResourceKind
from fleetapp.services.report_service import report_service, report_to_csv, csv_filename

router = APIRouter(prefix="/dashboard")

_dashboard_reader = require_access(Action.READ, ResourceKind.DASHBOARD)


# ─── Fleet Stats ──────────────────────────────────────────────────────────────
@router.get("/stats", summary="Fleet totals and averages (Admin, Manager)")
def stats(db: Session = Depends(get_db), _: User = Depends(_dashboard_reader)):
    return success_response("Stats retrieved", report_service.dashboard_stats(db))


@router.get("/top-drivers", summary="Drivers ranked by average efficiency (Admin, Manager)")
def top_drivers(
    limit: Optional[int] = Query(None, ge=1, le=100),
    db:    Session       = Depends(get_db),
    _:     User          = Depends(_dashboard_reader),
):
    return success_response("Top drivers retrieved", report_service.top_drivers(db, limit))


@router.get("/vehicle-efficiency", summary="Per-vehicle efficiency (Admin, Manager)")
def vehicle_efficiency(db: Session = Depends(get_db), _: User = Depends(_dashboard_reader)):
    return success_response("Vehicle efficiency retrieved", report_service.vehicle_efficiency(db))


@router.get("/fuel-usage", summary="Fuel and distance per period, newest 12 (Admin, Manager)")
def fuel_usage(
    period: str     = Query("month", description="day | week | month"),
    db:     Session = Depends(get_db),
    _:      User    = Depends(_dashboard_reader),
):
    return success_response("Fuel usage retrieved", report_service.fuel_usage(db, period))


@router.get("/maintenance-reminders", summary="Service status per vehicle (Admin, Manager)")
def maintenance_reminders(
    days: Optional[int] = Query(None, ge=1, description="Days since last service before it is due"),
    db:   Session       = Depends(get_db),
    _:    User          = Depends(_dashboard_reader),
):
    return success_response("Maintenance reminders retrieved", report_service.maintenance_reminders(db, days))


@router.get("/low-efficiency-vehicles", summary="Vehicles below an efficiency threshold (Admin, Manager)")
def low_efficiency_vehicles(
    threshold: Optional[float] = Query(None, gt=0, description="km/L; defaults to configured threshold"),
    db:        Session         = Depends(get_db),
    _:         User            = Depends(_dashboard_reader),
):
    data = report_service.low_efficiency_vehicles(db, threshold)
    return success_response("Low efficiency vehicles retrieved", data)


# ─── Admin Reports ────────────────────────────────────────────────────────────
@router.get("/reports", summary="Summary / driver / vehicle performance reports (Admin)")
def reports(
    type:   str           = Query("summary", description="summary | driver-performance | vehicle-performance"),
    format: Optional[str] = Query(None, description="json (default) | csv"),
    db:     Session       = Depends(get_db),
    _:      User          = Depends(require_access(Action.READ, ResourceKind.REPORT)),
):
    data = report_service.report(db, type)
    if format == "csv":
        return Response(
            content=report_to_csv(type, data),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{csv_filename(type)}"'},
        )
    return success_response("Report generated", data)


# ─── Audit Logs ───────────────────────────────────────────────────────────────
@router.get("/audit-logs", summary="Audit logs (Admin)")
def get_audit_logs(
    page:       int            = Query(1, ge=1),
    limit:      int            = Query(50, ge=1, le=200),
    userId:     Optional[int]  = Query(None),
    entityType: Optional[str]  = Query(None),
    action:     Optional[str]  = Query(None),
    db:         Session        = Depends(get_db),
    _:          User           = Depends(require_access(Action.READ, ResourceKind.AUDIT_LOG)),
):
    q = db.query(AuditLog)
    if userId:     q = q.filter(AuditLog.userId     == userId)
    if entityType: q = q.filter(AuditLog.entityType == entityType)
    if action:     q = q.filter(AuditLog.action     == action)

    total = q.count()
    items = q.order_by(AuditLog.createdAt.desc(), AuditLog.id.desc()).offset((page - 1) * limit).limit(limit).all()

    data = [{
        "id":          l.id,
        "user":        {"id": l.user.id, "name": l.user.name} if l.user else None,
        "action":      l.action,
        "entityType":  l.entityType,
        "entityId":    l.entityId,
        "description": l.description,
        "createdAt":   l.createdAt.isoformat() if l.createdAt else None,
    } for l in items]

    return paginated_response("Audit logs retrieved", data, total, page, limit)
