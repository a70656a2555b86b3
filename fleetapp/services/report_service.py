import csv
import io
from datetime import date, datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from fleetapp.config import settings
from fleetapp.models.role import RoleName
from fleetapp.models.trip import Trip
from fleetapp.models.user import User
from fleetapp.models.vehicle import Vehicle
from fleetapp.services.metrics import aggregate, group_by_period, round_metrics
from fleetapp.utils.exceptions import InvalidInputException

REPORT_TYPES = ("summary", "driver-performance", "vehicle-performance")

NO_SERVICE_RECORD = "No service record"
DUE_FOR_SERVICE   = "Due for service"
SERVICE_OK        = "OK"


def service_status(last_service_date: date | None, today: date, threshold_days: int) -> str:
    if last_service_date is None:
        return NO_SERVICE_RECORD
    if (today - last_service_date).days >= threshold_days:
        return DUE_FOR_SERVICE
    return SERVICE_OK


def _ranked(rows: list[dict]) -> list[dict]:
    # Ranked on full-precision averages, rounded afterwards; rows without trips go last.
    rows = sorted(
        rows,
        key=lambda r: (r["avgEfficiency"] is None, -(r["avgEfficiency"] or 0)),
    )
    return [round_metrics(r) for r in rows]


def _totals(agg: dict) -> dict:
    return {
        "tripCount":     agg["count"],
        "totalDistance": agg["sumDistance"],
        "totalFuel":     agg["sumFuel"],
        "avgEfficiency": agg["avgEfficiency"],
    }


class ReportService:

    # ─── Helpers ──────────────────────────────────────────────────────────────
    def _trips_by(self, db: Session, attr: str) -> dict:
        return aggregate(db.query(Trip).all(), group_key=lambda t: getattr(t, attr))

    # ─── Admin reports ────────────────────────────────────────────────────────
    def summary(self, db: Session) -> dict:
        overall = aggregate(db.query(Trip).all())
        roles = (
            db.query(User.role, func.count(User.id))
            .group_by(User.role)
            .order_by(User.role)
            .all()
        )
        return round_metrics({
            "trips":         overall["count"],
            "totalDistance": overall["sumDistance"],
            "totalFuel":     overall["sumFuel"],
            "avgEfficiency": overall["avgEfficiency"],
            "avgSpeed":      overall["avgSpeed"],
            "totalVehicles": db.query(func.count(Vehicle.id)).scalar() or 0,
            "totalUsers":    sum(count for _, count in roles),
            "users":         [{"role": RoleName(role).value, "count": count} for role, count in roles],
        })

    def driver_performance(self, db: Session) -> list[dict]:
        per_driver = self._trips_by(db, "driverId")
        drivers = db.query(User).filter(User.role == RoleName.DRIVER).order_by(User.name).all()
        rows = []
        for d in drivers:
            agg = per_driver.get(d.id, aggregate([]))
            rows.append({
                "driverId": d.id,
                "name":     d.name,
                "email":    d.email,
                **_totals(agg),
                "avgSpeed": agg["avgSpeed"],
            })
        return _ranked(rows)

    def vehicle_performance(
        self, db: Session,
        service_due_days: int | None = None,
        today: date | None = None,
    ) -> list[dict]:
        threshold = settings.SERVICE_DUE_DAYS if service_due_days is None else service_due_days
        today = today or date.today()
        per_vehicle = self._trips_by(db, "vehicleId")
        rows = []
        for v in db.query(Vehicle).order_by(Vehicle.vehicleNumber).all():
            agg = per_vehicle.get(v.id, aggregate([]))
            rows.append({
                "vehicleId":        v.id,
                "vehicleNumber":    v.vehicleNumber,
                "model":            v.model,
                "fuelType":         v.fuelType,
                "lastServiceDate":  v.lastServiceDate.isoformat() if v.lastServiceDate else None,
                "daysSinceService": (today - v.lastServiceDate).days if v.lastServiceDate else None,
                "serviceStatus":    service_status(v.lastServiceDate, today, threshold),
                **_totals(agg),
            })
        return _ranked(rows)

    def low_efficiency_vehicles(self, db: Session, threshold: float | None = None) -> list[dict]:
        threshold = settings.LOW_EFFICIENCY_THRESHOLD if threshold is None else threshold
        per_vehicle = self._trips_by(db, "vehicleId")
        rows = []
        for v in db.query(Vehicle).filter(Vehicle.id.in_(list(per_vehicle))).all():
            agg = per_vehicle[v.id]
            if agg["avgEfficiency"] < threshold:
                rows.append({
                    "vehicleId":     v.id,
                    "vehicleNumber": v.vehicleNumber,
                    "model":         v.model,
                    "fuelType":      v.fuelType,
                    "tripCount":     agg["count"],
                    "avgEfficiency": agg["avgEfficiency"],
                })
        rows.sort(key=lambda r: r["avgEfficiency"])
        return [round_metrics(r) for r in rows]

    def report(self, db: Session, report_type: str):
        if report_type == "summary":
            return self.summary(db)
        if report_type == "driver-performance":
            return self.driver_performance(db)
        if report_type == "vehicle-performance":
            return self.vehicle_performance(db)
        raise InvalidInputException(
            f"type must be one of {', '.join(REPORT_TYPES)}", field="type"
        )

    # ─── Dashboard ────────────────────────────────────────────────────────────
    def dashboard_stats(self, db: Session) -> dict:
        overall = aggregate(db.query(Trip).all())
        return round_metrics({
            "totalTrips":        overall["count"],
            "totalDrivers":      db.query(func.count(User.id)).filter(User.role == RoleName.DRIVER).scalar() or 0,
            "totalVehicles":     db.query(func.count(Vehicle.id)).scalar() or 0,
            "totalFuelUsed":     overall["sumFuel"],
            "totalDistance":     overall["sumDistance"],
            "averageEfficiency": overall["avgEfficiency"] or 0.0,
            "averageSpeed":      overall["avgSpeed"] or 0.0,
        })

    def top_drivers(self, db: Session, limit: int | None = None) -> list[dict]:
        limit = limit or settings.TOP_DRIVERS_LIMIT
        ranked = [r for r in self.driver_performance(db) if r["tripCount"] > 0]
        return ranked[:limit]

    def vehicle_efficiency(self, db: Session) -> list[dict]:
        return [
            {k: r[k] for k in ("vehicleId", "vehicleNumber", "model", "fuelType",
                               "tripCount", "avgEfficiency", "totalDistance", "totalFuel")}
            for r in self.vehicle_performance(db)
        ]

    def fuel_usage(self, db: Session, period: str = "month") -> list[dict]:
        buckets = group_by_period(db.query(Trip).all(), period=period, limit=12)
        return [round_metrics({
            "period":        b["period"],
            "tripCount":     b["count"],
            "totalFuel":     b["sumFuel"],
            "totalDistance": b["sumDistance"],
            "avgEfficiency": b["avgEfficiency"],
        }) for b in buckets]

    def maintenance_reminders(self, db: Session, days: int | None = None, today: date | None = None) -> list[dict]:
        threshold = settings.SERVICE_DUE_DAYS if days is None else days
        today = today or date.today()
        vehicles = db.query(Vehicle).all()
        # Oldest service first, never-serviced at the front as the most overdue.
        vehicles.sort(key=lambda v: (v.lastServiceDate is not None, v.lastServiceDate or date.min))
        return [{
            "vehicleId":        v.id,
            "vehicleNumber":    v.vehicleNumber,
            "model":            v.model,
            "fuelType":         v.fuelType,
            "lastServiceDate":  v.lastServiceDate.isoformat() if v.lastServiceDate else None,
            "daysSinceService": (today - v.lastServiceDate).days if v.lastServiceDate else None,
            "serviceStatus":    service_status(v.lastServiceDate, today, threshold),
        } for v in vehicles]


# ─── CSV export ───────────────────────────────────────────────────────────────
_CSV_COLUMNS = {
    "driver-performance": [
        ("Driver Name", "name"),
        ("Email", "email"),
        ("Trips", "tripCount"),
        ("Total Distance (km)", "totalDistance"),
        ("Total Fuel (L)", "totalFuel"),
        ("Avg Efficiency (km/L)", "avgEfficiency"),
        ("Avg Speed (km/h)", "avgSpeed"),
    ],
    "vehicle-performance": [
        ("Vehicle Number", "vehicleNumber"),
        ("Model", "model"),
        ("Fuel Type", "fuelType"),
        ("Trips", "tripCount"),
        ("Total Distance (km)", "totalDistance"),
        ("Total Fuel (L)", "totalFuel"),
        ("Avg Efficiency (km/L)", "avgEfficiency"),
        ("Last Service", "lastServiceDate"),
        ("Service Status", "serviceStatus"),
    ],
}


def report_to_csv(report_type: str, data) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)

    if report_type == "summary":
        writer.writerow(["Metric", "Value"])
        writer.writerow(["Total Trips", data["trips"]])
        writer.writerow(["Total Distance (km)", data["totalDistance"]])
        writer.writerow(["Total Fuel (L)", data["totalFuel"]])
        writer.writerow(["Average Efficiency (km/L)", data["avgEfficiency"] if data["avgEfficiency"] is not None else "N/A"])
        writer.writerow(["Total Vehicles", data["totalVehicles"]])
        writer.writerow([])
        writer.writerow(["Role", "Count"])
        for u in data["users"]:
            writer.writerow([u["role"], u["count"]])
        return buf.getvalue()

    if report_type not in _CSV_COLUMNS:
        raise InvalidInputException(
            f"type must be one of {', '.join(REPORT_TYPES)}", field="type"
        )
    columns = _CSV_COLUMNS[report_type]
    writer.writerow([title for title, _ in columns])
    for row in data:
        writer.writerow(["N/A" if row.get(key) is None else row.get(key) for _, key in columns])
    return buf.getvalue()


def csv_filename(report_type: str, today: date | None = None) -> str:
    return f"report_{report_type}_{(today or datetime.now().date()).isoformat()}.csv"


report_service = ReportService()
