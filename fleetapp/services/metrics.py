"""
Trip efficiency and fleet aggregation.

Pure functions over trip-like records: anything exposing ``distanceKm``,
``fuelUsedLtr``, ``timeTakenHr`` and ``tripDate`` (ORM ``Trip`` rows or plain
objects in tests). Nothing here touches the database and nothing here rounds;
rounding is applied once by the report layer via ``round_metrics``.
"""
import math
from datetime import date, datetime, timedelta
from numbers import Real
from typing import Callable, Hashable, Iterable

from fleetapp.utils.exceptions import InvalidInputException

PERIODS = ("day", "week", "month")


def _positive(value, field: str) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidInputException(f"{field} must be a number", field=field)
    if not math.isfinite(value):
        raise InvalidInputException(f"{field} must be a finite number", field=field)
    if value <= 0:
        raise InvalidInputException(f"{field} must be greater than 0", field=field)
    return float(value)


def compute_efficiency(distance, fuel) -> float:
    """Distance travelled per unit of fuel. Both arguments must be strictly positive."""
    d = _positive(distance, "distanceKm")
    f = _positive(fuel, "fuelUsedLtr")
    return d / f


def _empty() -> dict:
    return {
        "count":         0,
        "sumDistance":   0.0,
        "sumFuel":       0.0,
        "avgEfficiency": None,
        "avgSpeed":      None,
    }


def _aggregate_one(trips: list) -> dict:
    result = _empty()
    if not trips:
        return result

    efficiency_total = 0.0
    speed_total = 0.0
    timed = 0
    for t in trips:
        result["sumDistance"] += t.distanceKm
        result["sumFuel"]     += t.fuelUsedLtr
        efficiency_total      += compute_efficiency(t.distanceKm, t.fuelUsedLtr)
        if t.timeTakenHr and t.timeTakenHr > 0:
            speed_total += t.distanceKm / t.timeTakenHr
            timed += 1

    result["count"] = len(trips)
    result["avgEfficiency"] = efficiency_total / len(trips)
    result["avgSpeed"] = speed_total / timed if timed else None
    return result


def aggregate(trips: Iterable, group_key: Callable[[object], Hashable] | None = None) -> dict:
    """
    Count, sums and averages over ``trips``.

    Without ``group_key`` returns one aggregate dict. With it, returns
    ``{key: aggregate}`` for every key produced by ``group_key(trip)``.
    """
    trips = list(trips)
    if group_key is None:
        return _aggregate_one(trips)

    buckets: dict = {}
    for t in trips:
        buckets.setdefault(group_key(t), []).append(t)
    return {key: _aggregate_one(items) for key, items in buckets.items()}


def truncate_period(ts: datetime | date, period: str) -> date:
    """Start date of the day, ISO week (Monday) or month containing ``ts``."""
    if period not in PERIODS:
        raise InvalidInputException(
            f"period must be one of {', '.join(PERIODS)}", field="period"
        )
    d = ts.date() if isinstance(ts, datetime) else ts
    if period == "day":
        return d
    if period == "week":
        return d - timedelta(days=d.weekday())
    return d.replace(day=1)


def group_by_period(trips: Iterable, period: str = "month", limit: int = 12) -> list[dict]:
    """
    Aggregate trips per period bucket, newest first, keeping at most ``limit`` buckets.
    """
    if period not in PERIODS:
        raise InvalidInputException(
            f"period must be one of {', '.join(PERIODS)}", field="period"
        )
    grouped = aggregate(trips, group_key=lambda t: truncate_period(t.tripDate, period))
    keys = sorted(grouped, reverse=True)[:limit]
    return [{"period": k.isoformat(), **grouped[k]} for k in keys]


def round_metrics(record: dict, digits: int = 2) -> dict:
    """Copy of ``record`` with every float rounded. Ints, strings and None pass through."""
    return {
        k: round(v, digits) if isinstance(v, float) else v
        for k, v in record.items()
    }
