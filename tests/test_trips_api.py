import json

import pytest

from fleetapp.models import Trip

from tests.conftest import auth_headers, make_trip

TRIPS = "/api/v1/trips"


def trip_body(vehicle_id, **overrides):
    body = {
        "vehicleId": vehicle_id,
        "startLocation": "Depot",
        "endLocation": "Harbour",
        "distanceKm": 100,
        "fuelUsedLtr": 8,
        "timeTakenHr": 2,
    }
    body.update(overrides)
    return body


def test_driver_logs_trip_with_computed_efficiency(client, driver, vehicle):
    resp = client.post(TRIPS, json=trip_body(vehicle.id), headers=auth_headers(driver))

    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["efficiency"] == 12.5
    assert data["driverId"] == driver.id
    assert data["vehicleNumber"] == "TRK-001"


def test_driver_cannot_log_trip_for_someone_else(client, driver, other_driver, vehicle):
    resp = client.post(
        TRIPS, json=trip_body(vehicle.id, driverId=other_driver.id), headers=auth_headers(driver),
    )
    assert resp.status_code == 201
    assert resp.json()["data"]["driverId"] == driver.id


def test_manager_logs_trip_for_driver(client, manager, driver, vehicle):
    resp = client.post(
        TRIPS, json=trip_body(vehicle.id, driverId=driver.id), headers=auth_headers(manager),
    )
    assert resp.status_code == 201
    assert resp.json()["data"]["driverId"] == driver.id


def test_trip_for_non_driver_is_not_found(client, manager, admin, vehicle):
    resp = client.post(
        TRIPS, json=trip_body(vehicle.id, driverId=admin.id), headers=auth_headers(manager),
    )
    assert resp.status_code == 404


def test_trip_for_missing_vehicle_is_not_found(client, driver):
    resp = client.post(TRIPS, json=trip_body(999), headers=auth_headers(driver))
    assert resp.status_code == 404
    assert resp.json()["message"] == "Vehicle not found"


def test_zero_fuel_is_rejected(client, driver, vehicle):
    resp = client.post(TRIPS, json=trip_body(vehicle.id, fuelUsedLtr=0), headers=auth_headers(driver))

    assert resp.status_code == 422
    assert resp.json()["error"]["details"][0]["field"] == "fuelUsedLtr"


def test_unauthenticated_request_is_401(client, vehicle):
    resp = client.post(TRIPS, json=trip_body(vehicle.id))
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "UNAUTHORIZED"


def test_invalid_token_is_401(client):
    resp = client.get(TRIPS, headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


def test_driver_lists_only_own_trips(client, db, driver, other_driver, vehicle):
    mine = make_trip(db, driver, vehicle, 100, 10)
    make_trip(db, other_driver, vehicle, 60, 5)

    resp = client.get(TRIPS, headers=auth_headers(driver))

    assert resp.status_code == 200
    assert [t["id"] for t in resp.json()["data"]] == [mine.id]


def test_manager_lists_all_trips(client, db, manager, driver, other_driver, vehicle):
    make_trip(db, driver, vehicle, 100, 10)
    make_trip(db, other_driver, vehicle, 60, 5)

    resp = client.get(TRIPS, headers=auth_headers(manager))
    assert len(resp.json()["data"]) == 2


def test_driver_reads_own_trip_but_not_others(client, db, driver, other_driver, vehicle):
    mine = make_trip(db, driver, vehicle, 100, 10)
    theirs = make_trip(db, other_driver, vehicle, 60, 5)

    assert client.get(f"{TRIPS}/{mine.id}", headers=auth_headers(driver)).status_code == 200
    resp = client.get(f"{TRIPS}/{theirs.id}", headers=auth_headers(driver))
    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "FORBIDDEN"


def test_missing_trip_is_404(client, manager):
    assert client.get(f"{TRIPS}/12345", headers=auth_headers(manager)).status_code == 404


def test_update_recomputes_efficiency(client, db, driver, vehicle):
    trip = make_trip(db, driver, vehicle, 100, 10)

    resp = client.put(f"{TRIPS}/{trip.id}", json={"fuelUsedLtr": 4}, headers=auth_headers(driver))

    assert resp.status_code == 200
    assert resp.json()["data"]["efficiency"] == 25.0
    db.expire_all()
    assert db.query(Trip).filter(Trip.id == trip.id).one().efficiency == 25.0


def test_driver_cannot_update_or_delete_other_trip(client, db, driver, other_driver, vehicle):
    theirs = make_trip(db, other_driver, vehicle, 60, 5)

    assert client.put(f"{TRIPS}/{theirs.id}", json={"distanceKm": 1},
                      headers=auth_headers(driver)).status_code == 403
    assert client.delete(f"{TRIPS}/{theirs.id}", headers=auth_headers(driver)).status_code == 403


def test_driver_deletes_own_trip(client, db, driver, vehicle):
    trip = make_trip(db, driver, vehicle, 100, 10)

    assert client.delete(f"{TRIPS}/{trip.id}", headers=auth_headers(driver)).status_code == 200
    db.expire_all()
    assert db.query(Trip).count() == 0


def test_stored_efficiency_is_recomputed_on_write(db, driver, vehicle):
    trip = Trip(
        driverId=driver.id, vehicleId=vehicle.id,
        startLocation="A", endLocation="B",
        distanceKm=90, fuelUsedLtr=6, timeTakenHr=1.5, efficiency=999.0,
    )
    db.add(trip)
    db.commit()
    assert trip.efficiency == 15.0

    trip.distanceKm = 30
    db.commit()
    assert trip.efficiency == 5.0


@pytest.mark.parametrize("field, literal", [
    ("fuelUsedLtr", "Infinity"),
    ("distanceKm", "NaN"),
    ("timeTakenHr", "-Infinity"),
])
def test_non_finite_measures_are_rejected(client, db, driver, vehicle, field, literal):
    body = json.dumps(trip_body(vehicle.id, **{field: "__raw__"})).replace('"__raw__"', literal)
    headers = {**auth_headers(driver), "Content-Type": "application/json"}

    resp = client.post(TRIPS, content=body, headers=headers)

    assert resp.status_code == 422
    assert resp.json()["error"]["details"][0]["field"] == field
    db.expire_all()
    assert db.query(Trip).count() == 0
    assert client.get(TRIPS, headers=auth_headers(driver)).status_code == 200


def test_update_rejects_non_finite_fuel(client, db, driver, vehicle):
    trip = make_trip(db, driver, vehicle, 100, 10)
    headers = {**auth_headers(driver), "Content-Type": "application/json"}

    resp = client.put(f"{TRIPS}/{trip.id}", content='{"fuelUsedLtr": Infinity}', headers=headers)

    assert resp.status_code == 422
    db.expire_all()
    assert db.query(Trip).filter(Trip.id == trip.id).one().fuelUsedLtr == 10


def test_update_rejects_blank_location(client, db, driver, vehicle):
    trip = make_trip(db, driver, vehicle, 100, 10)

    resp = client.put(f"{TRIPS}/{trip.id}", json={"endLocation": "   "}, headers=auth_headers(driver))

    assert resp.status_code == 422
    assert resp.json()["error"]["details"][0]["field"] == "endLocation"
