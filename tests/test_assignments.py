import pytest

from fleetapp.models import Trip, VehicleAssignment
from fleetapp.services.assignment_service import assignment_service
from fleetapp.utils.exceptions import ConflictException, NotFoundException

from tests.conftest import assign, auth_headers, make_trip, make_vehicle


# ==================== SERVICE ====================

def test_assign_creates_pair(db, admin, driver, vehicle):
    data = assignment_service.assign(db, vehicle.id, driver.id, admin.id)

    assert data["vehicle"]["vehicleNumber"] == "TRK-001"
    assert data["driver"]["id"] == driver.id
    assert db.query(VehicleAssignment).count() == 1


def test_assign_same_pair_twice_is_conflict(db, admin, driver, vehicle):
    assignment_service.assign(db, vehicle.id, driver.id, admin.id)

    with pytest.raises(ConflictException):
        assignment_service.assign(db, vehicle.id, driver.id, admin.id)
    assert db.query(VehicleAssignment).count() == 1


def test_vehicle_may_have_several_drivers(db, admin, driver, other_driver, vehicle):
    assignment_service.assign(db, vehicle.id, driver.id, admin.id)
    assignment_service.assign(db, vehicle.id, other_driver.id, admin.id)

    assert assignment_service.driver_ids_for_vehicle(db, vehicle.id) == frozenset({driver.id, other_driver.id})


def test_assign_to_non_driver_is_not_found(db, admin, manager, vehicle):
    with pytest.raises(NotFoundException) as exc:
        assignment_service.assign(db, vehicle.id, manager.id, admin.id)
    assert exc.value.message == "Driver not found"


def test_assign_missing_vehicle_is_not_found(db, admin, driver):
    with pytest.raises(NotFoundException) as exc:
        assignment_service.assign(db, 999, driver.id, admin.id)
    assert exc.value.message == "Vehicle not found"


def test_unassign_twice_is_not_found(db, admin, driver, vehicle):
    assign(db, vehicle, driver)

    assignment_service.unassign(db, vehicle.id, driver.id, admin.id)
    with pytest.raises(NotFoundException):
        assignment_service.unassign(db, vehicle.id, driver.id, admin.id)


def test_unassign_leaves_trips_untouched(db, admin, driver, vehicle):
    assign(db, vehicle, driver)
    trip = make_trip(db, driver, vehicle, 120, 10)

    assignment_service.unassign(db, vehicle.id, driver.id, admin.id)

    db.expire_all()
    stored = db.query(Trip).filter(Trip.id == trip.id).one()
    assert stored.driverId == driver.id
    assert stored.efficiency == 12.0


def test_list_assignments_groups_by_vehicle_with_pair_stats(db, driver, other_driver, vehicle):
    second = make_vehicle(db, "VAN-002", model="Transit")
    assign(db, vehicle, driver)
    assign(db, vehicle, other_driver)
    assign(db, second, driver)
    make_trip(db, driver, vehicle, 100, 10)
    make_trip(db, driver, vehicle, 50, 2)
    make_trip(db, other_driver, second, 80, 8)   # not an assigned pair

    data = assignment_service.list_assignments(db)

    assert [v["vehicleNumber"] for v in data] == ["TRK-001", "VAN-002"]
    trk_drivers = {d["driverId"]: d for d in data[0]["drivers"]}
    assert trk_drivers[driver.id]["tripCount"] == 2
    assert trk_drivers[driver.id]["avgEfficiency"] == 17.5
    assert trk_drivers[other_driver.id]["tripCount"] == 0
    assert trk_drivers[other_driver.id]["avgEfficiency"] is None
    assert data[1]["drivers"][0]["tripCount"] == 0


def test_assigned_vehicles_for_driver(db, driver, other_driver, vehicle):
    make_vehicle(db, "VAN-002")
    assign(db, vehicle, driver)

    assert [v["vehicleNumber"] for v in assignment_service.assigned_vehicles(db, driver.id)] == ["TRK-001"]
    assert assignment_service.assigned_vehicles(db, other_driver.id) == []


# ==================== API ====================

def test_manager_assigns_over_api(client, manager, driver, vehicle):
    resp = client.post(
        "/api/v1/vehicles/assignments",
        json={"vehicleId": vehicle.id, "driverId": driver.id},
        headers=auth_headers(manager),
    )
    assert resp.status_code == 201
    assert resp.json()["data"]["driver"]["id"] == driver.id


def test_duplicate_assignment_over_api_is_409(client, db, manager, driver, vehicle):
    assign(db, vehicle, driver)
    resp = client.post(
        "/api/v1/vehicles/assignments",
        json={"vehicleId": vehicle.id, "driverId": driver.id},
        headers=auth_headers(manager),
    )
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "CONFLICT"


def test_driver_cannot_assign(client, driver, vehicle):
    resp = client.post(
        "/api/v1/vehicles/assignments",
        json={"vehicleId": vehicle.id, "driverId": driver.id},
        headers=auth_headers(driver),
    )
    assert resp.status_code == 403


def test_unassign_over_api(client, db, manager, driver, vehicle):
    assign(db, vehicle, driver)
    url = f"/api/v1/vehicles/assignments/{vehicle.id}/{driver.id}"

    assert client.delete(url, headers=auth_headers(manager)).status_code == 200
    assert client.delete(url, headers=auth_headers(manager)).status_code == 404


def test_driver_sees_assigned_vehicles(client, db, driver, vehicle):
    assign(db, vehicle, driver)
    resp = client.get("/api/v1/vehicles/assigned", headers=auth_headers(driver))

    assert resp.status_code == 200
    assert [v["id"] for v in resp.json()["data"]] == [vehicle.id]
