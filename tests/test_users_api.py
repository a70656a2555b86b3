from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from fleetapp.config import settings
from fleetapp.models import RoleName, User, VehicleAssignment
from fleetapp.services.assignment_service import assignment_service
from fleetapp.services.user_service import user_service
from fleetapp.utils.exceptions import ReferentialConflictException

from tests.conftest import PASSWORD, assign, auth_headers, make_trip

USERS = "/api/v1/users"


# ==================== AUTH ====================

def test_login_returns_bearer_token(client, driver):
    resp = client.post("/api/v1/auth/login", json={"email": driver.email, "password": PASSWORD})

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["tokenType"] == "Bearer"
    assert data["user"]["role"] == "driver"

    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {data['accessToken']}"})
    assert me.json()["data"]["id"] == driver.id


def test_login_with_wrong_password_is_401(client, driver):
    resp = client.post("/api/v1/auth/login", json={"email": driver.email, "password": "nope-nope"})
    assert resp.status_code == 401


def test_expired_token_is_401_token_expired(client, driver):
    token = jwt.encode(
        {"sub": str(driver.id), "type": "access",
         "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
        settings.SECRET_KEY, algorithm=settings.ALGORITHM,
    )
    resp = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "TOKEN_EXPIRED"


# ==================== USERS ====================

def test_admin_registers_user(client, admin):
    resp = client.post(USERS, json={
        "name": "New Driver", "role": "driver",
        "email": "new.driver@fleetco.com", "password": "pass1234",
    }, headers=auth_headers(admin))

    assert resp.status_code == 201
    assert resp.json()["data"]["role"] == "driver"


def test_duplicate_email_is_conflict(client, admin, driver):
    resp = client.post(USERS, json={
        "name": "Copy", "role": "driver", "email": driver.email, "password": "pass1234",
    }, headers=auth_headers(admin))

    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "CONFLICT"
    assert resp.json()["error"]["field"] == "email"


def test_short_password_is_validation_error(client, admin):
    resp = client.post(USERS, json={
        "name": "Shorty", "role": "driver", "email": "short@fleetco.com", "password": "123",
    }, headers=auth_headers(admin))
    assert resp.status_code == 422


def test_admin_lists_users_filtered_by_role(client, admin, manager, driver):
    resp = client.get(USERS, params={"role": "driver"}, headers=auth_headers(admin))

    assert resp.status_code == 200
    assert [u["id"] for u in resp.json()["data"]] == [driver.id]


def test_manager_and_driver_cannot_manage_users(client, manager, driver):
    assert client.get(USERS, headers=auth_headers(manager)).status_code == 403
    assert client.get(USERS, headers=auth_headers(driver)).status_code == 403


def test_admin_updates_user(client, admin, driver):
    resp = client.put(f"{USERS}/{driver.id}", json={"mobileNumber": "555-0100"}, headers=auth_headers(admin))

    assert resp.status_code == 200
    assert resp.json()["data"]["mobileNumber"] == "555-0100"


def test_admin_cannot_delete_self(client, admin):
    resp = client.delete(f"{USERS}/{admin.id}", headers=auth_headers(admin))

    assert resp.status_code == 403
    assert resp.json()["message"] == "You cannot delete your own account"


def test_delete_user_with_trips_is_referential_conflict(client, db, admin, driver, vehicle):
    make_trip(db, driver, vehicle, 100, 10)

    resp = client.delete(f"{USERS}/{driver.id}", headers=auth_headers(admin))

    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "REFERENTIAL_CONFLICT"
    db.expire_all()
    assert db.query(User).filter(User.id == driver.id).count() == 1


def test_delete_user_cascades_assignments(client, db, admin, driver, vehicle):
    assign(db, vehicle, driver)

    resp = client.delete(f"{USERS}/{driver.id}", headers=auth_headers(admin))

    assert resp.status_code == 200
    db.expire_all()
    assert db.query(User).filter(User.id == driver.id).count() == 0
    assert db.query(VehicleAssignment).count() == 0


def test_trip_logged_after_guard_check_still_blocks_user_delete(db, admin, driver, vehicle, monkeypatch):
    make_trip(db, driver, vehicle, 100, 10)
    # Guard saw zero trips; the foreign key has the final say.
    monkeypatch.setattr("fleetapp.services.user_service.enforce", lambda *args, **kwargs: None)

    with pytest.raises(ReferentialConflictException):
        user_service.delete_user(db, driver.id, admin)

    db.expire_all()
    assert db.query(User).filter(User.id == driver.id).count() == 1


def test_demoting_driver_drops_their_assignments(client, db, admin, driver, vehicle):
    assign(db, vehicle, driver)

    resp = client.put(f"{USERS}/{driver.id}", json={"role": "manager"}, headers=auth_headers(admin))

    assert resp.status_code == 200
    assert resp.json()["data"]["role"] == "manager"
    db.expire_all()
    assert db.query(VehicleAssignment).count() == 0
    assert assignment_service.list_assignments(db) == []


def test_renaming_driver_keeps_assignments(client, db, admin, driver, vehicle):
    assign(db, vehicle, driver)

    resp = client.put(f"{USERS}/{driver.id}", json={"name": "Dana D."}, headers=auth_headers(admin))

    assert resp.status_code == 200
    db.expire_all()
    assert db.query(VehicleAssignment).filter(VehicleAssignment.driverId == driver.id).count() == 1


def test_delete_missing_user_is_404(client, admin):
    assert client.delete(f"{USERS}/4040", headers=auth_headers(admin)).status_code == 404


def test_audit_log_records_actions(client, admin):
    client.post(USERS, json={
        "name": "Logged", "role": "manager", "email": "logged@fleetco.com", "password": "pass1234",
    }, headers=auth_headers(admin))

    resp = client.get("/api/v1/dashboard/audit-logs", headers=auth_headers(admin))

    assert resp.status_code == 200
    body = resp.json()
    assert body["meta"]["total"] == 1
    assert body["data"][0]["action"] == "CREATE"
    assert body["data"][0]["entityType"] == "User"


# ==================== SEED ====================

def test_default_admin_seeded_once(db):
    assert user_service.ensure_default_admin(db) is True
    assert user_service.ensure_default_admin(db) is False
    admins = db.query(User).filter(User.role == RoleName.ADMIN).all()
    assert [a.email for a in admins] == [settings.DEFAULT_ADMIN_EMAIL]
