"""
HTTP surface: login/signup/logout, guard responses and branch-scoped records.
"""
import time

from app.config import settings
from app.services.auth_backend import (
    BRANCHES_TABLE,
    EMPLOYEES_TABLE,
    INVENTORY_TABLE,
    SALES_TABLE,
    BackendError,
)


def _login(client, backend, email="owner@example.com", role=None, branch_id=None):
    user = backend.add_account(email)
    if role:
        backend.add_profile(user.id, role=role, branch_id=branch_id)
    response = client.post("/api/auth/login", json={"email": email, "password": "secret123"})
    assert response.status_code == 200, response.text
    return user, response.json()


def _employee(first_name, branch_id, **extra):
    row = {
        "id": f"emp-{first_name.lower()}",
        "first_name": first_name,
        "last_name": "Doe",
        "email": f"{first_name.lower()}@example.com",
        "position": "Clerk",
        "salary": 42000,
        "branch_id": branch_id,
        "created_at": "2024-01-01T00:00:00+00:00",
    }
    row.update(extra)
    return row


def _item(item_id, name, quantity, branch_id, description=""):
    return {
        "id": item_id,
        "name": name,
        "description": description,
        "quantity": quantity,
        "price": 9.99,
        "reorder_point": 5,
        "branch_id": branch_id,
        "created_at": "2024-01-01T00:00:00+00:00",
    }


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_signed_out_state_and_protected_route(client):
    state = client.get("/api/auth/state").json()
    assert state["loading"] is False
    assert state["user"] is None
    assert state["guard"] == "redirect_login"
    assert state["navigation"] == []

    response = client.get("/api/branches/")
    assert response.status_code == 401
    assert response.json()["detail"]["redirect_to"] == "/login"


def test_session_cookie_is_set(client):
    response = client.get("/api/auth/state")
    assert "branchdesk_session" in response.cookies


def test_login_resolves_profile(client, backend):
    user, state = _login(client, backend)

    assert state["user"]["id"] == user.id
    assert state["profile"]["role"] == "admin"
    assert state["is_admin"] is True
    assert state["guard"] == "allow"
    assert "/branches" in [item["path"] for item in state["navigation"]]


def test_bad_credentials(client, backend):
    backend.add_account("owner@example.com")

    response = client.post("/api/auth/login", json={"email": "owner@example.com", "password": "wrong-password"})

    assert response.status_code == 401
    assert client.get("/api/auth/state").json()["guard"] == "redirect_login"


def test_login_validates_payload(client):
    response = client.post("/api/auth/login", json={"email": "not-an-email", "password": "x"})
    assert response.status_code == 422


def test_signup_with_pending_verification(client, backend):
    backend.require_email_confirmation = True

    response = client.post("/api/auth/signup", json={"email": "new@example.com", "password": "secret123"})

    assert response.status_code == 201
    body = response.json()
    assert body["session_active"] is False
    assert "confirm" in body["message"]
    assert client.get("/api/auth/state").json()["guard"] == "redirect_login"


def test_signup_signs_in_and_creates_profile(client, backend):
    response = client.post("/api/auth/signup", json={"email": "new@example.com", "password": "secret123"})

    assert response.status_code == 201
    assert response.json()["session_active"] is True
    state = client.get("/api/auth/state").json()
    assert state["profile"]["role"] == "admin"


def test_duplicate_signup_is_rejected(client, backend):
    backend.add_account("taken@example.com")
    response = client.post("/api/auth/signup", json={"email": "taken@example.com", "password": "secret123"})
    assert response.status_code == 400


def test_branch_manager_sees_only_own_branch(client, backend):
    backend.tables[EMPLOYEES_TABLE].extend([_employee("Ann", "NYC01"), _employee("Bob", "LA02")])
    _, state = _login(client, backend, role="branch_manager", branch_id="NYC01")

    assert state["is_branch_manager"] is True
    assert "/branches" not in [item["path"] for item in state["navigation"]]

    employees = client.get("/api/employees/", params={"branch_id": "LA02"}).json()
    assert [e["first_name"] for e in employees] == ["Ann"]


def test_branch_manager_writes_are_forced_to_own_branch(client, backend):
    _login(client, backend, role="branch_manager", branch_id="NYC01")

    response = client.post("/api/employees/", json={
        "first_name": "Cara",
        "last_name": "Lee",
        "email": "cara@example.com",
        "position": "Cashier",
        "salary": 30000,
        "branch_id": "LA02",
    })

    assert response.status_code == 201
    assert response.json()["branch_id"] == "NYC01"


def test_admin_can_filter_by_branch(client, backend):
    backend.tables[EMPLOYEES_TABLE].extend([_employee("Ann", "NYC01"), _employee("Bob", "LA02")])
    _login(client, backend, role="admin")

    assert len(client.get("/api/employees/").json()) == 2
    employees = client.get("/api/employees/", params={"branch_id": "LA02"}).json()
    assert [e["first_name"] for e in employees] == ["Bob"]


def test_manager_without_branch_is_forbidden(client, backend):
    _login(client, backend, role="branch_manager", branch_id=None)
    assert client.get("/api/employees/").status_code == 403


def test_inventory_low_stock_and_search(client, backend):
    backend.tables[BRANCHES_TABLE].append({"id": "b-1", "name": "Downtown", "branch_code": "NYC01"})
    backend.tables[INVENTORY_TABLE].extend([
        _item("i-1", "Printer paper", 3, "NYC01", description="A4, 500 sheets"),
        _item("i-2", "Stapler", 50, "NYC01"),
        _item("i-3", "Toner", 1, "ZZ99"),
    ])
    _login(client, backend, role="admin")

    items = {item["id"]: item for item in client.get("/api/inventory/").json()}
    assert items["i-1"]["low_stock"] is True
    assert items["i-2"]["low_stock"] is False
    assert items["i-1"]["branch_name"] == "Downtown"
    assert items["i-3"]["branch_name"] == "Unknown Branch"

    low = client.get("/api/inventory/", params={"stock": "low"}).json()
    assert sorted(item["id"] for item in low) == ["i-1", "i-3"]

    found = client.get("/api/inventory/", params={"q": "SHEETS"}).json()
    assert [item["id"] for item in found] == ["i-1"]

    assert client.get("/api/inventory/", params={"stock": "some"}).status_code == 422


def test_branch_crud_with_manager_name(client, backend):
    backend.tables[EMPLOYEES_TABLE].append(_employee("Jane", "NYC01"))
    _login(client, backend, role="admin")

    created = client.post("/api/branches/", json={
        "name": "Downtown",
        "address": "1 Main St",
        "phone": "555-0100",
        "manager_id": "emp-jane",
        "branch_code": "NYC01",
    })
    assert created.status_code == 201
    branch_id = created.json()["id"]

    branches = client.get("/api/branches/").json()
    assert branches[0]["manager_name"] == "Jane Doe"

    updated = client.put(f"/api/branches/{branch_id}", json={"phone": "555-0199"})
    assert updated.status_code == 200
    assert updated.json()["phone"] == "555-0199"

    assert client.put(f"/api/branches/{branch_id}", json={}).status_code == 400
    assert client.put("/api/branches/missing", json={"phone": "1"}).status_code == 404

    assert client.delete(f"/api/branches/{branch_id}").status_code == 204
    assert client.get("/api/branches/").json() == []


def test_backend_failure_maps_to_bad_gateway(client, backend):
    _login(client, backend, role="admin")
    backend.fail("select", BackendError("42501", "permission denied for table branches"))

    response = client.get("/api/branches/")

    assert response.status_code == 502
    assert "permission denied" in response.json()["detail"]


def test_sales_and_dashboard_are_scoped(client, backend):
    backend.tables[BRANCHES_TABLE].extend([
        {"id": "b-1", "name": "Downtown", "branch_code": "NYC01"},
        {"id": "b-2", "name": "Harbor", "branch_code": "LA02"},
    ])
    backend.tables[EMPLOYEES_TABLE].extend([_employee("Ann", "NYC01"), _employee("Bob", "LA02")])
    backend.tables[INVENTORY_TABLE].extend([_item("i-1", "Paper", 3, "NYC01"), _item("i-2", "Pens", 80, "LA02")])
    backend.tables[SALES_TABLE].append({
        "id": "s-0", "item_id": "i-2", "quantity": 1, "total_amount": 100.0, "branch_id": "LA02",
        "created_at": "2024-01-01T00:00:00+00:00",
    })
    _login(client, backend, role="branch_manager", branch_id="NYC01")

    sale = client.post("/api/sales", json={"item_id": "i-1", "quantity": 2, "total_amount": 19.98, "branch_id": "LA02"})
    assert sale.status_code == 201
    assert sale.json()["branch_id"] == "NYC01"

    assert [s["id"] for s in client.get("/api/sales").json()] == [sale.json()["id"]]

    summary = client.get("/api/dashboard").json()
    assert summary == {
        "total_sales": 19.98,
        "employees": 1,
        "inventory_items": 1,
        "branches": 1,
        "low_stock_items": 1,
        "branch_id": "NYC01",
    }


def test_profile_missing_then_reload(client, backend):
    backend.fail("select_one", BackendError("XX000", "internal server error"))
    _, state = _login(client, backend)

    assert state["guard"] == "profile_missing"
    assert state["user"] is not None

    response = client.get("/api/employees/")
    assert response.status_code == 409
    assert response.json()["detail"]["action"] == "/api/auth/reload"

    reloaded = client.post("/api/auth/reload").json()
    assert reloaded["guard"] == "allow"
    assert client.get("/api/employees/").status_code == 200


def test_logout_redirects_to_login(client, backend):
    _login(client, backend, role="admin")

    state = client.post("/api/auth/logout").json()

    assert state["user"] is None
    assert state["loading"] is False
    assert state["redirect_to"] == "/login"
    assert client.get("/api/employees/").status_code == 401
    # redirect hint is delivered once
    assert client.get("/api/auth/state").json()["redirect_to"] is None


def test_notifications_are_drained(client, backend):
    _login(client, backend, role="admin")

    toasts = client.get("/api/auth/notifications").json()
    assert [t["title"] for t in toasts] == ["Welcome back!"]
    assert client.get("/api/auth/notifications").json() == []


def test_first_request_and_reload_answer_within_timeout(client, backend, monkeypatch):
    monkeypatch.setattr(settings, "AUTH_RESOLUTION_TIMEOUT_SECONDS", 0.1)
    backend.hang_get_session = True

    started = time.monotonic()
    state = client.get("/api/auth/state").json()
    assert time.monotonic() - started < 2
    assert state["loading"] is False
    assert "Timed out" in state["error"]

    started = time.monotonic()
    reloaded = client.post("/api/auth/reload").json()
    assert time.monotonic() - started < 2
    assert reloaded["loading"] is False
    assert "Timed out" in reloaded["error"]


def test_protected_route_while_loading_offers_reload(client, backend, monkeypatch):
    # browser session (and its 5s watchdog) exists before the shorter waits below
    client.get("/api/auth/state")
    monkeypatch.setattr(settings, "AUTH_RESOLUTION_TIMEOUT_SECONDS", 0.05)
    monkeypatch.setattr(settings, "GUARD_SETTLE_SECONDS", 0.05)
    user = backend.add_account("slow@example.com")
    backend.gate_profile(user.id)

    login = client.post("/api/auth/login", json={"email": "slow@example.com", "password": "secret123"})
    assert login.json()["guard"] == "loading"

    response = client.get("/api/employees/")

    assert response.status_code == 503
    assert response.headers["Retry-After"] == "1"
    assert response.json()["detail"]["action"] == "/api/auth/reload"
