import re
from crm_service.application.service import CustomerService
from crm_service.infrastructure.repositories import CustomerRepository

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}$")

def test_list_customers_empty(client):
    resp = client.get('/api/customers')
    assert resp.status_code == 200
    assert resp.json() == []

def test_create_normalizes_fields(client):
    resp = client.post('/api/customers', json={
        "firstname": " Ana ",
        "lastname": "Pérez",
        "email": " ANA@Example.COM ",
    })
    assert resp.status_code == 201
    body = resp.json()
    assert body["firstname"] == "Ana"
    assert body["lastname"] == "Pérez"
    assert body["fullName"] == "Ana Pérez"
    assert body["email"] == "ana@example.com"
    assert body["active"] is True
    assert body["phone"] is None
    assert body["address"] is None
    assert isinstance(body["id"], int)

def test_create_renders_audit_fields(client):
    resp = client.post('/api/customers', json={
        "firstname": "Juan", "lastname": "Perez", "email": "juan@email.com",
    })
    body = resp.json()
    assert DATE_RE.match(body["createdAt"])
    assert DATE_RE.match(body["updatedAt"])
    assert body["createdBy"] == "system"
    assert body["updatedBy"] == "system"

def test_create_uses_actor_header(client):
    resp = client.post(
        '/api/customers',
        json={"firstname": "Juan", "lastname": "Perez", "email": "juan@email.com"},
        headers={"X-User-ID": "admin"},
    )
    assert resp.json()["createdBy"] == "admin"
    assert resp.headers["X-Request-ID"]

def test_create_drops_blank_optional_fields(make_customer):
    body = make_customer(phone="   ", address="  ")
    assert body["phone"] is None
    assert body["address"] is None

def test_create_keeps_trimmed_optional_fields(make_customer):
    body = make_customer(phone=" +51987654321 ", address=" Av. Javier Prado 123 ")
    assert body["phone"] == "+51987654321"
    assert body["address"] == "Av. Javier Prado 123"

def test_create_duplicate_email_is_rejected(client, make_customer):
    make_customer(email=" ANA@Example.COM ")
    resp = client.post('/api/customers', json={
        "firstname": "Otra", "lastname": "Persona", "email": "ana@example.com  ",
    })
    assert resp.status_code == 400
    body = resp.json()
    assert "ana@example.com" in body["message"]
    assert body["status"] == 400
    assert body["path"] == "/api/customers"
    assert "timestamp" in body
    assert "details" not in body

def test_create_validation_errors(client):
    resp = client.post('/api/customers', json={"firstname": "A", "email": "not-an-email", "phone": "0123"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["message"] == "Validation failed"
    assert "firstname: Firstname must be between 2 and 50 characters" in body["details"]
    assert "lastname: Lastname is required" in body["details"]
    assert "email: Invalid email format" in body["details"]
    assert "phone: Invalid phone format" in body["details"]

def test_create_type_error_uses_error_body(client):
    resp = client.post('/api/customers', json={"firstname": 123, "lastname": "Perez", "email": "a@b.com"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["message"] == "Validation failed"
    assert any(d.startswith("firstname:") for d in body["details"])

def test_create_address_too_long(client):
    resp = client.post('/api/customers', json={
        "firstname": "Juan", "lastname": "Perez", "email": "juan@email.com", "address": "x" * 201,
    })
    assert resp.status_code == 400
    assert "address: Address must not exceed 200 characters" in resp.json()["details"]

def test_get_customer(client, make_customer):
    created = make_customer()
    resp = client.get(f'/api/customers/{created["id"]}')
    assert resp.status_code == 200
    assert resp.json()["email"] == "juan.perez@email.com"

def test_get_missing_customer_returns_404(client):
    resp = client.get('/api/customers/999')
    assert resp.status_code == 404
    body = resp.json()
    assert body["message"] == "Customer not found with id: 999"
    assert body["path"] == "/api/customers/999"

def test_update_merges_present_fields(client, make_customer):
    created = make_customer(phone="123456", address="Lima")
    resp = client.put(f'/api/customers/{created["id"]}', json={"lastname": " Garcia ", "email": " NEW@Email.com"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["firstname"] == "Juan"
    assert body["lastname"] == "Garcia"
    assert body["email"] == "new@email.com"
    assert body["phone"] == "123456"
    assert body["address"] == "Lima"
    assert body["createdAt"] == created["createdAt"]

def test_update_blank_phone_is_ignored(client, make_customer):
    created = make_customer(phone="123")
    resp = client.put(f'/api/customers/{created["id"]}', json={"phone": "   "})
    assert resp.status_code == 200
    assert resp.json()["phone"] == "123"

def test_update_is_idempotent(client, make_customer):
    created = make_customer()
    payload = {"firstname": "Carlos", "address": "Av. El Sol 456"}
    first = client.put(f'/api/customers/{created["id"]}', json=payload).json()
    second = client.put(f'/api/customers/{created["id"]}', json=payload).json()
    for key in ("firstname", "lastname", "email", "phone", "address", "active", "createdAt"):
        assert first[key] == second[key]

def test_update_email_taken_by_other_active_customer(client, make_customer):
    make_customer(email="taken@email.com")
    other = make_customer(email="other@email.com")
    resp = client.put(f'/api/customers/{other["id"]}', json={"email": "TAKEN@email.com"})
    assert resp.status_code == 400
    assert "taken@email.com" in resp.json()["message"]

def test_update_with_own_email_is_allowed(client, make_customer):
    created = make_customer(email="me@email.com")
    resp = client.put(f'/api/customers/{created["id"]}', json={"email": " ME@email.com "})
    assert resp.status_code == 200

def test_update_validation_error(client, make_customer):
    created = make_customer()
    resp = client.put(f'/api/customers/{created["id"]}', json={"email": "broken", "firstname": "X"})
    assert resp.status_code == 400
    details = resp.json()["details"]
    assert "email: Invalid email format" in details
    assert "firstname: Firstname must be between 2 and 50 characters" in details

def test_update_missing_customer_returns_404(client):
    resp = client.put('/api/customers/42', json={"firstname": "Carlos"})
    assert resp.status_code == 404

def test_soft_delete_hides_customer(client, make_customer):
    created = make_customer()
    resp = client.delete(f'/api/customers/{created["id"]}')
    assert resp.status_code == 204
    assert client.get(f'/api/customers/{created["id"]}').status_code == 404
    assert client.get('/api/customers').json() == []
    everyone = client.get('/api/customers', params={"includeInactive": "true"}).json()
    assert len(everyone) == 1
    assert everyone[0]["active"] is False
    assert everyone[0]["createdAt"] == created["createdAt"]

def test_delete_twice_returns_404(client, make_customer):
    created = make_customer()
    client.delete(f'/api/customers/{created["id"]}')
    assert client.delete(f'/api/customers/{created["id"]}').status_code == 404

def test_email_reusable_after_soft_delete(client, make_customer):
    created = make_customer(email="reuse@email.com")
    client.delete(f'/api/customers/{created["id"]}')
    resp = client.post('/api/customers', json={
        "firstname": "Nuevo", "lastname": "Cliente", "email": "Reuse@Email.com",
    })
    assert resp.status_code == 201
    assert resp.json()["id"] != created["id"]

def test_toggle_status_twice_restores(client, make_customer):
    created = make_customer()
    first = client.patch(f'/api/customers/{created["id"]}/toggle-status')
    assert first.status_code == 200
    assert first.json()["active"] is False
    second = client.patch(f'/api/customers/{created["id"]}/toggle-status')
    assert second.json()["active"] is True
    assert client.get(f'/api/customers/{created["id"]}').status_code == 200

def test_toggle_restores_soft_deleted_customer(client, make_customer):
    created = make_customer()
    client.delete(f'/api/customers/{created["id"]}')
    resp = client.patch(f'/api/customers/{created["id"]}/toggle-status')
    assert resp.status_code == 200
    assert resp.json()["active"] is True

def test_toggle_restore_conflicting_email_is_rejected(client, make_customer):
    old = make_customer(email="dup@email.com")
    client.delete(f'/api/customers/{old["id"]}')
    make_customer(email="dup@email.com")
    resp = client.patch(f'/api/customers/{old["id"]}/toggle-status')
    assert resp.status_code == 400
    assert "dup@email.com" in resp.json()["message"]

def test_toggle_missing_customer_returns_404(client):
    assert client.patch('/api/customers/7/toggle-status').status_code == 404

def test_exists_by_email(client, make_customer):
    make_customer(email="here@email.com")
    assert client.get('/api/customers/exists', params={"email": " HERE@email.com"}).json() == {"exists": True}
    assert client.get('/api/customers/exists', params={"email": "gone@email.com"}).json() == {"exists": False}

def test_exists_ignores_inactive(client, make_customer):
    created = make_customer(email="here@email.com")
    client.delete(f'/api/customers/{created["id"]}')
    assert client.get('/api/customers/exists', params={"email": "here@email.com"}).json() == {"exists": False}

def test_count_active(client, make_customer):
    make_customer(email="a1@email.com")
    second = make_customer(email="a2@email.com")
    client.delete(f'/api/customers/{second["id"]}')
    assert client.get('/api/customers/count').json() == {"count": 1}

def test_recent_returns_newest_first(client, make_customer):
    ids = [make_customer(email=f"r{i}@email.com")["id"] for i in range(3)]
    resp = client.get('/api/customers/recent', params={"limit": 2})
    assert [c["id"] for c in resp.json()] == [ids[2], ids[1]]

def test_with_phone_lists_only_valid_numbers(client, make_customer):
    with_phone = make_customer(email="p1@email.com", phone="+51987654321")
    make_customer(email="p2@email.com")
    resp = client.get('/api/customers/with-phone')
    assert [c["id"] for c in resp.json()] == [with_phone["id"]]

def test_paged_listing(client, make_customer):
    for i in range(5):
        make_customer(email=f"page{i}@email.com")
    resp = client.get('/api/customers/paged', params={"skip": 2, "limit": 2})
    body = resp.json()
    assert body["total"] == 5
    assert body["skip"] == 2
    assert body["limit"] == 2
    assert [c["email"] for c in body["items"]] == ["page2@email.com", "page3@email.com"]

def test_paged_listing_rejects_bad_limit(client):
    resp = client.get('/api/customers/paged', params={"limit": 0})
    assert resp.status_code == 400
    assert resp.json()["details"][0].startswith("limit:")

def test_search_matches_names_and_email(client, make_customer):
    make_customer(firstname="Maria", lastname="Lopez", email="maria@email.com")
    make_customer(firstname="Pedro", lastname="Marin", email="pedro@email.com")
    make_customer(firstname="Luis", lastname="Soto", email="luis@mar.com")
    make_customer(firstname="Ana", lastname="Diaz", email="ana@email.com")
    body = client.get('/api/customers/search', params={"q": "MAR"}).json()
    assert body["total"] == 3
    assert {c["firstname"] for c in body["items"]} == {"Maria", "Pedro", "Luis"}

def test_search_skips_inactive(client, make_customer):
    created = make_customer(firstname="Maria", email="maria@email.com")
    client.delete(f'/api/customers/{created["id"]}')
    assert client.get('/api/customers/search', params={"q": "maria"}).json()["total"] == 0

def test_search_treats_wildcards_literally(client, make_customer):
    make_customer(firstname="Maria", lastname="Lopez", email="maria.lopez@email.com")
    assert client.get('/api/customers/search', params={"q": "%"}).json()["total"] == 0
    assert client.get('/api/customers/search', params={"q": "a_l"}).json()["total"] == 0

    make_customer(firstname="Ana%Bel", lastname="Rios", email="anabel@email.com")
    make_customer(firstname="Luis", lastname="Soto", email="luis_soto@email.com")
    body = client.get('/api/customers/search', params={"q": "%"}).json()
    assert body["total"] == 1
    assert body["items"][0]["firstname"] == "Ana%Bel"
    body = client.get('/api/customers/search', params={"q": "s_s"}).json()
    assert [c["email"] for c in body["items"]] == ["luis_soto@email.com"]

def test_create_accepts_test_domain_email(client):
    resp = client.post('/api/customers', json={
        "firstname": "Juan", "lastname": "Perez", "email": "juan@shop.test",
    })
    assert resp.status_code == 201
    assert resp.json()["email"] == "juan@shop.test"

def test_storage_unique_index_maps_to_conflict(client, make_customer, monkeypatch):
    make_customer(email="race@email.com")
    # Simulate losing the check-then-insert race
    monkeypatch.setattr(CustomerRepository, "exists_active_email", lambda self, email, exclude_id=None: False)
    resp = client.post('/api/customers', json={
        "firstname": "Juan", "lastname": "Perez", "email": "race@email.com",
    })
    assert resp.status_code == 409
    body = resp.json()
    assert body["message"] == "Duplicate entry found"
    assert "UNIQUE" not in body["message"]

def test_update_email_race_maps_to_conflict(client, make_customer, monkeypatch):
    make_customer(email="taken@email.com")
    other = make_customer(firstname="Maria", email="maria@email.com")
    monkeypatch.setattr(CustomerRepository, "exists_active_email", lambda self, email, exclude_id=None: False)
    resp = client.put(f'/api/customers/{other["id"]}', json={"email": "taken@email.com"})
    assert resp.status_code == 409
    assert resp.json()["message"] == "Duplicate entry found"
    monkeypatch.undo()
    assert client.get(f'/api/customers/{other["id"]}').json()["email"] == "maria@email.com"

def test_toggle_restore_race_maps_to_conflict(client, make_customer, monkeypatch):
    old = make_customer(email="shared@email.com")
    client.delete(f'/api/customers/{old["id"]}')
    make_customer(firstname="Maria", email="shared@email.com")
    monkeypatch.setattr(CustomerRepository, "exists_active_email", lambda self, email, exclude_id=None: False)
    resp = client.patch(f'/api/customers/{old["id"]}/toggle-status')
    assert resp.status_code == 409
    assert resp.json()["message"] == "Duplicate entry found"
    monkeypatch.undo()
    assert client.get(f'/api/customers/{old["id"]}').status_code == 404

def test_unexpected_error_is_opaque(session_factory, monkeypatch):
    from fastapi.testclient import TestClient
    from crm_service.main import app
    from crm_service.infrastructure.db import get_db

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    def boom(self):
        raise RuntimeError("connection secret leaked")

    monkeypatch.setattr(CustomerService, "count_active", boom)
    app.dependency_overrides[get_db] = override_get_db
    try:
        resp = TestClient(app, raise_server_exceptions=False).get('/api/customers/count')
    finally:
        app.dependency_overrides.clear()
    assert resp.status_code == 500
    body = resp.json()
    assert body["message"] == "Internal server error"
    assert "secret" not in resp.text

def test_unknown_route_uses_error_body(client):
    resp = client.get('/api/nothing-here')
    assert resp.status_code == 404
    assert resp.json()["path"] == "/api/nothing-here"
