import pytest
from fastapi.testclient import TestClient

from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine
from backend.app.main import app
from backend.app.models.user import User


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def register_and_login(client: TestClient, email: str, password: str = "secret", admin: bool = False):
    client.post("/auth/register", json={"email": email, "password": password})
    if admin:
        db = SessionLocal()
        try:
            user = db.query(User).filter(User.email == email).first()
            user.is_admin = True
            db.commit()
        finally:
            db.close()
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200
    headers = {"Authorization": f"Bearer {resp.json()['access_token']}"}
    return headers, client.get("/auth/me", headers=headers).json()["id"]


def seed_overdue_invoice(client: TestClient):
    landlord, _ = register_and_login(client, "landlord@example.com")
    _, tenant_id = register_and_login(client, "tenant@example.com")
    property_id = client.post("/properties", json={"nickname": "House"}, headers=landlord).json()["id"]
    resp = client.post(
        "/invoices",
        json={
            "property_id": property_id,
            "type": "water",
            "total_amount": 2500,
            "due_date": "2020-01-01T00:00:00Z",
            "splits": [{"user_id": tenant_id, "amount_owed": 2500}],
        },
        headers=landlord,
    )
    assert resp.status_code == 201
    return landlord, property_id, tenant_id, resp.json()


def test_admin_routes_require_admin():
    client = TestClient(app)
    landlord, _, _, _ = seed_overdue_invoice(client)
    assert client.post("/admin/billing/run-recurring", headers=landlord).status_code == 403
    assert client.get("/admin/billing/invoices", headers=landlord).status_code == 403


def test_admin_runs_recurring_generation():
    client = TestClient(app)
    landlord, property_id, tenant_id, _ = seed_overdue_invoice(client)
    admin, _ = register_and_login(client, "admin@example.com", admin=True)
    client.post(
        "/recurring-invoices",
        json={
            "property_id": property_id,
            "type": "rent",
            "total_amount": 90000,
            "frequency": "weekly",
            "start_date": "2020-01-01T00:00:00Z",
            "splits": [{"user_id": tenant_id, "amount_owed": 90000}],
        },
        headers=landlord,
    )

    resp = client.post("/admin/billing/run-recurring", headers=admin)
    assert resp.status_code == 200
    assert resp.json() == {"generated": 1, "errors": 0, "retired": 0}

    invoices = client.get("/admin/billing/invoices", params={"property_id": property_id}, headers=admin).json()
    assert sorted(inv["type"] for inv in invoices) == ["rent", "water"]


def test_admin_sweep_and_void_overdue():
    client = TestClient(app)
    _, _, _, invoice = seed_overdue_invoice(client)
    admin, _ = register_and_login(client, "admin@example.com", admin=True)

    sweep = client.post("/admin/billing/sweep", headers=admin)
    assert sweep.status_code == 200
    assert sweep.json()["flagged"] == 0

    voided = client.post("/admin/billing/void-overdue", headers=admin)
    assert voided.json() == {"voided": 1}

    listed = client.get("/admin/billing/invoices", params={"status": "void"}, headers=admin).json()
    assert [inv["id"] for inv in listed] == [invoice["id"]]


def test_admin_invoice_list_filters_by_landlord():
    client = TestClient(app)
    landlord, _, _, invoice = seed_overdue_invoice(client)
    admin, _ = register_and_login(client, "admin@example.com", admin=True)
    landlord_id = client.get("/auth/me", headers=landlord).json()["id"]

    mine = client.get("/admin/billing/invoices", params={"landlord_id": landlord_id}, headers=admin).json()
    assert [inv["id"] for inv in mine] == [invoice["id"]]
    none = client.get("/admin/billing/invoices", params={"landlord_id": 9999}, headers=admin).json()
    assert none == []
