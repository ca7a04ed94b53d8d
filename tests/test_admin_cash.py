from fastapi.testclient import TestClient

import jobs
import main


def _today():
    return jobs.date_key(jobs.local_now())


# --------------------------- Health / config ---------------------------

def test_health(client):
    assert client.get("/").json() == {"message": "Workshop Manager API running"}
    assert client.get("/test").json()["connection_status"] == "Connected"


def test_database_not_configured(monkeypatch):
    monkeypatch.setattr(main, "db", None)
    client = TestClient(main.app)
    assert client.get("/api/drivers").status_code == 503
    assert client.get("/test").json()["connection_status"] == "Not Connected"


def test_workshop_config_defaults_and_update(client):
    assert client.get("/api/config/workshop").json()["name"] == "Taller"

    cfg = {"name": "Taller Hernandez", "phone": "4499876543", "lessor_company_name": "Arrendadora Hernandez SA"}
    assert client.put("/api/config/workshop", json=cfg).status_code == 200
    saved = client.get("/api/config/workshop").json()
    assert saved["name"] == "Taller Hernandez"
    assert saved["lessor_company_name"] == "Arrendadora Hernandez SA"


# --------------------------- Users / personnel ---------------------------

def test_user_emails_are_unique(client):
    assert client.post("/api/users", json={"name": "Luis", "email": "Luis@Taller.mx"}).status_code == 200
    assert client.post("/api/users", json={"name": "Luis 2", "email": "luis@taller.mx"}).status_code == 409
    assert client.get("/api/users", params={"q": "luis"}).json()[0]["email"] == "luis@taller.mx"


def test_technicians(client):
    tech_id = client.post("/api/technicians", json={"name": "Pedro", "specialty": "Frenos"}).json()["id"]
    assert client.patch(f"/api/technicians/{tech_id}", json={"commission_rate": 0.1}).status_code == 200
    assert client.patch(f"/api/technicians/{tech_id}", json={"commission_rate": 2}).status_code == 422

    assert client.post(f"/api/technicians/{tech_id}/archive").status_code == 200
    assert client.get("/api/technicians").json() == []
    assert client.get("/api/technicians", params={"include_archived": True}).json()[0]["commission_rate"] == 0.1


def test_administrative_staff(client):
    assert client.post("/api/administrative-staff", json={"name": "Rosa"}).status_code == 422
    staff_id = client.post("/api/administrative-staff", json={"name": "Rosa", "role_or_area": "Caja"}).json()["id"]
    assert client.patch(f"/api/administrative-staff/{staff_id}", json={"role_or_area": "Compras"}).status_code == 200
    assert client.get("/api/administrative-staff").json()[0]["role_or_area"] == "Compras"
    assert client.post("/api/administrative-staff/ffffffffffffffffffffffff/archive").status_code == 404


# --------------------------- Cash drawer ---------------------------

def test_cash_summary(client):
    today = _today()
    assert client.put(f"/api/cash/initial-balance/{today}", json={"amount": 500.0}).status_code == 200
    client.post("/api/cash/transactions", json={"type": "in", "amount": 100.0, "concept": "Venta varios"})
    client.post("/api/cash/transactions", json={"type": "out", "amount": 30.0, "concept": "Papeleria"})
    client.post("/api/cash/transactions", json={
        "type": "in", "amount": 999.0, "concept": "Otro dia", "date": "2020-01-01T10:00:00-06:00",
    })

    summary = client.get("/api/cash/summary", params={"day": today}).json()
    assert summary == {"day": today, "initial_balance": 500.0, "entries": 100.0, "exits": 30.0, "expected_cash": 570.0}
    assert client.get("/api/cash/summary").json()["expected_cash"] == 570.0
    assert len(client.get("/api/cash/transactions", params={"day": "2020-01-01"}).json()) == 1


def test_cash_rejects_bad_day(client):
    assert client.get("/api/cash/summary", params={"day": "17/10/2024"}).status_code == 400
    assert client.put("/api/cash/initial-balance/yesterday", json={"amount": 1}).status_code == 400


def test_delete_cash_transaction(client):
    tx_id = client.post("/api/cash/transactions", json={"type": "out", "amount": 50.0, "concept": "Gasolina"}).json()["id"]
    assert client.delete(f"/api/cash/transactions/{tx_id}").status_code == 200
    assert client.delete(f"/api/cash/transactions/{tx_id}").status_code == 404


# --------------------------- Billing ---------------------------

def test_ticket_lookup(client, fleet_vehicle):
    sale_id = client.post("/api/sales", json={
        "items": [{"item_name": "Lavado", "quantity": 1, "unit_price": 200.0, "is_service": True}],
        "payments": [{"method": "cash", "amount": 200.0}],
    }).json()["id"]
    vehicle_id = fleet_vehicle(is_fleet_vehicle=False)
    folio = client.post("/api/services", json={
        "vehicle_id": vehicle_id, "service_items": [{"name": "Alineacion", "price": 450.0}],
    }).json()["folio"]

    sale = client.get("/api/billing/ticket", params={"folio": sale_id, "total": 200}).json()
    assert sale["ticket_type"] == "sale"
    service = client.get("/api/billing/ticket", params={"folio": folio, "total": 450}).json()
    assert service["ticket_type"] == "service"

    wrong = client.get("/api/billing/ticket", params={"folio": folio, "total": 100})
    assert wrong.status_code == 404
    assert wrong.json()["detail"] == "Ticket total does not match"
    missing = client.get("/api/billing/ticket", params={"folio": "000000-0000", "total": 100})
    assert missing.json()["detail"] == "Ticket not found"


# --------------------------- Contracts ---------------------------

def test_lease_contract_pdf(client):
    client.put("/api/config/workshop", json={"name": "Taller", "lessor_company_name": "Arrendadora SA"})
    res = client.post("/api/contracts/lease", json={
        "contract_id": "C-001",
        "daily_rate": 300,
        "deposit": 2000,
        "lessee": {"name": "José Núñez"},
        "vehicle": {"make": "Nissan", "model": "Versa", "year": 2021, "plates": "ABC123"},
    })
    assert res.status_code == 200
    assert res.content.startswith(b"%PDF")
    assert 'filename="contract-C-001.pdf"' in res.headers["content-disposition"]


# --------------------------- Reports ---------------------------

def test_summary_report(client, fleet_vehicle, driver, inventory_item):
    fleet_vehicle()
    driver()
    inventory_item(quantity=1)
    client.post("/api/sales", json={
        "items": [{"item_name": "Lavado", "quantity": 1, "unit_price": 200.0, "is_service": True}],
        "payments": [{"method": "cash", "amount": 200.0}],
    })

    report = client.get("/api/reports/summary").json()
    assert report == {
        "active_services": 0,
        "quotations": 0,
        "daily_revenue": 200.0,
        "low_stock_alerts": 1,
        "active_drivers": 1,
        "fleet_vehicles": 1,
    }
