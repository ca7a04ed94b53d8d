from datetime import timedelta

import jobs


def _assign(client, driver_id, vehicle_id):
    return client.post(f"/api/drivers/{driver_id}/assign-vehicle", json={"vehicle_id": vehicle_id})


# --------------------------- Vehicles ---------------------------

def test_license_plates_are_unique(client, fleet_vehicle):
    fleet_vehicle(plate="ABC123")
    res = client.post("/api/vehicles", json={"make": "VW", "model": "Jetta", "year": 2019, "license_plate": "abc123"})
    assert res.status_code == 409


def test_vehicle_search_and_patch(client, fleet_vehicle):
    fleet_id = fleet_vehicle(plate="FLT001")
    fleet_vehicle(plate="CUS001", is_fleet_vehicle=False, make="Ford")

    assert [v["license_plate"] for v in client.get("/api/vehicles", params={"fleet": True}).json()] == ["FLT001"]
    assert [v["make"] for v in client.get("/api/vehicles", params={"q": "for"}).json()] == ["Ford"]

    assert client.patch(f"/api/vehicles/{fleet_id}", json={"license_plate": "cus001"}).status_code == 409
    assert client.patch(f"/api/vehicles/{fleet_id}", json={}).status_code == 400
    assert client.patch(f"/api/vehicles/{fleet_id}", json={"color": "Rojo"}).status_code == 200
    assert client.get(f"/api/vehicles/{fleet_id}").json()["color"] == "Rojo"


def test_vehicle_catalog(client, mock_db):
    mock_db.vehicleData.insert_many([
        {"make": "Nissan", "models": ["Versa", "March"]},
        {"make": "Chevrolet", "models": ["Aveo"]},
    ])
    assert [m["make"] for m in client.get("/api/vehicle-data").json()] == ["Chevrolet", "Nissan"]
    assert client.get("/api/vehicle-data/nissan").json()["models"] == ["Versa", "March"]
    assert client.get("/api/vehicle-data/Tesla").status_code == 404


# --------------------------- Assignment ---------------------------

def test_assign_vehicle_conflicts(client, fleet_vehicle, driver):
    fleet_id = fleet_vehicle(plate="FLT001")
    customer_id = fleet_vehicle(plate="CUS001", is_fleet_vehicle=False)
    ana, beto = driver("Ana"), driver("Beto")

    assert _assign(client, ana, customer_id).status_code == 409
    assert _assign(client, ana, fleet_id).status_code == 200
    assert _assign(client, beto, fleet_id).status_code == 409
    # Reassigning to the same driver is a no-op
    assert _assign(client, ana, fleet_id).status_code == 200

    assert client.get(f"/api/vehicles/{fleet_id}").json()["assigned_driver_id"] == ana
    assert client.get(f"/api/drivers/{ana}").json()["assigned_vehicle_id"] == fleet_id


def test_reassign_releases_previous_vehicle(client, fleet_vehicle, driver):
    first, second = fleet_vehicle(plate="FLT001"), fleet_vehicle(plate="FLT002")
    ana = driver("Ana")
    _assign(client, ana, first)
    _assign(client, ana, second)

    assert client.get(f"/api/vehicles/{first}").json()["assigned_driver_id"] is None
    assert client.get(f"/api/vehicles/{second}").json()["assigned_driver_id"] == ana


def test_unassign_vehicle(client, fleet_vehicle, driver):
    fleet_id, ana = fleet_vehicle(), driver()
    _assign(client, ana, fleet_id)

    assert client.post(f"/api/drivers/{ana}/unassign-vehicle").status_code == 200
    assert client.get(f"/api/drivers/{ana}").json()["assigned_vehicle_id"] is None
    assert client.get(f"/api/vehicles/{fleet_id}").json()["assigned_driver_id"] is None


def test_archive_driver(client, fleet_vehicle, driver):
    fleet_id, ana = fleet_vehicle(), driver("Ana")
    driver("Beto")
    _assign(client, ana, fleet_id)

    assert client.post(f"/api/drivers/{ana}/archive").status_code == 200
    assert client.get(f"/api/vehicles/{fleet_id}").json()["assigned_driver_id"] is None
    assert _assign(client, ana, fleet_id).status_code == 409

    assert [d["name"] for d in client.get("/api/drivers").json()] == ["Beto"]
    assert len(client.get("/api/drivers", params={"include_archived": True}).json()) == 2
    assert client.get("/api/audit-logs", params={"entity_type": "driver"}).json()[0]["action"] == "archive"


# --------------------------- Rental billing ---------------------------

def test_rental_payment_and_balance(client, fleet_vehicle, driver):
    fleet_id, ana = fleet_vehicle(rate=300.0), driver("Ana")
    _assign(client, ana, fleet_id)

    summary = client.post("/api/jobs/daily-rental-charges").json()
    assert summary["created"] == 1

    res = client.post("/api/rental/payments", json={"driver_id": ana, "amount": 450.0, "mileage": 120500})
    assert res.status_code == 200
    assert res.json()["days_covered"] == 1.5
    assert client.get(f"/api/vehicles/{fleet_id}").json()["current_mileage"] == 120500

    balance = client.get(f"/api/drivers/{ana}/balance").json()
    assert balance == {"driver_id": ana, "total_charges": 300.0, "total_payments": 450.0, "balance": -150.0}

    cash = client.get("/api/cash/transactions").json()
    assert [(t["type"], t["amount"], t["related_type"]) for t in cash] == [("in", 450.0, "rental")]


def test_transfer_payment_skips_cash_drawer(client, fleet_vehicle, driver):
    fleet_id, ana = fleet_vehicle(), driver()
    _assign(client, ana, fleet_id)
    client.post("/api/rental/payments", json={"driver_id": ana, "amount": 300.0, "payment_method": "transfer"})

    assert client.get("/api/cash/transactions").json() == []
    payments = client.get("/api/rental/payments", params={"driver_id": ana}).json()
    assert payments[0]["payment_method"] == "transfer"
    assert payments[0]["vehicle_license_plate"] == "ABC123"


def test_delete_payment_removes_cash_entry(client, fleet_vehicle, driver):
    fleet_id, ana = fleet_vehicle(), driver()
    _assign(client, ana, fleet_id)
    payment_id = client.post("/api/rental/payments", json={"driver_id": ana, "amount": 300.0}).json()["id"]

    assert client.delete(f"/api/rental/payments/{payment_id}").status_code == 200
    assert client.get("/api/cash/transactions").json() == []
    assert client.delete(f"/api/rental/payments/{payment_id}").status_code == 404


def test_payment_requires_assigned_vehicle(client, driver):
    res = client.post("/api/rental/payments", json={"driver_id": driver(), "amount": 100.0})
    assert res.status_code == 400


def test_generate_missing_charges_endpoint(client, fleet_vehicle, driver):
    start = (jobs.local_now() - timedelta(days=2)).date().isoformat()
    fleet_id, ana = fleet_vehicle(rate=250.0), driver(contract_date=start)
    _assign(client, ana, fleet_id)

    url = f"/api/drivers/{ana}/charges/generate-missing"
    assert client.post(url).json() == {"created": 3}
    assert client.post(url).json() == {"created": 0}

    charges = client.get("/api/rental/charges", params={"driver_id": ana}).json()
    assert len(charges) == 3
    assert charges[-1]["id"] == f"{ana}_{start}"

    charge_id = charges[0]["id"]
    assert client.patch(f"/api/rental/charges/{charge_id}", json={"amount": 200.0}).status_code == 200
    assert client.get(f"/api/drivers/{ana}/balance").json()["total_charges"] == 700.0
    assert client.delete(f"/api/rental/charges/{charge_id}").status_code == 200
    assert client.delete(f"/api/rental/charges/{charge_id}").status_code == 404


def test_expenses_and_withdrawals(client, fleet_vehicle):
    fleet_id = fleet_vehicle()
    res = client.post("/api/rental/expenses", json={"vehicle_id": fleet_id, "description": "Llantas", "amount": 2400.0})
    assert res.status_code == 200
    expenses = client.get("/api/rental/expenses", params={"vehicle_id": fleet_id}).json()
    assert expenses[0]["vehicle_license_plate"] == "ABC123"

    client.post("/api/rental/withdrawals", json={"owner_name": "Dueno", "amount": 1000.0, "reason": "Retiro"})
    assert client.get("/api/rental/withdrawals").json()[0]["amount"] == 1000.0


# --------------------------- Contract ---------------------------

def test_driver_contract_pdf(client, fleet_vehicle, driver):
    fleet_id, ana = fleet_vehicle(), driver("Ana", contract_date="2024-02-01", deposit_amount=2000)
    assert client.get(f"/api/drivers/{ana}/contract").status_code == 400

    _assign(client, ana, fleet_id)
    res = client.get(f"/api/drivers/{ana}/contract")
    assert res.status_code == 200
    assert res.headers["content-type"] == "application/pdf"
    assert res.content.startswith(b"%PDF")


def test_unreadable_contract_date(client, fleet_vehicle, driver):
    fleet_id, ana = fleet_vehicle(), driver("Ana", contract_date="15/01/2024")
    _assign(client, ana, fleet_id)

    assert client.post(f"/api/drivers/{ana}/charges/generate-missing").status_code == 400
    assert client.get(f"/api/drivers/{ana}/contract").status_code == 400
    assert client.get("/api/rental/charges", params={"driver_id": ana}).json() == []
