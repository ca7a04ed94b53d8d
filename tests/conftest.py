import mongomock
import pytest
from fastapi.testclient import TestClient

import database
import main


@pytest.fixture
def mock_db(monkeypatch):
    db = mongomock.MongoClient().workshop
    monkeypatch.setattr(database, "db", db)
    monkeypatch.setattr(main, "db", db)
    return db


@pytest.fixture
def client(mock_db):
    return TestClient(main.app)


@pytest.fixture
def fleet_vehicle(client):
    def make(plate="ABC123", rate=300.0, **extra):
        body = {"make": "Nissan", "model": "Versa", "year": 2021, "license_plate": plate,
                "is_fleet_vehicle": True, "daily_rental_cost": rate}
        body.update(extra)
        res = client.post("/api/vehicles", json=body)
        assert res.status_code == 200, res.text
        return res.json()["id"]
    return make


@pytest.fixture
def driver(client):
    def make(name="Juan Perez", **extra):
        res = client.post("/api/drivers", json={"name": name, **extra})
        assert res.status_code == 200, res.text
        return res.json()["id"]
    return make


@pytest.fixture
def inventory_item(client):
    def make(sku="OIL-5W30", quantity=10, **extra):
        body = {"name": "Aceite 5W30", "sku": sku, "quantity": quantity,
                "unit_price": 80.0, "selling_price": 150.0, "low_stock_threshold": 2}
        body.update(extra)
        res = client.post("/api/inventory", json=body)
        assert res.status_code == 200, res.text
        return res.json()["id"]
    return make
