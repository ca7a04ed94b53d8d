import os
import re
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from fastapi import FastAPI, HTTPException, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

import jobs
from contracts import ContractParty, ContractVehicle, LeaseContract, render_lease_pdf
from database import (
    db, create_document, get_documents,
    ADMINISTRATIVE_STAFF, AUDIT_LOGS, CASH_TRANSACTIONS, CONFIG, DAILY_RENTAL_CHARGES,
    DRIVERS, INITIAL_CASH_BALANCES, INVENTORY, INVENTORY_MOVEMENTS, OWNER_WITHDRAWALS,
    PAYABLE_ACCOUNTS, PUBLIC_QUOTES, PUBLIC_SERVICES, PURCHASES, RENTAL_PAYMENTS, SALES,
    SERVICE_RECORDS, SUPPLIERS, TECHNICIANS, USERS, VEHICLE_DATA, VEHICLE_EXPENSES, VEHICLES,
)
from schemas import (
    WorkshopConfig, User, AuditLog,
    Vehicle, Driver, RentalPayment, VehicleExpense, OwnerWithdrawal,
    ServiceRecord, Payment, PaymentMethod,
    InventoryItem, Supplier, Purchase, PayableAccount, InventoryMovement,
    SaleReceipt, Technician, AdministrativeStaff, CashDrawerTransaction,
)

app = FastAPI(title="Workshop Manager Backend", version="0.2.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

IVA_RATE = float(os.getenv("IVA_RATE", "0.16"))
WORKSHOP_CONFIG_ID = "workshop"

# --------------------------- Utilities ---------------------------

def get_db():
    if db is None:
        raise HTTPException(status_code=503, detail="Database not configured")
    return db


def col(name: str):
    return get_db()[name]


def oid(id_str: str):
    try:
        return ObjectId(id_str)
    except Exception:
        raise HTTPException(status_code=400, detail="Invalid ID format")


def with_id(doc):
    if not doc:
        return doc
    doc["id"] = str(doc.pop("_id"))
    return doc


def get_or_404(collection: str, id_str: str, label: str):
    doc = col(collection).find_one({"_id": oid(id_str)})
    if not doc:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return doc


def apply_update(collection: str, id_str: str, body: BaseModel, label: str):
    update = {k: v for k, v in body.model_dump().items() if v is not None}
    if not update:
        raise HTTPException(status_code=400, detail="Nothing to update")
    update["updated_at"] = datetime.now(timezone.utc)
    res = col(collection).update_one({"_id": oid(id_str)}, {"$set": update})
    if res.matched_count == 0:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return {"success": True}


def search_filter(q: Optional[str], fields: List[str]) -> Dict[str, Any]:
    if not q:
        return {}
    pattern = re.escape(q)
    return {"$or": [{f: {"$regex": pattern, "$options": "i"}} for f in fields]}


def money(value) -> float:
    return round(float(value or 0), 2)


def now_iso() -> str:
    return jobs.local_now().isoformat()


def today_key() -> str:
    return jobs.date_key(jobs.local_now())


def log_audit(action: str, description: str, entity_type: Optional[str] = None,
              entity_id: Optional[str] = None, user_name: str = "system"):
    entry = AuditLog(action=action, description=description, entity_type=entity_type,
                     entity_id=entity_id, user_name=user_name)
    create_document(AUDIT_LOGS, entry)


def record_cash(tx_type: str, amount: float, concept: str, related_type: str,
                related_id: Optional[str], user_name: str = "system") -> str:
    tx = CashDrawerTransaction(
        type=tx_type, amount=money(amount), concept=concept, user_name=user_name,
        related_type=related_type, related_id=related_id, date=now_iso(),
    )
    return create_document(CASH_TRANSACTIONS, tx)


def record_movement(item: Dict[str, Any], movement_type: str, quantity_changed: float,
                    related_id: Optional[str] = None, reason: Optional[str] = None):
    move = InventoryMovement(
        item_id=str(item["_id"]), item_name=item.get("name"), movement_type=movement_type,
        quantity_changed=quantity_changed, related_id=related_id, reason=reason,
    )
    create_document(INVENTORY_MOVEMENTS, move)


def _validate_payments(payments: List[Payment], total_due: float) -> float:
    # Card vouchers and transfers must be traceable
    for p in payments:
        if p.method in ("card", "transfer") and not p.folio:
            raise HTTPException(status_code=400, detail=f"Folio required for {p.method} payments")
        if p.amount <= 0:
            raise HTTPException(status_code=400, detail="Payment amount must be positive")
    paid_sum = round(sum(p.amount for p in payments), 2)
    if paid_sum < round(total_due, 2):
        raise HTTPException(status_code=400, detail="Insufficient payment amount")
    return paid_sum


# --------------------------- Health ---------------------------
@app.get("/")
def read_root():
    return {"message": "Workshop Manager API running"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": None,
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": []
    }
    try:
        if db is not None:
            response["database"] = "✅ Available"
            response["database_url"] = "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set"
            response["database_name"] = db.name
            response["connection_status"] = "Connected"
            response["collections"] = db.list_collection_names()[:20]
        else:
            response["database"] = "❌ Not initialized"
    except Exception as e:
        response["database"] = f"❌ Error: {str(e)[:80]}"
    return response


# --------------------------- Workshop config ---------------------------

def load_workshop_config() -> WorkshopConfig:
    doc = col(CONFIG).find_one({"_id": WORKSHOP_CONFIG_ID}) or {}
    doc.pop("_id", None)
    return WorkshopConfig(**doc)


@app.get("/api/config/workshop")
def get_workshop_config():
    return load_workshop_config().model_dump()


@app.put("/api/config/workshop")
def save_workshop_config(cfg: WorkshopConfig):
    doc = cfg.model_dump()
    doc["updated_at"] = datetime.now(timezone.utc)
    col(CONFIG).update_one({"_id": WORKSHOP_CONFIG_ID}, {"$set": doc}, upsert=True)
    return cfg.model_dump()


# --------------------------- Admin / Users ---------------------------
@app.post("/api/users")
def create_user(u: User):
    email = u.email.strip().lower()
    if get_documents(USERS, {"email": email}, limit=1):
        raise HTTPException(status_code=409, detail="Email already registered")
    _id = create_document(USERS, u.model_copy(update={"email": email}))
    return {"id": _id}


@app.get("/api/users")
def list_users(q: Optional[str] = None):
    docs = list(col(USERS).find(search_filter(q, ["name", "email", "role"])).limit(100))
    return [with_id(u) for u in docs]


@app.get("/api/audit-logs")
def list_audit_logs(entity_type: Optional[str] = None):
    filt = {"entity_type": entity_type} if entity_type else {}
    docs = list(col(AUDIT_LOGS).find(filt).sort("_id", -1).limit(200))
    return [with_id(d) for d in docs]


# --------------------------- Vehicles ---------------------------
class VehicleUpdate(BaseModel):
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    license_plate: Optional[str] = None
    vin: Optional[str] = None
    color: Optional[str] = None
    owner_name: Optional[str] = None
    owner_phone: Optional[str] = None
    owner_email: Optional[str] = None
    notes: Optional[str] = None
    is_fleet_vehicle: Optional[bool] = None
    daily_rental_cost: Optional[float] = Field(None, ge=0)
    current_mileage: Optional[int] = None


@app.post("/api/vehicles")
def register_vehicle(v: Vehicle):
    plate = v.license_plate.strip().upper()
    if col(VEHICLES).find_one({"license_plate": plate}):
        raise HTTPException(status_code=409, detail="License plate already registered")
    vehicle = v.model_copy(update={"license_plate": plate, "assigned_driver_id": None})
    _id = create_document(VEHICLES, vehicle)
    return {"id": _id}


@app.get("/api/vehicles")
def search_vehicles(q: Optional[str] = None, fleet: Optional[bool] = None):
    filt = search_filter(q, ["license_plate", "make", "model", "owner_name", "vin"])
    if fleet is not None:
        filt["is_fleet_vehicle"] = fleet
    docs = list(col(VEHICLES).find(filt).limit(200))
    return [with_id(d) for d in docs]


@app.get("/api/vehicles/{vehicle_id}")
def get_vehicle(vehicle_id: str):
    vehicle = with_id(get_or_404(VEHICLES, vehicle_id, "Vehicle"))
    history = col(SERVICE_RECORDS).find(
        {"vehicle_id": vehicle_id},
        {"folio": 1, "service_date": 1, "description": 1, "total_cost": 1, "status": 1, "mileage": 1},
    ).sort("_id", -1)
    vehicle["service_history"] = [with_id(s) for s in history]
    return vehicle


@app.patch("/api/vehicles/{vehicle_id}")
def update_vehicle(vehicle_id: str, body: VehicleUpdate):
    if body.license_plate:
        plate = body.license_plate.strip().upper()
        clash = col(VEHICLES).find_one({"license_plate": plate, "_id": {"$ne": oid(vehicle_id)}})
        if clash:
            raise HTTPException(status_code=409, detail="License plate already registered")
        body = body.model_copy(update={"license_plate": plate})
    return apply_update(VEHICLES, vehicle_id, body, "Vehicle")


def update_vehicle_last_service(vehicle_id: Optional[str], service_date: Optional[str]):
    if not vehicle_id or not service_date:
        return
    vehicle = jobs.find_by_id(col(VEHICLES), vehicle_id)
    if vehicle is None:
        return
    # ISO strings compare chronologically
    if not vehicle.get("last_service_date") or service_date > vehicle["last_service_date"]:
        col(VEHICLES).update_one({"_id": vehicle["_id"]}, {"$set": {"last_service_date": service_date}})


@app.get("/api/vehicle-data")
def list_vehicle_catalog():
    docs = col(VEHICLE_DATA).find({}, {"_id": 0}).sort("make", 1)
    return list(docs)


@app.get("/api/vehicle-data/{make}")
def get_vehicle_catalog_make(make: str):
    doc = col(VEHICLE_DATA).find_one({"make": {"$regex": f"^{re.escape(make)}$", "$options": "i"}}, {"_id": 0})
    if not doc:
        raise HTTPException(status_code=404, detail="Make not found in catalog")
    return doc


# --------------------------- Drivers (fleet) ---------------------------
class DriverUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    contract_date: Optional[str] = None
    deposit_amount: Optional[float] = None


class AssignVehicle(BaseModel):
    vehicle_id: str


@app.post("/api/drivers")
def create_driver(d: Driver):
    driver = d.model_copy(update={"assigned_vehicle_id": None, "is_archived": False})
    _id = create_document(DRIVERS, driver)
    return {"id": _id}


@app.get("/api/drivers")
def list_drivers(include_archived: bool = Query(False)):
    filt = {} if include_archived else {"is_archived": {"$ne": True}}
    docs = list(col(DRIVERS).find(filt).sort("name", 1))
    return [with_id(d) for d in docs]


@app.get("/api/drivers/{driver_id}")
def get_driver(driver_id: str):
    return with_id(get_or_404(DRIVERS, driver_id, "Driver"))


@app.patch("/api/drivers/{driver_id}")
def update_driver(driver_id: str, body: DriverUpdate):
    return apply_update(DRIVERS, driver_id, body, "Driver")


def _release_vehicle(driver: Dict[str, Any]):
    vehicle_id = driver.get("assigned_vehicle_id")
    if vehicle_id:
        vehicle = jobs.find_by_id(col(VEHICLES), vehicle_id)
        if vehicle and vehicle.get("assigned_driver_id") == str(driver["_id"]):
            col(VEHICLES).update_one({"_id": vehicle["_id"]}, {"$set": {"assigned_driver_id": None}})
    col(DRIVERS).update_one({"_id": driver["_id"]}, {"$set": {"assigned_vehicle_id": None}})


@app.post("/api/drivers/{driver_id}/assign-vehicle")
def assign_vehicle(driver_id: str, body: AssignVehicle):
    driver = get_or_404(DRIVERS, driver_id, "Driver")
    if driver.get("is_archived"):
        raise HTTPException(status_code=409, detail="Archived drivers cannot be assigned a vehicle")
    vehicle = get_or_404(VEHICLES, body.vehicle_id, "Vehicle")
    if not vehicle.get("is_fleet_vehicle"):
        raise HTTPException(status_code=409, detail="Vehicle is not part of the fleet")
    holder = vehicle.get("assigned_driver_id")
    if holder and holder != driver_id:
        raise HTTPException(status_code=409, detail="Vehicle already assigned to another driver")

    if driver.get("assigned_vehicle_id") and driver["assigned_vehicle_id"] != body.vehicle_id:
        _release_vehicle(driver)
    col(DRIVERS).update_one({"_id": driver["_id"]}, {"$set": {"assigned_vehicle_id": body.vehicle_id}})
    col(VEHICLES).update_one({"_id": vehicle["_id"]}, {"$set": {"assigned_driver_id": driver_id}})
    return {"success": True}


@app.post("/api/drivers/{driver_id}/unassign-vehicle")
def unassign_vehicle(driver_id: str):
    driver = get_or_404(DRIVERS, driver_id, "Driver")
    _release_vehicle(driver)
    return {"success": True}


@app.post("/api/drivers/{driver_id}/archive")
def archive_driver(driver_id: str):
    driver = get_or_404(DRIVERS, driver_id, "Driver")
    _release_vehicle(driver)
    col(DRIVERS).update_one({"_id": driver["_id"]}, {"$set": {"is_archived": True}})
    log_audit("archive", f"Archived driver {driver.get('name')}", "driver", driver_id)
    return {"success": True}


@app.get("/api/drivers/{driver_id}/balance")
def driver_balance(driver_id: str):
    get_or_404(DRIVERS, driver_id, "Driver")
    charges = sum(float(c.get("amount", 0)) for c in col(DAILY_RENTAL_CHARGES).find({"driver_id": driver_id}))
    payments = sum(float(p.get("amount", 0)) for p in col(RENTAL_PAYMENTS).find({"driver_id": driver_id}))
    return {
        "driver_id": driver_id,
        "total_charges": money(charges),
        "total_payments": money(payments),
        "balance": money(charges - payments),
    }


def _assigned_vehicle(driver: Dict[str, Any]):
    vehicle = None
    if driver.get("assigned_vehicle_id"):
        vehicle = jobs.find_by_id(col(VEHICLES), driver["assigned_vehicle_id"])
    if vehicle is None:
        raise HTTPException(status_code=400, detail="No vehicle assigned to this driver")
    return vehicle


@app.get("/api/drivers/{driver_id}/contract")
def driver_contract(driver_id: str):
    driver = get_or_404(DRIVERS, driver_id, "Driver")
    vehicle = _assigned_vehicle(driver)
    cfg = load_workshop_config()
    start = date.today()
    if driver.get("contract_date"):
        start = jobs.parse_day(driver["contract_date"])
        if start is None:
            raise HTTPException(status_code=400, detail="Driver contract date must be YYYY-MM-DD")
    contract = LeaseContract(
        contract_id=driver_id[-6:].upper(),
        start_date=start,
        daily_rate=vehicle.get("daily_rental_cost") or 0,
        deposit=driver.get("deposit_amount") or 0,
        lessor=ContractParty(
            name=cfg.name, company_name=cfg.lessor_company_name, rfc=cfg.lessor_rfc,
            phone=cfg.phone, representative_name=cfg.lessor_representative,
            address=", ".join(p for p in (cfg.address_line1, cfg.city_state) if p) or None,
        ),
        lessee=ContractParty(name=driver.get("name", ""), phone=driver.get("phone"), address=driver.get("address")),
        vehicle=ContractVehicle(
            make=vehicle.get("make", ""), model=vehicle.get("model", ""), year=vehicle.get("year"),
            color=vehicle.get("color"), plates=vehicle.get("license_plate"), vin=vehicle.get("vin"),
            mileage_out=vehicle.get("current_mileage"),
        ),
    )
    return _pdf_response(contract)


# --------------------------- Rental billing ---------------------------
class ChargeUpdate(BaseModel):
    amount: float = Field(..., ge=0)


class RentalPaymentCreate(BaseModel):
    driver_id: str
    amount: float = Field(..., gt=0)
    payment_method: PaymentMethod = "cash"
    note: Optional[str] = None
    mileage: Optional[int] = None


class VehicleExpenseCreate(BaseModel):
    vehicle_id: str
    description: str
    amount: float = Field(..., gt=0)


class WithdrawalCreate(BaseModel):
    owner_name: str
    amount: float = Field(..., gt=0)
    reason: Optional[str] = None


@app.get("/api/rental/charges")
def list_charges(driver_id: Optional[str] = None):
    if driver_id:
        docs = col(DAILY_RENTAL_CHARGES).find({"driver_id": driver_id}).sort("date", -1)
    else:
        docs = col(DAILY_RENTAL_CHARGES).find({}).sort("date", 1)
    return [with_id(d) for d in docs]


@app.post("/api/drivers/{driver_id}/charges/generate-missing")
def generate_missing_charges(driver_id: str):
    driver = get_or_404(DRIVERS, driver_id, "Driver")
    vehicle = _assigned_vehicle(driver)
    if driver.get("contract_date") and jobs.parse_day(driver["contract_date"]) is None:
        raise HTTPException(status_code=400, detail="Driver contract date must be YYYY-MM-DD")
    created = jobs.generate_missing_charges(get_db(), driver, vehicle)
    return {"created": created}


@app.patch("/api/rental/charges/{charge_id}")
def update_charge(charge_id: str, body: ChargeUpdate):
    res = col(DAILY_RENTAL_CHARGES).update_one({"_id": charge_id}, {"$set": {"amount": money(body.amount)}})
    if res.matched_count == 0:
        raise HTTPException(status_code=404, detail="Charge not found")
    return {"success": True}


@app.delete("/api/rental/charges/{charge_id}")
def delete_charge(charge_id: str):
    res = col(DAILY_RENTAL_CHARGES).delete_one({"_id": charge_id})
    if res.deleted_count == 0:
        raise HTTPException(status_code=404, detail="Charge not found")
    log_audit("delete", f"Deleted rental charge {charge_id}", "rental_charge", charge_id)
    return {"success": True}


@app.post("/api/rental/payments")
def add_rental_payment(body: RentalPaymentCreate):
    driver = get_or_404(DRIVERS, body.driver_id, "Driver")
    vehicle = _assigned_vehicle(driver)
    rate = float(vehicle.get("daily_rental_cost") or 0)
    payment = RentalPayment(
        driver_id=body.driver_id,
        driver_name=driver.get("name", ""),
        vehicle_license_plate=vehicle.get("license_plate", ""),
        amount=money(body.amount),
        days_covered=round(body.amount / rate, 2) if rate > 0 else 0.0,
        payment_method=body.payment_method,
        note=body.note or "Rental payment",
        payment_date=now_iso(),
    )
    payment_id = create_document(RENTAL_PAYMENTS, payment)

    if body.mileage is not None:
        col(VEHICLES).update_one(
            {"_id": vehicle["_id"]},
            {"$set": {"current_mileage": body.mileage, "last_mileage_update": now_iso()}},
        )
    if body.payment_method == "cash":
        record_cash("in", body.amount, f"Rental payment {driver.get('name', '')}", "rental", payment_id)
    return {"id": payment_id, "days_covered": payment.days_covered}


@app.get("/api/rental/payments")
def list_rental_payments(driver_id: Optional[str] = None):
    filt = {"driver_id": driver_id} if driver_id else {}
    docs = col(RENTAL_PAYMENTS).find(filt).sort("payment_date", 1)
    return [with_id(d) for d in docs]


@app.delete("/api/rental/payments/{payment_id}")
def delete_rental_payment(payment_id: str):
    res = col(RENTAL_PAYMENTS).delete_one({"_id": oid(payment_id)})
    if res.deleted_count == 0:
        raise HTTPException(status_code=404, detail="Payment not found")
    col(CASH_TRANSACTIONS).delete_many({"related_id": payment_id})
    log_audit("delete", f"Deleted rental payment {payment_id}", "rental_payment", payment_id)
    return {"success": True}


@app.post("/api/rental/expenses")
def add_vehicle_expense(body: VehicleExpenseCreate):
    vehicle = get_or_404(VEHICLES, body.vehicle_id, "Vehicle")
    expense = VehicleExpense(
        vehicle_id=body.vehicle_id,
        vehicle_license_plate=vehicle.get("license_plate", ""),
        description=body.description,
        amount=money(body.amount),
        date=now_iso(),
    )
    return {"id": create_document(VEHICLE_EXPENSES, expense)}


@app.get("/api/rental/expenses")
def list_vehicle_expenses(vehicle_id: Optional[str] = None):
    filt = {"vehicle_id": vehicle_id} if vehicle_id else {}
    return [with_id(d) for d in col(VEHICLE_EXPENSES).find(filt).sort("date", -1)]


@app.post("/api/rental/withdrawals")
def add_owner_withdrawal(body: WithdrawalCreate):
    withdrawal = OwnerWithdrawal(owner_name=body.owner_name, amount=money(body.amount),
                                 reason=body.reason, date=now_iso())
    return {"id": create_document(OWNER_WITHDRAWALS, withdrawal)}


@app.get("/api/rental/withdrawals")
def list_owner_withdrawals():
    return [with_id(d) for d in col(OWNER_WITHDRAWALS).find({}).sort("date", -1)]


# --------------------------- Service records ---------------------------
SERVICE_TRANSITIONS = {
    "quotation": {"scheduled", "in_shop", "cancelled"},
    "scheduled": {"in_shop", "cancelled"},
    "in_shop": {"delivered", "cancelled"},
    "delivered": set(),
    "cancelled": set(),
}


class ServiceStatusUpdate(BaseModel):
    status: str


class CompleteService(BaseModel):
    payments: List[Payment]
    mileage: Optional[int] = None


class CancelBody(BaseModel):
    reason: str = Field(..., min_length=1)
    cancelled_by: Optional[str] = None


def compute_service_totals(items: List[Dict[str, Any]]) -> Dict[str, float]:
    """Prices are tax inclusive; supplies are valued at workshop cost."""
    total_cost = money(sum(float(i.get("price") or 0) for i in items))
    supplies_cost = money(sum(
        float(s.get("unit_price") or 0) * float(s.get("quantity") or 0)
        for i in items for s in i.get("supplies_used", [])
    ))
    sub_total = money(total_cost / (1 + IVA_RATE))
    return {
        "total_cost": total_cost,
        "total_supplies_cost": supplies_cost,
        "service_profit": money(total_cost - supplies_cost),
        "sub_total": sub_total,
        "tax_amount": money(total_cost - sub_total),
    }


def _check_transition(current: str, new: str):
    if new not in SERVICE_TRANSITIONS:
        raise HTTPException(status_code=400, detail=f"Unknown status: {new}")
    if new not in SERVICE_TRANSITIONS.get(current, set()):
        raise HTTPException(status_code=409, detail=f"Cannot change status from {current} to {new}")


@app.post("/api/services")
def create_service(s: ServiceRecord):
    if s.status not in ("quotation", "scheduled", "in_shop"):
        raise HTTPException(status_code=400, detail="New services must start as quotation, scheduled or in_shop")
    vehicle = get_or_404(VEHICLES, s.vehicle_id, "Vehicle")

    doc = s.model_dump()
    doc.update(compute_service_totals(doc["service_items"]))
    doc["vehicle_identifier"] = s.vehicle_identifier or vehicle.get("license_plate")
    doc["customer_name"] = s.customer_name or vehicle.get("owner_name")
    doc["customer_phone"] = s.customer_phone or vehicle.get("owner_phone")
    doc["reception_date_time"] = now_iso()
    doc["workshop_info"] = load_workshop_config().model_dump()
    _id = create_document(SERVICE_RECORDS, doc)

    # Post-create hooks; a failed folio leaves the record without one
    service_oid = ObjectId(_id)
    folio = jobs.assign_folio(get_db(), service_oid)
    public_id = jobs.sync_public_service(get_db(), service_oid)
    update_vehicle_last_service(s.vehicle_id, s.service_date)
    return {"id": _id, "folio": folio, "public_id": public_id}


@app.get("/api/services")
def list_services(status: Optional[str] = None, vehicle_id: Optional[str] = None):
    filt = {}
    if status:
        filt["status"] = status
    if vehicle_id:
        filt["vehicle_id"] = vehicle_id
    docs = list(col(SERVICE_RECORDS).find(filt).sort("_id", -1).limit(200))
    return [with_id(d) for d in docs]


@app.get("/api/services/{service_id}")
def get_service(service_id: str):
    return with_id(get_or_404(SERVICE_RECORDS, service_id, "Service"))


@app.put("/api/services/{service_id}")
def update_service(service_id: str, s: ServiceRecord):
    existing = get_or_404(SERVICE_RECORDS, service_id, "Service")
    if existing.get("status") in ("delivered", "cancelled"):
        raise HTTPException(status_code=409, detail="Closed services cannot be edited")
    vehicle = get_or_404(VEHICLES, s.vehicle_id, "Vehicle")
    # Status moves only through the status/complete/cancel endpoints
    doc = s.model_dump(exclude={"status", "appointment_status"})
    doc.update(compute_service_totals(doc["service_items"]))
    for field, vehicle_field in (("vehicle_identifier", "license_plate"),
                                 ("customer_name", "owner_name"),
                                 ("customer_phone", "owner_phone")):
        doc[field] = doc[field] or existing.get(field) or vehicle.get(vehicle_field)
    doc["updated_at"] = datetime.now(timezone.utc)
    col(SERVICE_RECORDS).update_one({"_id": existing["_id"]}, {"$set": doc})
    jobs.sync_public_service(get_db(), existing["_id"])
    update_vehicle_last_service(s.vehicle_id, s.service_date)
    return {"success": True}


@app.post("/api/services/{service_id}/status")
def set_service_status(service_id: str, body: ServiceStatusUpdate):
    service = get_or_404(SERVICE_RECORDS, service_id, "Service")
    if body.status == "delivered":
        raise HTTPException(status_code=400, detail="Use the complete endpoint to deliver a service")
    if body.status == "cancelled":
        raise HTTPException(status_code=400, detail="Use the cancel endpoint to cancel a service")
    _check_transition(service.get("status", "quotation"), body.status)
    col(SERVICE_RECORDS).update_one({"_id": service["_id"]}, {"$set": {"status": body.status}})
    jobs.sync_public_service(get_db(), service["_id"])
    return {"success": True}


@app.post("/api/services/{service_id}/complete")
def complete_service(service_id: str, body: CompleteService):
    service = get_or_404(SERVICE_RECORDS, service_id, "Service")
    _check_transition(service.get("status", "quotation"), "delivered")
    paid = _validate_payments(body.payments, float(service.get("total_cost") or 0))

    delivered_at = now_iso()
    update = {
        "status": "delivered",
        "delivery_date_time": delivered_at,
        "payments": [p.model_dump() for p in body.payments],
    }
    if body.mileage is not None:
        update["mileage"] = body.mileage
    col(SERVICE_RECORDS).update_one({"_id": service["_id"]}, {"$set": update})

    label = service.get("folio") or service_id[-6:]
    for p in body.payments:
        if p.method == "cash":
            record_cash("in", p.amount, f"Service {label}", "service", service_id)

    jobs.process_stock_exit(get_db(), service)
    update_vehicle_last_service(service.get("vehicle_id"), delivered_at)
    jobs.sync_public_service(get_db(), service["_id"])
    return {"success": True, "paid": paid}


@app.post("/api/services/{service_id}/cancel")
def cancel_service(service_id: str, body: CancelBody):
    service = get_or_404(SERVICE_RECORDS, service_id, "Service")
    _check_transition(service.get("status", "quotation"), "cancelled")
    col(SERVICE_RECORDS).update_one({"_id": service["_id"]}, {"$set": {
        "status": "cancelled",
        "cancellation_reason": body.reason,
        "cancelled_by": body.cancelled_by,
        "delivery_date_time": now_iso(),
    }})
    jobs.sync_public_service(get_db(), service["_id"])
    log_audit("cancel", f"Cancelled service {service.get('folio') or service_id}: {body.reason}",
              "service", service_id, body.cancelled_by or "system")
    return {"success": True}


@app.delete("/api/services/{service_id}")
def delete_service(service_id: str):
    service = get_or_404(SERVICE_RECORDS, service_id, "Service")
    col(SERVICE_RECORDS).delete_one({"_id": service["_id"]})
    if service.get("public_id"):
        col(PUBLIC_SERVICES).delete_one({"_id": service["public_id"]})
        col(PUBLIC_QUOTES).delete_one({"_id": service["public_id"]})
    log_audit("delete", f"Deleted service {service.get('folio') or service_id}", "service", service_id)
    return {"success": True}


# --------------------------- Public documents ---------------------------
@app.get("/api/public/services/{public_id}")
def get_public_service(public_id: str):
    doc = col(PUBLIC_SERVICES).find_one({"_id": public_id})
    if not doc:
        raise HTTPException(status_code=404, detail="Service not found")
    return with_id(doc)


@app.get("/api/public/quotes/{public_id}")
def get_public_quote(public_id: str):
    doc = col(PUBLIC_QUOTES).find_one({"_id": public_id})
    if not doc:
        raise HTTPException(status_code=404, detail="Quote not found")
    return with_id(doc)


@app.post("/api/public/services/{public_id}/confirm")
def confirm_appointment(public_id: str):
    service = col(SERVICE_RECORDS).find_one({"public_id": public_id})
    if not service:
        raise HTTPException(status_code=404, detail="Service not found")
    if service.get("status") != "scheduled":
        raise HTTPException(status_code=409, detail="Only scheduled services can be confirmed")
    col(SERVICE_RECORDS).update_one({"_id": service["_id"]}, {"$set": {
        "appointment_status": "confirmed",
        "appointment_confirmed_at": now_iso(),
    }})
    jobs.sync_public_service(get_db(), service["_id"])
    return {"success": True}


# --------------------------- Inventory ---------------------------
class InventoryItemUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    unit_price: Optional[float] = Field(None, ge=0)
    selling_price: Optional[float] = Field(None, ge=0)
    supplier: Optional[str] = None
    low_stock_threshold: Optional[float] = None
    unit_type: Optional[str] = None


class StockAdjust(BaseModel):
    new_quantity: float = Field(..., ge=0)
    reason: str = Field(..., min_length=1)


def low_stock_items() -> List[Dict[str, Any]]:
    items = col(INVENTORY).find({"is_service": {"$ne": True}})
    return [i for i in items if float(i.get("quantity", 0)) <= float(i.get("low_stock_threshold", 0))]


@app.post("/api/inventory")
def create_inventory_item(item: InventoryItem):
    if col(INVENTORY).find_one({"sku": item.sku}):
        raise HTTPException(status_code=409, detail="SKU already exists")
    _id = create_document(INVENTORY, item)
    return {"id": _id}


@app.get("/api/inventory")
def search_inventory(q: Optional[str] = None, category: Optional[str] = None):
    filt = search_filter(q, ["sku", "name"])
    if category:
        filt["category"] = category
    docs = list(col(INVENTORY).find(filt).limit(200))
    return [with_id(d) for d in docs]


@app.get("/api/inventory/low-stock")
def list_low_stock():
    return [with_id(d) for d in low_stock_items()]


@app.get("/api/inventory/movements")
def list_inventory_movements(item_id: Optional[str] = None):
    filt = {"item_id": item_id} if item_id else {}
    docs = list(col(INVENTORY_MOVEMENTS).find(filt).sort("_id", -1).limit(500))
    return [with_id(d) for d in docs]


@app.get("/api/inventory/{item_id}")
def get_inventory_item(item_id: str):
    return with_id(get_or_404(INVENTORY, item_id, "Item"))


@app.patch("/api/inventory/{item_id}")
def update_inventory_item(item_id: str, body: InventoryItemUpdate):
    return apply_update(INVENTORY, item_id, body, "Item")


@app.delete("/api/inventory/{item_id}")
def delete_inventory_item(item_id: str):
    res = col(INVENTORY).delete_one({"_id": oid(item_id)})
    if res.deleted_count == 0:
        raise HTTPException(status_code=404, detail="Item not found")
    log_audit("delete", f"Deleted inventory item {item_id}", "inventory", item_id)
    return {"success": True}


@app.post("/api/inventory/{item_id}/adjust")
def adjust_stock(item_id: str, adj: StockAdjust):
    item = get_or_404(INVENTORY, item_id, "Item")
    current = float(item.get("quantity", 0))
    changed = adj.new_quantity - current
    if changed == 0:
        return {"success": True, "quantity_changed": 0}
    col(INVENTORY).update_one({"_id": item["_id"]}, {"$set": {"quantity": adj.new_quantity}})
    record_movement(item, "adjustment", changed, reason=adj.reason)
    return {"success": True, "quantity_changed": changed}


# --------------------------- Suppliers ---------------------------
class SupplierUpdate(BaseModel):
    name: Optional[str] = None
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    debt_note: Optional[str] = None


@app.post("/api/suppliers")
def create_supplier(s: Supplier):
    return {"id": create_document(SUPPLIERS, s)}


@app.get("/api/suppliers")
def list_suppliers(q: Optional[str] = None):
    docs = list(col(SUPPLIERS).find(search_filter(q, ["name", "contact_person"])).sort("name", 1))
    return [with_id(d) for d in docs]


@app.patch("/api/suppliers/{supplier_id}")
def update_supplier(supplier_id: str, body: SupplierUpdate):
    return apply_update(SUPPLIERS, supplier_id, body, "Supplier")


@app.delete("/api/suppliers/{supplier_id}")
def delete_supplier(supplier_id: str):
    res = col(SUPPLIERS).delete_one({"_id": oid(supplier_id)})
    if res.deleted_count == 0:
        raise HTTPException(status_code=404, detail="Supplier not found")
    return {"success": True}


# --------------------------- Purchases & payables ---------------------------
class PayablePayment(BaseModel):
    amount: float = Field(..., gt=0)
    payment_method: PaymentMethod = "cash"


@app.post("/api/purchases")
def register_purchase(p: Purchase):
    if not p.items:
        raise HTTPException(status_code=400, detail="A purchase needs at least one item")
    if p.payment_method == "credit" and not p.due_date:
        raise HTTPException(status_code=400, detail="Credit purchases need a due date")
    supplier = get_or_404(SUPPLIERS, p.supplier_id, "Supplier")
    items = [(it, get_or_404(INVENTORY, it.inventory_item_id, "Item")) for it in p.items]

    invoice_id = p.invoice_id or f"PUR-{datetime.now(timezone.utc).strftime('%Y%m%d%H%M%S')}"
    doc = p.model_dump()
    doc.update({
        "invoice_id": invoice_id,
        "invoice_date": p.invoice_date or today_key(),
        "supplier_name": supplier.get("name", ""),
        "invoice_total": money(p.invoice_total),
        "status": "completed",
    })
    purchase_id = create_document(PURCHASES, doc)

    for it, inv in items:
        col(INVENTORY).update_one(
            {"_id": inv["_id"]},
            {"$inc": {"quantity": it.quantity}, "$set": {"unit_price": money(it.purchase_price)}},
        )
        record_movement(inv, "purchase", it.quantity, related_id=purchase_id)

    payable_id = None
    if p.payment_method == "credit":
        payable = PayableAccount(
            supplier_id=p.supplier_id, supplier_name=supplier.get("name", ""), purchase_id=purchase_id,
            invoice_id=invoice_id, total_amount=money(p.invoice_total), due_date=p.due_date,
        )
        payable_id = create_document(PAYABLE_ACCOUNTS, payable)
        col(SUPPLIERS).update_one({"_id": supplier["_id"]}, {"$inc": {"debt_amount": money(p.invoice_total)}})
        col(PURCHASES).update_one({"_id": ObjectId(purchase_id)}, {"$set": {"payable_account_id": payable_id}})
    elif p.payment_method == "cash":
        record_cash("out", p.invoice_total, f"Purchase {invoice_id}", "purchase", purchase_id)
    return {"id": purchase_id, "payable_account_id": payable_id}


@app.get("/api/purchases")
def list_purchases(supplier_id: Optional[str] = None):
    filt = {"supplier_id": supplier_id} if supplier_id else {}
    return [with_id(d) for d in col(PURCHASES).find(filt).sort("_id", -1).limit(200)]


@app.get("/api/payable-accounts")
def list_payable_accounts(status: Optional[str] = None):
    filt = {"status": status} if status else {}
    return [with_id(d) for d in col(PAYABLE_ACCOUNTS).find(filt).sort("due_date", 1)]


@app.post("/api/payable-accounts/{account_id}/pay")
def pay_payable_account(account_id: str, body: PayablePayment):
    account = get_or_404(PAYABLE_ACCOUNTS, account_id, "Payable account")
    total = float(account.get("total_amount", 0))
    paid = float(account.get("paid_amount", 0))
    if body.amount > money(total - paid):
        raise HTTPException(status_code=400, detail="Payment exceeds the outstanding amount")
    new_paid = money(paid + body.amount)
    status = "paid" if new_paid >= money(total) else "partial"
    col(PAYABLE_ACCOUNTS).update_one({"_id": account["_id"]}, {"$set": {"paid_amount": new_paid, "status": status}})
    supplier = jobs.find_by_id(col(SUPPLIERS), account.get("supplier_id"))
    if supplier:
        col(SUPPLIERS).update_one({"_id": supplier["_id"]}, {"$inc": {"debt_amount": -money(body.amount)}})
    if body.payment_method == "cash":
        record_cash("out", body.amount, f"Payment invoice {account.get('invoice_id')}", "purchase", account.get("purchase_id"))
    return {"success": True, "status": status, "paid_amount": new_paid}


# --------------------------- Point of sale ---------------------------
def _restore_sale_stock(sale: Dict[str, Any]):
    sale_id = str(sale["_id"])
    for it in sale.get("items", []):
        if it.get("is_service") or not it.get("inventory_item_id"):
            continue
        inv = jobs.find_by_id(col(INVENTORY), it["inventory_item_id"])
        if inv is None:
            continue
        col(INVENTORY).update_one({"_id": inv["_id"]}, {"$inc": {"quantity": it["quantity"]}})
        record_movement(inv, "sale_cancel", it["quantity"], related_id=sale_id)


@app.post("/api/sales")
def register_sale(sale: SaleReceipt):
    if not sale.items:
        raise HTTPException(status_code=400, detail="A sale needs at least one item")

    stock_items = []
    requested: Dict[str, float] = {}
    for it in sale.items:
        if it.is_service or not it.inventory_item_id:
            continue
        inv = get_or_404(INVENTORY, it.inventory_item_id, "Item")
        stock_items.append((it, inv))
        if inv.get("is_service"):
            continue
        # Several lines may draw on the same item
        requested[it.inventory_item_id] = requested.get(it.inventory_item_id, 0) + it.quantity
        if float(inv.get("quantity", 0)) < requested[it.inventory_item_id]:
            raise HTTPException(status_code=400, detail=f"Insufficient stock for {inv.get('name', it.item_name)}")

    total_amount = money(sum(it.quantity * it.unit_price for it in sale.items))
    sub_total = money(total_amount / (1 + IVA_RATE))
    _validate_payments(sale.payments, total_amount)

    doc = sale.model_dump()
    for line, it in zip(doc["items"], sale.items):
        line["total_price"] = money(it.quantity * it.unit_price)
    doc.update({
        "sale_date": now_iso(),
        "sub_total": sub_total,
        "tax": money(total_amount - sub_total),
        "total_amount": total_amount,
        "status": "completed",
    })
    sale_id = create_document(SALES, doc)

    for it, inv in stock_items:
        if inv.get("is_service"):
            continue
        col(INVENTORY).update_one({"_id": inv["_id"]}, {"$inc": {"quantity": -it.quantity}})
        record_movement(inv, "sale", -it.quantity, related_id=sale_id)
    for p in sale.payments:
        if p.method == "cash":
            record_cash("in", p.amount, f"POS sale {sale_id[-6:]}", "sale", sale_id, sale.registered_by or "system")
    return {"id": sale_id, "total_amount": total_amount}


@app.get("/api/sales")
def list_sales(status: Optional[str] = None):
    filt = {"status": status} if status else {}
    return [with_id(d) for d in col(SALES).find(filt).sort("sale_date", -1).limit(200)]


@app.post("/api/sales/{sale_id}/cancel")
def cancel_sale(sale_id: str, body: CancelBody):
    sale = get_or_404(SALES, sale_id, "Sale")
    if sale.get("status") == "cancelled":
        return {"success": True}
    col(SALES).update_one({"_id": sale["_id"]}, {"$set": {"status": "cancelled", "cancellation_reason": body.reason}})
    _restore_sale_stock(sale)
    col(CASH_TRANSACTIONS).delete_many({"related_id": sale_id})
    log_audit("cancel", f"Cancelled sale {sale_id[-6:]}: {body.reason}", "sale", sale_id, body.cancelled_by or "system")
    return {"success": True}


@app.delete("/api/sales/{sale_id}")
def delete_sale(sale_id: str):
    sale = get_or_404(SALES, sale_id, "Sale")
    if sale.get("status") != "cancelled":
        _restore_sale_stock(sale)
    col(CASH_TRANSACTIONS).delete_many({"related_id": sale_id})
    col(SALES).delete_one({"_id": sale["_id"]})
    log_audit("delete", f"Deleted sale {sale_id[-6:]}", "sale", sale_id)
    return {"success": True}


# --------------------------- Personnel ---------------------------
class TechnicianUpdate(BaseModel):
    name: Optional[str] = None
    area: Optional[str] = None
    specialty: Optional[str] = None
    contact_info: Optional[str] = None
    monthly_salary: Optional[float] = None
    commission_rate: Optional[float] = Field(None, ge=0, le=1)
    standard_hours_per_day: Optional[float] = None


class AdministrativeStaffUpdate(BaseModel):
    name: Optional[str] = None
    role_or_area: Optional[str] = None
    contact_info: Optional[str] = None
    monthly_salary: Optional[float] = None
    commission_rate: Optional[float] = Field(None, ge=0, le=1)


def _archive(collection: str, id_str: str, label: str):
    res = col(collection).update_one({"_id": oid(id_str)}, {"$set": {"is_archived": True}})
    if res.matched_count == 0:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    log_audit("archive", f"Archived {label.lower()} {id_str}", collection, id_str)
    return {"success": True}


@app.post("/api/technicians")
def create_technician(t: Technician):
    return {"id": create_document(TECHNICIANS, t)}


@app.get("/api/technicians")
def list_technicians(include_archived: bool = Query(False)):
    filt = {} if include_archived else {"is_archived": {"$ne": True}}
    return [with_id(d) for d in col(TECHNICIANS).find(filt).sort("name", 1)]


@app.patch("/api/technicians/{technician_id}")
def update_technician(technician_id: str, body: TechnicianUpdate):
    return apply_update(TECHNICIANS, technician_id, body, "Technician")


@app.post("/api/technicians/{technician_id}/archive")
def archive_technician(technician_id: str):
    return _archive(TECHNICIANS, technician_id, "Technician")


@app.post("/api/administrative-staff")
def create_administrative_staff(s: AdministrativeStaff):
    return {"id": create_document(ADMINISTRATIVE_STAFF, s)}


@app.get("/api/administrative-staff")
def list_administrative_staff(include_archived: bool = Query(False)):
    filt = {} if include_archived else {"is_archived": {"$ne": True}}
    return [with_id(d) for d in col(ADMINISTRATIVE_STAFF).find(filt).sort("name", 1)]


@app.patch("/api/administrative-staff/{staff_id}")
def update_administrative_staff(staff_id: str, body: AdministrativeStaffUpdate):
    return apply_update(ADMINISTRATIVE_STAFF, staff_id, body, "Staff member")


@app.post("/api/administrative-staff/{staff_id}/archive")
def archive_administrative_staff(staff_id: str):
    return _archive(ADMINISTRATIVE_STAFF, staff_id, "Staff member")


# --------------------------- Cash drawer ---------------------------
class InitialBalance(BaseModel):
    amount: float = Field(..., ge=0)
    user_name: str = "system"


def _parse_day(day: str) -> str:
    try:
        return date.fromisoformat(day).isoformat()
    except ValueError:
        raise HTTPException(status_code=400, detail="Day must be YYYY-MM-DD")


@app.post("/api/cash/transactions")
def add_cash_transaction(tx: CashDrawerTransaction):
    if not tx.date:
        tx = tx.model_copy(update={"date": now_iso()})
    return {"id": create_document(CASH_TRANSACTIONS, tx)}


@app.get("/api/cash/transactions")
def list_cash_transactions(day: Optional[str] = None):
    filt = {"date": {"$regex": f"^{_parse_day(day)}"}} if day else {}
    return [with_id(d) for d in col(CASH_TRANSACTIONS).find(filt).sort("date", -1)]


@app.delete("/api/cash/transactions/{tx_id}")
def delete_cash_transaction(tx_id: str):
    res = col(CASH_TRANSACTIONS).delete_one({"_id": oid(tx_id)})
    if res.deleted_count == 0:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return {"success": True}


@app.put("/api/cash/initial-balance/{day}")
def set_initial_balance(day: str, body: InitialBalance):
    key = _parse_day(day)
    col(INITIAL_CASH_BALANCES).update_one(
        {"_id": key},
        {"$set": {"date": key, "amount": money(body.amount), "user_name": body.user_name}},
        upsert=True,
    )
    return {"success": True}


@app.get("/api/cash/summary")
def cash_summary(day: Optional[str] = None):
    key = _parse_day(day) if day else today_key()
    initial = col(INITIAL_CASH_BALANCES).find_one({"_id": key}) or {}
    entries = exits = 0.0
    for tx in col(CASH_TRANSACTIONS).find({"date": {"$regex": f"^{key}"}}):
        if tx.get("type") == "in":
            entries += float(tx.get("amount", 0))
        else:
            exits += float(tx.get("amount", 0))
    opening = float(initial.get("amount", 0))
    return {
        "day": key,
        "initial_balance": money(opening),
        "entries": money(entries),
        "exits": money(exits),
        "expected_cash": money(opening + entries - exits),
    }


# --------------------------- Billing ---------------------------
@app.get("/api/billing/ticket")
def find_ticket(folio: str, total: float):
    sale = jobs.find_by_id(col(SALES), folio)
    service = col(SERVICE_RECORDS).find_one({"folio": folio}) or jobs.find_by_id(col(SERVICE_RECORDS), folio)
    for doc, total_field, kind in ((sale, "total_amount", "sale"), (service, "total_cost", "service")):
        if doc:
            if abs(float(doc.get(total_field) or 0) - total) < 0.01:
                ticket = with_id(doc)
                ticket["ticket_type"] = kind
                return ticket
            raise HTTPException(status_code=404, detail="Ticket total does not match")
    raise HTTPException(status_code=404, detail="Ticket not found")


# --------------------------- Contracts ---------------------------

def _pdf_response(contract: LeaseContract) -> Response:
    pdf = render_lease_pdf(contract)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="contract-{contract.contract_id or "lease"}.pdf"',
            "Cache-Control": "no-store",
        },
    )


@app.post("/api/contracts/lease")
def lease_contract(contract: LeaseContract):
    if not (contract.lessor.name or contract.lessor.company_name):
        cfg = load_workshop_config()
        contract = contract.model_copy(update={"lessor": ContractParty(
            name=cfg.name, company_name=cfg.lessor_company_name, rfc=cfg.lessor_rfc,
            phone=cfg.phone, representative_name=cfg.lessor_representative,
        )})
    return _pdf_response(contract)


# --------------------------- Jobs ---------------------------
@app.post("/api/jobs/daily-rental-charges")
def run_daily_rental_charges():
    return jobs.generate_daily_rental_charges(get_db())


# --------------------------- Reports (basic) ---------------------------
@app.get("/api/reports/summary")
def summary_report():
    today = today_key()
    service_revenue = sum(
        float(s.get("total_cost") or 0)
        for s in col(SERVICE_RECORDS).find({"status": "delivered", "delivery_date_time": {"$regex": f"^{today}"}})
    )
    sales_revenue = sum(
        float(s.get("total_amount") or 0)
        for s in col(SALES).find({"status": "completed", "sale_date": {"$regex": f"^{today}"}})
    )
    return {
        "active_services": col(SERVICE_RECORDS).count_documents({"status": {"$in": ["scheduled", "in_shop"]}}),
        "quotations": col(SERVICE_RECORDS).count_documents({"status": "quotation"}),
        "daily_revenue": money(service_revenue + sales_revenue),
        "low_stock_alerts": len(low_stock_items()),
        "active_drivers": col(DRIVERS).count_documents({"is_archived": {"$ne": True}}),
        "fleet_vehicles": col(VEHICLES).count_documents({"is_fleet_vehicle": True}),
    }


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
