"""
Database helpers

MongoDB connection and the small set of helpers used across the app.
Collections are addressed by name; the constants below are the single
source of truth for those names.
"""
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel
from pymongo import MongoClient

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME", "workshop")

# Collection names
SERVICE_RECORDS = "serviceRecords"
PUBLIC_SERVICES = "publicServices"
PUBLIC_QUOTES = "publicQuotes"
DRIVERS = "drivers"
VEHICLES = "vehicles"
VEHICLE_DATA = "vehicleData"
DAILY_RENTAL_CHARGES = "dailyRentalCharges"
RENTAL_PAYMENTS = "rentalPayments"
VEHICLE_EXPENSES = "vehicleExpenses"
OWNER_WITHDRAWALS = "ownerWithdrawals"
INVENTORY = "inventory"
INVENTORY_MOVEMENTS = "inventoryMovements"
SUPPLIERS = "suppliers"
PURCHASES = "purchases"
PAYABLE_ACCOUNTS = "payableAccounts"
SALES = "sales"
CASH_TRANSACTIONS = "cashDrawerTransactions"
INITIAL_CASH_BALANCES = "initialCashBalances"
TECHNICIANS = "technicians"
ADMINISTRATIVE_STAFF = "administrativeStaff"
USERS = "users"
AUDIT_LOGS = "auditLogs"
COUNTERS = "counters"
CONFIG = "config"

db = None
if DATABASE_URL:
    _client = MongoClient(DATABASE_URL)
    db = _client[DATABASE_NAME]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def create_document(collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> str:
    """Insert a document with timestamps and return its id as a string."""
    if db is None:
        raise Exception("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")
    if isinstance(data, BaseModel):
        doc = data.model_dump()
    else:
        doc = dict(data)
    now = _now()
    doc.setdefault("created_at", now)
    doc["updated_at"] = now
    result = db[collection_name].insert_one(doc)
    return str(result.inserted_id)


def get_documents(collection_name: str, filter_dict: Optional[Dict[str, Any]] = None, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    if db is None:
        raise Exception("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")
    cursor = db[collection_name].find(filter_dict or {})
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)
