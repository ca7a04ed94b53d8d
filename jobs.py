"""
Background jobs for the workshop backend.

- Daily rental charges: one charge per active driver per local calendar day,
  keyed by ``<driver_id>_<YYYY-MM-DD>`` so a rerun never duplicates.
- Folio assignment: ``YYMMDD-NNNN`` taken from a per-day counter document.
- Public sync: the customer-facing projection of a service record.
- Stock exit: inventory consumed by a delivered service.

The daily job is meant to be run from cron, e.g. at 03:00 local time:

    python jobs.py daily-charges
"""
import argparse
import logging
import os
import secrets
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ReturnDocument
from pymongo.errors import BulkWriteError, DuplicateKeyError, PyMongoError

import database
from database import (
    COUNTERS, DAILY_RENTAL_CHARGES, DRIVERS, INVENTORY, INVENTORY_MOVEMENTS,
    PUBLIC_QUOTES, PUBLIC_SERVICES, SERVICE_RECORDS, VEHICLES,
)
from schemas import InventoryMovement

logger = logging.getLogger(__name__)

WORKSHOP_TIMEZONE = os.getenv("WORKSHOP_TIMEZONE", "America/Mexico_City")
CHARGE_BATCH_LIMIT = int(os.getenv("CHARGE_BATCH_LIMIT", "500"))
PUBLIC_ID_BYTES = 12  # 16 url-safe characters

DUPLICATE_KEY_CODE = 11000

# Fields copied to the public (customer-facing) service document
PUBLIC_FIELDS = (
    "folio", "status", "public_id", "appointment_status",
    "customer_name", "customer_phone", "vehicle_identifier",
    "service_date", "reception_date_time", "delivery_date_time",
    "mileage", "fuel_level", "vehicle_conditions", "customer_items",
    "notes", "total_cost", "service_advisor_name", "workshop_info",
)


def local_now() -> datetime:
    return datetime.now(ZoneInfo(WORKSHOP_TIMEZONE))


def date_key(day) -> str:
    return day.strftime("%Y-%m-%d")


def charge_id(driver_id: str, day_key: str) -> str:
    return f"{driver_id}_{day_key}"


def parse_day(value) -> Optional[date]:
    """Calendar day from an ISO date or datetime string; None when unreadable."""
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def find_by_id(collection, id_str):
    """Look up a document by a string ObjectId; malformed ids find nothing."""
    try:
        return collection.find_one({"_id": ObjectId(id_str)})
    except (InvalidId, TypeError):
        return None


def _charge_doc(driver_id: str, vehicle: Dict[str, Any], day_key: str) -> Dict[str, Any]:
    return {
        "_id": charge_id(driver_id, day_key),
        "driver_id": driver_id,
        "vehicle_id": str(vehicle["_id"]),
        "date": day_key,
        "amount": float(vehicle["daily_rental_cost"]),
        "vehicle_license_plate": vehicle.get("license_plate") or "",
        "created_at": datetime.now(timezone.utc),
    }


# --------------------------- Rental charges ---------------------------

def generate_daily_rental_charges(db, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Create today's charge for every active driver with an assigned vehicle.

    A driver whose charge already exists counts as ``existing``; a driver whose
    vehicle is missing or has no daily rate counts as ``skipped``. Any other
    error is logged and counted as ``failed`` without stopping the run.
    """
    now = now or local_now()
    day_key = date_key(now)
    summary = {"date": day_key, "created": 0, "existing": 0, "skipped": 0, "failed": 0}
    logger.info("Starting daily rental charge generation for %s", day_key)

    drivers = db[DRIVERS].find({"is_archived": {"$ne": True}, "assigned_vehicle_id": {"$ne": None}})
    for driver in drivers:
        driver_id = str(driver["_id"])
        try:
            vehicle = find_by_id(db[VEHICLES], driver["assigned_vehicle_id"])
            if not vehicle or not vehicle.get("daily_rental_cost"):
                logger.warning(
                    "Vehicle %s for driver %s not found or has no daily rental cost",
                    driver["assigned_vehicle_id"], driver.get("name", driver_id),
                )
                summary["skipped"] += 1
                continue
            db[DAILY_RENTAL_CHARGES].insert_one(_charge_doc(driver_id, vehicle, day_key))
            summary["created"] += 1
        except DuplicateKeyError:
            logger.info("Charge already exists for driver %s on %s", driver_id, day_key)
            summary["existing"] += 1
        except Exception:
            logger.exception("Failed to create daily charge for driver %s", driver_id)
            summary["failed"] += 1

    logger.info(
        "Daily rental charges for %s: %d created, %d existing, %d skipped, %d failed",
        day_key, summary["created"], summary["existing"], summary["skipped"], summary["failed"],
    )
    return summary


def generate_missing_charges(db, driver: Dict[str, Any], vehicle: Dict[str, Any], now: Optional[datetime] = None) -> int:
    """Backfill a charge for every day from the contract date through today.

    Days that already have a charge are left alone, so running this twice
    writes nothing the second time. Returns the number of charges created.
    """
    rate = vehicle.get("daily_rental_cost") or 0
    contract_date = driver.get("contract_date")
    if rate <= 0 or not contract_date:
        return 0

    driver_id = str(driver["_id"])
    day = parse_day(contract_date)
    if day is None:
        logger.warning("Driver %s has an unreadable contract date %r, skipping", driver_id, contract_date)
        return 0
    today = (now or local_now()).date()
    existing = {c["date"] for c in db[DAILY_RENTAL_CHARGES].find({"driver_id": driver_id}, {"date": 1})}

    docs = []
    while day <= today:
        key = date_key(day)
        if key not in existing:
            docs.append(_charge_doc(driver_id, vehicle, key))
        day += timedelta(days=1)

    created = 0
    for start in range(0, len(docs), CHARGE_BATCH_LIMIT):
        batch = docs[start:start + CHARGE_BATCH_LIMIT]
        try:
            result = db[DAILY_RENTAL_CHARGES].insert_many(batch, ordered=False)
            created += len(result.inserted_ids)
        except BulkWriteError as exc:
            # Concurrent writers may have created some of the same days
            created += exc.details.get("nInserted", 0)
            errors = [e for e in exc.details.get("writeErrors", []) if e.get("code") != DUPLICATE_KEY_CODE]
            if errors:
                raise
    if created:
        logger.info("Backfilled %d rental charges for driver %s", created, driver_id)
    return created


# --------------------------- Service records ---------------------------

def folio_prefix(now: datetime) -> str:
    return now.strftime("%y%m%d")


def assign_folio(db, service_id, now: Optional[datetime] = None) -> Optional[str]:
    """Give a new service record the next ``YYMMDD-NNNN`` folio of the day.

    The counter is a single document per day incremented with ``$inc``, which
    MongoDB applies atomically. On failure the record keeps no folio.
    """
    now = now or local_now()
    prefix = folio_prefix(now)
    try:
        service = db[SERVICE_RECORDS].find_one({"_id": service_id}, {"folio": 1})
        if service is None:
            logger.error("Cannot assign folio, service %s not found", service_id)
            return None
        if service.get("folio"):
            return service["folio"]

        counter = db[COUNTERS].find_one_and_update(
            {"_id": f"folio_{prefix}"},
            {"$inc": {"count": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        folio = f"{prefix}-{int(counter['count']):04d}"
        res = db[SERVICE_RECORDS].update_one({"_id": service_id, "folio": None}, {"$set": {"folio": folio}})
        if res.matched_count == 0:
            # Numbered by a concurrent writer; keep theirs
            stored = db[SERVICE_RECORDS].find_one({"_id": service_id}, {"folio": 1}) or {}
            logger.warning("Service %s was numbered concurrently, discarding folio %s", service_id, folio)
            return stored.get("folio")
    except PyMongoError:
        logger.exception("Failed to generate folio for service %s", service_id)
        return None

    logger.info("Generated folio %s for service %s", folio, service_id)
    return folio


def public_projection(service: Dict[str, Any]) -> Dict[str, Any]:
    data = {f: service[f] for f in PUBLIC_FIELDS if f in service}
    # Workshop costs stay private
    data["service_items"] = [
        {"name": item.get("name"), "price": item.get("price", 0)}
        for item in service.get("service_items", [])
    ]
    data["payments"] = [
        {"method": p.get("method"), "amount": p.get("amount")}
        for p in service.get("payments", [])
    ]
    data["service_id"] = str(service["_id"])
    return data


def sync_public_service(db, service_id) -> Optional[str]:
    """Mirror a service record into its public collection and return the public id."""
    service = db[SERVICE_RECORDS].find_one({"_id": service_id})
    if service is None:
        return None

    public_id = service.get("public_id")
    if not public_id:
        public_id = secrets.token_urlsafe(PUBLIC_ID_BYTES)
        db[SERVICE_RECORDS].update_one({"_id": service_id}, {"$set": {"public_id": public_id}})
        service["public_id"] = public_id

    data = public_projection(service)
    if service.get("status") == "quotation":
        db[PUBLIC_QUOTES].update_one({"_id": public_id}, {"$set": data}, upsert=True)
    else:
        db[PUBLIC_QUOTES].delete_one({"_id": public_id})
        db[PUBLIC_SERVICES].update_one({"_id": public_id}, {"$set": data}, upsert=True)
    logger.info("Synced service %s to public document %s", service_id, public_id)
    return public_id


def process_stock_exit(db, service: Dict[str, Any]) -> int:
    """Take the supplies of a delivered service out of inventory."""
    service_id = str(service["_id"])
    moved = 0
    for item in service.get("service_items", []):
        for supply in item.get("supplies_used", []):
            supply_id = supply.get("supply_id")
            quantity = supply.get("quantity") or 0
            if not supply_id or quantity <= 0 or supply.get("is_service"):
                continue
            inv = find_by_id(db[INVENTORY], supply_id)
            if inv is None:
                logger.warning("Service %s: inventory item %s not found, skipping", service_id, supply_id)
                continue
            if inv.get("is_service"):
                continue
            db[INVENTORY].update_one({"_id": inv["_id"]}, {"$inc": {"quantity": -quantity}})
            move = InventoryMovement(
                item_id=supply_id,
                item_name=inv.get("name"),
                movement_type="service",
                quantity_changed=-quantity,
                related_id=service.get("folio") or service_id,
            ).model_dump()
            move["created_at"] = datetime.now(timezone.utc)
            db[INVENTORY_MOVEMENTS].insert_one(move)
            moved += 1
    logger.info("Stock exit for service %s: %d movements", service_id, moved)
    return moved


# --------------------------- CLI ---------------------------

def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Workshop background jobs")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("daily-charges", help="create today's rental charge for every active driver")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(name)s %(levelname)s: %(message)s")
    if database.db is None:
        parser.error("DATABASE_URL is not set")

    if args.command == "daily-charges":
        summary = generate_daily_rental_charges(database.db)
        return 1 if summary["failed"] else 0
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
