"""
Database Schemas for the Workshop Management System

Each Pydantic model maps to a MongoDB collection (see the collection name
constants in database.py).

This system covers modules: Service orders, Fleet rental, Point of sale,
Inventory & Purchases, Personnel, Cash drawer and Admin.
"""
from typing import List, Optional, Literal
from pydantic import BaseModel, Field

ServiceStatus = Literal["quotation", "scheduled", "in_shop", "delivered", "cancelled"]
PaymentMethod = Literal["cash", "card", "transfer"]
PurchasePaymentMethod = Literal["cash", "card", "transfer", "credit"]

# =============== ADMIN / CONFIG ==================
class WorkshopConfig(BaseModel):
    """Singleton document read by the service sheets and the lease contracts."""
    name: str = "Taller"
    phone: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city_state: Optional[str] = None
    logo_url: Optional[str] = None
    lessor_company_name: Optional[str] = None
    lessor_representative: Optional[str] = None
    lessor_rfc: Optional[str] = None

class User(BaseModel):
    name: str
    email: str
    role: str = "staff"
    phone: Optional[str] = None
    signature_data_url: Optional[str] = None

class AuditLog(BaseModel):
    action: str
    description: str
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    user_name: str = "system"

# =============== FLEET ==================
class Vehicle(BaseModel):
    make: str
    model: str
    year: int
    license_plate: str = Field(..., min_length=3)
    vin: Optional[str] = None
    color: Optional[str] = None
    owner_name: Optional[str] = None
    owner_phone: Optional[str] = None
    owner_email: Optional[str] = None
    notes: Optional[str] = None
    is_fleet_vehicle: bool = False
    daily_rental_cost: Optional[float] = Field(None, ge=0)
    current_mileage: Optional[int] = None
    assigned_driver_id: Optional[str] = None
    last_service_date: Optional[str] = None

class Driver(BaseModel):
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    contract_date: Optional[str] = Field(None, description="ISO date the rental contract started")
    deposit_amount: float = 0.0
    assigned_vehicle_id: Optional[str] = None
    is_archived: bool = False

class DailyRentalCharge(BaseModel):
    driver_id: str
    vehicle_id: str
    date: str = Field(..., description="Local calendar day, YYYY-MM-DD")
    amount: float
    vehicle_license_plate: str = ""

class RentalPayment(BaseModel):
    driver_id: str
    driver_name: str
    vehicle_license_plate: str
    amount: float = Field(..., gt=0)
    days_covered: float = 0.0
    payment_method: PaymentMethod = "cash"
    note: Optional[str] = None
    payment_date: str

class VehicleExpense(BaseModel):
    vehicle_id: str
    vehicle_license_plate: str = ""
    description: str
    amount: float = Field(..., gt=0)
    date: str

class OwnerWithdrawal(BaseModel):
    owner_name: str
    amount: float = Field(..., gt=0)
    reason: Optional[str] = None
    date: str

# =============== SERVICE ==================
class ServiceSupply(BaseModel):
    supply_id: Optional[str] = None
    supply_name: Optional[str] = None
    quantity: float = 1
    unit_price: float = 0.0  # workshop cost, pre-tax
    is_service: bool = False

class ServiceItem(BaseModel):
    name: str
    price: float = Field(0.0, ge=0)  # customer price, tax included
    supplies_used: List[ServiceSupply] = Field(default_factory=list)

class Payment(BaseModel):
    method: PaymentMethod
    amount: float
    folio: Optional[str] = None  # card voucher or transfer reference

class ServiceRecord(BaseModel):
    vehicle_id: str
    vehicle_identifier: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    description: Optional[str] = None
    service_date: Optional[str] = None
    service_items: List[ServiceItem] = Field(default_factory=list)
    technician_id: Optional[str] = None
    technician_name: Optional[str] = None
    service_advisor_name: Optional[str] = None
    status: ServiceStatus = "quotation"
    appointment_status: Optional[str] = None
    mileage: Optional[int] = None
    fuel_level: Optional[str] = None
    vehicle_conditions: Optional[str] = None
    customer_items: Optional[str] = None
    notes: Optional[str] = None

# =============== INVENTORY / PURCHASES ==================
class InventoryItem(BaseModel):
    name: str
    sku: str
    category: Optional[str] = None
    description: Optional[str] = None
    quantity: float = 0
    unit_price: float = 0.0  # cost to the workshop, pre-tax
    selling_price: float = 0.0  # customer price, tax included
    supplier: Optional[str] = None
    low_stock_threshold: float = 5
    is_service: bool = False
    unit_type: Literal["units", "ml", "liters"] = "units"

class Supplier(BaseModel):
    name: str
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    debt_amount: float = 0.0
    debt_note: Optional[str] = None

class PurchaseItem(BaseModel):
    inventory_item_id: str
    quantity: float = Field(..., gt=0)
    purchase_price: float = Field(..., ge=0)

class Purchase(BaseModel):
    supplier_id: str
    invoice_id: Optional[str] = None
    invoice_date: Optional[str] = None
    due_date: Optional[str] = None
    items: List[PurchaseItem]
    payment_method: PurchasePaymentMethod = "cash"
    invoice_total: float = Field(..., ge=0)

class PayableAccount(BaseModel):
    supplier_id: str
    supplier_name: str
    purchase_id: str
    invoice_id: str
    total_amount: float
    paid_amount: float = 0.0
    due_date: str
    status: Literal["pending", "partial", "paid"] = "pending"

class InventoryMovement(BaseModel):
    item_id: str
    item_name: Optional[str] = None
    movement_type: Literal["sale", "service", "purchase", "adjustment", "sale_cancel"]
    quantity_changed: float
    related_id: Optional[str] = None
    reason: Optional[str] = None

# =============== POINT OF SALE ==================
class SaleItem(BaseModel):
    inventory_item_id: Optional[str] = None
    item_name: str
    quantity: float = Field(1, gt=0)
    unit_price: float = Field(..., ge=0)  # tax included
    is_service: bool = False

class SaleReceipt(BaseModel):
    items: List[SaleItem]
    payments: List[Payment] = Field(default_factory=list)
    customer_name: str = "Cliente Mostrador"
    registered_by: Optional[str] = None

# =============== PERSONNEL ==================
class Technician(BaseModel):
    name: str
    area: Optional[str] = None
    specialty: Optional[str] = None
    contact_info: Optional[str] = None
    hire_date: Optional[str] = None
    monthly_salary: float = 0.0
    commission_rate: float = Field(0.0, ge=0, le=1)
    standard_hours_per_day: float = 8
    is_archived: bool = False

class AdministrativeStaff(BaseModel):
    name: str
    role_or_area: str
    contact_info: Optional[str] = None
    hire_date: Optional[str] = None
    monthly_salary: float = 0.0
    commission_rate: float = Field(0.0, ge=0, le=1)
    is_archived: bool = False

# =============== CASH DRAWER ==================
class CashDrawerTransaction(BaseModel):
    type: Literal["in", "out"]
    amount: float = Field(..., gt=0)
    concept: str
    user_name: str = "system"
    related_type: Optional[Literal["service", "sale", "purchase", "rental", "manual"]] = "manual"
    related_id: Optional[str] = None
    date: Optional[str] = None
