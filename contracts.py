"""
Vehicle lease contracts rendered as PDF with fpdf2.

    pdf_bytes = render_lease_pdf(LeaseContract(...))
"""
from datetime import date
from typing import List, Optional

from fpdf import FPDF
from pydantic import BaseModel, Field


class ContractParty(BaseModel):
    name: str = ""
    company_name: Optional[str] = None
    rfc: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    representative_name: Optional[str] = None
    representative_title: Optional[str] = None


class ContractVehicle(BaseModel):
    make: str = ""
    model: str = ""
    year: Optional[int] = None
    color: Optional[str] = None
    plates: Optional[str] = None
    vin: Optional[str] = None
    engine: Optional[str] = None
    mileage_out: Optional[int] = None
    mileage_in: Optional[int] = None


class LeaseContract(BaseModel):
    contract_id: Optional[str] = None
    sign_date: date = Field(default_factory=date.today)
    start_date: date = Field(default_factory=date.today)
    end_date: Optional[date] = None
    daily_rate: float = Field(0.0, ge=0)
    deposit: float = Field(0.0, ge=0)
    place: str = "Aguascalientes, Aguascalientes"
    lessor: ContractParty = Field(default_factory=ContractParty)
    lessee: ContractParty = Field(default_factory=ContractParty)
    vehicle: ContractVehicle = Field(default_factory=ContractVehicle)
    clauses_override: Optional[List[str]] = None


DEFAULT_CLAUSES = [
    "FIRST. Purpose. The LESSOR grants the LESSEE the temporary use of the VEHICLE described above.",
    "SECOND. Term. The lease starts on the start date and ends on the end date, and may be renewed by mutual agreement.",
    "THIRD. Use. The LESSEE will use the VEHICLE only for lawful private or commercial transport and will not sublet it or let unauthorized persons drive it.",
    "FOURTH. Obligations. The LESSEE will pay the daily rent on time, keep the VEHICLE in the condition received, pay for fuel, obey traffic laws, report any accident immediately and allow periodic inspections.",
    "FIFTH. Delivery. The LESSOR delivers the VEHICLE in working and safe condition with the equipment listed in Annex A.",
    "SIXTH. Return. At the end of the contract the LESSEE returns the VEHICLE in the same condition, except for normal wear.",
    "SEVENTH. Rent. The LESSEE pays the agreed daily rent. Late payments accrue 5% monthly default interest.",
    "EIGHTH. Insurance. The VEHICLE is covered by a comprehensive policy. The LESSEE pays the deductible in case of a claim.",
    "NINTH. Deposit. The deposit covers damages, fines or unpaid rent and is returned at the end of the contract when nothing is owed.",
    "TENTH. No employment relationship. This is a commercial contract and creates no employment relationship between the parties.",
    "ELEVENTH. Maintenance. The LESSOR covers preventive maintenance. Repairs caused by misuse are paid by the LESSEE.",
    "TWELFTH. Termination. Either party may terminate early if the other breaches this contract.",
]

ANNEX_A = ["Spare tire", "Jack", "Lug wrench", "Floor mats", "Trunk mat", "Jumper cables", "Antenna"]


def _text(value) -> str:
    # Core fonts only cover latin-1
    return str(value if value is not None else "").encode("latin-1", "replace").decode("latin-1")


def _money(amount: float) -> str:
    return f"${amount:,.2f} MXN"


def render_lease_pdf(contract: LeaseContract) -> bytes:
    pdf = FPDF()
    pdf.add_page()
    pdf.set_auto_page_break(auto=True, margin=15)

    # Header
    lessor_company = contract.lessor.company_name or contract.lessor.name
    pdf.set_font("Helvetica", "B", 16)
    pdf.cell(0, 10, _text("VEHICLE LEASE CONTRACT"), new_x="LMARGIN", new_y="NEXT", align="C")
    pdf.set_font("Helvetica", "", 10)
    if lessor_company:
        pdf.cell(0, 6, _text(lessor_company), new_x="LMARGIN", new_y="NEXT", align="C")
    if contract.contract_id:
        pdf.cell(0, 6, _text(f"Contract No. {contract.contract_id}"), new_x="LMARGIN", new_y="NEXT", align="C")
    pdf.ln(4)

    # Parties
    pdf.set_fill_color(240, 240, 240)
    pdf.set_font("Helvetica", "B", 11)
    pdf.cell(0, 7, "  Parties", new_x="LMARGIN", new_y="NEXT", fill=True)
    pdf.set_font("Helvetica", "", 10)
    for label, party in (("Lessor", contract.lessor), ("Lessee", contract.lessee)):
        pdf.cell(0, 6, _text(f"  {label}: {party.company_name or party.name}"), new_x="LMARGIN", new_y="NEXT")
        if party.representative_name:
            title = f", {party.representative_title}" if party.representative_title else ""
            pdf.cell(0, 6, _text(f"    Represented by: {party.representative_name}{title}"), new_x="LMARGIN", new_y="NEXT")
        pdf.cell(95, 6, _text(f"    RFC: {party.rfc or 'N/A'}"), new_x="RIGHT")
        pdf.cell(95, 6, _text(f"Phone: {party.phone or 'N/A'}"), new_x="LMARGIN", new_y="NEXT")
        if party.address:
            pdf.cell(0, 6, _text(f"    Address: {party.address}"), new_x="LMARGIN", new_y="NEXT")
    pdf.ln(4)

    # Vehicle
    v = contract.vehicle
    pdf.set_font("Helvetica", "B", 11)
    pdf.cell(0, 7, "  Vehicle", new_x="LMARGIN", new_y="NEXT", fill=True)
    pdf.set_font("Helvetica", "", 10)
    pdf.cell(95, 6, _text(f"  {v.make} {v.model} {v.year or ''}".rstrip()), new_x="RIGHT")
    pdf.cell(95, 6, _text(f"Color: {v.color or 'N/A'}"), new_x="LMARGIN", new_y="NEXT")
    pdf.cell(95, 6, _text(f"  Plates: {v.plates or 'N/A'}"), new_x="RIGHT")
    pdf.cell(95, 6, _text(f"VIN: {v.vin or 'N/A'}"), new_x="LMARGIN", new_y="NEXT")
    mileage = f"{v.mileage_out:,} km" if v.mileage_out is not None else "N/A"
    pdf.cell(95, 6, _text(f"  Engine: {v.engine or 'N/A'}"), new_x="RIGHT")
    pdf.cell(95, 6, _text(f"Mileage out: {mileage}"), new_x="LMARGIN", new_y="NEXT")
    pdf.ln(4)

    # Terms
    pdf.set_font("Helvetica", "B", 11)
    pdf.cell(0, 7, "  Terms", new_x="LMARGIN", new_y="NEXT", fill=True)
    pdf.set_font("Helvetica", "", 10)
    end = contract.end_date.isoformat() if contract.end_date else "Indefinite"
    pdf.cell(95, 6, _text(f"  Start: {contract.start_date.isoformat()}"), new_x="RIGHT")
    pdf.cell(95, 6, _text(f"End: {end}"), new_x="LMARGIN", new_y="NEXT")
    pdf.cell(95, 6, _text(f"  Daily rate: {_money(contract.daily_rate)}"), new_x="RIGHT")
    pdf.cell(95, 6, _text(f"Deposit: {_money(contract.deposit)}"), new_x="LMARGIN", new_y="NEXT")
    pdf.ln(4)

    # Clauses
    pdf.set_font("Helvetica", "B", 11)
    pdf.cell(0, 7, "  Clauses", new_x="LMARGIN", new_y="NEXT", fill=True)
    pdf.set_font("Helvetica", "", 9)
    for clause in contract.clauses_override or DEFAULT_CLAUSES:
        pdf.multi_cell(0, 5, _text(clause), new_x="LMARGIN", new_y="NEXT")
        pdf.ln(1)
    pdf.ln(2)

    pdf.set_font("Helvetica", "B", 10)
    pdf.cell(0, 6, "  Annex A - Equipment delivered", new_x="LMARGIN", new_y="NEXT")
    pdf.set_font("Helvetica", "", 9)
    pdf.cell(0, 5, _text("  " + ", ".join(ANNEX_A)), new_x="LMARGIN", new_y="NEXT")
    pdf.ln(6)

    # Signatures
    pdf.set_font("Helvetica", "", 10)
    pdf.cell(0, 6, _text(f"Signed in {contract.place} on {contract.sign_date.isoformat()}."), new_x="LMARGIN", new_y="NEXT")
    pdf.ln(14)
    pdf.cell(95, 6, "______________________________", new_x="RIGHT", align="C")
    pdf.cell(95, 6, "______________________________", new_x="LMARGIN", new_y="NEXT", align="C")
    pdf.cell(95, 6, _text(contract.lessor.representative_name or lessor_company or "LESSOR"), new_x="RIGHT", align="C")
    pdf.cell(95, 6, _text(contract.lessee.name or "LESSEE"), new_x="LMARGIN", new_y="NEXT", align="C")

    return bytes(pdf.output())
