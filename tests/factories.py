"""
Builders for payroll test inputs.

Amounts are passed as strings so they reach ``Decimal`` exactly.
"""

import json
from datetime import date
from decimal import Decimal
from io import StringIO

from payroll_kernel.domain.records import (
    Allowance,
    AttendanceRecord,
    Employee,
    OvertimeHours,
    SalaryStructure,
)


def make_structure(basic="30000", housing="15000", transport="1600", others=(), **flags):
    """Monthly structure with optional named allowances and flag overrides."""
    return SalaryStructure(
        basic=Decimal(basic),
        housing_allowance=Decimal(housing),
        transport_allowance=Decimal(transport),
        other_allowances=tuple(Allowance(name, Decimal(amount)) for name, amount in others),
        **flags,
    )


def make_employee(employee_id="E001", structure=None, **fields):
    fields.setdefault("name", f"Employee {employee_id}")
    fields.setdefault("jurisdiction", "MH")
    return Employee(id=employee_id, structure=structure or make_structure(), **fields)


def make_attendance(employee_id="E001", days_worked="30", lop_days="0", regular="0", weekend="0", holiday="0"):
    return AttendanceRecord(
        employee_id=employee_id,
        days_worked=Decimal(days_worked),
        lop_days=Decimal(lop_days),
        overtime=OvertimeHours(
            regular=Decimal(regular),
            weekend=Decimal(weekend),
            holiday=Decimal(holiday),
        ),
    )


def make_uae_employee(employee_id="U001", basic="8000", housing="3000", transport="1000", **fields):
    """Employee with every statutory scheme switched off and WPS fields filled."""
    structure = make_structure(
        basic=basic,
        housing=housing,
        transport=transport,
        pf_applicable=False,
        insurance_applicable=False,
        professional_tax_applicable=False,
        income_tax_applicable=False,
    )
    defaults = dict(
        name=f"Worker {employee_id}",
        code=f"C-{employee_id}",
        jurisdiction="",
        national_id="784-1990-1234567-1",
        nationality="India",
        designation="Technician",
        department="Operations",
        join_date=date(2021, 3, 1),
        bank_short_name="ENBD",
        account_number="AE07 0331 2345 6789 0123 456",
        labour_card_number=f"LC{employee_id}",
        visa_type="Employment",
        contract_type="Unlimited",
    )
    defaults.update(fields)
    return Employee(id=employee_id, structure=structure, **defaults)


def parse_logs(stream: StringIO) -> list[dict]:
    """Every JSON log line written to ``stream``."""
    return [json.loads(line) for line in stream.getvalue().splitlines() if line.strip()]


def events(stream: StringIO, message: str) -> list[dict]:
    return [r for r in parse_logs(stream) if r["message"] == message]
