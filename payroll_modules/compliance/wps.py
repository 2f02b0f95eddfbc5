"""
Wage-Protection File (``payroll_modules.compliance.wps``).

Responsibility
--------------
Serializes a finalized ``PayrollRunResult`` into the pipe-delimited,
fixed-field Standard Import Format (SIF) that banks validate before
releasing salaries: one ``SCR`` header record, then one ``EDR`` record
per employee.

Layout
------
SCR: tag | registration (14) | company name (100) | establishment (20) |
     payment date DDMMYYYY | period MMYYYY | record count (8, zero-padded) |
     total net in minor units (15, zero-padded)

EDR: tag | sequence (8, zero-padded) | labour card (20) | name (100) |
     bank short name (23) | account, whitespace stripped (23) |
     basic | allowances | deductions | net (each 15, minor units) |
     reference code (20)

Text fields are left-justified and space-padded.  Names are truncated to
their width.  Every other text field that is too long, and any amount
that is negative or needs more than 15 digits, raises
``WageFileFormatError``: a wrong-width file is rejected by the bank.

Allowances are reported as ``gross - basic`` so every record satisfies
``basic + allowances - deductions = net``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from payroll_kernel.domain.records import Employee
from payroll_kernel.domain.rounding import to_minor_units
from payroll_kernel.exceptions import MissingEmployeeRecordError, WageFileFormatError
from payroll_kernel.logging_config import get_logger
from payroll_services.batch_processor import PayrollItem, PayrollRunResult

logger = get_logger("modules.compliance.wps")

HEADER_TAG = "SCR"
RECORD_TAG = "EDR"
FIELD_SEPARATOR = "|"

REGISTRATION_WIDTH = 14
COMPANY_NAME_WIDTH = 100
ESTABLISHMENT_WIDTH = 20
COUNT_WIDTH = 8
AMOUNT_WIDTH = 15
SEQUENCE_WIDTH = 8
LABOUR_CARD_WIDTH = 20
EMPLOYEE_NAME_WIDTH = 100
BANK_NAME_WIDTH = 23
ACCOUNT_WIDTH = 23
REFERENCE_WIDTH = 20

_WHITESPACE = re.compile(r"\s+")
_IBAN = re.compile(r"^AE\d{21}$")


@dataclass(frozen=True)
class WageFileCompany:
    registration_id: str
    company_name: str
    establishment_number: str


@dataclass(frozen=True)
class WageFileRecord:
    sequence: int
    employee_id: str
    labour_card_number: str
    name: str
    bank_short_name: str
    account_number: str
    basic: Decimal
    allowances: Decimal
    deductions: Decimal
    net: Decimal
    reference_code: str


@dataclass(frozen=True)
class WageFile:
    file_name: str
    content: str
    records: tuple[WageFileRecord, ...]
    total_net: Decimal

    @property
    def record_count(self) -> int:
        return len(self.records)


def pad_text(value: str, width: int, field: str, truncate: bool = False) -> str:
    """Left-justify ``value`` in ``width`` spaces."""
    value = value or ""
    if len(value) > width:
        if not truncate:
            raise WageFileFormatError(field, value, width)
        value = value[:width]
    return value.ljust(width)


def pad_number(value: int, width: int, field: str) -> str:
    """Zero-pad a non-negative integer to ``width`` digits."""
    if value < 0:
        raise WageFileFormatError(field, value, width, "negative amount")
    text = str(value)
    if len(text) > width:
        raise WageFileFormatError(field, value, width)
    return text.zfill(width)


def pad_amount(amount: Decimal, field: str) -> str:
    """Amount in minor units (x100), zero-padded to 15 digits, no separators."""
    return pad_number(to_minor_units(amount), AMOUNT_WIDTH, field)


def clean_account(account: str) -> str:
    return _WHITESPACE.sub("", account or "")


def build_record(sequence: int, item: PayrollItem, employee: Employee) -> WageFileRecord:
    basic = item.earnings.basic
    return WageFileRecord(
        sequence=sequence,
        employee_id=employee.id,
        labour_card_number=employee.labour_card_number,
        name=employee.name,
        bank_short_name=employee.bank_short_name,
        account_number=clean_account(employee.account_number),
        basic=basic,
        allowances=item.gross - basic,
        deductions=item.total_deductions,
        net=item.net,
        reference_code=employee.reference_code,
    )


def format_header(
    company: WageFileCompany,
    payment_date: date,
    period_month: int,
    period_year: int,
    record_count: int,
    total_net: Decimal,
) -> str:
    fields = [
        HEADER_TAG,
        pad_text(company.registration_id, REGISTRATION_WIDTH, "registration_id"),
        pad_text(company.company_name, COMPANY_NAME_WIDTH, "company_name", truncate=True),
        pad_text(company.establishment_number, ESTABLISHMENT_WIDTH, "establishment_number"),
        payment_date.strftime("%d%m%Y"),
        f"{period_month:02d}{period_year:04d}",
        pad_number(record_count, COUNT_WIDTH, "record_count"),
        pad_amount(total_net, "total_net"),
    ]
    return FIELD_SEPARATOR.join(fields)


def format_record(record: WageFileRecord) -> str:
    fields = [
        RECORD_TAG,
        pad_number(record.sequence, SEQUENCE_WIDTH, "sequence"),
        pad_text(record.labour_card_number, LABOUR_CARD_WIDTH, "labour_card_number"),
        pad_text(record.name, EMPLOYEE_NAME_WIDTH, "name", truncate=True),
        pad_text(record.bank_short_name, BANK_NAME_WIDTH, "bank_short_name"),
        pad_text(record.account_number, ACCOUNT_WIDTH, "account_number"),
        pad_amount(record.basic, "basic"),
        pad_amount(record.allowances, "allowances"),
        pad_amount(record.deductions, "deductions"),
        pad_amount(record.net, "net"),
        pad_text(record.reference_code, REFERENCE_WIDTH, "reference_code"),
    ]
    return FIELD_SEPARATOR.join(fields)


def _employees_by_id(employees: Iterable[Employee]) -> Mapping[str, Employee]:
    return {e.id: e for e in employees}


def generate_wage_file(
    run: PayrollRunResult,
    employees: Iterable[Employee],
    company: WageFileCompany,
    payment_date: date,
) -> WageFile:
    """
    Build the SIF file for ``run``.

    Raises:
        MissingEmployeeRecordError: an item has no matching employee.
        WageFileFormatError: a field does not fit its width.
    """
    by_id = _employees_by_id(employees)
    records: list[WageFileRecord] = []
    for sequence, item in enumerate(run.items, 1):
        employee = by_id.get(item.employee_id)
        if employee is None:
            raise MissingEmployeeRecordError(item.employee_id)
        records.append(build_record(sequence, item, employee))

    lines = [format_record(r) for r in records]
    total_net = sum((r.net for r in records), Decimal("0"))
    header = format_header(
        company,
        payment_date,
        run.period.month,
        run.period.year,
        len(records),
        total_net,
    )
    file_name = f"WPS_{company.establishment_number}_{run.period.year:04d}{run.period.month:02d}.sif"

    logger.info(
        "wage_file_generated",
        extra={
            "run_id": str(run.run_id),
            "file_name": file_name,
            "record_count": len(records),
            "total_net": str(total_net),
        },
    )
    return WageFile(
        file_name=file_name,
        content="\n".join([header, *lines]),
        records=tuple(records),
        total_net=total_net,
    )


def validate_wage_file_employee(employee: Employee) -> list[str]:
    """Readiness problems that would get this employee's record rejected."""
    errors: list[str] = []
    if not employee.national_id.strip():
        errors.append("National id is required")
    if not employee.labour_card_number.strip():
        errors.append("Labour card number is required")
    if not employee.bank_short_name.strip():
        errors.append("Bank name is required")
    account = clean_account(employee.account_number)
    if not account:
        errors.append("IBAN is required")
    elif not _IBAN.match(account):
        errors.append("IBAN format is invalid (must be AE + 21 digits)")
    return errors
