"""
Regulator Summary Report (``payroll_modules.compliance.regulator``).

CSV for the labour ministry: header row, every field double-quoted,
comma-separated, amounts with two decimals.  A small summary (headcount,
nationals vs. expatriates, total and average salary) accompanies it.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from payroll_kernel.domain.records import Employee
from payroll_kernel.domain.rounding import ZERO, round_half_up
from payroll_kernel.exceptions import MissingEmployeeRecordError
from payroll_kernel.logging_config import get_logger
from payroll_services.batch_processor import PayrollRunResult

logger = get_logger("modules.compliance.regulator")

REPORT_COLUMNS = (
    "Employee Code",
    "Employee Name",
    "Emirates ID",
    "Labor Card Number",
    "Nationality",
    "Designation",
    "Department",
    "Date of Joining",
    "Basic Salary",
    "Allowances",
    "Total Salary",
    "Visa Type",
    "Contract Type",
)

NATIONAL_NATIONALITIES = frozenset({"uae", "emirati", "united arab emirates"})


@dataclass(frozen=True)
class RegulatorSummary:
    total_employees: int
    nationals: int
    expatriates: int
    total_salary: Decimal
    average_salary: Decimal


@dataclass(frozen=True)
class RegulatorReport:
    csv_content: str
    summary: RegulatorSummary


def _money(value: Decimal) -> str:
    return f"{round_half_up(value, 2):.2f}"


def is_national(employee: Employee) -> bool:
    return employee.nationality.strip().lower() in NATIONAL_NATIONALITIES


def generate_regulator_report(
    run: PayrollRunResult,
    employees: Iterable[Employee],
) -> RegulatorReport:
    """
    One row per payroll item, in run order.

    Raises:
        MissingEmployeeRecordError: an item has no matching employee.
    """
    by_id = {e.id: e for e in employees}
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(REPORT_COLUMNS)

    nationals = 0
    total_salary = ZERO
    for item in run.items:
        employee = by_id.get(item.employee_id)
        if employee is None:
            raise MissingEmployeeRecordError(item.employee_id)
        basic = item.earnings.basic
        if is_national(employee):
            nationals += 1
        total_salary += item.gross
        writer.writerow(
            (
                employee.reference_code,
                employee.name,
                employee.national_id,
                employee.labour_card_number,
                employee.nationality,
                employee.designation,
                employee.department,
                employee.join_date.isoformat() if employee.join_date else "",
                _money(basic),
                _money(item.gross - basic),
                _money(item.gross),
                employee.visa_type,
                employee.contract_type,
            )
        )

    count = len(run.items)
    summary = RegulatorSummary(
        total_employees=count,
        nationals=nationals,
        expatriates=count - nationals,
        total_salary=total_salary,
        average_salary=round_half_up(total_salary / count, 2) if count else ZERO,
    )
    logger.info(
        "regulator_report_generated",
        extra={
            "total_employees": count,
            "nationals": nationals,
            "total_salary": str(total_salary),
        },
    )
    return RegulatorReport(csv_content=buffer.getvalue(), summary=summary)
