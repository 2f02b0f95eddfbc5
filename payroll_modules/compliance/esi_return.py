"""
State Insurance Monthly Return (``payroll_modules.compliance.esi_return``).

Builds the monthly contribution return as an Excel workbook with
openpyxl: a title block, one row per insured employee (days, wages and
both contribution shares) and a totals row.  Only items where the state
insurance calculator ran and found the employee eligible are listed.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import IO, Any

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill

from payroll_kernel.domain.records import Employee
from payroll_kernel.domain.rounding import ZERO
from payroll_kernel.exceptions import MissingEmployeeRecordError
from payroll_kernel.logging_config import get_logger
from payroll_services.batch_processor import PayrollRunResult

logger = get_logger("modules.compliance.esi_return")

SHEET_TITLE = "ESI Return"
RETURN_COLUMNS = (
    "S.No",
    "IP Number",
    "Employee Name",
    "Gender",
    "Days Worked",
    "Total Wages",
    "Employee Contribution",
    "Employer Contribution",
)
HEADER_ROW = 5
_AMOUNT_FORMAT = "#,##0.00"
_HEADER_FILL = PatternFill(start_color="FF305496", end_color="FF305496", fill_type="solid")


@dataclass(frozen=True)
class ESIReturnRow:
    insurance_number: str
    name: str
    gender: str
    days_worked: Decimal
    wages: Decimal
    employee_contribution: Decimal
    employer_contribution: Decimal


@dataclass(frozen=True)
class ESIReturn:
    file_name: str
    workbook: Workbook
    rows: tuple[ESIReturnRow, ...]
    total_wages: Decimal
    total_employee_contribution: Decimal
    total_employer_contribution: Decimal

    def save(self, destination: str | Path | IO[bytes]) -> None:
        self.workbook.save(destination)


def _collect_rows(run: PayrollRunResult, employees: Iterable[Employee]) -> list[ESIReturnRow]:
    by_id = {e.id: e for e in employees}
    rows: list[ESIReturnRow] = []
    for item in run.items:
        insurance = item.deductions.state_insurance
        if insurance is None or not insurance.eligible:
            continue
        employee = by_id.get(item.employee_id)
        if employee is None:
            raise MissingEmployeeRecordError(item.employee_id)
        rows.append(
            ESIReturnRow(
                insurance_number=employee.insurance_number,
                name=employee.name,
                gender=employee.gender.value.title(),
                days_worked=item.earnings.payable_days,
                wages=insurance.insured_wages,
                employee_contribution=insurance.employee_share,
                employer_contribution=insurance.employer_share,
            )
        )
    return rows


def _title_row(ws: Any, row: int, text: str, size: int, bold: bool) -> None:
    last_column = chr(ord("A") + len(RETURN_COLUMNS) - 1)
    ws.merge_cells(f"A{row}:{last_column}{row}")
    cell = ws.cell(row=row, column=1, value=text)
    cell.font = Font(size=size, bold=bold)
    cell.alignment = Alignment(horizontal="center")


def generate_esi_return(
    run: PayrollRunResult,
    employees: Iterable[Employee],
    employer_code: str,
    employer_name: str,
) -> ESIReturn:
    """
    Build the monthly return workbook for ``run``.

    Raises:
        MissingEmployeeRecordError: an insured item has no matching employee.
    """
    rows = _collect_rows(run, employees)
    period = run.period

    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_TITLE

    _title_row(ws, 1, f"ESI Monthly Return - {period.first_day.strftime('%B')} {period.year}", 16, True)
    _title_row(ws, 2, employer_name, 12, True)
    _title_row(ws, 3, f"ESIC Code: {employer_code}", 11, False)

    for col, title in enumerate(RETURN_COLUMNS, 1):
        cell = ws.cell(row=HEADER_ROW, column=col, value=title)
        cell.font = Font(bold=True, color="FFFFFFFF")
        cell.fill = _HEADER_FILL

    for index, row in enumerate(rows, 1):
        ws.append(
            [
                index,
                row.insurance_number,
                row.name,
                row.gender,
                row.days_worked,
                row.wages,
                row.employee_contribution,
                row.employer_contribution,
            ]
        )

    total_wages = sum((r.wages for r in rows), ZERO)
    total_ee = sum((r.employee_contribution for r in rows), ZERO)
    total_er = sum((r.employer_contribution for r in rows), ZERO)
    ws.append(["", "", "TOTAL", "", "", total_wages, total_ee, total_er])
    for cell in ws[ws.max_row]:
        cell.font = Font(bold=True)

    for data_row in ws.iter_rows(min_row=HEADER_ROW + 1, min_col=6, max_col=8):
        for cell in data_row:
            cell.number_format = _AMOUNT_FORMAT

    for col, width in zip("ABCDEFGH", (6, 20, 30, 10, 12, 14, 22, 22)):
        ws.column_dimensions[col].width = width

    logger.info(
        "esi_return_generated",
        extra={
            "run_id": str(run.run_id),
            "insured_count": len(rows),
            "total_wages": str(total_wages),
        },
    )
    return ESIReturn(
        file_name=f"ESI_Return_{employer_code}_{period.month:02d}_{period.year:04d}.xlsx",
        workbook=wb,
        rows=tuple(rows),
        total_wages=total_wages,
        total_employee_contribution=total_ee,
        total_employer_contribution=total_er,
    )
