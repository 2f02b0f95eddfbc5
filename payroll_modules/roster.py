"""
Roster and attendance readers (``payroll_modules.roster``).

Turns the files the administration layer exports into kernel records:

* Employee roster: YAML with a top-level ``employees`` list.  Each entry
  holds the ``Employee`` fields plus a nested ``structure`` mapping.
* Attendance: CSV with a header row.  Required columns are
  ``employee_id`` and ``days_worked``; ``lop_days`` and the
  ``overtime_regular`` / ``overtime_weekend`` / ``overtime_holiday``
  columns default to 0 when absent or blank.

Money and day values are read as strings so they reach ``Decimal``
without float rounding.
"""

from __future__ import annotations

import csv
from dataclasses import fields
from datetime import date
from pathlib import Path
from typing import Any

import yaml

from payroll_kernel.domain.records import (
    Allowance,
    AttendanceRecord,
    Employee,
    OvertimeHours,
    SalaryStructure,
)
from payroll_kernel.exceptions import InputValidationError

REQUIRED_ATTENDANCE_COLUMNS = ("employee_id", "days_worked")

_STRUCTURE_FIELDS = {f.name for f in fields(SalaryStructure)}
_EMPLOYEE_FIELDS = {f.name for f in fields(Employee)}


def _as_str(value: Any) -> Any:
    # YAML turns 30000.50 into a float; route every number through str
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def parse_structure(data: dict[str, Any]) -> SalaryStructure:
    unknown = set(data) - _STRUCTURE_FIELDS
    if unknown:
        raise InputValidationError("structure", sorted(unknown), "unknown structure fields")
    values = {k: _as_str(v) for k, v in data.items() if k != "other_allowances"}
    allowances = tuple(
        Allowance(name=str(a["name"]), amount=_as_str(a["amount"]))
        for a in data.get("other_allowances") or ()
    )
    return SalaryStructure(other_allowances=allowances, **values)


def parse_employee(data: dict[str, Any]) -> Employee:
    unknown = set(data) - _EMPLOYEE_FIELDS
    if unknown:
        raise InputValidationError("employee", sorted(unknown), "unknown employee fields")
    values = dict(data)
    values["id"] = str(values["id"])
    values["structure"] = parse_structure(values["structure"])
    join_date = values.get("join_date")
    if isinstance(join_date, str):
        values["join_date"] = date.fromisoformat(join_date)
    if "ytd_tax_withheld" in values:
        values["ytd_tax_withheld"] = _as_str(values["ytd_tax_withheld"])
    for key in ("code", "uan", "labour_card_number", "national_id", "account_number", "insurance_number"):
        if key in values and values[key] is not None:
            values[key] = str(values[key])
    return Employee(**values)


def load_roster(path: Path) -> list[Employee]:
    """
    Raises:
        FileNotFoundError: missing file.
        yaml.YAMLError: malformed YAML.
        KeyError: an entry without ``id`` or ``structure``.
        InputValidationError: unknown or malformed fields.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    return [parse_employee(entry) for entry in data.get("employees", [])]


def _cell(row: dict[str, str | None], column: str, default: str = "0") -> str:
    value = (row.get(column) or "").strip()
    return value or default


def load_attendance_csv(path: Path, encoding: str = "utf-8") -> list[AttendanceRecord]:
    """Read one ``AttendanceRecord`` per CSV row."""
    records: list[AttendanceRecord] = []
    with open(path, newline="", encoding=encoding) as f:
        reader = csv.DictReader(f)
        missing = [c for c in REQUIRED_ATTENDANCE_COLUMNS if c not in (reader.fieldnames or ())]
        if missing:
            raise InputValidationError("attendance_csv", missing, "missing required columns")
        for row in reader:
            records.append(
                AttendanceRecord(
                    employee_id=_cell(row, "employee_id", ""),
                    days_worked=_cell(row, "days_worked"),
                    lop_days=_cell(row, "lop_days"),
                    overtime=OvertimeHours(
                        regular=_cell(row, "overtime_regular"),
                        weekend=_cell(row, "overtime_weekend"),
                        holiday=_cell(row, "overtime_holiday"),
                    ),
                )
            )
    return records
