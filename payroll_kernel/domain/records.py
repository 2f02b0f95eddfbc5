"""
Payroll Input Records (``payroll_kernel.domain.records``).

Responsibility
--------------
Frozen value objects for everything the calculation engine consumes from
the employee administration layer: the monthly salary structure, a
period's attendance, the calendar period itself and the employee master
data the compliance exports need.

Architecture position
---------------------
**Kernel layer** -- pure data with ZERO I/O.  Consumed by
``payroll_engines`` and ``payroll_services``; never persisted here.

Invariants enforced
-------------------
* All records are ``frozen=True``.  A recalculation builds new records.
* Money fields are coerced to ``Decimal`` on construction (int and str
  accepted, float rejected).
* Sign checks are NOT done here.  Calculators reject negative money at
  their own boundary so a malformed record surfaces as a failure of the
  employee and stage that consumed it.

Failure modes
-------------
* Float or non-numeric money -> ``InputValidationError``.
* Month outside 1..12 -> ``InputValidationError``.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from payroll_kernel.domain.rounding import ZERO, as_money
from payroll_kernel.exceptions import InputValidationError

# The fiscal year runs April through March.
FISCAL_YEAR_START_MONTH = 4


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    UNSPECIFIED = "unspecified"


class TaxRegime(str, Enum):
    """Income-tax regimes shipped in the default rate tables."""

    NEW = "new"
    OLD = "old"


def fiscal_periods_remaining(month: int) -> int:
    """Months left in the April-March fiscal year, ``month`` included.

    April -> 12, December -> 4, March -> 1.
    """
    if not 1 <= month <= 12:
        raise InputValidationError("month", month, "must be 1..12")
    return (FISCAL_YEAR_START_MONTH - 1 - month) % 12 + 1


def _coerce(obj: object, *names: str) -> None:
    for name in names:
        object.__setattr__(obj, name, as_money(getattr(obj, name), name))


@dataclass(frozen=True)
class Allowance:
    """A named fixed monthly allowance (e.g. "medical", "special")."""

    name: str
    amount: Decimal

    def __post_init__(self) -> None:
        _coerce(self, "amount")


@dataclass(frozen=True)
class SalaryStructure:
    """
    Monthly salary structure snapshot for one employee.

    Component order is significant: ``components()`` yields basic,
    housing, transport, then ``other_allowances`` in list order, and the
    earnings breakdown and wage file follow that order.
    """

    basic: Decimal
    housing_allowance: Decimal = ZERO
    transport_allowance: Decimal = ZERO
    other_allowances: tuple[Allowance, ...] = ()

    # Statutory applicability
    pf_applicable: bool = True
    insurance_applicable: bool = True
    professional_tax_applicable: bool = True
    income_tax_applicable: bool = True
    labour_welfare_applicable: bool = False

    # Scheme-specific modifiers
    international_worker: bool = False
    pf_exempted: bool = False
    has_disability: bool = False
    insurance_forced_eligibility: bool = False
    tax_regime: str = TaxRegime.NEW

    def __post_init__(self) -> None:
        _coerce(self, "basic", "housing_allowance", "transport_allowance")
        object.__setattr__(self, "other_allowances", tuple(self.other_allowances))
        names = [a.name for a in self.other_allowances]
        reserved = {"basic", "housing", "transport", "overtime"}
        duplicates = {n for n in names if names.count(n) > 1 or n in reserved}
        if duplicates:
            raise InputValidationError(
                "other_allowances", sorted(duplicates), "allowance names must be unique"
            )

    def components(self) -> list[tuple[str, Decimal]]:
        """Fixed monthly components as ``(name, amount)`` in payslip order."""
        items = [
            ("basic", self.basic),
            ("housing", self.housing_allowance),
            ("transport", self.transport_allowance),
        ]
        items.extend((a.name, a.amount) for a in self.other_allowances)
        return items

    @property
    def monthly_gross(self) -> Decimal:
        return sum((amount for _, amount in self.components()), ZERO)


@dataclass(frozen=True)
class OvertimeHours:
    """Overtime hours in a period, by pay bucket."""

    regular: Decimal = ZERO
    weekend: Decimal = ZERO
    holiday: Decimal = ZERO

    def __post_init__(self) -> None:
        _coerce(self, "regular", "weekend", "holiday")

    @property
    def total(self) -> Decimal:
        return self.regular + self.weekend + self.holiday


@dataclass(frozen=True)
class PeriodContext:
    """A calendar-month payroll period."""

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise InputValidationError("month", self.month, "must be 1..12")
        if self.year < 1:
            raise InputValidationError("year", self.year, "must be positive")

    @property
    def days_in_period(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, self.days_in_period)

    @property
    def label(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    def payable_days(self, lop_days: Decimal | int) -> Decimal:
        """Days in the period minus loss-of-pay days, floored at zero."""
        return max(ZERO, Decimal(self.days_in_period) - as_money(lop_days, "lop_days"))

    @property
    def fiscal_periods_remaining(self) -> int:
        return fiscal_periods_remaining(self.month)

    @property
    def fiscal_year_start(self) -> int:
        """Calendar year in which the current fiscal year began."""
        return self.year if self.month >= FISCAL_YEAR_START_MONTH else self.year - 1


@dataclass(frozen=True)
class AttendanceRecord:
    """One employee's attendance for one period."""

    employee_id: str
    days_worked: Decimal
    lop_days: Decimal = ZERO
    overtime: OvertimeHours = field(default_factory=OvertimeHours)

    def __post_init__(self) -> None:
        _coerce(self, "days_worked", "lop_days")

    @classmethod
    def full_attendance(cls, employee_id: str, period: PeriodContext) -> AttendanceRecord:
        """Every day of the period worked, no loss of pay, no overtime."""
        return cls(
            employee_id=employee_id,
            days_worked=Decimal(period.days_in_period),
        )


@dataclass(frozen=True)
class Employee:
    """
    Employee master data consumed by the engine.

    Only ``id`` and ``structure`` drive calculation.  The rest feeds the
    wage-protection file and regulator reports.
    """

    id: str
    name: str
    structure: SalaryStructure
    code: str = ""
    gender: Gender = Gender.UNSPECIFIED
    jurisdiction: str = ""
    national_id: str = ""
    nationality: str = ""
    designation: str = ""
    department: str = ""
    join_date: date | None = None
    bank_short_name: str = ""
    account_number: str = ""
    labour_card_number: str = ""
    uan: str = ""
    insurance_number: str = ""
    visa_type: str = ""
    contract_type: str = ""
    is_intern: bool = False
    ytd_tax_withheld: Decimal = ZERO

    def __post_init__(self) -> None:
        if not self.id:
            raise InputValidationError("id", self.id, "employee id is required")
        _coerce(self, "ytd_tax_withheld")
        object.__setattr__(self, "gender", Gender(self.gender))

    @property
    def reference_code(self) -> str:
        return self.code or self.id
