"""
Proration Engine - period-adjusted earnings from a monthly structure.

Two divisor conventions live here and must not be mixed:

* Fixed components (basic, each allowance) scale by
  ``payable_days / days_in_period`` using the ACTUAL calendar days of
  the period.
* Overtime uses a FIXED hourly rate of ``basic / 30 / 8`` regardless of
  the calendar month, then the bucket multipliers (1.25 regular, 1.5
  weekend and holiday).

Every component is rounded half-up to a whole unit on its own and gross
is the sum of the rounded components.  Truncation is never used.

Usage:
    from payroll_engines.proration import prorate

    earnings = prorate(structure, attendance, PeriodContext(2024, 6))
    earnings.gross
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from payroll_config import get_active_rates
from payroll_config.schema import OvertimeRates
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.records import (
    AttendanceRecord,
    OvertimeHours,
    PeriodContext,
    SalaryStructure,
)
from payroll_kernel.domain.rounding import ZERO, non_negative, round_half_up
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.proration")

OVERTIME_COMPONENT = "overtime"


@dataclass(frozen=True)
class EarningsComponent:
    name: str
    amount: Decimal
    is_overtime: bool = False


@dataclass(frozen=True)
class EarningsBreakdown:
    """
    Prorated earnings for one employee and period.

    ``gross`` is always derived from the already-rounded components.
    """

    components: tuple[EarningsComponent, ...]
    days_in_period: int
    payable_days: Decimal

    @property
    def gross(self) -> Decimal:
        return sum((c.amount for c in self.components), ZERO)

    @property
    def basic(self) -> Decimal:
        return self.amount_of("basic")

    @property
    def overtime(self) -> Decimal:
        return self.amount_of(OVERTIME_COMPONENT)

    def amount_of(self, name: str) -> Decimal:
        for component in self.components:
            if component.name == name:
                return component.amount
        return ZERO

    def as_dict(self) -> dict[str, Decimal]:
        return {c.name: c.amount for c in self.components}


def prorate_amount(amount: Decimal, payable_days: Decimal, days_in_period: int | Decimal) -> Decimal:
    """``round_half_up(amount x payable / days)``; 0 when the period has no days."""
    if days_in_period <= 0:
        return ZERO
    return round_half_up(amount * payable_days / Decimal(days_in_period))


def calculate_overtime_pay(
    basic_salary: Decimal,
    hours: OvertimeHours,
    rates: OvertimeRates | None = None,
) -> Decimal:
    """Overtime pay on the fixed 30-day, 8-hour convention.

    The weighted hours are multiplied before dividing so the hourly rate
    is never rounded on its own.
    """
    rates = rates or get_active_rates().overtime
    basic = non_negative(basic_salary, "basic_salary")
    weighted_hours = (
        non_negative(hours.regular, "overtime.regular") * rates.regular_multiplier
        + non_negative(hours.weekend, "overtime.weekend") * rates.weekend_multiplier
        + non_negative(hours.holiday, "overtime.holiday") * rates.holiday_multiplier
    )
    if not weighted_hours:
        return ZERO
    return round_half_up(basic * weighted_hours / (rates.day_divisor * rates.hours_per_day))


@traced_engine("proration", "1.0", ("structure", "attendance", "period"))
def prorate(
    structure: SalaryStructure,
    attendance: AttendanceRecord,
    period: PeriodContext,
    overtime_rates: OvertimeRates | None = None,
) -> EarningsBreakdown:
    """
    Convert a monthly structure plus attendance into period earnings.

    Raises:
        InputValidationError: negative component, day count or overtime hours.
    """
    lop_days = non_negative(attendance.lop_days, "lop_days")
    non_negative(attendance.days_worked, "days_worked")
    for bucket in ("regular", "weekend", "holiday"):
        non_negative(getattr(attendance.overtime, bucket), f"overtime.{bucket}")

    days_in_period = period.days_in_period
    payable = period.payable_days(lop_days)

    components = [
        EarningsComponent(name, prorate_amount(non_negative(amount, name), payable, days_in_period))
        for name, amount in structure.components()
    ]

    if attendance.overtime.total:
        components.append(
            EarningsComponent(
                OVERTIME_COMPONENT,
                calculate_overtime_pay(structure.basic, attendance.overtime, overtime_rates),
                is_overtime=True,
            )
        )

    earnings = EarningsBreakdown(
        components=tuple(components),
        days_in_period=days_in_period,
        payable_days=payable,
    )
    logger.debug(
        "earnings_prorated",
        extra={
            "employee_id": attendance.employee_id,
            "period": period.label,
            "payable_days": str(payable),
            "days_in_period": days_in_period,
            "gross": str(earnings.gross),
        },
    )
    return earnings
