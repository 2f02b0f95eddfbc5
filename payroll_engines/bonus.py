"""
Statutory Bonus Calculator.

Annual bonus on basic wages for the fiscal year:

* An employee must have worked ``minimum_working_days`` in the year and
  average no more than ``monthly_eligibility_cap`` a month.
* The wage the bonus is computed on is capped at
  ``monthly_calculation_cap`` a month.
* The bonus lies between ``minimum_rate`` (never below
  ``minimum_amount``) and ``maximum_rate`` of the capped wage.  Without a
  declared rate the minimum is paid.
* The payable amount is pro-rated by days worked over working days and
  rounded half-up to a whole unit.

Computed at year end, not part of the monthly batch.

Usage:
    from payroll_engines.bonus import calculate_bonus

    result = calculate_bonus(Decimal("120000"), 365, 365)
    result.bonus_payable   # Decimal("6997")
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from payroll_config import get_active_rates
from payroll_config.schema import BonusRates
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.rounding import ZERO, non_negative, round_half_up
from payroll_kernel.exceptions import InputValidationError
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.bonus")

MONTHS_PER_YEAR = Decimal("12")


@dataclass(frozen=True)
class BonusResult:
    eligible: bool
    annual_salary: Decimal
    capped_salary: Decimal = ZERO
    proportion: Decimal = ZERO
    minimum_bonus: Decimal = ZERO
    maximum_bonus: Decimal = ZERO
    calculated_bonus: Decimal = ZERO
    bonus_payable: Decimal = ZERO
    reason: str = ""


@traced_engine("bonus", "1.0", ("annual_salary", "days_worked", "working_days", "declared_rate"))
def calculate_bonus(
    annual_salary: Decimal,
    days_worked: Decimal | int,
    working_days: Decimal | int,
    declared_rate: Decimal | None = None,
    rates: BonusRates | None = None,
) -> BonusResult:
    """
    Statutory bonus for one employee and fiscal year.

    Args:
        annual_salary: Basic wages earned over the year.
        days_worked: Days the employee worked in the year.
        working_days: Working days in the year (usually 365 or 366).
        declared_rate: Rate the employer declares from allocable surplus;
            clamped into the statutory band.

    Raises:
        InputValidationError: negative inputs, no working days, or more
            days worked than working days.
    """
    salary = non_negative(annual_salary, "annual_salary")
    days = non_negative(days_worked, "days_worked")
    total = non_negative(working_days, "working_days")
    if total == ZERO:
        raise InputValidationError("working_days", working_days, "must be positive")
    if days > total:
        raise InputValidationError("days_worked", days_worked, "exceeds working_days")
    rates = rates or get_active_rates().bonus

    if days < rates.minimum_working_days:
        return BonusResult(
            eligible=False,
            annual_salary=salary,
            reason=f"worked {days} days, minimum is {rates.minimum_working_days}",
        )
    monthly_average = salary / MONTHS_PER_YEAR
    if monthly_average > rates.monthly_eligibility_cap:
        return BonusResult(
            eligible=False,
            annual_salary=salary,
            reason=f"monthly average {round_half_up(monthly_average, 2)} exceeds {rates.monthly_eligibility_cap}",
        )

    capped = min(monthly_average, rates.monthly_calculation_cap) * MONTHS_PER_YEAR
    minimum = max(round_half_up(capped * rates.minimum_rate, 2), rates.minimum_amount)
    maximum = round_half_up(capped * rates.maximum_rate, 2)

    calculated = minimum
    if declared_rate is not None:
        declared = round_half_up(capped * non_negative(declared_rate, "declared_rate"), 2)
        calculated = max(minimum, min(declared, maximum))

    proportion = days / total
    result = BonusResult(
        eligible=True,
        annual_salary=salary,
        capped_salary=round_half_up(capped, 2),
        proportion=proportion,
        minimum_bonus=minimum,
        maximum_bonus=maximum,
        calculated_bonus=calculated,
        bonus_payable=round_half_up(calculated * proportion),
    )
    logger.debug(
        "bonus_calculated",
        extra={
            "capped_salary": str(result.capped_salary),
            "calculated_bonus": str(calculated),
            "bonus_payable": str(result.bonus_payable),
        },
    )
    return result
