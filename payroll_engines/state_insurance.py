"""
State Insurance Calculator.

Eligibility is ``gross <= limit`` (a higher limit applies with a
disability) unless ``forced_eligibility`` is set.  Forced eligibility
models an employee who was eligible at the start of a fixed six-month
contribution cycle and stays covered for the rest of it; the caller
tracks the cycle, see ``contribution_cycle``.

When eligible, an average daily wage below the floor waives the
EMPLOYEE share only.  The employer share is still owed.

Both shares round UP to the next whole unit.  This is the only
calculator in the engine that does not round to nearest.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from payroll_config import get_active_rates
from payroll_config.schema import StateInsuranceRates
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.rounding import ZERO, non_negative, round_up
from payroll_kernel.exceptions import InputValidationError
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.state_insurance")


@dataclass(frozen=True)
class StateInsuranceResult:
    eligible: bool
    insured_wages: Decimal
    employee_share: Decimal
    employer_share: Decimal
    employee_share_waived: bool = False

    @property
    def total(self) -> Decimal:
        return self.employee_share + self.employer_share


@dataclass(frozen=True)
class ContributionCycle:
    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


@traced_engine(
    "state_insurance",
    "1.0",
    ("gross_wage", "days_worked", "has_disability", "forced_eligibility"),
)
def calculate_state_insurance(
    gross_wage: Decimal,
    days_worked: Decimal,
    has_disability: bool = False,
    forced_eligibility: bool = False,
    rates: StateInsuranceRates | None = None,
) -> StateInsuranceResult:
    """
    Calculate employee and employer state insurance contributions.

    Raises:
        InputValidationError: negative gross or day count.
    """
    gross = non_negative(gross_wage, "gross_wage")
    days = non_negative(days_worked, "days_worked")
    rates = rates or get_active_rates().state_insurance

    limit = rates.disability_wage_limit if has_disability else rates.wage_limit
    if not (forced_eligibility or gross <= limit):
        return StateInsuranceResult(
            eligible=False,
            insured_wages=ZERO,
            employee_share=ZERO,
            employer_share=ZERO,
        )

    # Zero days worked gives a zero daily wage, which is below any floor
    daily_wage = gross / days if days > 0 else ZERO
    waived = daily_wage < rates.min_daily_wage

    employee_share = ZERO if waived else round_up(gross * rates.employee_rate)
    employer_share = round_up(gross * rates.employer_rate)

    if waived:
        logger.info(
            "state_insurance_employee_share_waived",
            extra={
                "gross_wage": str(gross),
                "days_worked": str(days),
                "daily_wage": str(daily_wage),
                "min_daily_wage": str(rates.min_daily_wage),
            },
        )

    return StateInsuranceResult(
        eligible=True,
        insured_wages=gross,
        employee_share=employee_share,
        employer_share=employer_share,
        employee_share_waived=waived,
    )


def contribution_cycle(
    year: int,
    month: int,
    rates: StateInsuranceRates | None = None,
) -> ContributionCycle:
    """The fixed contribution cycle containing ``year``/``month``.

    With the default starts (April, October) the cycles are April to
    September and October to March.
    """
    if not 1 <= month <= 12:
        raise InputValidationError("month", month, "must be 1..12")
    rates = rates or get_active_rates().state_insurance
    starts = sorted(rates.cycle_start_months)

    # Latest cycle start at or before this month, wrapping into last year
    preceding = [m for m in starts if m <= month]
    if preceding:
        start_year, start_month = year, preceding[-1]
    else:
        start_year, start_month = year - 1, starts[-1]

    following = [m for m in starts if m > start_month]
    if following:
        end_year, end_month = start_year, following[0] - 1
    else:
        end_year, end_month = start_year + 1, starts[0] - 1
    if end_month == 0:
        end_year, end_month = end_year - 1, 12

    end_day = calendar.monthrange(end_year, end_month)[1]
    return ContributionCycle(
        start=date(start_year, start_month, 1),
        end=date(end_year, end_month, end_day),
    )
