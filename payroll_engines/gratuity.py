"""
Gratuity / End-of-Service Calculator.

Computed on demand at separation, not in the recurring run.

Service is split calendar-aware into whole years, months and days, then
expressed as a fractional year ``years + months/12 + days/360``.  The
first ``threshold_years`` accrue at the lower days-per-year rate, the
rest at the higher rate, both normalized through a fixed 30-day month:

    band amount = basic / 30 x days_per_year x band_years

Amounts are quantized to minor units (2 places, half-up).
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from payroll_config import get_active_rates
from payroll_config.schema import GratuityRates
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.rounding import ZERO, non_negative, round_half_up
from payroll_kernel.exceptions import InputValidationError
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.gratuity")

_MONTHS_PER_YEAR = Decimal("12")
_DAYS_PER_YEAR_FRACTION = Decimal("360")


@dataclass(frozen=True)
class ServicePeriod:
    years: int
    months: int
    days: int

    @property
    def fractional_years(self) -> Decimal:
        return (
            Decimal(self.years)
            + Decimal(self.months) / _MONTHS_PER_YEAR
            + Decimal(self.days) / _DAYS_PER_YEAR_FRACTION
        )


@dataclass(frozen=True)
class GratuityResult:
    service: ServicePeriod
    years_under_threshold: Decimal
    years_above_threshold: Decimal
    lower_band_amount: Decimal
    higher_band_amount: Decimal
    amount: Decimal
    breakdown_note: str


@dataclass(frozen=True)
class EndOfServiceResult:
    gratuity: GratuityResult
    leave_encashment: Decimal
    total: Decimal


def _add_months(start: date, months: int) -> date:
    """``start`` moved by whole months, clamped to the target month's last day."""
    index = start.month - 1 + months
    year, month = start.year + index // 12, index % 12 + 1
    return date(year, month, min(start.day, calendar.monthrange(year, month)[1]))


def service_period(join_date: date, leave_date: date) -> ServicePeriod:
    """Whole years, months and days between two dates.

    Months are counted in join-date anniversaries; an anniversary that
    does not exist (31 January -> February) falls on the month's last
    day.  The days are those left after the last anniversary.

    Raises:
        InputValidationError: if ``leave_date`` precedes ``join_date``.
    """
    if leave_date < join_date:
        raise InputValidationError("leave_date", leave_date, "is before join_date")

    total_months = (leave_date.year - join_date.year) * 12 + leave_date.month - join_date.month
    anniversary = _add_months(join_date, total_months)
    if anniversary > leave_date:
        total_months -= 1
        anniversary = _add_months(join_date, total_months)
    return ServicePeriod(
        years=total_months // 12,
        months=total_months % 12,
        days=(leave_date - anniversary).days,
    )


def _format_years(value: Decimal) -> str:
    return f"{round_half_up(value, 2):f}"


@traced_engine("gratuity", "1.0", ("basic_wage", "join_date", "leave_date"))
def calculate_gratuity(
    basic_wage: Decimal,
    join_date: date,
    leave_date: date,
    rates: GratuityRates | None = None,
) -> GratuityResult:
    """
    End-of-service gratuity for ``basic_wage`` between the two dates.

    Raises:
        InputValidationError: negative basic or ``leave_date`` before
            ``join_date``.
    """
    basic = non_negative(basic_wage, "basic_wage")
    rates = rates or get_active_rates().gratuity

    service = service_period(join_date, leave_date)
    total_years = service.fractional_years
    under = min(total_years, rates.threshold_years)
    above = max(ZERO, total_years - rates.threshold_years)

    daily = basic / rates.month_divisor
    lower = round_half_up(daily * rates.lower_days_per_year * under, 2)
    higher = round_half_up(daily * rates.higher_days_per_year * above, 2)

    note = (
        f"{_format_years(under)} years @ {rates.lower_days_per_year} days"
        f" + {_format_years(above)} years @ {rates.higher_days_per_year} days"
    )
    result = GratuityResult(
        service=service,
        years_under_threshold=under,
        years_above_threshold=above,
        lower_band_amount=lower,
        higher_band_amount=higher,
        amount=lower + higher,
        breakdown_note=note,
    )
    logger.info(
        "gratuity_calculated",
        extra={
            "service_years": str(total_years),
            "amount": str(result.amount),
        },
    )
    return result


def calculate_leave_encashment(
    basic_wage: Decimal,
    unused_leave_days: Decimal,
    rates: GratuityRates | None = None,
) -> Decimal:
    """``basic / 30 x unused days``, quantized to minor units."""
    basic = non_negative(basic_wage, "basic_wage")
    days = non_negative(unused_leave_days, "unused_leave_days")
    rates = rates or get_active_rates().gratuity
    return round_half_up(basic / rates.month_divisor * days, 2)


def calculate_end_of_service(
    basic_wage: Decimal,
    join_date: date,
    leave_date: date,
    unused_leave_days: Decimal = ZERO,
    rates: GratuityRates | None = None,
) -> EndOfServiceResult:
    """Gratuity plus encashment of unused leave."""
    gratuity = calculate_gratuity(basic_wage, join_date, leave_date, rates=rates)
    encashment = calculate_leave_encashment(basic_wage, unused_leave_days, rates=rates)
    return EndOfServiceResult(
        gratuity=gratuity,
        leave_encashment=encashment,
        total=gratuity.amount + encashment,
    )
