"""
Professional Tax Calculator.

Per-jurisdiction ordered slab tables, looked up by code.  The first slab
whose ``max`` is at or above gross decides the amount, so a fractional
gross between whole-unit bounds falls into the higher slab.

Two rules sit outside the plain slab lookup:

* A gender exemption is an eligibility rule and is checked BEFORE the
  slab lookup (Maharashtra: women at or below 25000 pay nothing).
* A slab may carry a month-of-year override (Maharashtra top slab pays
  300 in February instead of 200, rounding the year out to 2500).

Unknown jurisdictions pay ``UNKNOWN_JURISDICTION_AMOUNT`` (zero): many
jurisdictions levy no professional tax at all.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from decimal import Decimal

from payroll_config import get_active_rates
from payroll_config.schema import ProfessionalTaxJurisdiction
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.records import Gender
from payroll_kernel.domain.rounding import ZERO, non_negative
from payroll_kernel.exceptions import InputValidationError
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.professional_tax")

UNKNOWN_JURISDICTION_AMOUNT = ZERO


@traced_engine("professional_tax", "1.0", ("jurisdiction", "gross_wage", "gender", "month"))
def calculate_professional_tax(
    jurisdiction: str,
    gross_wage: Decimal,
    gender: Gender | str = Gender.UNSPECIFIED,
    month: int | None = None,
    tables: Mapping[str, ProfessionalTaxJurisdiction] | None = None,
) -> Decimal:
    """
    Monthly professional tax for one employee.

    Args:
        jurisdiction: State code, e.g. "MH".  Case-insensitive.
        gross_wage: Period gross.
        gender: Employee gender, for gender exemptions.
        month: Calendar month 1..12.  Defaults to the current month.
        tables: Override slab tables keyed by code.

    Raises:
        InputValidationError: negative gross or a month outside 1..12.
    """
    gross = non_negative(gross_wage, "gross_wage")
    if month is None:
        month = date.today().month
    if not 1 <= month <= 12:
        raise InputValidationError("month", month, "must be 1..12")

    tables = tables if tables is not None else get_active_rates().professional_tax
    code = (jurisdiction or "").strip().upper()
    table = tables.get(code)
    if table is None:
        logger.warning(
            "professional_tax_unknown_jurisdiction",
            extra={"jurisdiction": code, "amount": str(UNKNOWN_JURISDICTION_AMOUNT)},
        )
        return UNKNOWN_JURISDICTION_AMOUNT

    exemption = table.gender_exemption
    gender_value = gender.value if isinstance(gender, Gender) else str(gender).strip().lower()
    if exemption is not None and exemption.gender == gender_value and gross <= exemption.max_wage:
        return ZERO

    slab = table.find_slab(gross)
    if slab is None:
        return ZERO
    return slab.amount_for(month)
