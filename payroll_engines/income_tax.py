"""
Income-Tax Withholding Calculator.

Straight-line projection of one period's taxable income to a year, a
standard deduction, a marginal slab table per regime, a full-rebate
cliff, then a flat cess on top.  The liability still owed is spread over
the periods left in the fiscal year.

Rebate is a cliff: at or below the regime's rebate ceiling the annual tax
is zero, one unit above it the full slab tax applies.  No marginal relief
is modeled.

Regimes are a closed set; an unknown regime raises
``UnknownTaxRegimeError`` instead of silently withholding nothing.

Usage:
    from payroll_engines.income_tax import calculate_withholding

    result = calculate_withholding(
        period_taxable_income=Decimal("100000"),
        regime="new",
        already_withheld=Decimal("0"),
        remaining_periods=12,
    )
    result.amount
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from payroll_config import get_active_rates
from payroll_config.schema import IncomeTaxRates, TaxSlab
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.rounding import ZERO, non_negative, round_half_up
from payroll_kernel.exceptions import InputValidationError, UnknownTaxRegimeError
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.income_tax")


@dataclass(frozen=True)
class WithholdingResult:
    """Annual projection behind one period's withholding amount."""

    regime: str
    projected_annual_income: Decimal
    net_taxable_income: Decimal
    slab_tax: Decimal
    rebate_applied: bool
    cess: Decimal
    annual_liability: Decimal
    remaining_liability: Decimal
    remaining_periods: int
    amount: Decimal


def calculate_slab_tax(income: Decimal, slabs: Sequence[TaxSlab]) -> Decimal:
    """Sum of each slab's marginal contribution (unrounded)."""
    tax = ZERO
    previous = ZERO
    for slab in slabs:
        if income <= previous:
            break
        upper = income if slab.upper_bound is None else min(income, slab.upper_bound)
        tax += (upper - previous) * slab.rate
        if slab.upper_bound is None:
            break
        previous = slab.upper_bound
    return tax


@traced_engine(
    "income_tax",
    "1.0",
    ("period_taxable_income", "regime", "already_withheld", "remaining_periods"),
)
def calculate_withholding(
    period_taxable_income: Decimal,
    regime: str | Enum = "new",
    already_withheld: Decimal = ZERO,
    remaining_periods: int = 1,
    rates: IncomeTaxRates | None = None,
) -> WithholdingResult:
    """
    Withholding for this period.

    ``remaining_periods`` counts this period.  At or below zero the whole
    remaining liability is due now, undivided.

    Raises:
        InputValidationError: negative income or negative amount withheld.
        UnknownTaxRegimeError: ``regime`` is not in the rate tables.
    """
    income = non_negative(period_taxable_income, "period_taxable_income")
    withheld = non_negative(already_withheld, "already_withheld")
    if isinstance(remaining_periods, bool) or not isinstance(remaining_periods, int):
        raise InputValidationError("remaining_periods", remaining_periods, "must be an integer")

    rates = rates or get_active_rates().income_tax
    code = regime.value if isinstance(regime, Enum) else str(regime).strip().lower()
    regime_rates = rates.regimes.get(code)
    if regime_rates is None:
        raise UnknownTaxRegimeError(code, tuple(sorted(rates.regimes)))

    projected = income * rates.periods_per_year
    net_taxable = max(ZERO, projected - regime_rates.standard_deduction)

    slab_tax = calculate_slab_tax(net_taxable, regime_rates.slabs)
    rebate_applied = net_taxable <= regime_rates.rebate_ceiling
    annual_tax = ZERO if rebate_applied else slab_tax

    cess = annual_tax * rates.cess_rate
    liability = annual_tax + cess
    remaining_liability = max(ZERO, liability - withheld)

    if remaining_periods <= 0:
        amount = round_half_up(remaining_liability)
    else:
        amount = round_half_up(remaining_liability / remaining_periods)

    logger.debug(
        "withholding_calculated",
        extra={
            "regime": code,
            "net_taxable_income": str(net_taxable),
            "rebate_applied": rebate_applied,
            "annual_liability": str(liability),
            "remaining_periods": remaining_periods,
            "amount": str(amount),
        },
    )
    return WithholdingResult(
        regime=code,
        projected_annual_income=projected,
        net_taxable_income=net_taxable,
        slab_tax=slab_tax,
        rebate_applied=rebate_applied,
        cess=cess,
        annual_liability=liability,
        remaining_liability=remaining_liability,
        remaining_periods=remaining_periods,
        amount=amount,
    )
