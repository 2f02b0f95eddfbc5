"""
Rate Table Schema (``payroll_config.schema``).

Responsibility
--------------
Frozen dataclass definitions for every statutory constant the
calculators use: wage ceilings, contribution rates, slab tables and
fixed-divisor conventions.  Jurisdiction and regime variation is pure
data: a lookup keyed by code mapping to a slab definition.

Architecture position
---------------------
**Config layer** -- pure data.  Depends on ``payroll_kernel`` only for
the exception type.  Instances are produced by ``payroll_config.loader``
and handed to engines as explicit arguments.

Invariants enforced
-------------------
* Every dataclass is ``frozen=True`` and every mapping is a read-only
  ``MappingProxyType``, so a snapshot handed to a running calculation
  can never change under it.
* Slab tables are strictly ascending; rates lie in [0, 1]; divisors are
  positive.  Violations raise ``RateTableError`` at construction.
* ``max``/``upper_bound`` of ``None`` means open-ended.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from types import MappingProxyType

from payroll_kernel.exceptions import RateTableError

_ZERO = Decimal("0")
_ONE = Decimal("1")


def _check_rate(table: str, name: str, value: Decimal) -> None:
    if not _ZERO <= value <= _ONE:
        raise RateTableError(table, f"{name}={value} is not a rate in [0, 1]")


def _check_positive(table: str, name: str, value: Decimal | int) -> None:
    if value <= 0:
        raise RateTableError(table, f"{name}={value} must be positive")


def _freeze(mapping: Mapping) -> Mapping:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class ProvidentFundRates:
    """Provident fund wage ceiling and the employee/employer split."""

    wage_ceiling: Decimal
    employee_rate: Decimal
    fund_rate: Decimal  # employer share credited to the member's fund
    pension_rate: Decimal
    pension_cap: Decimal  # absolute cap, independent of wage_ceiling
    insurance_rate: Decimal
    insurance_admin_rate: Decimal
    fund_admin_rate: Decimal

    def __post_init__(self) -> None:
        _check_positive("provident_fund", "wage_ceiling", self.wage_ceiling)
        for name in (
            "employee_rate",
            "fund_rate",
            "pension_rate",
            "insurance_rate",
            "insurance_admin_rate",
            "fund_admin_rate",
        ):
            _check_rate("provident_fund", name, getattr(self, name))
        if self.pension_cap < _ZERO:
            raise RateTableError("provident_fund", "pension_cap must not be negative")


@dataclass(frozen=True)
class StateInsuranceRates:
    wage_limit: Decimal
    disability_wage_limit: Decimal
    employee_rate: Decimal
    employer_rate: Decimal
    min_daily_wage: Decimal
    cycle_start_months: tuple[int, ...] = (4, 10)

    def __post_init__(self) -> None:
        _check_rate("state_insurance", "employee_rate", self.employee_rate)
        _check_rate("state_insurance", "employer_rate", self.employer_rate)
        if self.disability_wage_limit < self.wage_limit:
            raise RateTableError(
                "state_insurance", "disability_wage_limit is below wage_limit"
            )
        if not self.cycle_start_months or any(
            not 1 <= m <= 12 for m in self.cycle_start_months
        ):
            raise RateTableError("state_insurance", "cycle_start_months must be months 1..12")


@dataclass(frozen=True)
class ProfessionalTaxSlab:
    """Gross up to ``max`` pays ``amount``; ``exception_month`` overrides it."""

    min: Decimal
    max: Decimal | None
    amount: Decimal
    exception_month: int | None = None
    exception_amount: Decimal | None = None

    def amount_for(self, month: int) -> Decimal:
        if self.exception_month == month and self.exception_amount is not None:
            return self.exception_amount
        return self.amount


@dataclass(frozen=True)
class GenderExemption:
    """Full exemption for one gender at or below ``max_wage``."""

    gender: str
    max_wage: Decimal


@dataclass(frozen=True)
class ProfessionalTaxJurisdiction:
    code: str
    name: str
    slabs: tuple[ProfessionalTaxSlab, ...]
    gender_exemption: GenderExemption | None = None

    def __post_init__(self) -> None:
        table = f"professional_tax.{self.code}"
        previous: ProfessionalTaxSlab | None = None
        for slab in self.slabs:
            if previous is not None and (previous.max is None or slab.min <= previous.max):
                raise RateTableError(table, f"slab starting at {slab.min} overlaps or is out of order")
            if slab.max is not None and slab.max < slab.min:
                raise RateTableError(table, f"slab {slab.min}..{slab.max} is inverted")
            if slab.exception_month is not None and not 1 <= slab.exception_month <= 12:
                raise RateTableError(table, f"exception_month {slab.exception_month} is not a month")
            previous = slab

    def find_slab(self, gross: Decimal) -> ProfessionalTaxSlab | None:
        """First slab whose ``max`` is at or above ``gross``.

        Bounds are written in whole units (7500 then 7501); a fractional
        gross between them belongs to the higher slab.  Below the first
        slab's ``min`` nothing applies.
        """
        if not self.slabs or gross < self.slabs[0].min:
            return None
        for slab in self.slabs:
            if slab.max is None or gross <= slab.max:
                return slab
        return None


@dataclass(frozen=True)
class TaxSlab:
    """Marginal income-tax slab: income up to ``upper_bound`` taxed at ``rate``."""

    upper_bound: Decimal | None
    rate: Decimal


@dataclass(frozen=True)
class TaxRegimeRates:
    code: str
    slabs: tuple[TaxSlab, ...]
    standard_deduction: Decimal
    rebate_ceiling: Decimal

    def __post_init__(self) -> None:
        table = f"income_tax.{self.code}"
        if not self.slabs:
            raise RateTableError(table, "at least one slab is required")
        bounds = [s.upper_bound for s in self.slabs]
        if any(b is None for b in bounds[:-1]):
            raise RateTableError(table, "only the last slab may be open-ended")
        finite = [b for b in bounds if b is not None]
        if finite != sorted(finite) or len(set(finite)) != len(finite):
            raise RateTableError(table, "slab bounds must be strictly ascending")
        for slab in self.slabs:
            _check_rate(table, "rate", slab.rate)


@dataclass(frozen=True)
class IncomeTaxRates:
    periods_per_year: int
    cess_rate: Decimal
    regimes: Mapping[str, TaxRegimeRates]

    def __post_init__(self) -> None:
        _check_positive("income_tax", "periods_per_year", self.periods_per_year)
        _check_rate("income_tax", "cess_rate", self.cess_rate)
        object.__setattr__(self, "regimes", _freeze(self.regimes))


@dataclass(frozen=True)
class GratuityRates:
    threshold_years: Decimal
    lower_days_per_year: Decimal
    higher_days_per_year: Decimal
    month_divisor: Decimal  # fixed 30-day month, not calendar days

    def __post_init__(self) -> None:
        _check_positive("gratuity", "month_divisor", self.month_divisor)


@dataclass(frozen=True)
class BonusRates:
    """Statutory annual bonus: eligibility and calculation caps, rate band, floor."""

    monthly_eligibility_cap: Decimal
    monthly_calculation_cap: Decimal
    minimum_rate: Decimal
    maximum_rate: Decimal
    minimum_amount: Decimal
    minimum_working_days: Decimal

    def __post_init__(self) -> None:
        _check_rate("bonus", "minimum_rate", self.minimum_rate)
        _check_rate("bonus", "maximum_rate", self.maximum_rate)
        if self.minimum_rate > self.maximum_rate:
            raise RateTableError("bonus", "minimum_rate exceeds maximum_rate")


@dataclass(frozen=True)
class OvertimeRates:
    day_divisor: Decimal  # fixed 30-day month, not calendar days
    hours_per_day: Decimal
    regular_multiplier: Decimal
    weekend_multiplier: Decimal
    holiday_multiplier: Decimal

    def __post_init__(self) -> None:
        _check_positive("overtime", "day_divisor", self.day_divisor)
        _check_positive("overtime", "hours_per_day", self.hours_per_day)


@dataclass(frozen=True)
class LabourWelfareFundRule:
    code: str
    name: str
    employee_amount: Decimal
    employer_amount: Decimal
    deduction_months: tuple[int, ...]
    wage_ceiling: Decimal | None = None
    min_wage: Decimal | None = None

    def __post_init__(self) -> None:
        if any(not 1 <= m <= 12 for m in self.deduction_months):
            raise RateTableError(f"labour_welfare.{self.code}", "deduction_months must be 1..12")


@dataclass(frozen=True)
class StructureDefaults:
    """Conventions used when synthesizing a structure from a cost figure."""

    basic_rate: Decimal
    housing_rate_metro: Decimal
    housing_rate_non_metro: Decimal
    medical_allowance: Decimal
    conveyance_allowance: Decimal
    gratuity_provision_rate: Decimal


@dataclass(frozen=True)
class StatutoryRateTables:
    """
    One immutable snapshot of every statutory table.

    Obtained from ``payroll_config.get_active_rates()``; tests build
    alternates with ``dataclasses.replace``.
    """

    version: str
    effective_from: date
    provident_fund: ProvidentFundRates
    state_insurance: StateInsuranceRates
    professional_tax: Mapping[str, ProfessionalTaxJurisdiction]
    income_tax: IncomeTaxRates
    gratuity: GratuityRates
    bonus: BonusRates
    overtime: OvertimeRates
    labour_welfare: Mapping[str, LabourWelfareFundRule]
    structure_defaults: StructureDefaults
    checksum: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "professional_tax", _freeze(self.professional_tax))
        object.__setattr__(self, "labour_welfare", _freeze(self.labour_welfare))
