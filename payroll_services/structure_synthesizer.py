"""
Salary Structure Synthesizer (``payroll_services.structure_synthesizer``).

Responsibility
--------------
The inverse of a payroll run: from an annual total employment cost,
derive a monthly structure (basic, housing, conveyance, medical and a
balancing "special" allowance) such that

    basic + fixed allowances + special + employer statutory costs = cost / 12

Architecture position
---------------------
**Services layer** -- advisory.  Composes the provident fund, state
insurance, professional tax and withholding calculators; does not use
the batch processor.  Its output ``structure`` can be fed straight back
into ``PayrollBatchProcessor``.

Circular dependency
-------------------
Employer state insurance depends on gross, and gross depends on the
special allowance being solved for.  This is resolved with a two-pass
approximation, not a closed form or fixed-point iteration:

1. Solve ``special`` ignoring employer insurance.
2. Check insurance eligibility on the resulting gross.  If eligible,
   subtract that employer share from ``special`` and recompute gross once.

The employer share reported is recalculated on the final gross, so
``monthly_cost`` may sit slightly below the target; ``cost_variance``
shows by how much.

Invariants enforced
-------------------
* Never raises for a feasible-looking input: if ``special`` would go
  negative it is clamped to zero and ``feasible`` is ``False`` (the cost
  is too low to cover the mandatory components).
* Every component is a whole currency unit (half-up), matching the
  per-component rounding of proration.

Failure modes
-------------
* Negative annual cost -> ``InputValidationError``.
* Unknown tax regime in options -> ``UnknownTaxRegimeError``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from payroll_config import get_active_rates
from payroll_config.schema import StatutoryRateTables
from payroll_engines.income_tax import calculate_withholding
from payroll_engines.professional_tax import calculate_professional_tax
from payroll_engines.provident_fund import calculate_provident_fund
from payroll_engines.state_insurance import StateInsuranceResult, calculate_state_insurance
from payroll_kernel.domain.records import (
    FISCAL_YEAR_START_MONTH,
    Allowance,
    Gender,
    SalaryStructure,
    TaxRegime,
    fiscal_periods_remaining,
)
from payroll_kernel.domain.rounding import ZERO, non_negative, round_half_up
from payroll_kernel.logging_config import get_logger

logger = get_logger("services.structure_synthesizer")

MEDICAL_COMPONENT = "medical"
SPECIAL_COMPONENT = "special"


@dataclass(frozen=True)
class SynthesisOptions:
    metro_city: bool = False
    pf_applicable: bool = True
    insurance_applicable: bool = True
    professional_tax_applicable: bool = True
    income_tax_applicable: bool = True
    international_worker: bool = False
    has_disability: bool = False
    jurisdiction: str = "MH"
    gender: Gender = Gender.UNSPECIFIED
    tax_regime: str = TaxRegime.NEW
    # Payroll month (professional tax and withholding periods left) and
    # insurance wage-period days for the estimate
    month: int = FISCAL_YEAR_START_MONTH
    insurance_days: Decimal = Decimal("30")


@dataclass(frozen=True)
class StructureResult:
    annual_total_cost: Decimal
    monthly_total_cost: Decimal
    structure: SalaryStructure
    monthly_gross: Decimal

    employer_provident_fund: Decimal
    employer_state_insurance: Decimal
    gratuity_provision: Decimal

    employee_provident_fund: Decimal
    employee_state_insurance: Decimal
    professional_tax: Decimal
    income_tax: Decimal

    net_pay: Decimal
    feasible: bool
    insurance_eligible: bool

    @property
    def basic(self) -> Decimal:
        return self.structure.basic

    @property
    def special_allowance(self) -> Decimal:
        for allowance in self.structure.other_allowances:
            if allowance.name == SPECIAL_COMPONENT:
                return allowance.amount
        return ZERO

    @property
    def monthly_cost(self) -> Decimal:
        """Gross plus employer-side costs actually implied by the structure."""
        return (
            self.monthly_gross
            + self.employer_provident_fund
            + self.employer_state_insurance
            + self.gratuity_provision
        )

    @property
    def cost_variance(self) -> Decimal:
        return self.monthly_cost - self.monthly_total_cost

    @property
    def total_deductions(self) -> Decimal:
        return (
            self.employee_provident_fund
            + self.employee_state_insurance
            + self.professional_tax
            + self.income_tax
        )


class StructureSynthesizer:
    """Derives monthly salary structures from annual cost figures."""

    def __init__(self, rates: StatutoryRateTables | None = None):
        self._rates = rates or get_active_rates()

    def synthesize(
        self,
        annual_total_cost: Decimal,
        options: SynthesisOptions | None = None,
    ) -> StructureResult:
        options = options or SynthesisOptions()
        rates = self._rates
        defaults = rates.structure_defaults

        annual = non_negative(annual_total_cost, "annual_total_cost")
        monthly = annual / 12

        basic = round_half_up(monthly * defaults.basic_rate)
        housing_rate = defaults.housing_rate_metro if options.metro_city else defaults.housing_rate_non_metro
        housing = round_half_up(basic * housing_rate)
        medical = defaults.medical_allowance
        conveyance = defaults.conveyance_allowance
        gratuity = round_half_up(basic * defaults.gratuity_provision_rate)

        employer_pf = employee_pf = ZERO
        if options.pf_applicable:
            pf = calculate_provident_fund(
                basic, options.international_worker, rates=rates.provident_fund
            )
            employer_pf = pf.employer_share
            employee_pf = pf.employee_share

        fixed = basic + housing + conveyance + medical
        raw_special = monthly - (fixed + employer_pf + gratuity)
        feasible = raw_special >= ZERO
        special = max(ZERO, round_half_up(raw_special))

        insurance: StateInsuranceResult | None = None
        if options.insurance_applicable:
            first_pass = self._insurance(fixed + special, options)
            if first_pass.eligible:
                remaining = special - first_pass.employer_share
                if remaining < ZERO:
                    feasible = False
                special = max(ZERO, remaining)
            insurance = self._insurance(fixed + special, options)

        gross = fixed + special
        professional_tax = ZERO
        if options.professional_tax_applicable:
            professional_tax = calculate_professional_tax(
                options.jurisdiction,
                gross,
                options.gender,
                options.month,
                tables=rates.professional_tax,
            )
        income_tax = ZERO
        if options.income_tax_applicable:
            income_tax = calculate_withholding(
                gross,
                options.tax_regime,
                ZERO,
                fiscal_periods_remaining(options.month),
                rates=rates.income_tax,
            ).amount

        structure = SalaryStructure(
            basic=basic,
            housing_allowance=housing,
            transport_allowance=conveyance,
            other_allowances=(
                Allowance(MEDICAL_COMPONENT, medical),
                Allowance(SPECIAL_COMPONENT, special),
            ),
            pf_applicable=options.pf_applicable,
            insurance_applicable=options.insurance_applicable,
            professional_tax_applicable=options.professional_tax_applicable,
            income_tax_applicable=options.income_tax_applicable,
            international_worker=options.international_worker,
            has_disability=options.has_disability,
            tax_regime=options.tax_regime,
        )
        employee_insurance = insurance.employee_share if insurance else ZERO
        result = StructureResult(
            annual_total_cost=annual,
            monthly_total_cost=monthly,
            structure=structure,
            monthly_gross=gross,
            employer_provident_fund=employer_pf,
            employer_state_insurance=insurance.employer_share if insurance else ZERO,
            gratuity_provision=gratuity,
            employee_provident_fund=employee_pf,
            employee_state_insurance=employee_insurance,
            professional_tax=professional_tax,
            income_tax=income_tax,
            net_pay=gross - (employee_pf + employee_insurance + professional_tax + income_tax),
            feasible=feasible,
            insurance_eligible=bool(insurance and insurance.eligible),
        )

        if not feasible:
            logger.warning(
                "structure_synthesis_infeasible",
                extra={
                    "annual_total_cost": str(annual),
                    "monthly_total_cost": str(monthly),
                    "mandatory_cost": str(fixed + employer_pf + gratuity),
                },
            )
        logger.info(
            "structure_synthesized",
            extra={
                "annual_total_cost": str(annual),
                "monthly_gross": str(gross),
                "net_pay": str(result.net_pay),
                "cost_variance": str(result.cost_variance),
                "feasible": feasible,
            },
        )
        return result

    def _insurance(self, gross: Decimal, options: SynthesisOptions) -> StateInsuranceResult:
        return calculate_state_insurance(
            gross,
            options.insurance_days,
            options.has_disability,
            rates=self._rates.state_insurance,
        )


def synthesize(
    annual_total_cost: Decimal,
    options: SynthesisOptions | None = None,
    rates: StatutoryRateTables | None = None,
) -> StructureResult:
    """Module-level shortcut for ``StructureSynthesizer(rates).synthesize``."""
    return StructureSynthesizer(rates).synthesize(annual_total_cost, options)
