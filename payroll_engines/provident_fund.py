"""
Provident Fund Calculator.

Contribution base is ``min(basic, wage_ceiling)``.  The employee pays
12% of the base.  The employer share is five independently rounded
parts: fund, pension, insurance and two administration charges.  The
pension part carries its own absolute cap on top of the wage ceiling,
so there are two layers of capping.

Exempted employees get a fully shaped zero result, never ``None``.
International workers lose only the pension part.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from payroll_config import get_active_rates
from payroll_config.schema import ProvidentFundRates
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.rounding import ZERO, non_negative, round_half_up
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.provident_fund")


@dataclass(frozen=True)
class EmployerProvidentFundShare:
    fund: Decimal = ZERO
    pension: Decimal = ZERO
    insurance: Decimal = ZERO
    insurance_admin: Decimal = ZERO
    fund_admin: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.fund + self.pension + self.insurance + self.insurance_admin + self.fund_admin


@dataclass(frozen=True)
class ProvidentFundResult:
    contribution_base: Decimal
    was_capped: bool
    employee_share: Decimal
    employer: EmployerProvidentFundShare
    exempted: bool = False
    pension_wages: Decimal = ZERO

    @property
    def employer_share(self) -> Decimal:
        return self.employer.total

    @classmethod
    def zero(cls, exempted: bool = True) -> ProvidentFundResult:
        return cls(
            contribution_base=ZERO,
            was_capped=False,
            employee_share=ZERO,
            employer=EmployerProvidentFundShare(),
            exempted=exempted,
        )


@traced_engine("provident_fund", "1.0", ("basic_wage", "is_international_worker", "is_exempted"))
def calculate_provident_fund(
    basic_wage: Decimal,
    is_international_worker: bool = False,
    is_exempted: bool = False,
    rates: ProvidentFundRates | None = None,
) -> ProvidentFundResult:
    """
    Calculate employee and employer provident fund contributions.

    Raises:
        InputValidationError: if ``basic_wage`` is negative.
    """
    basic = non_negative(basic_wage, "basic_wage")
    if is_exempted:
        return ProvidentFundResult.zero()

    rates = rates or get_active_rates().provident_fund
    base = min(basic, rates.wage_ceiling)

    pension = ZERO
    if not is_international_worker:
        pension = min(round_half_up(base * rates.pension_rate), rates.pension_cap)

    employer = EmployerProvidentFundShare(
        fund=round_half_up(base * rates.fund_rate),
        pension=pension,
        insurance=round_half_up(base * rates.insurance_rate),
        insurance_admin=round_half_up(base * rates.insurance_admin_rate),
        fund_admin=round_half_up(base * rates.fund_admin_rate),
    )
    result = ProvidentFundResult(
        contribution_base=base,
        was_capped=basic > rates.wage_ceiling,
        employee_share=round_half_up(base * rates.employee_rate),
        employer=employer,
        pension_wages=ZERO if is_international_worker else base,
    )
    logger.debug(
        "provident_fund_calculated",
        extra={
            "contribution_base": str(base),
            "was_capped": result.was_capped,
            "employee_share": str(result.employee_share),
            "employer_share": str(employer.total),
        },
    )
    return result
