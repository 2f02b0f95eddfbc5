"""
payroll_engines -- pure statutory calculators.

Every public entrypoint is a side-effect-free function over value
inputs, wrapped by ``@traced_engine``.  Rate tables arrive as an
explicit optional argument and default to the active snapshot from
``payroll_config.get_active_rates()``.  Calculators do not depend on each
other; the batch processor and the structure synthesizer compose them.
"""

from payroll_engines.bonus import BonusResult, calculate_bonus
from payroll_engines.gratuity import (
    EndOfServiceResult,
    GratuityResult,
    ServicePeriod,
    calculate_end_of_service,
    calculate_gratuity,
    calculate_leave_encashment,
    service_period,
)
from payroll_engines.income_tax import WithholdingResult, calculate_withholding
from payroll_engines.labour_welfare import LabourWelfareResult, calculate_labour_welfare
from payroll_engines.professional_tax import (
    UNKNOWN_JURISDICTION_AMOUNT,
    calculate_professional_tax,
)
from payroll_engines.proration import (
    EarningsBreakdown,
    EarningsComponent,
    calculate_overtime_pay,
    prorate,
    prorate_amount,
)
from payroll_engines.provident_fund import (
    EmployerProvidentFundShare,
    ProvidentFundResult,
    calculate_provident_fund,
)
from payroll_engines.state_insurance import (
    ContributionCycle,
    StateInsuranceResult,
    calculate_state_insurance,
    contribution_cycle,
)

__all__ = [
    "BonusResult",
    "ContributionCycle",
    "EarningsBreakdown",
    "EarningsComponent",
    "EmployerProvidentFundShare",
    "EndOfServiceResult",
    "GratuityResult",
    "LabourWelfareResult",
    "ProvidentFundResult",
    "ServicePeriod",
    "StateInsuranceResult",
    "UNKNOWN_JURISDICTION_AMOUNT",
    "WithholdingResult",
    "calculate_bonus",
    "calculate_end_of_service",
    "calculate_gratuity",
    "calculate_labour_welfare",
    "calculate_leave_encashment",
    "calculate_overtime_pay",
    "calculate_professional_tax",
    "calculate_provident_fund",
    "calculate_state_insurance",
    "calculate_withholding",
    "contribution_cycle",
    "prorate",
    "prorate_amount",
    "service_period",
]
