"""
Labour Welfare Fund Calculator.

Fixed employee and employer amounts per jurisdiction, deducted only in
the jurisdiction's listed months.  A rule may exempt wages above a
ceiling or below a minimum.  Interns are exempt everywhere.  Unknown
jurisdictions are not applicable (zero), like professional tax.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal

from payroll_config import get_active_rates
from payroll_config.schema import LabourWelfareFundRule
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.rounding import ZERO, non_negative
from payroll_kernel.exceptions import InputValidationError
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.labour_welfare")


@dataclass(frozen=True)
class LabourWelfareResult:
    applicable: bool
    employee_share: Decimal = ZERO
    employer_share: Decimal = ZERO
    reason: str = ""

    @classmethod
    def not_applicable(cls, reason: str) -> LabourWelfareResult:
        return cls(applicable=False, reason=reason)


@traced_engine("labour_welfare", "1.0", ("jurisdiction", "gross_wage", "month", "is_intern"))
def calculate_labour_welfare(
    jurisdiction: str,
    gross_wage: Decimal,
    month: int,
    is_intern: bool = False,
    rules: Mapping[str, LabourWelfareFundRule] | None = None,
) -> LabourWelfareResult:
    """
    Labour welfare fund contribution for one employee in ``month``.

    Raises:
        InputValidationError: negative gross or a month outside 1..12.
    """
    gross = non_negative(gross_wage, "gross_wage")
    if not 1 <= month <= 12:
        raise InputValidationError("month", month, "must be 1..12")

    rules = rules if rules is not None else get_active_rates().labour_welfare
    code = (jurisdiction or "").strip().upper()
    rule = rules.get(code)
    if rule is None:
        logger.warning("labour_welfare_unknown_jurisdiction", extra={"jurisdiction": code})
        return LabourWelfareResult.not_applicable(f"no labour welfare fund in {code or 'blank jurisdiction'}")
    if is_intern:
        return LabourWelfareResult.not_applicable("interns are exempt")
    if month not in rule.deduction_months:
        return LabourWelfareResult.not_applicable(f"{rule.name} deducts only in months {list(rule.deduction_months)}")
    if rule.wage_ceiling is not None and gross > rule.wage_ceiling:
        return LabourWelfareResult.not_applicable(f"gross {gross} exceeds wage ceiling {rule.wage_ceiling}")
    if rule.min_wage is not None and gross < rule.min_wage:
        return LabourWelfareResult.not_applicable(f"gross {gross} below minimum wage {rule.min_wage}")

    return LabourWelfareResult(
        applicable=True,
        employee_share=rule.employee_amount,
        employer_share=rule.employer_amount,
    )
