"""Domain records and money helpers shared by every payroll layer."""

from payroll_kernel.domain.records import (
    Allowance,
    AttendanceRecord,
    Employee,
    Gender,
    OvertimeHours,
    PeriodContext,
    SalaryStructure,
    TaxRegime,
)
from payroll_kernel.domain.rounding import (
    ZERO,
    as_money,
    non_negative,
    round_half_up,
    round_up,
    to_minor_units,
)

__all__ = [
    "Allowance",
    "AttendanceRecord",
    "Employee",
    "Gender",
    "OvertimeHours",
    "PeriodContext",
    "SalaryStructure",
    "TaxRegime",
    "ZERO",
    "as_money",
    "non_negative",
    "round_half_up",
    "round_up",
    "to_minor_units",
]
