"""Statutory filings and bank files generated from a payroll run."""

from payroll_modules.compliance.ecr import ECRMember, ECRReturn, generate_ecr
from payroll_modules.compliance.esi_return import ESIReturn, ESIReturnRow, generate_esi_return
from payroll_modules.compliance.regulator import (
    REPORT_COLUMNS,
    RegulatorReport,
    RegulatorSummary,
    generate_regulator_report,
)
from payroll_modules.compliance.wps import (
    WageFile,
    WageFileCompany,
    WageFileRecord,
    generate_wage_file,
    validate_wage_file_employee,
)

__all__ = [
    "ECRMember",
    "ECRReturn",
    "ESIReturn",
    "ESIReturnRow",
    "REPORT_COLUMNS",
    "RegulatorReport",
    "RegulatorSummary",
    "WageFile",
    "WageFileCompany",
    "WageFileRecord",
    "generate_ecr",
    "generate_esi_return",
    "generate_regulator_report",
    "generate_wage_file",
    "validate_wage_file_employee",
]
