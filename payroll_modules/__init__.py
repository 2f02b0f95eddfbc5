"""
Payroll Modules.

Outward-facing formats built from a finished ``PayrollRunResult``.

Modules:
- Compliance: wage-protection (SIF) file, regulator CSV report,
  provident fund ECR return, state insurance monthly return workbook
"""
