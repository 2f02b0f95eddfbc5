"""
Typed exception hierarchy for the payroll engine.

Every error carries a machine-readable ``code`` class attribute and the
structured data a caller needs to act on it, so callers catch by type and
read attributes instead of parsing messages:

    try:
        result = processor.process_batch(employees, attendance, period)
    except BatchCalculationError as e:
        block_run(employee=e.employee_id, stage=e.stage, code=e.code)

Hierarchy:

    PayrollEngineError (base)
    |
    +-- InputValidationError
    +-- UnknownTaxRegimeError
    +-- RateTableError
    +-- BatchCalculationError
    +-- ExportError
        +-- WageFileFormatError
        +-- MissingEmployeeRecordError

Policy notes:
    - Negative money and day counts are rejected, never clamped.
    - An unknown professional-tax or welfare-fund jurisdiction is NOT an
      error; those calculators return zero.  Tax regimes are a closed set
      and an unknown one raises.
    - One failing employee aborts the whole batch.
"""

from __future__ import annotations

from typing import Any


class PayrollEngineError(Exception):
    """
    Base exception for all payroll engine errors.

    All subclasses must have a ``code`` class attribute.
    """

    code: str = "PAYROLL_ENGINE_ERROR"


class InputValidationError(PayrollEngineError):
    """A calculator received a value it must never see (e.g. negative pay)."""

    code: str = "INVALID_INPUT"

    def __init__(self, field: str, value: Any, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field}={value!r}: {reason}")


class UnknownTaxRegimeError(PayrollEngineError):
    """Withholding was requested under a regime the rate tables do not define."""

    code: str = "UNKNOWN_TAX_REGIME"

    def __init__(self, regime: str, known: tuple[str, ...] = ()):
        self.regime = regime
        self.known = known
        hint = f" (known: {', '.join(known)})" if known else ""
        super().__init__(f"Unknown tax regime: {regime}{hint}")


class RateTableError(PayrollEngineError):
    """A statutory rate table is structurally invalid."""

    code: str = "RATE_TABLE_ERROR"

    def __init__(self, table: str, reason: str):
        self.table = table
        self.reason = reason
        super().__init__(f"Invalid rate table {table}: {reason}")


class BatchCalculationError(PayrollEngineError):
    """
    One employee's calculation failed and the run was aborted.

    The original exception is chained as ``__cause__`` and also kept on
    ``cause`` for structured logging.
    """

    code: str = "BATCH_CALCULATION_FAILED"

    def __init__(self, employee_id: str, stage: str, cause: BaseException):
        self.employee_id = employee_id
        self.stage = stage
        self.cause = cause
        super().__init__(
            f"Payroll run aborted: employee {employee_id} failed in {stage}: {cause}"
        )


class ExportError(PayrollEngineError):
    """Base exception for compliance export failures."""

    code: str = "EXPORT_ERROR"


class WageFileFormatError(ExportError):
    """A value does not fit its fixed-width wage-file field."""

    code: str = "WAGE_FILE_FORMAT"

    def __init__(self, field: str, value: Any, width: int, reason: str = "exceeds field width"):
        self.field = field
        self.value = value
        self.width = width
        super().__init__(f"Wage file field {field} ({width} chars): {reason}: {value!r}")


class MissingEmployeeRecordError(ExportError):
    """A payroll item references an employee the exporter was not given."""

    code: str = "EMPLOYEE_RECORD_MISSING"

    def __init__(self, employee_id: str):
        self.employee_id = employee_id
        super().__init__(f"No employee record for payroll item: {employee_id}")
