"""
Batch Payroll Processor (``payroll_services.batch_processor``).

Responsibility
--------------
Runs one payroll period for a list of employees: attendance lookup,
proration, then each applicable statutory calculator, then run-level
aggregation into an immutable ``PayrollRunResult``.

Architecture position
---------------------
**Services layer** -- orchestration only.  All arithmetic lives in
``payroll_engines``; this module decides which calculators apply, feeds
them the right base (earned basic for provident fund, gross for the
rest) and sums the results.

Invariants enforced
-------------------
* Missing attendance is never an error and never silently zero: the
  employee is paid under ``MISSING_ATTENDANCE_POLICY`` (full attendance),
  a warning is logged and the employee id is listed on the result.
* A calculator whose applicability flag is off is never invoked.  Its
  slot holds ``None`` ("not owed"), distinct from a calculated zero.
* ``net = gross - employee-side deductions``.  Employer contributions are
  reported next to it and never reduce net pay.
* Totals are plain sums over items, so sequential and parallel runs
  produce identical results, and
  ``total_net == total_gross - total_deductions``.
* Fail-fast: the first employee whose calculation raises aborts the run
  with ``BatchCalculationError`` naming the employee and stage.  No
  partial run result is ever returned.
* The rate snapshot is pinned when the processor is built; a reload of
  the rate tables does not affect a processor already in use.

Failure modes
-------------
* Duplicate employee ids or duplicate attendance records for one
  employee -> ``InputValidationError`` before any calculation.
* Any calculator failure -> ``BatchCalculationError`` chained to the
  original exception.

Usage::

    processor = PayrollBatchProcessor()
    result = processor.process_batch(employees, attendance, PeriodContext(2024, 6))
    result.total_net
"""

from __future__ import annotations

import contextvars
import time
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID, uuid4

from payroll_config import get_active_rates
from payroll_config.schema import StatutoryRateTables
from payroll_engines.income_tax import WithholdingResult, calculate_withholding
from payroll_engines.labour_welfare import LabourWelfareResult, calculate_labour_welfare
from payroll_engines.professional_tax import calculate_professional_tax
from payroll_engines.proration import EarningsBreakdown, prorate
from payroll_engines.provident_fund import ProvidentFundResult, calculate_provident_fund
from payroll_engines.state_insurance import StateInsuranceResult, calculate_state_insurance
from payroll_kernel.domain.records import (
    AttendanceRecord,
    Employee,
    PeriodContext,
)
from payroll_kernel.domain.rounding import ZERO
from payroll_kernel.exceptions import BatchCalculationError, InputValidationError
from payroll_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.batch_processor")

MISSING_ATTENDANCE_POLICY = "full_attendance"


def default_attendance(employee_id: str, period: PeriodContext) -> AttendanceRecord:
    """Attendance substituted when an employee has no record for the period."""
    return AttendanceRecord.full_attendance(employee_id, period)


class Stage:
    """Calculation stages named in ``BatchCalculationError.stage``."""

    PRORATION = "proration"
    PROVIDENT_FUND = "provident_fund"
    STATE_INSURANCE = "state_insurance"
    PROFESSIONAL_TAX = "professional_tax"
    INCOME_TAX = "income_tax"
    LABOUR_WELFARE = "labour_welfare"


@dataclass(frozen=True)
class DeductionBreakdown:
    """
    Statutory results for one employee.  ``None`` means not applicable.
    """

    provident_fund: ProvidentFundResult | None = None
    state_insurance: StateInsuranceResult | None = None
    professional_tax: Decimal | None = None
    income_tax: WithholdingResult | None = None
    labour_welfare: LabourWelfareResult | None = None

    @property
    def employee_side(self) -> dict[str, Decimal]:
        """Employee deductions by name, applicable calculators only."""
        amounts: dict[str, Decimal] = {}
        if self.provident_fund is not None:
            amounts[Stage.PROVIDENT_FUND] = self.provident_fund.employee_share
        if self.state_insurance is not None:
            amounts[Stage.STATE_INSURANCE] = self.state_insurance.employee_share
        if self.professional_tax is not None:
            amounts[Stage.PROFESSIONAL_TAX] = self.professional_tax
        if self.income_tax is not None:
            amounts[Stage.INCOME_TAX] = self.income_tax.amount
        if self.labour_welfare is not None:
            amounts[Stage.LABOUR_WELFARE] = self.labour_welfare.employee_share
        return amounts

    @property
    def employer_side(self) -> dict[str, Decimal]:
        """Employer contributions by name.  Reported, never deducted."""
        amounts: dict[str, Decimal] = {}
        if self.provident_fund is not None:
            amounts[Stage.PROVIDENT_FUND] = self.provident_fund.employer_share
        if self.state_insurance is not None:
            amounts[Stage.STATE_INSURANCE] = self.state_insurance.employer_share
        if self.labour_welfare is not None:
            amounts[Stage.LABOUR_WELFARE] = self.labour_welfare.employer_share
        return amounts

    @property
    def total_employee(self) -> Decimal:
        return sum(self.employee_side.values(), ZERO)

    @property
    def total_employer(self) -> Decimal:
        return sum(self.employer_side.values(), ZERO)


@dataclass(frozen=True)
class PayrollItem:
    employee_id: str
    attendance: AttendanceRecord
    earnings: EarningsBreakdown
    deductions: DeductionBreakdown
    assumed_full_attendance: bool = False

    @property
    def gross(self) -> Decimal:
        return self.earnings.gross

    @property
    def total_deductions(self) -> Decimal:
        return self.deductions.total_employee

    @property
    def net(self) -> Decimal:
        return self.gross - self.total_deductions

    @property
    def employer_contributions(self) -> Decimal:
        return self.deductions.total_employer


@dataclass(frozen=True)
class PayrollRunResult:
    """
    Immutable result of one run.  Recalculating builds a new result.
    """

    run_id: UUID
    period: PeriodContext
    items: tuple[PayrollItem, ...]
    total_gross: Decimal
    total_deductions: Decimal
    total_net: Decimal
    total_employer_contributions: Decimal
    rates_version: str = ""
    rates_checksum: str = field(default="", compare=False)

    @classmethod
    def from_items(
        cls,
        items: Iterable[PayrollItem],
        period: PeriodContext,
        run_id: UUID | None = None,
        rates: StatutoryRateTables | None = None,
    ) -> PayrollRunResult:
        items = tuple(items)
        return cls(
            run_id=run_id or uuid4(),
            period=period,
            items=items,
            total_gross=sum((i.gross for i in items), ZERO),
            total_deductions=sum((i.total_deductions for i in items), ZERO),
            total_net=sum((i.net for i in items), ZERO),
            total_employer_contributions=sum((i.employer_contributions for i in items), ZERO),
            rates_version=rates.version if rates else "",
            rates_checksum=rates.checksum if rates else "",
        )

    @property
    def assumed_full_attendance(self) -> tuple[str, ...]:
        return tuple(i.employee_id for i in self.items if i.assumed_full_attendance)

    def item_for(self, employee_id: str) -> PayrollItem:
        for item in self.items:
            if item.employee_id == employee_id:
                return item
        raise KeyError(employee_id)


def index_attendance(records: Iterable[AttendanceRecord]) -> dict[str, AttendanceRecord]:
    """Attendance keyed by employee id; a second record for one id is rejected."""
    index: dict[str, AttendanceRecord] = {}
    for record in records:
        if record.employee_id in index:
            raise InputValidationError(
                "attendance_records", record.employee_id, "duplicate attendance record for employee"
            )
        index[record.employee_id] = record
    return index


class PayrollBatchProcessor:
    """Runs payroll periods against one pinned rate snapshot."""

    def __init__(self, rates: StatutoryRateTables | None = None):
        self._rates = rates or get_active_rates()

    @property
    def rates(self) -> StatutoryRateTables:
        return self._rates

    def process_batch(
        self,
        employees: Sequence[Employee],
        attendance_records: Iterable[AttendanceRecord],
        period: PeriodContext,
        *,
        max_workers: int | None = None,
        run_id: UUID | None = None,
    ) -> PayrollRunResult:
        """
        Calculate payroll for every employee in ``employees``.

        Args:
            employees: Employees to pay, in output order.
            attendance_records: At most one record per employee.
            period: The payroll period.
            max_workers: Thread count for per-employee calculation.
                ``None`` or 1 runs sequentially.
            run_id: Optional run identifier; generated when omitted.

        Raises:
            InputValidationError: duplicate employee or attendance ids.
            BatchCalculationError: an employee failed; the run is aborted.
        """
        run_id = run_id or uuid4()
        attendance = index_attendance(attendance_records)

        seen: set[str] = set()
        for employee in employees:
            if employee.id in seen:
                raise InputValidationError("employees", employee.id, "duplicate employee id")
            seen.add(employee.id)

        unmatched = sorted(set(attendance) - seen)
        if unmatched:
            logger.warning(
                "payroll_attendance_unmatched",
                extra={"employee_ids": unmatched, "count": len(unmatched)},
            )

        t0 = time.monotonic()
        with LogContext.bind(run_id=run_id, period=period.label):
            logger.info(
                "payroll_run_started",
                extra={
                    "employee_count": len(employees),
                    "attendance_count": len(attendance),
                    "rates_version": self._rates.version,
                    "max_workers": max_workers or 1,
                },
            )
            try:
                if max_workers and max_workers > 1:
                    with ThreadPoolExecutor(max_workers=max_workers) as pool:
                        futures = [
                            pool.submit(
                                contextvars.copy_context().run,
                                self._calculate,
                                employee,
                                attendance.get(employee.id),
                                period,
                            )
                            for employee in employees
                        ]
                        items = [f.result() for f in futures]
                else:
                    items = [
                        self._calculate(employee, attendance.get(employee.id), period)
                        for employee in employees
                    ]
            except BatchCalculationError as exc:
                logger.error(
                    "payroll_run_aborted",
                    extra={
                        "failed_employee_id": exc.employee_id,
                        "stage": exc.stage,
                        "error": str(exc.cause),
                    },
                )
                raise

            result = PayrollRunResult.from_items(items, period, run_id=run_id, rates=self._rates)
            duration_ms = round((time.monotonic() - t0) * 1000, 2)
            logger.info(
                "payroll_run_completed",
                extra={
                    "employee_count": len(result.items),
                    "total_gross": str(result.total_gross),
                    "total_deductions": str(result.total_deductions),
                    "total_net": str(result.total_net),
                    "total_employer_contributions": str(result.total_employer_contributions),
                    "assumed_full_attendance": list(result.assumed_full_attendance),
                    "duration_ms": duration_ms,
                },
            )
        return result

    def calculate_employee(
        self,
        employee: Employee,
        attendance: AttendanceRecord | None,
        period: PeriodContext,
    ) -> PayrollItem:
        """Single-employee calculation; same policies as the batch."""
        return self._calculate(employee, attendance, period)

    def _calculate(
        self,
        employee: Employee,
        attendance: AttendanceRecord | None,
        period: PeriodContext,
    ) -> PayrollItem:
        with LogContext.bind(employee_id=employee.id):
            assumed = attendance is None
            if assumed:
                attendance = default_attendance(employee.id, period)
                logger.warning(
                    "payroll_attendance_missing",
                    extra={
                        "policy": MISSING_ATTENDANCE_POLICY,
                        "days_worked": str(attendance.days_worked),
                    },
                )

            structure = employee.structure
            rates = self._rates
            provident_fund = state_insurance = professional_tax = None
            income_tax = labour_welfare = None

            stage = Stage.PRORATION
            try:
                earnings = prorate(structure, attendance, period, overtime_rates=rates.overtime)
                gross = earnings.gross

                if structure.pf_applicable:
                    stage = Stage.PROVIDENT_FUND
                    # Provident fund is due on earned basic, not the contractual one
                    provident_fund = calculate_provident_fund(
                        earnings.basic,
                        structure.international_worker,
                        structure.pf_exempted,
                        rates=rates.provident_fund,
                    )
                if structure.insurance_applicable:
                    stage = Stage.STATE_INSURANCE
                    state_insurance = calculate_state_insurance(
                        gross,
                        earnings.payable_days,
                        structure.has_disability,
                        structure.insurance_forced_eligibility,
                        rates=rates.state_insurance,
                    )
                if structure.professional_tax_applicable:
                    stage = Stage.PROFESSIONAL_TAX
                    professional_tax = calculate_professional_tax(
                        employee.jurisdiction,
                        gross,
                        employee.gender,
                        period.month,
                        tables=rates.professional_tax,
                    )
                if structure.income_tax_applicable:
                    stage = Stage.INCOME_TAX
                    income_tax = calculate_withholding(
                        gross,
                        structure.tax_regime,
                        employee.ytd_tax_withheld,
                        period.fiscal_periods_remaining,
                        rates=rates.income_tax,
                    )
                if structure.labour_welfare_applicable:
                    stage = Stage.LABOUR_WELFARE
                    labour_welfare = calculate_labour_welfare(
                        employee.jurisdiction,
                        gross,
                        period.month,
                        employee.is_intern,
                        rules=rates.labour_welfare,
                    )
            except Exception as exc:
                raise BatchCalculationError(employee.id, stage, exc) from exc

            deductions = DeductionBreakdown(
                provident_fund=provident_fund,
                state_insurance=state_insurance,
                professional_tax=professional_tax,
                income_tax=income_tax,
                labour_welfare=labour_welfare,
            )
            item = PayrollItem(
                employee_id=employee.id,
                attendance=attendance,
                earnings=earnings,
                deductions=deductions,
                assumed_full_attendance=assumed,
            )
            if item.net < ZERO:
                logger.warning(
                    "payroll_negative_net",
                    extra={"gross": str(item.gross), "net": str(item.net)},
                )
            return item
