"""
Provident Fund Electronic Challan-cum-Return (``payroll_modules.compliance.ecr``).

``#``-delimited member rows:

    UAN#Name#Gross#EPF wages#EPS wages#EDLI wages#EE share#EPS share#ER share#NCP days#Refund

Only items where provident fund applied are returned.  Members without a
UAN cannot be filed; they are left out, logged, and listed on the result
so the run owner can chase them.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from payroll_kernel.domain.records import Employee
from payroll_kernel.domain.rounding import ZERO
from payroll_kernel.exceptions import MissingEmployeeRecordError
from payroll_kernel.logging_config import get_logger
from payroll_services.batch_processor import PayrollRunResult

logger = get_logger("modules.compliance.ecr")

ECR_SEPARATOR = "#"
ECR_COLUMNS = (
    "UAN",
    "Name",
    "Gross Wages",
    "EPF Wages",
    "EPS Wages",
    "EDLI Wages",
    "EE Share",
    "EPS Share",
    "ER Share",
    "NCP Days",
    "Refund",
)

_NON_LETTERS = re.compile(r"[^A-Za-z\s]")


@dataclass(frozen=True)
class ECRMember:
    uan: str
    name: str
    gross_wages: Decimal
    epf_wages: Decimal
    eps_wages: Decimal
    edli_wages: Decimal
    ee_share: Decimal
    eps_share: Decimal
    er_share: Decimal
    ncp_days: Decimal
    refund: Decimal = ZERO

    def as_row(self) -> str:
        values = (
            self.uan,
            self.name,
            self.gross_wages,
            self.epf_wages,
            self.eps_wages,
            self.edli_wages,
            self.ee_share,
            self.eps_share,
            self.er_share,
            self.ncp_days,
            self.refund,
        )
        return ECR_SEPARATOR.join(_fmt(v) for v in values)


@dataclass(frozen=True)
class ECRReturn:
    file_name: str
    content: str
    members: tuple[ECRMember, ...]
    skipped_employee_ids: tuple[str, ...]
    total_wages: Decimal
    total_ee_share: Decimal
    total_eps_share: Decimal
    total_er_share: Decimal


def _fmt(value: Decimal | str) -> str:
    if isinstance(value, Decimal):
        return f"{value:f}"
    return value


def clean_member_name(name: str) -> str:
    return _NON_LETTERS.sub("", name).strip()


def generate_ecr(
    run: PayrollRunResult,
    employees: Iterable[Employee],
    establishment_code: str,
    establishment_name: str = "",
) -> ECRReturn:
    """
    Build the monthly ECR text for ``run``.

    Raises:
        MissingEmployeeRecordError: an item has no matching employee.
    """
    by_id = {e.id: e for e in employees}
    members: list[ECRMember] = []
    skipped: list[str] = []

    for item in run.items:
        pf = item.deductions.provident_fund
        if pf is None or pf.exempted:
            continue
        employee = by_id.get(item.employee_id)
        if employee is None:
            raise MissingEmployeeRecordError(item.employee_id)
        if not employee.uan.strip():
            skipped.append(employee.id)
            continue
        members.append(
            ECRMember(
                uan=employee.uan.strip(),
                name=clean_member_name(employee.name),
                gross_wages=item.gross,
                epf_wages=pf.contribution_base,
                eps_wages=pf.pension_wages,
                edli_wages=pf.contribution_base,
                ee_share=pf.employee_share,
                eps_share=pf.employer.pension,
                er_share=pf.employer.fund,
                ncp_days=item.attendance.lop_days,
            )
        )

    if skipped:
        logger.warning(
            "ecr_members_without_uan",
            extra={"employee_ids": skipped, "count": len(skipped)},
        )

    period = run.period
    total_wages = sum((m.gross_wages for m in members), ZERO)
    total_ee = sum((m.ee_share for m in members), ZERO)
    total_eps = sum((m.eps_share for m in members), ZERO)
    total_er = sum((m.er_share for m in members), ZERO)

    lines = [
        f"# PF ECR for {period.first_day.strftime('%B')} {period.year}",
        f"# Establishment: {establishment_name or establishment_code}",
        f"# PF Code: {establishment_code}",
        f"# Total Members: {len(members)}",
        "# Format: " + ECR_SEPARATOR.join(ECR_COLUMNS),
    ]
    lines.extend(m.as_row() for m in members)
    lines.append(
        f"# Totals: Wages {_fmt(total_wages)} EE {_fmt(total_ee)} "
        f"EPS {_fmt(total_eps)} ER {_fmt(total_er)}"
    )

    return ECRReturn(
        file_name=f"ECR_{establishment_code}_{period.month:02d}{period.year:04d}.txt",
        content="\n".join(lines),
        members=tuple(members),
        skipped_employee_ids=tuple(skipped),
        total_wages=total_wages,
        total_ee_share=total_ee,
        total_eps_share=total_eps,
        total_er_share=total_er,
    )
