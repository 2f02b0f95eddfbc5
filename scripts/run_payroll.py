#!/usr/bin/env python3
"""
Run one payroll period from files and write the compliance outputs.

Reads a YAML employee roster and an attendance CSV, runs the batch
processor, prints run totals, and writes the wage-protection SIF file and
the regulator CSV into the output directory.  Optionally writes the PF
ECR return and the state insurance workbook.

Usage:
    python3 scripts/run_payroll.py --roster roster.yaml --attendance june.csv \\
        --period 2024-06 --payment-date 2024-07-01 \\
        --registration WPS0001 --company "Acme Trading LLC" --establishment EST-42

    # Also write ECR and ESI return, four worker threads
    python3 scripts/run_payroll.py ... --ecr-code MHBAN0012345 --esi-code 31000123450001001 --workers 4
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path


def _period(value: str) -> tuple[int, int]:
    try:
        year, month = value.split("-")
        return int(year), int(month)
    except ValueError:
        raise argparse.ArgumentTypeError(f"period must be YYYY-MM, got {value!r}") from None


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Calculate a payroll period and write SIF / regulator files.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--roster", required=True, type=Path, help="Employee roster YAML.")
    parser.add_argument("--attendance", type=Path, default=None, help="Attendance CSV (optional; missing rows mean full attendance).")
    parser.add_argument("--period", required=True, type=_period, help="Payroll period, YYYY-MM.")
    parser.add_argument("--payment-date", required=True, type=date.fromisoformat, help="Salary payment date, YYYY-MM-DD.")
    parser.add_argument("--registration", required=True, help="Employer WPS registration id (max 14 chars).")
    parser.add_argument("--company", required=True, help="Company name.")
    parser.add_argument("--establishment", required=True, help="Establishment number (max 20 chars).")
    parser.add_argument("--output-dir", type=Path, default=Path("."), help="Directory for generated files (default: cwd).")
    parser.add_argument("--rates", type=Path, default=None, help="Alternate statutory rate YAML.")
    parser.add_argument("--ecr-code", default=None, help="PF establishment code; writes the ECR return when given.")
    parser.add_argument("--esi-code", default=None, help="ESIC employer code; writes the ESI return when given.")
    parser.add_argument("--workers", type=int, default=1, help="Worker threads for the batch (default: 1).")
    parser.add_argument("--log-level", default="WARNING", help="Log level for JSON logs on stderr.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    import yaml

    from payroll_config import get_active_rates
    from payroll_kernel.domain.records import PeriodContext
    from payroll_kernel.exceptions import PayrollEngineError
    from payroll_kernel.logging_config import configure_logging
    from payroll_modules.compliance import (
        WageFileCompany,
        generate_ecr,
        generate_esi_return,
        generate_regulator_report,
        generate_wage_file,
    )
    from payroll_modules.roster import load_attendance_csv, load_roster
    from payroll_services import PayrollBatchProcessor

    configure_logging(level=getattr(logging, args.log_level.upper(), logging.WARNING))

    year, month = args.period
    try:
        period = PeriodContext(year, month)
        employees = load_roster(args.roster)
        attendance = load_attendance_csv(args.attendance) if args.attendance else []
        processor = PayrollBatchProcessor(get_active_rates(args.rates))
        run = processor.process_batch(employees, attendance, period, max_workers=args.workers)

        company = WageFileCompany(
            registration_id=args.registration,
            company_name=args.company,
            establishment_number=args.establishment,
        )
        wage_file = generate_wage_file(run, employees, company, args.payment_date)
        report = generate_regulator_report(run, employees)
    except (PayrollEngineError, OSError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    except (yaml.YAMLError, KeyError, ValueError) as e:
        # Malformed roster or attendance content
        print(f"ERROR: invalid input file: {e!r}", file=sys.stderr)
        return 1

    out = args.output_dir
    out.mkdir(parents=True, exist_ok=True)
    (out / wage_file.file_name).write_text(wage_file.content + "\n")
    (out / f"regulator_{period.year:04d}{period.month:02d}.csv").write_text(report.csv_content)

    if args.ecr_code:
        ecr = generate_ecr(run, employees, args.ecr_code, args.company)
        (out / ecr.file_name).write_text(ecr.content + "\n")
    if args.esi_code:
        esi = generate_esi_return(run, employees, args.esi_code, args.company)
        esi.save(out / esi.file_name)

    print(f"Run {run.run_id} for {period.label}")
    print(f"  Employees:      {len(run.items)}")
    print(f"  Gross:          {run.total_gross}")
    print(f"  Deductions:     {run.total_deductions}")
    print(f"  Net:            {run.total_net}")
    print(f"  Employer cost:  {run.total_employer_contributions}")
    if run.assumed_full_attendance:
        print(f"  Full attendance assumed for: {', '.join(run.assumed_full_attendance)}")
    print(f"  Wage file:      {out / wage_file.file_name}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
