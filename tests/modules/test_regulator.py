"""Tests for the regulator summary CSV."""

import csv
import io
from datetime import date
from decimal import Decimal

import pytest

from payroll_kernel.exceptions import MissingEmployeeRecordError
from payroll_modules.compliance.regulator import (
    REPORT_COLUMNS,
    generate_regulator_report,
    is_national,
)
from payroll_services.batch_processor import PayrollBatchProcessor
from tests.factories import make_attendance, make_uae_employee


@pytest.fixture
def employees():
    return [
        make_uae_employee("U001", "8000", "3000", "1000"),
        make_uae_employee("U002", "6000", "2000", "500", nationality="UAE", join_date=None),
    ]


@pytest.fixture
def run(rates, employees, june_2024):
    attendance = [make_attendance("U001"), make_attendance("U002", regular="10")]
    return PayrollBatchProcessor(rates).process_batch(employees, attendance, june_2024)


def _rows(report):
    return list(csv.reader(io.StringIO(report.csv_content)))


class TestRegulatorReport:

    def test_header(self, run, employees):
        rows = _rows(generate_regulator_report(run, employees))
        assert tuple(rows[0]) == REPORT_COLUMNS

    def test_every_field_quoted(self, run, employees):
        report = generate_regulator_report(run, employees)
        first_line = report.csv_content.split("\n")[0]
        assert first_line.startswith('"Employee Code","Employee Name"')

    def test_row_values(self, run, employees):
        row = _rows(generate_regulator_report(run, employees))[1]

        assert row[0] == "C-U001"
        assert row[2] == "784-1990-1234567-1"
        assert row[7] == "2021-03-01"
        assert row[8:11] == ["8000.00", "4000.00", "12000.00"]
        assert row[11:] == ["Employment", "Unlimited"]

    def test_overtime_counted_in_allowances(self, run, employees):
        row = _rows(generate_regulator_report(run, employees))[2]
        assert row[8:11] == ["6000.00", "2813.00", "8813.00"]

    def test_blank_join_date(self, run, employees):
        row = _rows(generate_regulator_report(run, employees))[2]
        assert row[7] == ""

    def test_summary(self, run, employees):
        summary = generate_regulator_report(run, employees).summary

        assert summary.total_employees == 2
        assert summary.nationals == 1
        assert summary.expatriates == 1
        assert summary.total_salary == Decimal("20813")
        assert summary.average_salary == Decimal("10406.50")

    def test_empty_run(self, rates, june_2024):
        run = PayrollBatchProcessor(rates).process_batch([], [], june_2024)
        report = generate_regulator_report(run, [])

        assert len(_rows(report)) == 1
        assert report.summary.average_salary == Decimal("0")

    def test_missing_employee(self, run, employees):
        with pytest.raises(MissingEmployeeRecordError):
            generate_regulator_report(run, employees[1:])


class TestIsNational:

    @pytest.mark.parametrize("nationality", ["UAE", "emirati", " United Arab Emirates "])
    def test_national(self, nationality):
        assert is_national(make_uae_employee(nationality=nationality))

    def test_expatriate(self):
        assert not is_national(make_uae_employee(nationality="India", join_date=date(2020, 1, 1)))
