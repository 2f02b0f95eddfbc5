"""Tests for the provident fund ECR return."""

from decimal import Decimal

import pytest

from payroll_kernel.exceptions import MissingEmployeeRecordError
from payroll_modules.compliance.ecr import clean_member_name, generate_ecr
from payroll_services.batch_processor import PayrollBatchProcessor
from tests.factories import events, make_attendance, make_employee, make_structure


@pytest.fixture
def employees():
    return [
        make_employee("E1", make_structure("30000", "15000", "1600"), name="Asha Rao", uan="100200300400"),
        make_employee("E2", make_structure("10000", "4000", "1600"), name="Vikram Shah"),
        make_employee("E3", make_structure("20000", "0", "0", pf_applicable=False), name="No Fund"),
        make_employee(
            "E4",
            make_structure("12000", "0", "0", international_worker=True),
            name="O'Brien, Sean",
            uan="100200300404",
        ),
    ]


@pytest.fixture
def run(rates, employees, june_2024):
    attendance = [make_attendance("E1", days_worked="28", lop_days="2")]
    return PayrollBatchProcessor(rates).process_batch(employees, attendance, june_2024)


class TestGenerateECR:

    def test_member_row(self, run, employees):
        ecr = generate_ecr(run, employees, "MHBAN0012345", "Acme")
        row = ecr.members[0].as_row()

        # Gross 43493 after 2 loss-of-pay days; base capped at 15000
        assert row == "100200300400#Asha Rao#43493#15000#15000#15000#1800#1250#551#2#0"

    def test_international_worker_has_no_pension(self, run, employees):
        member = generate_ecr(run, employees, "MHBAN0012345").members[1]

        assert member.name == "OBrien Sean"
        assert member.eps_wages == Decimal("0")
        assert member.eps_share == Decimal("0")
        assert member.ee_share == Decimal("1440")

    def test_members_without_uan_skipped_and_listed(self, run, employees, log_stream):
        ecr = generate_ecr(run, employees, "MHBAN0012345")

        assert [m.uan for m in ecr.members] == ["100200300400", "100200300404"]
        assert ecr.skipped_employee_ids == ("E2",)
        assert events(log_stream, "ecr_members_without_uan")[0]["employee_ids"] == ["E2"]

    def test_non_provident_fund_items_excluded(self, run, employees):
        ecr = generate_ecr(run, employees, "MHBAN0012345")
        assert "E3" not in ecr.skipped_employee_ids
        assert len(ecr.members) == 2

    def test_exempted_members_excluded(self, rates, employees, june_2024):
        exempt = make_employee(
            "E5",
            make_structure("25000", "0", "0", pf_exempted=True),
            name="Exempt Member",
            uan="100200300405",
        )
        staff = employees + [exempt]
        run = PayrollBatchProcessor(rates).process_batch(staff, [], june_2024)

        assert run.items[-1].deductions.provident_fund.exempted
        ecr = generate_ecr(run, staff, "MHBAN0012345")
        assert "100200300405" not in [m.uan for m in ecr.members]
        assert "E5" not in ecr.skipped_employee_ids
        assert "# Total Members: 2" in ecr.content

    def test_totals(self, run, employees):
        ecr = generate_ecr(run, employees, "MHBAN0012345")

        assert ecr.total_wages == Decimal("43493") + Decimal("12000")
        assert ecr.total_ee_share == Decimal("1800") + Decimal("1440")
        assert ecr.total_eps_share == Decimal("1250")

    def test_file_layout(self, run, employees):
        ecr = generate_ecr(run, employees, "MHBAN0012345", "Acme Industries")
        lines = ecr.content.split("\n")

        assert ecr.file_name == "ECR_MHBAN0012345_062024.txt"
        assert lines[0] == "# PF ECR for June 2024"
        assert lines[1] == "# Establishment: Acme Industries"
        assert lines[3] == "# Total Members: 2"
        assert lines[4].startswith("# Format: UAN#Name#Gross Wages")
        assert lines[-1].startswith("# Totals: Wages 55493")

    def test_missing_employee(self, run, employees):
        with pytest.raises(MissingEmployeeRecordError):
            generate_ecr(run, employees[1:], "MHBAN0012345")


class TestCleanMemberName:

    def test_strips_punctuation_and_digits(self):
        assert clean_member_name(" Dr. A.K. Singh-2 ") == "Dr AK Singh"
