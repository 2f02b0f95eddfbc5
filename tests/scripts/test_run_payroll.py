"""End-to-end tests for scripts/run_payroll.py."""

import importlib.util
from pathlib import Path

import pytest
from openpyxl import load_workbook

from payroll_kernel.logging_config import reset_logging

SCRIPT = Path(__file__).parents[2] / "scripts" / "run_payroll.py"

ROSTER = """\
employees:
  - id: U001
    name: Worker One
    code: C-U001
    national_id: 784-1990-1234567-1
    nationality: India
    labour_card_number: LC001
    bank_short_name: ENBD
    account_number: AE070331234567890123456
    structure:
      basic: 8000
      housing_allowance: 3000
      transport_allowance: 1000
      pf_applicable: false
      insurance_applicable: false
      professional_tax_applicable: false
      income_tax_applicable: false
  - id: E1
    name: Meena Iyer
    gender: female
    jurisdiction: MH
    uan: "100200300400"
    insurance_number: "3100123456"
    labour_card_number: LC002
    bank_short_name: ENBD
    account_number: AE070331234567890123457
    structure:
      basic: 10000
      housing_allowance: 4000
      transport_allowance: 1600
"""

BASE_ARGS = [
    "--period", "2024-06",
    "--payment-date", "2024-07-01",
    "--registration", "WPS0001",
    "--company", "Acme Trading LLC",
    "--establishment", "EST-42",
]


def _load_script():
    spec = importlib.util.spec_from_file_location("run_payroll", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def run_payroll():
    reset_logging()
    yield _load_script()
    reset_logging()


@pytest.fixture
def inputs(tmp_path):
    roster = tmp_path / "roster.yaml"
    roster.write_text(ROSTER)
    attendance = tmp_path / "june.csv"
    attendance.write_text("employee_id,days_worked,lop_days\nU001,30,0\n")
    return roster, attendance


class TestRunPayroll:

    def test_writes_wage_file_and_report(self, run_payroll, inputs, tmp_path, capsys):
        roster, attendance = inputs
        out = tmp_path / "out"

        code = run_payroll.main([
            "--roster", str(roster), "--attendance", str(attendance),
            "--output-dir", str(out), *BASE_ARGS,
        ])

        assert code == 0
        sif = (out / "WPS_EST-42_202406.sif").read_text().split("\n")
        assert sif[0].startswith("SCR|WPS0001")
        assert len([line for line in sif if line.startswith("EDR|")]) == 2
        assert (out / "regulator_202406.csv").read_text().startswith('"Employee Code"')

        printed = capsys.readouterr().out
        assert "Employees:      2" in printed
        assert "Full attendance assumed for: E1" in printed

    def test_optional_returns(self, run_payroll, inputs, tmp_path):
        roster, _ = inputs
        out = tmp_path / "out"

        code = run_payroll.main([
            "--roster", str(roster), "--output-dir", str(out),
            "--ecr-code", "MHBAN0012345", "--esi-code", "31000123450001001",
            "--workers", "2", *BASE_ARGS,
        ])

        assert code == 0
        ecr = (out / "ECR_MHBAN0012345_062024.txt").read_text()
        assert "100200300400#Meena Iyer#15600#10000#10000#10000#1200#833#367#0#0" in ecr
        ws = load_workbook(out / "ESI_Return_31000123450001001_06_2024.xlsx").active
        assert ws["A1"].value == "ESI Monthly Return - June 2024"

    def test_calculation_failure_returns_one(self, run_payroll, inputs, tmp_path, capsys):
        roster, _ = inputs
        roster.write_text(ROSTER.replace("transport_allowance: 1600", "transport_allowance: 1600\n      tax_regime: flat"))

        code = run_payroll.main(["--roster", str(roster), "--output-dir", str(tmp_path), *BASE_ARGS])

        assert code == 1
        assert "ERROR:" in capsys.readouterr().err
        assert not list(tmp_path.glob("*.sif"))

    def test_missing_roster_returns_one(self, run_payroll, tmp_path):
        code = run_payroll.main(["--roster", str(tmp_path / "absent.yaml"), *BASE_ARGS])
        assert code == 1

    @pytest.mark.parametrize(
        "content",
        [
            "employees:\n  - {id: E9, name: No Structure}\n",
            "employees: [\n",
            "employees:\n  - {id: E9, name: X, join_date: \"2024-13-01\", structure: {basic: 1000}}\n",
            "employees:\n  - {id: E9, name: X, gender: robot, structure: {basic: 1000}}\n",
        ],
        ids=["missing-structure", "broken-yaml", "bad-join-date", "bad-gender"],
    )
    def test_malformed_roster_returns_one(self, run_payroll, tmp_path, capsys, content):
        roster = tmp_path / "roster.yaml"
        roster.write_text(content)

        code = run_payroll.main(["--roster", str(roster), "--output-dir", str(tmp_path), *BASE_ARGS])

        assert code == 1
        assert "invalid input file" in capsys.readouterr().err

    def test_bad_period_rejected(self, run_payroll, inputs):
        roster, _ = inputs
        args = ["--roster", str(roster), *BASE_ARGS]
        args[args.index("2024-06")] = "June"
        with pytest.raises(SystemExit):
            run_payroll.main(args)
