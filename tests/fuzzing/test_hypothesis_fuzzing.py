"""
Hypothesis-based property tests for the payroll calculators.

Properties checked over generated inputs:
- Rounding: half-up stays within half a unit, round-up never goes below
- Provident fund: contribution base never exceeds the wage ceiling
- State insurance: shares are whole units, eligibility follows the wage limit
- Proration: full attendance pays the structure unchanged, loss of pay never raises gross
- Batch: total_net == total_gross - total_deductions for any roster
"""

from decimal import Decimal

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from payroll_config import get_active_rates
from payroll_engines.proration import prorate
from payroll_engines.provident_fund import calculate_provident_fund
from payroll_engines.state_insurance import calculate_state_insurance
from payroll_kernel.domain.records import AttendanceRecord, PeriodContext
from payroll_kernel.domain.rounding import round_half_up, round_up
from payroll_services.batch_processor import PayrollBatchProcessor
from tests.factories import make_attendance, make_employee, make_structure

money = st.decimals(min_value=Decimal("0"), max_value=Decimal("500000"), places=2)
whole_money = st.integers(min_value=0, max_value=500000).map(Decimal)
periods = st.builds(PeriodContext, st.integers(2020, 2030), st.integers(1, 12))


class TestRoundingProperties:

    @given(value=money)
    @settings(max_examples=200)
    def test_half_up_within_half_unit(self, value):
        assert abs(round_half_up(value) - value) <= Decimal("0.5")

    @given(value=money)
    @settings(max_examples=200)
    def test_round_up_never_below(self, value):
        rounded = round_up(value)
        assert rounded >= value
        assert rounded - value < 1


class TestProvidentFundProperties:

    @given(basic=money, international=st.booleans())
    @settings(max_examples=200)
    def test_base_capped_at_ceiling(self, basic, international):
        rates = get_active_rates().provident_fund
        result = calculate_provident_fund(basic, is_international_worker=international)

        assert result.contribution_base <= rates.wage_ceiling
        assert result.employee_share <= round_half_up(rates.wage_ceiling * rates.employee_rate)
        assert result.employer.pension <= rates.pension_cap
        assert result.was_capped == (basic > rates.wage_ceiling)


class TestStateInsuranceProperties:

    @given(gross=money, days=st.integers(0, 31).map(Decimal))
    @settings(max_examples=200)
    def test_shares_are_whole_units(self, gross, days):
        result = calculate_state_insurance(gross, days)

        assert result.employee_share == result.employee_share.to_integral_value()
        assert result.employer_share == result.employer_share.to_integral_value()

    @given(gross=money)
    @settings(max_examples=200)
    def test_eligibility_follows_wage_limit(self, gross):
        limit = get_active_rates().state_insurance.wage_limit
        assert calculate_state_insurance(gross, Decimal("30")).eligible == (gross <= limit)


class TestProrationProperties:

    @given(basic=whole_money, housing=whole_money, transport=whole_money, period=periods)
    @settings(max_examples=100)
    def test_full_attendance_pays_structure(self, basic, housing, transport, period):
        structure = make_structure(basic, housing, transport)
        earnings = prorate(structure, AttendanceRecord.full_attendance("E1", period), period)

        assert earnings.basic == basic
        assert earnings.gross == basic + housing + transport
        assert earnings.gross == sum(earnings.as_dict().values(), Decimal("0"))

    @given(basic=whole_money, lop=st.integers(0, 27), period=periods)
    @settings(max_examples=100)
    def test_loss_of_pay_never_raises_gross(self, basic, lop, period):
        structure = make_structure(basic, "0", "0")
        full = prorate(structure, make_attendance(lop_days="0"), period)
        reduced = prorate(structure, make_attendance(lop_days=str(lop)), period)

        assert reduced.gross <= full.gross


employee_inputs = st.tuples(
    st.integers(min_value=5000, max_value=300000),
    st.integers(min_value=0, max_value=100000),
    st.sampled_from(["MH", "KA", "DL", "TN", "WB"]),
    st.sampled_from(["new", "old"]),
    st.integers(min_value=0, max_value=10),
)


class TestBatchProperties:

    @given(roster=st.lists(employee_inputs, min_size=0, max_size=8), period=periods)
    @settings(max_examples=30, suppress_health_check=[HealthCheck.too_slow])
    def test_totals_balance(self, roster, period):
        employees, attendance = [], []
        for index, (basic, housing, jurisdiction, regime, lop) in enumerate(roster):
            employee_id = f"E{index}"
            employees.append(
                make_employee(
                    employee_id,
                    make_structure(str(basic), str(housing), "1600", tax_regime=regime),
                    jurisdiction=jurisdiction,
                )
            )
            attendance.append(make_attendance(employee_id, lop_days=str(lop)))

        run = PayrollBatchProcessor().process_batch(employees, attendance, period)

        assert run.total_net == run.total_gross - run.total_deductions
        assert len(run.items) == len(employees)
        for item in run.items:
            assert item.net == item.gross - item.total_deductions
