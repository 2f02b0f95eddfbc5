"""
Tests for the Proration Engine.

Covers:
- Calendar-day proration of fixed components
- Per-component rounding, gross as sum of rounded parts
- Overtime on the fixed 30-day / 8-hour convention
- Loss-of-pay beyond the period
- Input rejection
"""

from decimal import Decimal

import pytest

from payroll_engines.proration import (
    OVERTIME_COMPONENT,
    calculate_overtime_pay,
    prorate,
    prorate_amount,
)
from payroll_kernel.domain.records import OvertimeHours, PeriodContext
from payroll_kernel.exceptions import InputValidationError
from tests.factories import make_attendance, make_structure


class TestProrateAmount:

    def test_full_period(self):
        assert prorate_amount(Decimal("30000"), Decimal("30"), 30) == Decimal("30000")

    def test_partial_rounds_half_up(self):
        # 1600 x 28 / 30 = 1493.33
        assert prorate_amount(Decimal("1600"), Decimal("28"), 30) == Decimal("1493")

    def test_zero_day_period_gives_zero(self):
        assert prorate_amount(Decimal("30000"), Decimal("0"), 0) == Decimal("0")


class TestProrate:
    """Tests for prorate()."""

    def test_full_attendance_pays_structure(self, june_2024):
        earnings = prorate(make_structure(), make_attendance(), june_2024)

        assert earnings.gross == Decimal("46600")
        assert earnings.basic == Decimal("30000")
        assert earnings.payable_days == Decimal("30")
        assert earnings.days_in_period == 30

    def test_loss_of_pay_prorates_each_component(self, june_2024):
        earnings = prorate(make_structure(), make_attendance(days_worked="28", lop_days="2"), june_2024)

        assert earnings.as_dict() == {
            "basic": Decimal("28000"),
            "housing": Decimal("14000"),
            "transport": Decimal("1493"),
        }
        assert earnings.gross == Decimal("43493")

    def test_uses_actual_calendar_days(self):
        structure = make_structure(basic="31000", housing="0", transport="0")
        earnings = prorate(structure, make_attendance(lop_days="1"), PeriodContext(2024, 7))
        assert earnings.basic == Decimal("30000")

    def test_february_divisor(self):
        structure = make_structure(basic="29000", housing="0", transport="0")
        earnings = prorate(structure, make_attendance(lop_days="1"), PeriodContext(2024, 2))
        assert earnings.basic == Decimal("28000")

    def test_gross_is_sum_of_rounded_components(self, june_2024):
        structure = make_structure(basic="1000.50", housing="1000.50", transport="0")
        earnings = prorate(structure, make_attendance(lop_days="15"), june_2024)
        # Each 500.25 rounds to 500 on its own
        assert earnings.gross == Decimal("1000")

    def test_custom_allowances_follow_structure_order(self, june_2024):
        structure = make_structure(others=[("medical", "1250"), ("special", "2000")])
        earnings = prorate(structure, make_attendance(), june_2024)
        assert [c.name for c in earnings.components] == [
            "basic", "housing", "transport", "medical", "special",
        ]

    def test_lop_beyond_period_floors_at_zero(self, june_2024):
        earnings = prorate(make_structure(), make_attendance(days_worked="0", lop_days="40"), june_2024)
        assert earnings.payable_days == Decimal("0")
        assert earnings.gross == Decimal("0")

    def test_no_overtime_component_without_hours(self, june_2024):
        earnings = prorate(make_structure(), make_attendance(), june_2024)
        assert OVERTIME_COMPONENT not in earnings.as_dict()
        assert earnings.overtime == Decimal("0")

    def test_overtime_added_unprorated(self, june_2024):
        attendance = make_attendance(days_worked="28", lop_days="2", regular="10")
        earnings = prorate(make_structure(), attendance, june_2024)

        # 30000 x 10 x 1.25 / 240, on contractual basic
        assert earnings.overtime == Decimal("1563")
        assert earnings.components[-1].is_overtime
        assert earnings.gross == Decimal("43493") + Decimal("1563")

    def test_negative_lop_rejected(self, june_2024):
        with pytest.raises(InputValidationError, match="lop_days"):
            prorate(make_structure(), make_attendance(lop_days="-1"), june_2024)

    def test_negative_component_rejected(self, june_2024):
        with pytest.raises(InputValidationError, match="housing"):
            prorate(make_structure(housing="-100"), make_attendance(), june_2024)

    def test_negative_overtime_rejected(self, june_2024):
        with pytest.raises(InputValidationError, match="overtime.weekend"):
            prorate(make_structure(), make_attendance(weekend="-2"), june_2024)


class TestOvertimePay:
    """Fixed-divisor overtime."""

    def test_regular_hours(self, rates):
        pay = calculate_overtime_pay(Decimal("30000"), OvertimeHours(regular="10"), rates.overtime)
        assert pay == Decimal("1563")

    def test_weekend_and_holiday(self, rates):
        hours = OvertimeHours(weekend="4", holiday="4")
        # 30000 x (6 + 6) / 240
        assert calculate_overtime_pay(Decimal("30000"), hours, rates.overtime) == Decimal("1500")

    def test_same_rate_in_every_month(self, rates):
        """The 30-day divisor does not follow the calendar."""
        hours = OvertimeHours(regular="8")
        pay = calculate_overtime_pay(Decimal("24000"), hours, rates.overtime)
        assert pay == Decimal("1000")

    def test_no_hours(self, rates):
        assert calculate_overtime_pay(Decimal("30000"), OvertimeHours(), rates.overtime) == Decimal("0")
