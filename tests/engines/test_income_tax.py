"""
Tests for the Income-Tax Withholding Calculator.

Covers:
- Marginal slab arithmetic per regime
- Standard deduction and cess
- Rebate cliff (no marginal relief)
- Spreading the remaining liability over remaining periods
- Closed regime set
"""

from decimal import Decimal

import pytest

from payroll_engines.income_tax import calculate_slab_tax, calculate_withholding
from payroll_kernel.domain.records import TaxRegime
from payroll_kernel.exceptions import InputValidationError, UnknownTaxRegimeError


class TestSlabTax:

    def test_new_regime_marginal_sum(self, rates):
        slabs = rates.income_tax.regimes["new"].slabs
        # 15000 + 30000 + 37500
        assert calculate_slab_tax(Decimal("1150000"), slabs) == Decimal("82500")

    def test_income_in_first_slab(self, rates):
        slabs = rates.income_tax.regimes["new"].slabs
        assert calculate_slab_tax(Decimal("250000"), slabs) == Decimal("0")

    def test_open_ended_top_slab(self, rates):
        slabs = rates.income_tax.regimes["new"].slabs
        # 15000 + 30000 + 45000 + 60000 + 0.30 x 500000
        assert calculate_slab_tax(Decimal("2000000"), slabs) == Decimal("300000")


class TestWithholding:
    """Tests for calculate_withholding()."""

    def test_new_regime_full_year(self, rates):
        result = calculate_withholding(
            Decimal("100000"), "new", Decimal("0"), 12, rates=rates.income_tax
        )

        assert result.projected_annual_income == Decimal("1200000")
        assert result.net_taxable_income == Decimal("1150000")
        assert result.slab_tax == Decimal("82500")
        assert result.cess == Decimal("3300")
        assert result.annual_liability == Decimal("85800")
        assert result.amount == Decimal("7150")

    def test_old_regime(self, rates):
        result = calculate_withholding(
            Decimal("50000"), "old", Decimal("0"), 12, rates=rates.income_tax
        )

        assert result.slab_tax == Decimal("22500")
        assert result.amount == Decimal("1950")

    def test_regime_enum_accepted(self, rates):
        result = calculate_withholding(
            Decimal("100000"), TaxRegime.NEW, Decimal("0"), 12, rates=rates.income_tax
        )
        assert result.regime == "new"
        assert result.amount == Decimal("7150")

    def test_already_withheld_reduces_remaining(self, rates):
        result = calculate_withholding(
            Decimal("100000"), "new", Decimal("42900"), 6, rates=rates.income_tax
        )
        assert result.remaining_liability == Decimal("42900")
        assert result.amount == Decimal("7150")

    def test_overwithheld_gives_zero(self, rates):
        result = calculate_withholding(
            Decimal("100000"), "new", Decimal("90000"), 3, rates=rates.income_tax
        )
        assert result.remaining_liability == Decimal("0")
        assert result.amount == Decimal("0")

    def test_no_remaining_periods_takes_everything_now(self, rates):
        result = calculate_withholding(
            Decimal("100000"), "new", Decimal("0"), 0, rates=rates.income_tax
        )
        assert result.amount == Decimal("85800")

    def test_amount_rounded_half_up(self, rates):
        # 26001.248 / 12 = 2166.77
        result = calculate_withholding(
            Decimal("62501"), "new", Decimal("0"), 12, rates=rates.income_tax
        )
        assert result.amount == Decimal("2167")

    def test_income_below_standard_deduction(self, rates):
        result = calculate_withholding(Decimal("3000"), "new", Decimal("0"), 12, rates=rates.income_tax)
        assert result.net_taxable_income == Decimal("0")
        assert result.amount == Decimal("0")


class TestRebateCliff:
    """At or below the ceiling tax is zero; above it the full slab tax applies."""

    def test_at_ceiling_is_zero(self, rates):
        # 62500 x 12 - 50000 = 700000
        result = calculate_withholding(Decimal("62500"), "new", Decimal("0"), 12, rates=rates.income_tax)

        assert result.net_taxable_income == Decimal("700000")
        assert result.rebate_applied
        assert result.annual_liability == Decimal("0")
        assert result.amount == Decimal("0")

    def test_just_above_ceiling_pays_full_tax(self, rates):
        result = calculate_withholding(Decimal("62501"), "new", Decimal("0"), 12, rates=rates.income_tax)

        assert not result.rebate_applied
        assert result.annual_liability > Decimal("26000")

    def test_old_regime_ceiling(self, rates):
        # 45833 x 12 - 50000 = 499996
        result = calculate_withholding(Decimal("45833"), "old", Decimal("0"), 12, rates=rates.income_tax)
        assert result.rebate_applied
        assert result.amount == Decimal("0")


class TestInputValidation:

    def test_unknown_regime_raises(self, rates):
        with pytest.raises(UnknownTaxRegimeError) as exc_info:
            calculate_withholding(Decimal("50000"), "flat", Decimal("0"), 12, rates=rates.income_tax)

        assert exc_info.value.regime == "flat"
        assert exc_info.value.known == ("new", "old")
        assert exc_info.value.code == "UNKNOWN_TAX_REGIME"

    def test_negative_income_rejected(self, rates):
        with pytest.raises(InputValidationError):
            calculate_withholding(Decimal("-1"), "new", Decimal("0"), 12, rates=rates.income_tax)

    def test_negative_withheld_rejected(self, rates):
        with pytest.raises(InputValidationError, match="already_withheld"):
            calculate_withholding(Decimal("1000"), "new", Decimal("-5"), 12, rates=rates.income_tax)

    def test_non_integer_periods_rejected(self, rates):
        with pytest.raises(InputValidationError, match="remaining_periods"):
            calculate_withholding(Decimal("1000"), "new", Decimal("0"), Decimal("12"), rates=rates.income_tax)
