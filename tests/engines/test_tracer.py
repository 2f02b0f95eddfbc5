"""
Tests for the engine invocation tracer.

Every decorated calculator emits one PAYROLL_ENGINE_TRACE record with a
deterministic input fingerprint.
"""

from decimal import Decimal

from payroll_engines.provident_fund import calculate_provident_fund
from payroll_engines.tracer import compute_input_fingerprint, traced_engine
from tests.factories import events, make_structure


class TestFingerprint:

    def test_deterministic(self):
        args = {"basic_wage": Decimal("15000"), "is_exempted": False}
        first = compute_input_fingerprint(("basic_wage", "is_exempted"), args)
        second = compute_input_fingerprint(("basic_wage", "is_exempted"), dict(args))
        assert first == second
        assert len(first) == 16

    def test_decimal_scale_ignored(self):
        a = compute_input_fingerprint(("x",), {"x": Decimal("15000")})
        b = compute_input_fingerprint(("x",), {"x": Decimal("15000.00")})
        assert a == b

    def test_value_change_changes_fingerprint(self):
        a = compute_input_fingerprint(("x",), {"x": Decimal("15000")})
        b = compute_input_fingerprint(("x",), {"x": Decimal("15001")})
        assert a != b

    def test_dataclass_inputs(self):
        a = compute_input_fingerprint(("s",), {"s": make_structure()})
        b = compute_input_fingerprint(("s",), {"s": make_structure()})
        c = compute_input_fingerprint(("s",), {"s": make_structure(basic="1")})
        assert a == b
        assert a != c

    def test_missing_field_recorded_as_null(self):
        assert compute_input_fingerprint(("x",), {}) == compute_input_fingerprint(("x",), {"x": None})


class TestTracedEngine:

    def test_trace_emitted(self, log_stream):
        calculate_provident_fund(Decimal("15000"))

        traces = events(log_stream, "PAYROLL_ENGINE_TRACE")
        assert len(traces) == 1
        assert traces[0]["engine_name"] == "provident_fund"
        assert traces[0]["engine_version"] == "1.0"
        assert traces[0]["level"] == "INFO"

    def test_positional_and_keyword_fingerprint_match(self, log_stream):
        calculate_provident_fund(Decimal("15000"), False, True)
        calculate_provident_fund(
            basic_wage=Decimal("15000.00"), is_international_worker=False, is_exempted=True
        )

        first, second = events(log_stream, "PAYROLL_ENGINE_TRACE")
        assert first["input_fingerprint"] == second["input_fingerprint"]

    def test_metadata_attributes(self):
        assert calculate_provident_fund.engine_name == "provident_fund"
        assert calculate_provident_fund.engine_version == "1.0"

    def test_result_passed_through(self, log_stream):
        @traced_engine("double", "0.1", ("value",))
        def double(value):
            return value * 2

        assert double(Decimal("2")) == Decimal("4")
        assert events(log_stream, "PAYROLL_ENGINE_TRACE")[0]["function"].endswith("double")
