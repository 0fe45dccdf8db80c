"""Tests for numeric coercion of untyped submission input."""

from decimal import Decimal

import pytest

from tally_api.lib.consistency import coerce_float, coerce_int, coerce_optional_float, coerce_optional_int


class TestCoerceFloat:
    """Tests for coerce_float."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (12, 12.0),
            (12.5, 12.5),
            ("12.5", 12.5),
            (" 7 ", 7.0),
            ("75,25", 75.25),
            (Decimal("3.14"), 3.14),
        ],
    )
    def test_parses_numbers(self, value: object, expected: float) -> None:
        assert coerce_float(value) == expected

    @pytest.mark.parametrize("value", [None, "", "   ", "abc", "1.2.3", True, [1], {"a": 1}, "nan", "inf"])
    def test_malformed_becomes_zero(self, value: object) -> None:
        assert coerce_float(value) == 0.0

    def test_non_finite_float_becomes_zero(self) -> None:
        assert coerce_float(float("inf")) == 0.0
        assert coerce_float(float("nan")) == 0.0


class TestCoerceInt:
    """Tests for coerce_int."""

    def test_int_passes_through(self) -> None:
        assert coerce_int(42) == 42

    def test_negative_int_passes_through(self) -> None:
        assert coerce_int(-3) == -3

    def test_numeric_string(self) -> None:
        assert coerce_int("1000") == 1000

    def test_truncates_fraction(self) -> None:
        assert coerce_int("9.9") == 9

    @pytest.mark.parametrize("value", [None, "", "n/a", False])
    def test_missing_or_malformed_becomes_zero(self, value: object) -> None:
        assert coerce_int(value) == 0


class TestOptionalCoercion:
    """Tests for the optional variants."""

    @pytest.mark.parametrize("value", [None, "", "  "])
    def test_absent_stays_absent(self, value: object) -> None:
        assert coerce_optional_int(value) is None
        assert coerce_optional_float(value) is None

    def test_present_value_is_coerced(self) -> None:
        assert coerce_optional_int("4") == 4
        assert coerce_optional_float("62.5") == 62.5

    def test_malformed_present_value_is_zero(self) -> None:
        assert coerce_optional_int("x") == 0
