"""
Tests for fixed-point amount handling
"""

import decimal
from decimal import Decimal

import pytest

from core_ledger.amounts import (
    MAX_AMOUNT, fits_precision, format_amount, parse_amount, parse_delta, quantize, to_decimal
)
from core_ledger.errors import InvalidAmountError, ValidationError


class TestToDecimal:

    def test_float_goes_through_string(self):
        assert to_decimal(100.1) == Decimal("100.1")
        assert to_decimal(0.1) + to_decimal(0.2) == Decimal("0.3")

    def test_int_and_string(self):
        assert to_decimal(5) == Decimal("5")
        assert to_decimal(" 12.50 ") == Decimal("12.50")

    def test_decimal_passthrough(self):
        value = Decimal("7.25")
        assert to_decimal(value) is value

    @pytest.mark.parametrize("value", [True, False, None, [], "12,50", "NaN", "-Infinity"])
    def test_rejected_values(self, value):
        with pytest.raises(InvalidAmountError):
            to_decimal(value)


class TestParseAmount:

    def test_quantizes_to_two_places(self):
        assert parse_amount("5") == Decimal("5.00")
        assert str(parse_amount(5)) == "5.00"
        assert str(parse_amount("1.5")) == "1.50"

    def test_trailing_zeros_beyond_scale_allowed(self):
        assert parse_amount("1.000") == Decimal("1.00")

    def test_smallest_and_largest(self):
        assert parse_amount("0.01") == Decimal("0.01")
        assert parse_amount(MAX_AMOUNT) == MAX_AMOUNT

    @pytest.mark.parametrize("value", ["0", "-1", "0.001", "1.005", "1000000000000000000.00", "1e30"])
    def test_invalid(self, value):
        with pytest.raises(InvalidAmountError) as exc_info:
            parse_amount(value)
        assert exc_info.value.code == "INVALID_AMOUNT"

    def test_zero_message(self):
        with pytest.raises(InvalidAmountError) as exc_info:
            parse_amount(0)
        assert exc_info.value.message == "Transaction amount must be greater than zero"

    def test_invalid_amount_is_a_validation_error(self):
        with pytest.raises(ValidationError):
            parse_amount("-1")
        with pytest.raises(ValueError):
            parse_amount("-1")


class TestHelpers:

    def test_quantize_rounds_half_up(self):
        assert quantize(Decimal("1.005")) == Decimal("1.01")
        assert quantize(Decimal("2")) == Decimal("2.00")

    def test_fits_precision(self):
        assert fits_precision(MAX_AMOUNT)
        assert fits_precision(-MAX_AMOUNT)
        assert not fits_precision(MAX_AMOUNT + Decimal("0.01"))

    def test_format_amount(self):
        assert format_amount(Decimal("3")) == "3.00"
        assert format_amount(Decimal("1234.5")) == "1234.50"


class TestParseDelta:

    def test_signed_values(self):
        assert parse_delta("-12.5") == Decimal("-12.50")
        assert parse_delta(3) == Decimal("3.00")
        assert parse_delta("0") == Decimal("0.00")

    def test_never_rounds(self):
        with pytest.raises(InvalidAmountError):
            parse_delta("0.005")
        with pytest.raises(InvalidAmountError):
            parse_delta(Decimal("-1.001"))

    def test_magnitude_bound(self):
        assert parse_delta(-MAX_AMOUNT) == -MAX_AMOUNT
        with pytest.raises(InvalidAmountError):
            parse_delta("1e30")


class TestDecimalContext:

    def test_import_leaves_global_context_alone(self):
        assert decimal.getcontext().prec == decimal.DefaultContext.prec

    def test_large_sums_stay_exact(self):
        total = parse_amount(MAX_AMOUNT) + parse_amount("0.01")
        assert str(total) == "1000000000000000000.00"
        assert not fits_precision(total)
