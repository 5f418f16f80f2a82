"""Tests for display price parsing."""

import pytest

from globalprice.core.prices import calculate_discount, parse_price


class TestParsePrice:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("$1,234.56", 1234.56),
            ("1.234,56 €", 1234.56),
            ("₹1234", 1234.0),
            ("¥123,456", 123456.0),
            ("$899 - $1199", 899.0),
            ("From $999", 999.0),
            ("", 0.0),
            ("garbage", 0.0),
        ],
    )
    def test_documented_formats(self, text: str, expected: float) -> None:
        assert parse_price(text) == pytest.approx(expected)

    def test_none_is_zero(self) -> None:
        assert parse_price(None) == 0.0

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("$1,099 – $1,299", 1099.0),
            ("$999 to $1,299", 999.0),
            ("Starting at $1,099.99", 1099.99),
            ("ab 899,00 €", 899.0),
            ("à partir de 1 049,99 €", 1049.99),
        ],
    )
    def test_ranges_and_qualifiers(self, text: str, expected: float) -> None:
        assert parse_price(text) == pytest.approx(expected)

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("682,49 €", 682.49),
            ("€1.299,00", 1299.0),
            ("1,234,567", 1234567.0),
            ("£1,049.00", 1049.0),
            ("AED 3,899.00", 3899.0),
            ("¥ 15,800", 15800.0),
        ],
    )
    def test_separator_conventions(self, text: str, expected: float) -> None:
        assert parse_price(text) == pytest.approx(expected)

    def test_single_dot_with_three_digits_reads_as_thousands(self) -> None:
        # Known-ambiguous: "1.234" could be 1.234 in a three-decimal US format,
        # but it is always read as the European 1234.
        assert parse_price("1.234") == 1234.0
        assert parse_price("$1.999") == 1999.0

    def test_unavailable_text_is_zero(self) -> None:
        assert parse_price("Price unavailable") == 0.0
        assert parse_price("N/A") == 0.0

    def test_is_deterministic(self) -> None:
        for text in ("$1,234.56", "1.234,56 €", "From $999", "weird 1.2,3"):
            assert parse_price(text) == parse_price(text)


class TestCalculateDiscount:
    def test_markdown(self) -> None:
        assert calculate_discount("$899", "$999") == "10% off"

    def test_european_prices(self) -> None:
        assert calculate_discount("750,00 €", "1.000,00 €") == "25% off"

    def test_no_markdown(self) -> None:
        assert calculate_discount("$999", "$899") is None
        assert calculate_discount("$999", "$999") is None

    def test_unparseable_current_price(self) -> None:
        assert calculate_discount("see site", "$999") is None
