from datetime import date

import pytest

from loan_lens.currency import CurrencyOption, build_currency_options, format_currency
from loan_lens.utils import (
    add_months,
    check_schedule_span,
    finite_or_zero,
    installment_count,
    months_until_calendar_end,
    parse_amount,
    parse_percent,
    parse_year_month,
)


def test_parse_year_month():
    assert parse_year_month("2024-03") == date(2024, 3, 1)
    assert parse_year_month(" 2024-03-17 ") == date(2024, 3, 1)


@pytest.mark.parametrize("value", ["2024", "2024-13", "march", ""])
def test_parse_year_month_rejects_garbage(value):
    with pytest.raises(ValueError, match="Invalid year-month"):
        parse_year_month(value)


def test_add_months_crosses_years_and_clamps_days():
    assert add_months(date(2024, 11, 1), 3) == date(2025, 2, 1)
    assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)
    assert add_months(date(2024, 5, 15), 0) == date(2024, 5, 15)


@pytest.mark.parametrize(
    "tenure, expected",
    [(5, 60), (1.5, 18), (2.7, 33), (1.1, 14), (7 / 12, 7), (0, 0), (-2, -24), (float("nan"), 0)],
)
def test_installment_count_rounds_partial_months_up(tenure, expected):
    assert installment_count(tenure) == expected


def test_months_until_calendar_end():
    assert months_until_calendar_end(date(9999, 12, 1)) == 1
    assert months_until_calendar_end(date(9998, 1, 1)) == 24
    assert add_months(date(9998, 1, 1), 23) == date(9999, 12, 1)


def test_check_schedule_span():
    check_schedule_span(date(9998, 1, 1), 2)
    with pytest.raises(ValueError, match="ends after year 9999"):
        check_schedule_span(date(9998, 1, 1), 2.01)
    with pytest.raises(ValueError, match="ends after year 9999"):
        check_schedule_span(date(2024, 1, 1), 1e6)


@pytest.mark.parametrize(
    "text, expected",
    [("500000", 500000.0), ("500k", 500000.0), ("1.5M", 1500000.0), ("5,00,000", 500000.0), ("12_500", 12500.0)],
)
def test_parse_amount(text, expected):
    assert parse_amount(text) == expected


@pytest.mark.parametrize("text", ["abc", "k", "inf", "nan"])
def test_parse_amount_rejects_garbage(text):
    with pytest.raises(ValueError, match="Invalid amount"):
        parse_amount(text)


def test_parse_percent():
    assert parse_percent("8.5") == 8.5
    assert parse_percent("8.5%") == 8.5
    with pytest.raises(ValueError):
        parse_percent("eight")


def test_finite_or_zero():
    assert finite_or_zero(1.5) == 1.5
    assert finite_or_zero(float("inf")) == 0.0
    assert finite_or_zero(float("nan")) == 0.0


def test_format_currency_uses_indian_grouping_for_inr():
    inr = build_currency_options().get("INR")
    assert format_currency(1234567.891, inr) == "Rs. 12,34,567.89"
    assert format_currency(999.5, inr) == "Rs. 999.50"
    assert format_currency(100000, inr, 0) == "Rs. 1,00,000"


def test_format_currency_western_grouping():
    usd = build_currency_options().get("USD")
    assert format_currency(1234567.891, usd) == "$1,234,567.89"
    assert format_currency(-5, usd) == "-$5.00"
    assert format_currency(-0.001, usd) == "$0.00"
    pln = build_currency_options().get("PLN")
    assert format_currency(1500, pln) == "1,500.00 zł"


def test_currency_options_normalize_unknown_codes_to_default():
    options = build_currency_options("usd, eur", default="USD")
    assert [o.code for o in options] == ["USD", "EUR"]
    assert options.normalize("eur") == "EUR"
    assert options.normalize("XYZ") == "USD"
    assert options.normalize(None) == "USD"
    assert "usd" in options
    assert "INR" not in options


def test_currency_options_accept_unlabelled_codes():
    options = build_currency_options("CHF", default="CHF")
    assert options.get("CHF") == CurrencyOption("CHF", "CHF", prefix="CHF ")


def test_currency_options_require_configured_default():
    with pytest.raises(ValueError):
        build_currency_options("USD,EUR", default="INR")
