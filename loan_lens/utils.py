"""Utility functions for the loan calculator.

This module provides helpers for parsing user input into Python data types and
for handling dates, including adding months and normalizing year-month strings
to ``datetime.date`` instances. It uses Python's ``datetime`` module to
calculate month offsets.
"""

from __future__ import annotations

import calendar
import math
from datetime import date


def parse_year_month(ym: str) -> date:
    """Parse a YYYY-MM string into a ``date`` object (first day of month).

    Parameters
    ----------
    ym: str
        A string in the form ``"YYYY-MM"``. The day component, if present,
        will be ignored.

    Returns
    -------
    date
        A date object representing the first day of the specified month.

    Raises
    ------
    ValueError
        If the string is not a valid year-month.
    """
    try:
        parts = ym.strip().split("-")
        if len(parts) < 2:
            raise ValueError
        year = int(parts[0])
        month = int(parts[1])
        return date(year, month, 1)
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"Invalid year-month string: {ym}") from exc


def add_months(dt: date, months: int) -> date:
    """Return a new date a number of months after ``dt``.

    The day of the month is clamped to the last valid day if needed (e.g.,
    adding one month to Jan 31 yields Feb 28 or 29).
    """
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def parse_amount(value: str) -> float:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("500000"), thousands separators ("5,00,000") and
    shorthand with ``k``/``m`` suffixes (e.g., "500k" meaning 500_000).
    """
    cleaned = str(value).strip().lower().replace(",", "").replace("_", "")
    factor = 1.0
    if cleaned.endswith("k"):
        factor = 1_000.0
        cleaned = cleaned[:-1]
    elif cleaned.endswith("m"):
        factor = 1_000_000.0
        cleaned = cleaned[:-1]
    try:
        amount = float(cleaned) * factor
    except ValueError as exc:
        raise ValueError(f"Invalid amount: {value}") from exc
    if not math.isfinite(amount):
        raise ValueError(f"Invalid amount: {value}")
    return amount


def parse_percent(value: str) -> float:
    """Parse a percentage string such as ``"8.5"`` or ``"8.5%"``."""
    cleaned = str(value).strip()
    if cleaned.endswith("%"):
        cleaned = cleaned[:-1]
    try:
        percent = float(cleaned)
    except ValueError as exc:
        raise ValueError(f"Invalid percentage: {value}") from exc
    if not math.isfinite(percent):
        raise ValueError(f"Invalid percentage: {value}")
    return percent


def finite_or_zero(value: float) -> float:
    """Collapse NaN and infinities to ``0.0``."""
    return value if math.isfinite(value) else 0.0


def installment_count(tenure_years: float) -> int:
    """Number of monthly installments in ``tenure_years``.

    A fractional month at the end of the tenure is one more (partial)
    installment, so 2.7 years is 33 installments.
    """
    months = finite_or_zero(tenure_years * 12)
    # Float noise just above a whole month count must not add an installment.
    return math.ceil(round(months, 9))


def months_until_calendar_end(dt: date) -> int:
    """Number of monthly offsets from ``dt`` that ``add_months`` can represent."""
    return (date.max.year - dt.year) * 12 + (date.max.month - dt.month) + 1


def check_schedule_span(start: date, tenure_years: float) -> None:
    """Raise ``ValueError`` if a schedule from ``start`` would end after year 9999."""
    if installment_count(tenure_years) > months_until_calendar_end(start):
        raise ValueError(
            f"A {tenure_years:g} year loan starting {start:%Y-%m} ends after year {date.max.year}"
        )
