"""Output helpers for the loan calculator.

This module provides simple functions to render summaries, amortization
schedules and scenario comparisons in a tabular text format. Amounts are
labelled with the currency option chosen by the caller.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from .currency import CurrencyOption, format_currency
from .engine import cheapest_loan
from .data_models import (
    BalanceTransferResult,
    LoanComparisonRow,
    LoanSummary,
    PrepaymentResult,
    YearlyAmortizationEntry,
)


def print_summary(summary: LoanSummary, principal: float, currency: CurrencyOption) -> None:
    """Print the EMI, interest and total payment of a loan."""
    def fmt(value: float) -> str:
        return format_currency(value, currency)

    print("Summary")
    print("-" * 72)
    print(f"Principal          : {fmt(principal)}")
    print(f"Monthly EMI        : {fmt(summary.emi)}")
    print(f"Total interest     : {fmt(summary.total_interest)}")
    print(f"Total payment      : {fmt(summary.total_payment)}")
    print("-" * 72)


def print_schedule(
    schedule: Iterable[YearlyAmortizationEntry],
    currency: CurrencyOption,
    show_months: bool = False,
) -> None:
    """Print the yearly amortization schedule as a simple table.

    Parameters
    ----------
    schedule: Iterable[YearlyAmortizationEntry]
        The yearly entries to print.
    show_months: bool
        Whether to print each month of a year below its yearly row.
    """
    headers = ["Year", "Principal", "Interest", "Total", "Balance", "Paid"]
    print("\t".join(headers))
    for year in schedule:
        print(
            "\t".join(
                [
                    year.year,
                    format_currency(year.principal_paid, currency),
                    format_currency(year.interest_paid, currency),
                    format_currency(year.total_payment, currency),
                    format_currency(year.balance, currency),
                    f"{year.loan_paid_to_date:.2f}%",
                ]
            )
        )
        if not show_months:
            continue
        for month in year.months:
            print(
                "\t".join(
                    [
                        f"  {month.month}",
                        format_currency(month.principal_paid, currency),
                        format_currency(month.interest_paid, currency),
                        format_currency(month.emi, currency),
                        format_currency(month.balance, currency),
                        f"{month.loan_paid_to_date:.2f}%",
                    ]
                )
            )


def print_comparison(rows: Sequence[LoanComparisonRow], currency: CurrencyOption) -> None:
    """Print several loans side by side.

    The cheapest loan by total payment is marked with ``*``.
    """
    best = cheapest_loan(rows)
    print("Comparison")
    print("=" * 72)
    print(f"{'Loan':20s} {'Monthly EMI':>16s} {'Total interest':>16s} {'Total payment':>16s}")
    for row in rows:
        marker = "*" if best is not None and row is best else " "
        print(
            f"{row.name[:19]:19s}{marker} "
            f"{format_currency(row.summary.emi, currency):>16s} "
            f"{format_currency(row.summary.total_interest, currency):>16s} "
            f"{format_currency(row.summary.total_payment, currency):>16s}"
        )
    print("=" * 72)


def print_balance_transfer(result: BalanceTransferResult, currency: CurrencyOption) -> None:
    """Print the current loan against the transferred loan."""
    def fmt(value: float) -> str:
        return format_currency(value, currency)

    print("Balance transfer")
    print("=" * 72)
    print(f"{'':20s} {'Current loan':>16s} {'New loan':>16s}")
    print(f"{'Monthly EMI':20s} {fmt(result.current_summary.emi):>16s} {fmt(result.new_summary.emi):>16s}")
    print(
        f"{'Total payment':20s} {fmt(result.current_summary.total_payment):>16s} "
        f"{fmt(result.new_summary.total_payment):>16s}"
    )
    print(f"Processing fee     : {fmt(result.fee_amount)} (new principal {fmt(result.new_principal)})")
    if result.total_savings >= 0:
        print(f"Total savings      : {fmt(result.total_savings)}")
    else:
        print(f"Net loss           : {fmt(-result.total_savings)}")
    print("=" * 72)


def print_prepayment(result: PrepaymentResult, currency: CurrencyOption) -> None:
    """Print the prepayment impact and the year-end balances of both trajectories."""
    print("Prepayment impact")
    print("-" * 72)
    print(f"Interest saved     : {format_currency(result.interest_saved, currency)}")
    print(f"Tenure reduced by  : {result.tenure_reduced_months} months")
    print(f"New tenure         : {result.new_tenure_years} years")
    if not result.paid_off:
        print("Warning            : the loan is not repaid within the simulation limit")
    print("-" * 72)
    print("Year\tWith prepayment\tWithout prepayment")
    for snapshot in result.amortization_data:
        print(
            f"{snapshot.year}\t"
            f"{format_currency(snapshot.balance_with_prepayment, currency)}\t"
            f"{format_currency(snapshot.balance_without_prepayment, currency)}"
        )
