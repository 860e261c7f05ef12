"""Command‑line interface for the loan calculator.

This module uses the ``click`` library to implement a multi‑command
interface. Users can compute the EMI of a loan, print its amortization
schedule, compare several loans, evaluate a balance transfer or see the
impact of a monthly prepayment. Schedules can be exported to JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click

from .currency import CurrencyOption, CurrencyOptions, build_currency_options
from .data_models import LoanInput, LoanOffer, TransferOffer, YearlyAmortizationEntry
from .engine import (
    MAX_COMPARED_LOANS,
    compare_balance_transfer,
    compare_loans,
    compute_summary,
    generate_schedule,
    simulate_prepayment,
)
from .formatter import (
    print_balance_transfer,
    print_comparison,
    print_prepayment,
    print_schedule,
    print_summary,
)
from .utils import check_schedule_span, parse_amount, parse_percent, parse_year_month

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"


def amount_option(value: str) -> float:
    try:
        return parse_amount(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc))


def percent_option(value: str) -> float:
    try:
        return parse_percent(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc))


def parse_loan_strings(values: Tuple[str, ...]) -> List[LoanOffer]:
    """Parse ``NAME:AMOUNT:RATE:TENURE`` entries into loan offers."""
    loans: List[LoanOffer] = []
    for item in values:
        parts = item.split(":")
        if len(parts) != 4:
            raise click.BadParameter(
                f"Loan must be in NAME:AMOUNT:RATE:TENURE format; got {item}"
            )
        name, amount_str, rate_str, tenure_str = parts
        try:
            tenure = float(tenure_str)
        except ValueError:
            raise click.BadParameter(f"Invalid tenure: {tenure_str}")
        loans.append(
            LoanOffer(
                name=name.strip() or f"Loan {len(loans) + 1}",
                principal=amount_option(amount_str),
                rate=percent_option(rate_str),
                tenure_years=tenure,
            )
        )
    return loans


def build_loan_input(principal: str, rate: str, tenure: float, start_date: Optional[str] = None) -> LoanInput:
    start_dt = None
    if start_date:
        try:
            start_dt = parse_year_month(start_date)
        except ValueError as exc:
            raise click.BadParameter(str(exc))
    return LoanInput(
        principal=amount_option(principal),
        rate=percent_option(rate),
        tenure_years=tenure,
        start_date=start_dt,
    )


def export_to_json(path: Path, data: Dict[str, Any]) -> None:
    """Export a result payload to a JSON file."""
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, schedule: List[YearlyAmortizationEntry]) -> None:
    """Export the monthly rows of a schedule to a CSV file."""
    header = [
        "Year",
        "Month",
        "Date",
        "EMI",
        "Principal",
        "Interest",
        "Balance",
        "Loan_Paid_To_Date",
    ]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for year in schedule:
            for m in year.months:
                writer.writerow(
                    [
                        year.year,
                        m.month,
                        m.date.strftime("%Y-%m"),
                        round(m.emi, 2),
                        round(m.principal_paid, 2),
                        round(m.interest_paid, 2),
                        round(m.balance, 2),
                        round(m.loan_paid_to_date, 2),
                    ]
                )


def _currency(ctx: click.Context, code: Optional[str]) -> CurrencyOption:
    options: CurrencyOptions = ctx.obj["currencies"]
    if code and code not in options:
        logger.info("Unknown currency %s; using %s", code, options.default)
    return options.get(code)


def loan_options(func):
    """Attach the common principal/rate/tenure options to a command."""
    func = click.option("--currency", "-c", "currency", help="Currency label for amounts")(func)
    func = click.option("--tenure", "-t", "tenure", required=True, type=float, help="Loan tenure in years")(func)
    func = click.option("--rate", "-r", "rate", required=True, help="Annual interest rate (percent)")(func)
    func = click.option("--principal", "-p", "principal", required=True, help="Loan amount")(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option(
    "--currencies",
    envvar="LOAN_LENS_CURRENCIES",
    help="Comma separated currency codes accepted by --currency",
)
@click.option(
    "--default-currency",
    envvar="LOAN_LENS_DEFAULT_CURRENCY",
    default="INR",
    show_default=True,
    help="Currency used when --currency is omitted or unknown",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, currencies: Optional[str], default_currency: str) -> None:
    """A command‑line loan calculator: EMI, schedules, comparisons and prepayments."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=LOG_FORMAT)
    try:
        options = build_currency_options(currencies, default_currency)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--default-currency")
    ctx.obj = {"currencies": options}


@cli.command()
@loan_options
@click.pass_context
def emi(ctx: click.Context, principal: str, rate: str, tenure: float, currency: Optional[str]) -> None:
    """Compute the monthly EMI, total interest and total payment."""
    loan = build_loan_input(principal, rate, tenure)
    summary = compute_summary(loan.principal, loan.rate, loan.tenure_years)
    print_summary(summary, loan.principal, _currency(ctx, currency))


@cli.command()
@loan_options
@click.option("--start-date", "-s", "start_date", help="First installment month (YYYY-MM); defaults to this month")
@click.option("--monthly", is_flag=True, help="Show each month below its year")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
@click.pass_context
def schedule(
    ctx: click.Context,
    principal: str,
    rate: str,
    tenure: float,
    currency: Optional[str],
    start_date: Optional[str],
    monthly: bool,
    output: Optional[str],
) -> None:
    """Compute and print the yearly amortization schedule."""
    loan = build_loan_input(principal, rate, tenure, start_date)
    if loan.start_date is not None:
        try:
            check_schedule_span(loan.start_date, loan.tenure_years)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="--start-date")
    entries = generate_schedule(loan.principal, loan.rate, loan.tenure_years, loan.start_date)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            summary = compute_summary(loan.principal, loan.rate, loan.tenure_years)
            export_to_json(
                path,
                {"summary": summary.to_dict(), "schedule": [e.to_dict() for e in entries]},
            )
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, entries)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Schedule exported to {path}")
        return
    if not entries:
        click.echo("No schedule: principal, rate and tenure must all be positive.")
        return
    print_schedule(entries, _currency(ctx, currency), show_months=monthly)


@cli.command()
@click.option(
    "--loan",
    "loan",
    multiple=True,
    required=True,
    help=f"Loan in NAME:AMOUNT:RATE:TENURE format (up to {MAX_COMPARED_LOANS})",
)
@click.option("--currency", "-c", "currency", help="Currency label for amounts")
@click.option("--output", "output", type=str, help="Output file path (.json)")
@click.pass_context
def compare(ctx: click.Context, loan: Tuple[str, ...], currency: Optional[str], output: Optional[str]) -> None:
    """Compare several loans side by side.

    Example:

        loan-lens compare --loan "Bank A:100k:8.5:10" --loan "Bank B:100k:9:10"
    """
    try:
        rows = compare_loans(parse_loan_strings(loan))
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--loan")
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Comparison export must use .json extension")
        export_to_json(path, {"loans": [r.to_dict() for r in rows]})
        click.echo(f"Comparison exported to {path}")
        return
    print_comparison(rows, _currency(ctx, currency))


@cli.command()
@loan_options
@click.option("--new-rate", "new_rate", required=True, help="Annual rate of the new loan (percent)")
@click.option("--new-tenure", "new_tenure", required=True, type=float, help="Tenure of the new loan in years")
@click.option("--fee", "fee", default="0", show_default=True, help="Processing fee (percent of principal)")
@click.pass_context
def transfer(
    ctx: click.Context,
    principal: str,
    rate: str,
    tenure: float,
    currency: Optional[str],
    new_rate: str,
    new_tenure: float,
    fee: str,
) -> None:
    """Evaluate moving the outstanding balance to a new lender."""
    current = build_loan_input(principal, rate, tenure)
    offer = TransferOffer(rate=percent_option(new_rate), tenure_years=new_tenure, fee_percent=percent_option(fee))
    print_balance_transfer(compare_balance_transfer(current, offer), _currency(ctx, currency))


@cli.command()
@loan_options
@click.option("--prepayment", "prepayment", required=True, help="Extra amount paid every month")
@click.option("--output", "output", type=str, help="Output file path (.json)")
@click.pass_context
def prepay(
    ctx: click.Context,
    principal: str,
    rate: str,
    tenure: float,
    currency: Optional[str],
    prepayment: str,
    output: Optional[str],
) -> None:
    """Show how a fixed monthly prepayment shortens the loan."""
    loan = build_loan_input(principal, rate, tenure)
    result = simulate_prepayment(loan.principal, loan.rate, loan.tenure_years, amount_option(prepayment))
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Prepayment export must use .json extension")
        export_to_json(path, {"prepayment": result.to_dict()})
        click.echo(f"Prepayment impact exported to {path}")
        return
    print_prepayment(result, _currency(ctx, currency))


if __name__ == "__main__":
    cli()
