"""Core calculation engine for the loan calculator.

This module implements the financial logic behind every calculator view: the
closed-form EMI (equated monthly installment) of a fixed-rate loan, loan
summaries, yearly amortization schedules with per-month detail, the impact of
a fixed monthly prepayment and balance transfer comparisons.

All functions are total. Non-positive principal, rate or tenure yield zeroed
or empty results instead of exceptions, and any non-finite intermediate value
is collapsed to zero before it reaches the caller.
"""

from __future__ import annotations

import logging
import math
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Sequence

from .data_models import (
    BalanceTransferResult,
    LoanComparisonRow,
    LoanInput,
    LoanOffer,
    LoanSummary,
    MonthlyAmortizationEntry,
    PrepaymentResult,
    PrepaymentSnapshot,
    TransferOffer,
    YearlyAmortizationEntry,
)
from .utils import add_months, finite_or_zero, installment_count, months_until_calendar_end

logger = logging.getLogger(__name__)

# Residual balance (in currency units) treated as fully repaid on the last month.
BALANCE_TOLERANCE = 1.0

# Hard stop for the prepayment simulation: 100 years of monthly installments.
MAX_PREPAYMENT_MONTHS = 100 * 12

# Balances at or below this are repaid; absorbs floating point drift in the prepayment loop.
PAYOFF_EPSILON = 1e-6

MAX_COMPARED_LOANS = 5

ZERO_SUMMARY = LoanSummary(emi=0.0, total_payment=0.0, total_interest=0.0)


def _is_degenerate(principal: float, rate: float, tenure_years: float) -> bool:
    return principal <= 0 or rate <= 0 or tenure_years <= 0


def _monthly_rate(rate: float) -> float:
    return rate / 12 / 100


def compute_emi(principal: float, rate: float, tenure_years: float) -> float:
    """Return the equated monthly installment for a fixed-rate loan.

    The formula is:

        emi = P * i * (1 + i)^n / ((1 + i)^n - 1)

    where ``P`` is the principal, ``i`` the monthly interest rate and ``n``
    the number of monthly installments. Returns ``0.0`` when any input is not
    strictly positive or when the result is not a finite number.
    """
    if _is_degenerate(principal, rate, tenure_years):
        return 0.0
    monthly_rate = _monthly_rate(rate)
    tenure_months = tenure_years * 12
    try:
        factor = (1 + monthly_rate) ** tenure_months
        emi = principal * monthly_rate * factor / (factor - 1)
    except (OverflowError, ZeroDivisionError):
        return 0.0
    return finite_or_zero(emi)


def compute_summary(principal: float, rate: float, tenure_years: float) -> LoanSummary:
    """Return the EMI, total payment and total interest of a loan."""
    if _is_degenerate(principal, rate, tenure_years):
        return ZERO_SUMMARY
    emi = compute_emi(principal, rate, tenure_years)
    if emi == 0:
        return ZERO_SUMMARY
    total_payment = finite_or_zero(emi * tenure_years * 12)
    total_interest = finite_or_zero(total_payment - principal)
    logger.debug(
        "Summary for %.2f at %.3f%% over %s years: emi=%.2f total=%.2f",
        principal, rate, tenure_years, emi, total_payment,
    )
    return LoanSummary(emi=emi, total_payment=total_payment, total_interest=total_interest)


def _close_year(year: int, months: List[MonthlyAmortizationEntry]) -> YearlyAmortizationEntry:
    """Aggregate the months of one calendar year into a yearly entry."""
    principal_paid = sum(m.principal_paid for m in months)
    interest_paid = sum(m.interest_paid for m in months)
    last = months[-1]
    return YearlyAmortizationEntry(
        year=str(year),
        principal_paid=principal_paid,
        interest_paid=interest_paid,
        total_payment=principal_paid + interest_paid,
        balance=last.balance,
        loan_paid_to_date=last.loan_paid_to_date,
        months=list(months),
    )


def generate_schedule(
    principal: float,
    rate: float,
    tenure_years: float,
    start_date: Optional[date] = None,
) -> List[YearlyAmortizationEntry]:
    """Build the amortization schedule grouped by calendar year.

    Parameters
    ----------
    principal, rate, tenure_years:
        Loan parameters; ``rate`` is the annual rate in percent.
    start_date: Optional[date]
        Date of the first installment. Defaults to today.

    Returns
    -------
    List[YearlyAmortizationEntry]
        One entry per calendar year touched by the loan, in chronological
        order. The first and last years may hold fewer than twelve months.
        Empty when the inputs are degenerate. A schedule that would run past
        the last representable date stops at December 9999 with the balance
        still outstanding.
    """
    if _is_degenerate(principal, rate, tenure_years):
        return []
    emi = compute_emi(principal, rate, tenure_years)
    if emi <= 0:
        return []

    monthly_rate = _monthly_rate(rate)
    tenure_months = installment_count(tenure_years)
    start = start_date or date.today()
    scheduled_months = min(tenure_months, months_until_calendar_end(start))
    if scheduled_months < tenure_months:
        logger.warning(
            "Schedule starting %s truncated to %d of %d installments at the end of year %d",
            start.isoformat(), scheduled_months, tenure_months, date.max.year,
        )

    schedule: List[YearlyAmortizationEntry] = []
    open_year: Optional[int] = None
    open_months: List[MonthlyAmortizationEntry] = []
    balance = principal

    for index in range(scheduled_months):
        current_date = add_months(start, index)
        last = index == tenure_months - 1
        interest_paid = balance * monthly_rate
        installment = emi
        principal_paid = emi - interest_paid

        # A fractional tenure ends with a partial installment covering what is left.
        if last and abs(balance - principal_paid) >= BALANCE_TOLERANCE:
            principal_paid = balance
            installment = interest_paid + principal_paid
        balance -= principal_paid

        # Fold floating point drift on the last installment into its principal share.
        if last and abs(balance) < BALANCE_TOLERANCE:
            principal_paid += balance
            balance = 0.0

        entry = MonthlyAmortizationEntry(
            month=current_date.strftime("%b"),
            date=current_date,
            emi=installment,
            interest_paid=interest_paid,
            principal_paid=principal_paid,
            balance=balance,
            loan_paid_to_date=(principal - balance) / principal * 100,
        )

        if open_year is not None and current_date.year != open_year:
            schedule.append(_close_year(open_year, open_months))
            open_months = []
        open_year = current_date.year
        open_months.append(entry)

    if open_months:
        schedule.append(_close_year(open_year, open_months))
    return schedule


def _round_tenure_years(months: int) -> float:
    years = Decimal(str(months / 12)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return float(years)


def simulate_prepayment(
    principal: float,
    rate: float,
    tenure_years: float,
    monthly_prepayment: float,
) -> PrepaymentResult:
    """Project the effect of paying a fixed extra amount every month.

    The regular EMI of the original loan is kept and ``monthly_prepayment`` is
    applied to the principal on top of it until the balance is repaid. A
    snapshot of the outstanding balance is recorded at the end of every loan
    year and at payoff, next to the balance the original schedule would have
    at that point.

    The simulation stops after ``MAX_PREPAYMENT_MONTHS`` installments, or
    earlier once the balance grows beyond the float range. When the balance
    is still positive by then (the prepayment cannot overcome the accruing
    interest) the result has ``paid_off`` set to False and reflects the last
    finite state.

    A fractional tenure counts its final partial month as an installment of
    the original loan, as in ``generate_schedule``.
    """
    if principal <= 0:
        return PrepaymentResult(
            interest_saved=0.0,
            tenure_reduced_months=0,
            new_tenure_years=tenure_years,
            amortization_data=[],
        )

    monthly_rate = _monthly_rate(rate)
    original_emi = compute_emi(principal, rate, tenure_years)
    original_months = tenure_years * 12
    original_total_payment = original_emi * original_months
    original_installments = installment_count(tenure_years)

    balance = principal
    months = 0
    total_interest_paid = 0.0
    balances_with: List[float] = []

    while balance > PAYOFF_EPSILON and months < MAX_PREPAYMENT_MONTHS:
        interest = balance * monthly_rate
        balance -= original_emi - interest
        balance -= monthly_prepayment
        if not math.isfinite(balance):
            break
        total_interest_paid += interest
        months += 1
        if months % 12 == 0 or balance <= PAYOFF_EPSILON:
            balances_with.append(balance if balance > PAYOFF_EPSILON else 0.0)

    paid_off = math.isfinite(balance) and balance <= PAYOFF_EPSILON
    if not paid_off:
        logger.warning(
            "Loan of %.2f at %.3f%% with prepayment %.2f is not repaid after %d months",
            principal, rate, monthly_prepayment, months,
        )

    balance_without = principal
    amortization_data: List[PrepaymentSnapshot] = []
    for year, balance_with in enumerate(balances_with, start=1):
        for _ in range(12):
            balance_without -= original_emi - balance_without * monthly_rate
        amortization_data.append(
            PrepaymentSnapshot(
                year=year,
                balance_with_prepayment=balance_with,
                balance_without_prepayment=finite_or_zero(max(0.0, balance_without)),
            )
        )

    new_total_payment = principal + total_interest_paid
    result = PrepaymentResult(
        interest_saved=finite_or_zero(original_total_payment - new_total_payment),
        tenure_reduced_months=original_installments - months,
        new_tenure_years=_round_tenure_years(months),
        amortization_data=amortization_data,
        paid_off=paid_off,
    )
    logger.debug(
        "Prepayment of %.2f repays the loan in %d months (saved %.2f)",
        monthly_prepayment, months, result.interest_saved,
    )
    return result


def compare_balance_transfer(current: LoanInput, offer: TransferOffer) -> BalanceTransferResult:
    """Compare the current loan with transferring it to ``offer``.

    The processing fee is capitalized: it is added to the principal of the
    new loan instead of being paid upfront.
    """
    current_summary = compute_summary(current.principal, current.rate, current.tenure_years)
    fee_amount = current.principal * offer.fee_percent / 100
    new_principal = current.principal + fee_amount
    new_summary = compute_summary(new_principal, offer.rate, offer.tenure_years)
    return BalanceTransferResult(
        current_summary=current_summary,
        new_summary=new_summary,
        fee_amount=fee_amount,
        new_principal=new_principal,
        total_savings=current_summary.total_payment - new_summary.total_payment,
    )


def compare_loans(loans: Sequence[LoanOffer]) -> List[LoanComparisonRow]:
    """Summarize several loan offers side by side.

    Raises
    ------
    ValueError
        If no loan or more than ``MAX_COMPARED_LOANS`` loans are given.
    """
    if not loans:
        raise ValueError("At least one loan is required for a comparison")
    if len(loans) > MAX_COMPARED_LOANS:
        raise ValueError(f"At most {MAX_COMPARED_LOANS} loans can be compared; got {len(loans)}")
    return [
        LoanComparisonRow(
            name=loan.name,
            principal=loan.principal,
            rate=loan.rate,
            tenure_years=loan.tenure_years,
            summary=compute_summary(loan.principal, loan.rate, loan.tenure_years),
        )
        for loan in loans
    ]


def cheapest_loan(rows: Sequence[LoanComparisonRow]) -> Optional[LoanComparisonRow]:
    """Return the row with the lowest total payment, ignoring degenerate loans."""
    candidates = [row for row in rows if row.summary.total_payment > 0]
    if not candidates:
        return None
    return min(candidates, key=lambda row: row.summary.total_payment)
