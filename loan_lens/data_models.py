"""Data models for the loan calculator.

This module defines dataclasses for the inputs and results of the calculation
engine: loan parameters, summaries, monthly and yearly amortization entries,
prepayment projections and balance transfer comparisons. All records are
frozen; every calculation builds fresh instances and nothing is mutated after
it is returned.
"""

from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class LoanInput:
    """Parameters of a fixed-rate loan.

    Attributes
    ----------
    principal: float
        The borrowed amount.
    rate: float
        Annual nominal interest rate in percent (``8.5`` means 8.5 %).
    tenure_years: float
        Repayment duration in years. Fractional years are allowed.
    start_date: Optional[date]
        Date of the first installment. Only the amortization schedule uses it.
    """

    principal: float
    rate: float
    tenure_years: float
    start_date: Optional[date] = None


@dataclass(frozen=True)
class LoanOffer:
    """A named loan taking part in a side-by-side comparison."""

    name: str
    principal: float
    rate: float
    tenure_years: float


@dataclass(frozen=True)
class TransferOffer:
    """Terms offered by the lender taking over an existing loan.

    ``fee_percent`` is the processing fee as a percentage of the outstanding
    principal. The fee is added to the new loan rather than paid upfront.
    """

    rate: float
    tenure_years: float
    fee_percent: float = 0.0


@dataclass(frozen=True)
class LoanSummary:
    emi: float
    total_payment: float
    total_interest: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class MonthlyAmortizationEntry:
    """A single month of an amortization schedule.

    ``balance`` is the outstanding principal after the installment. On the
    final month of a fully amortized loan it is exactly zero.
    ``loan_paid_to_date`` is the share of the principal repaid so far, in
    percent.
    """

    month: str
    date: date
    emi: float
    interest_paid: float
    principal_paid: float
    balance: float
    loan_paid_to_date: float

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["date"] = self.date.strftime("%Y-%m")
        return data


@dataclass(frozen=True)
class YearlyAmortizationEntry:
    """All installments falling into one calendar year.

    The aggregate fields are the sums of the corresponding monthly fields.
    ``balance`` and ``loan_paid_to_date`` are taken from the last month of the
    year.
    """

    year: str
    principal_paid: float
    interest_paid: float
    total_payment: float
    balance: float
    loan_paid_to_date: float
    months: List[MonthlyAmortizationEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "principal_paid": self.principal_paid,
            "interest_paid": self.interest_paid,
            "total_payment": self.total_payment,
            "balance": self.balance,
            "loan_paid_to_date": self.loan_paid_to_date,
            "months": [m.to_dict() for m in self.months],
        }


@dataclass(frozen=True)
class PrepaymentSnapshot:
    """Outstanding balances at the end of a loan year, with and without prepayment."""

    year: int
    balance_with_prepayment: float
    balance_without_prepayment: float


@dataclass(frozen=True)
class PrepaymentResult:
    """Impact of a fixed monthly prepayment on a loan.

    Attributes
    ----------
    interest_saved: float
        Interest avoided compared with the original schedule. Negative when
        the prepayment parameters make the loan more expensive.
    tenure_reduced_months: int
        Original number of installments (a partial final month counts as
        one) minus the installments actually needed.
    new_tenure_years: float
        Installments needed, in years, rounded to one decimal.
    amortization_data: List[PrepaymentSnapshot]
        Year-end balances for both trajectories.
    paid_off: bool
        False when the loan was still outstanding when the simulation stopped.
    """

    interest_saved: float
    tenure_reduced_months: int
    new_tenure_years: float
    amortization_data: List[PrepaymentSnapshot] = field(default_factory=list)
    paid_off: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class BalanceTransferResult:
    """Comparison between keeping a loan and moving it to a new lender.

    ``total_savings`` is positive when the transfer costs less overall.
    """

    current_summary: LoanSummary
    new_summary: LoanSummary
    fee_amount: float
    new_principal: float
    total_savings: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class LoanComparisonRow:
    name: str
    principal: float
    rate: float
    tenure_years: float
    summary: LoanSummary

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
