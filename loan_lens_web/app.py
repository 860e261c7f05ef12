import json
import logging
import os
from datetime import date
from typing import Any, Callable, Dict, Mapping, Optional

from flask import Blueprint, Flask, current_app, jsonify, render_template, request, url_for

from loan_lens.currency import CurrencyOptions, build_currency_options, format_currency
from loan_lens.data_models import LoanInput, LoanOffer, TransferOffer
from loan_lens.engine import (
    MAX_COMPARED_LOANS,
    cheapest_loan,
    compare_balance_transfer,
    compare_loans,
    compute_summary,
    generate_schedule,
    simulate_prepayment,
)
from loan_lens.utils import check_schedule_span, parse_amount, parse_percent, parse_year_month

logger = logging.getLogger(__name__)

TABS = {
    "emi-calculator": "EMI Calculator",
    "loan-comparison": "Loan Comparison",
    "balance-transfer": "Balance Transfer",
    "prepayment-impact": "Prepayment Impact",
}
DEFAULT_TAB = "emi-calculator"

DEFAULT_COMPARISON_LOANS = [
    {"name": "Loan 1", "amount": 100000, "rate": 8.5, "tenure": 10},
    {"name": "Loan 2", "amount": 100000, "rate": 9.0, "tenure": 10},
]

calculator = Blueprint("calculator", __name__)


def _currencies() -> CurrencyOptions:
    return current_app.config["CURRENCY_OPTIONS"]


def _amount(args: Mapping[str, str], key: str, default: float) -> float:
    raw = args.get(key, "").strip()
    return parse_amount(raw) if raw else default


def _percent(args: Mapping[str, str], key: str, default: float) -> float:
    raw = args.get(key, "").strip()
    return parse_percent(raw) if raw else default


def _years(args: Mapping[str, str], key: str, default: float) -> float:
    raw = args.get(key, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid tenure: {raw}") from exc


def _parse_loans(raw: str) -> list:
    """Parse the ``loans`` query value: a JSON list of {name, amount, rate, tenure}."""
    if not raw:
        entries = DEFAULT_COMPARISON_LOANS
    else:
        try:
            entries = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid loans parameter: {exc.msg}") from exc
        if not isinstance(entries, list):
            raise ValueError("Invalid loans parameter: expected a list")
    loans = []
    for index, entry in enumerate(entries, start=1):
        if not isinstance(entry, dict):
            raise ValueError(f"Invalid loan #{index}: expected an object")
        try:
            loans.append(
                LoanOffer(
                    name=str(entry.get("name") or f"Loan {index}"),
                    principal=float(entry["amount"]),
                    rate=float(entry["rate"]),
                    tenure_years=float(entry["tenure"]),
                )
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Invalid loan #{index}: {exc}") from exc
    return loans


def _emi_calculator(args: Mapping[str, str]) -> Dict[str, Any]:
    start_raw = args.get("start", "").strip()
    start = parse_year_month(start_raw) if start_raw else date.today().replace(day=1)
    loan = LoanInput(
        principal=_amount(args, "amount", 100000.0),
        rate=_percent(args, "rate", 8.5),
        tenure_years=_years(args, "tenure", 5.0),
        start_date=start,
    )
    check_schedule_span(start, loan.tenure_years)
    return {
        "state": {
            "amount": loan.principal,
            "rate": loan.rate,
            "tenure": loan.tenure_years,
            "start": start.strftime("%Y-%m"),
        },
        "summary": compute_summary(loan.principal, loan.rate, loan.tenure_years).to_dict(),
        "schedule": [
            year.to_dict()
            for year in generate_schedule(loan.principal, loan.rate, loan.tenure_years, loan.start_date)
        ],
    }


def _loan_comparison(args: Mapping[str, str]) -> Dict[str, Any]:
    loans = _parse_loans(args.get("loans", "").strip())
    rows = compare_loans(loans)
    best = cheapest_loan(rows)
    return {
        "state": {
            "loans": json.dumps(
                [
                    {"name": loan.name, "amount": loan.principal, "rate": loan.rate, "tenure": loan.tenure_years}
                    for loan in loans
                ]
            )
        },
        "loans": [row.to_dict() for row in rows],
        "cheapest": best.name if best is not None else None,
        "max_loans": MAX_COMPARED_LOANS,
    }


def _balance_transfer(args: Mapping[str, str]) -> Dict[str, Any]:
    current = LoanInput(
        principal=_amount(args, "clp", 50000.0),
        rate=_percent(args, "clr", 12.0),
        tenure_years=_years(args, "clt", 3.0),
    )
    offer = TransferOffer(
        rate=_percent(args, "nlr", 9.0),
        tenure_years=_years(args, "nlt", 3.0),
        fee_percent=_percent(args, "nlf", 1.0),
    )
    result = compare_balance_transfer(current, offer)
    return {
        "state": {
            "clp": current.principal,
            "clr": current.rate,
            "clt": current.tenure_years,
            "nlr": offer.rate,
            "nlt": offer.tenure_years,
            "nlf": offer.fee_percent,
        },
        "transfer": result.to_dict(),
    }


def _prepayment_impact(args: Mapping[str, str]) -> Dict[str, Any]:
    principal = _amount(args, "amount", 200000.0)
    rate = _percent(args, "rate", 9.5)
    tenure = _years(args, "tenure", 20.0)
    prepayment = _amount(args, "prepayment", 1000.0)
    return {
        "state": {"amount": principal, "rate": rate, "tenure": tenure, "prepayment": prepayment},
        "original": compute_summary(principal, rate, tenure).to_dict(),
        "prepayment": simulate_prepayment(principal, rate, tenure, prepayment).to_dict(),
    }


CALCULATORS: Dict[str, Callable[[Mapping[str, str]], Dict[str, Any]]] = {
    "emi-calculator": _emi_calculator,
    "loan-comparison": _loan_comparison,
    "balance-transfer": _balance_transfer,
    "prepayment-impact": _prepayment_impact,
}


def _share_url(tab: str, currency_code: str, state: Dict[str, Any]) -> str:
    """Build the shareable URL that reproduces the current calculator state."""
    return url_for("calculator.index", tab=tab, currency=currency_code, _external=True, **state)


@calculator.route("/", methods=["GET"])
def index():
    tab = request.args.get("tab", DEFAULT_TAB)
    if tab not in TABS:
        tab = DEFAULT_TAB
    currency_code = _currencies().normalize(request.args.get("currency"))
    currency = _currencies().get(currency_code)
    result = None
    error = None
    share_url = None

    try:
        result = CALCULATORS[tab](request.args)
        share_url = _share_url(tab, currency_code, result["state"])
    except ValueError as exc:
        logger.info("Rejected %s input: %s", tab, exc)
        error = str(exc)

    def money(value: float, digits: int = 2) -> str:
        return format_currency(value, currency, digits)

    return render_template(
        "index.html",
        tabs=TABS,
        tab=tab,
        result=result,
        error=error,
        share_url=share_url,
        currency_code=currency_code,
        currency_options=_currencies(),
        money=money,
        asset_version=current_app.config["ASSET_VERSION"],
    ), (400 if error else 200)


@calculator.get("/api/<tab>")
def api(tab: str):
    if tab not in CALCULATORS:
        return jsonify({"error": f"Unknown calculator: {tab}"}), 404
    try:
        result = CALCULATORS[tab](request.args)
    except ValueError as exc:
        logger.info("Rejected %s input: %s", tab, exc)
        return jsonify({"error": str(exc)}), 400
    currency_code = _currencies().normalize(request.args.get("currency"))
    result["currency"] = currency_code
    result["share_url"] = _share_url(tab, currency_code, result["state"])
    return jsonify(result)


def create_app(config: Optional[Mapping[str, Any]] = None) -> Flask:
    """Create the web application.

    Settings are read from the environment and may be overridden by
    ``config``. ``CURRENCY_OPTIONS`` holds the currencies offered in the
    currency selector.
    """
    app = Flask(__name__)
    app.config["ASSET_VERSION"] = os.environ.get("ASSET_VERSION", "1")
    app.config["CURRENCY_OPTIONS"] = build_currency_options(
        os.environ.get("LOAN_LENS_CURRENCIES"),
        os.environ.get("LOAN_LENS_DEFAULT_CURRENCY", "INR"),
    )
    if config:
        app.config.update(config)
    app.register_blueprint(calculator)
    return app


app = create_app()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    print("Starting LoanLens web app...")
    app.run(host="0.0.0.0", port=8710, debug=True)
