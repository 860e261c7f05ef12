import json
from urllib.parse import parse_qs, urlparse

import pytest

from loan_lens.currency import build_currency_options
from loan_lens_web.app import create_app


@pytest.fixture
def client():
    app = create_app(
        {
            "TESTING": True,
            "CURRENCY_OPTIONS": build_currency_options("USD,INR", default="USD"),
        }
    )
    return app.test_client()


def test_emi_api(client):
    response = client.get("/api/emi-calculator?amount=100000&rate=8.5&tenure=5&start=2024-01")
    assert response.status_code == 200
    data = response.get_json()
    assert data["summary"]["emi"] == pytest.approx(2051.65, abs=0.05)
    assert [y["year"] for y in data["schedule"]] == ["2024", "2025", "2026", "2027", "2028"]
    assert data["schedule"][-1]["months"][-1]["balance"] == 0.0
    assert data["currency"] == "USD"


def test_share_url_reproduces_state(client):
    data = client.get("/api/emi-calculator?amount=250k&rate=7.5&tenure=15&start=2025-04&currency=inr").get_json()
    query = parse_qs(urlparse(data["share_url"]).query)
    assert query["tab"] == ["emi-calculator"]
    assert query["currency"] == ["INR"]
    assert query["amount"] == ["250000.0"]
    assert query["start"] == ["2025-04"]
    again = client.get("/api/emi-calculator?" + urlparse(data["share_url"]).query).get_json()
    assert again["summary"] == data["summary"]


def test_emi_api_defaults(client):
    data = client.get("/api/emi-calculator").get_json()
    assert data["state"]["amount"] == 100000.0
    assert data["state"]["rate"] == 8.5
    assert data["state"]["tenure"] == 5.0


def test_emi_api_degenerate_input_is_not_an_error(client):
    response = client.get("/api/emi-calculator?amount=-100")
    assert response.status_code == 200
    data = response.get_json()
    assert data["summary"] == {"emi": 0.0, "total_payment": 0.0, "total_interest": 0.0}
    assert data["schedule"] == []


def test_api_rejects_malformed_numbers(client):
    response = client.get("/api/emi-calculator?amount=lots")
    assert response.status_code == 400
    assert "Invalid amount" in response.get_json()["error"]


def test_api_unknown_calculator(client):
    assert client.get("/api/mortgage").status_code == 404


def test_loan_comparison_api(client):
    loans = [
        {"name": "Bank A", "amount": 100000, "rate": 8.5, "tenure": 10},
        {"name": "Bank B", "amount": 100000, "rate": 9.0, "tenure": 10},
    ]
    response = client.get("/api/loan-comparison", query_string={"loans": json.dumps(loans)})
    assert response.status_code == 200
    data = response.get_json()
    assert [row["name"] for row in data["loans"]] == ["Bank A", "Bank B"]
    assert data["cheapest"] == "Bank A"


def test_loan_comparison_defaults_to_two_loans(client):
    data = client.get("/api/loan-comparison").get_json()
    assert len(data["loans"]) == 2


@pytest.mark.parametrize(
    "loans",
    [
        json.dumps([{"name": f"L{i}", "amount": 1000, "rate": 9, "tenure": 1} for i in range(6)]),
        "not json",
        json.dumps({"name": "A"}),
        json.dumps([{"name": "A", "amount": 1000}]),
    ],
)
def test_loan_comparison_rejects_bad_loans(client, loans):
    response = client.get("/api/loan-comparison", query_string={"loans": loans})
    assert response.status_code == 400


def test_balance_transfer_api_defaults(client):
    data = client.get("/api/balance-transfer").get_json()
    transfer = data["transfer"]
    assert transfer["new_principal"] == pytest.approx(50500.0)
    assert transfer["fee_amount"] == pytest.approx(500.0)
    assert transfer["total_savings"] == pytest.approx(
        transfer["current_summary"]["total_payment"] - transfer["new_summary"]["total_payment"]
    )


def test_prepayment_api(client):
    data = client.get("/api/prepayment-impact?amount=200000&rate=9.5&tenure=20&prepayment=1000").get_json()
    impact = data["prepayment"]
    assert impact["paid_off"] is True
    assert impact["tenure_reduced_months"] > 0
    assert impact["interest_saved"] > 0
    assert data["original"]["emi"] > 0


def test_index_renders_each_tab(client):
    for tab in ("emi-calculator", "loan-comparison", "balance-transfer", "prepayment-impact"):
        response = client.get(f"/?tab={tab}")
        assert response.status_code == 200
        assert b"LoanLens" in response.data
        assert b"Share this calculation" in response.data


def test_index_uses_configured_currency(client):
    page = client.get("/?tab=emi-calculator&amount=100000&currency=GBP").get_data(as_text=True)
    # GBP is not configured for this app, so the default applies.
    assert "$2,051.65" in page
    page = client.get("/?tab=emi-calculator&amount=100000&currency=INR").get_data(as_text=True)
    assert "Rs. 2,051.65" in page


def test_index_unknown_tab_falls_back(client):
    response = client.get("/?tab=nope")
    assert response.status_code == 200
    assert b"Monthly EMI" in response.data


def test_index_shows_input_errors(client):
    response = client.get("/?tab=prepayment-impact&rate=abc")
    assert response.status_code == 400
    assert b"Invalid percentage" in response.data


def test_index_escapes_loan_names(client):
    loans = json.dumps([{"name": "<b>A</b>", "amount": 1000, "rate": 9, "tenure": 1}])
    page = client.get("/", query_string={"tab": "loan-comparison", "loans": loans}).get_data(as_text=True)
    assert "<b>A</b>" not in page
    assert "&lt;b&gt;A&lt;/b&gt;" in page


def test_emi_api_rejects_schedule_past_year_9999(client):
    response = client.get("/api/emi-calculator?start=9997-06")
    assert response.status_code == 400
    assert "ends after year 9999" in response.get_json()["error"]


def test_emi_api_fractional_tenure_is_fully_repaid(client):
    data = client.get("/api/emi-calculator?amount=100000&rate=8.5&tenure=2.7&start=2024-01").get_json()
    last = data["schedule"][-1]["months"][-1]
    assert last["date"] == "2026-09"
    assert last["balance"] == 0.0
    assert last["loan_paid_to_date"] == 100.0
