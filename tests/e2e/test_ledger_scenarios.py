"""
E2E tests for the ledger acceptance scenarios, driven through the HTTP API.

Scenarios:
- A: credit sale paid in full closes the sale and frees the credit
- B: a sale past the limit is refused and the balance is untouched
- C: an untargeted payment settles the oldest sale first
- D: the reminder sweep is repeatable within a day
- E: paying more than is owed is refused with no mutation
"""

import pytest
from datetime import timedelta
from fastapi.testclient import TestClient


@pytest.fixture
def open_account(client: TestClient):
    def _open(customer_id: str, limit_cents: int):
        response = client.post("/v1/accounts", json={"customer_id": customer_id, "limit_cents": limit_cents})
        assert response.status_code == 201

    return _open


@pytest.fixture
def credit_sale(client: TestClient, clock, today):
    def _sale(customer_id: str, principal_cents: int, due_in_days: int = 30):
        response = client.post(
            "/v1/credit-sales",
            json={
                "customer_id": customer_id,
                "principal_cents": principal_cents,
                "due_date": (today + timedelta(days=due_in_days)).isoformat(),
            },
        )
        clock.advance(minutes=1)
        return response

    return _sale


def account_state(client: TestClient, customer_id: str) -> dict:
    return client.get(f"/v1/accounts/{customer_id}").json()


def test_scenario_a_sale_paid_in_full(client: TestClient, open_account, credit_sale):
    """
    Limit 1,000, balance 0. Sell 600 on credit, then pay 600.
    Expected: sale completed, balance back to 0
    """
    open_account("cust_a", 1000)

    sale = credit_sale("cust_a", 600)
    assert sale.status_code == 201
    assert sale.json()["status"] == "pending"
    assert sale.json()["remaining_balance_cents"] == 600
    assert account_state(client, "cust_a")["account"]["balance_cents"] == 600

    response = client.post("/v1/payments", json={"customer_id": "cust_a", "amount_cents": 600, "method": "cash"})

    assert response.status_code == 200
    assert response.json()["new_balance_cents"] == 0

    state = account_state(client, "cust_a")
    assert state["account"]["balance_cents"] == 0
    assert state["account"]["available_credit_cents"] == 1000
    assert state["obligations"][0]["status"] == "completed"
    assert state["obligations"][0]["remaining_balance_cents"] == 0


def test_scenario_b_limit_exceeded(client: TestClient, open_account, credit_sale):
    """
    Limit 1,000, balance 800. Sell 300 on credit.
    Expected: LimitExceeded, balance stays 800
    """
    open_account("cust_b", 1000)
    assert credit_sale("cust_b", 800).status_code == 201

    response = credit_sale("cust_b", 300)

    assert response.status_code == 409
    assert response.json()["code"] == "limit_exceeded"

    state = account_state(client, "cust_b")
    assert state["account"]["balance_cents"] == 800
    assert len(state["obligations"]) == 1


def test_scenario_c_oldest_first(client: TestClient, open_account, credit_sale):
    """
    Pending sales of 200 (older) and 500 (newer). Pay 300 with no target.
    Expected: older completed at 200, newer pending at 100, balance down 300
    """
    open_account("cust_c", 1000)
    older = credit_sale("cust_c", 200).json()["obligation_id"]
    newer = credit_sale("cust_c", 500).json()["obligation_id"]

    response = client.post("/v1/payments", json={"customer_id": "cust_c", "amount_cents": 300, "method": "cash"})

    assert response.status_code == 200
    sales = {o["obligation_id"]: o for o in account_state(client, "cust_c")["obligations"]}
    assert (sales[older]["paid_to_date_cents"], sales[older]["status"]) == (200, "completed")
    assert (sales[newer]["paid_to_date_cents"], sales[newer]["status"]) == (100, "pending")
    assert account_state(client, "cust_c")["account"]["balance_cents"] == 400


def test_scenario_d_sweep_repeatable(client: TestClient, open_account, credit_sale):
    """
    A sale due in 7 days. Run the sweep twice on the same day.
    Expected: one upcoming intent with days_offset 7, both times
    """
    open_account("cust_d", 10_000)
    sale = credit_sale("cust_d", 500, due_in_days=7).json()["obligation_id"]

    runs = [client.post("/v1/reminders/sweep").json() for _ in range(2)]

    for run in runs:
        assert [(i["kind"], i["obligation_id"], i["days_offset"]) for i in run["intents"]] == [
            ("upcoming", sale, 7),
        ]


def test_scenario_e_excess_payment(client: TestClient, open_account, credit_sale):
    """
    Pending sales totalling 700. Pay 701.
    Expected: ExcessPayment, no sale or balance changes, no payment recorded
    """
    open_account("cust_e", 1000)
    credit_sale("cust_e", 200)
    credit_sale("cust_e", 500)
    before = account_state(client, "cust_e")

    response = client.post("/v1/payments", json={"customer_id": "cust_e", "amount_cents": 701, "method": "cash"})

    assert response.status_code == 409
    assert response.json()["code"] == "excess_payment"
    assert account_state(client, "cust_e") == before
    assert client.get("/v1/payments/customer/cust_e").json()["payments"] == []
