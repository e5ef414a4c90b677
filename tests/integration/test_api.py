"""Integration tests for API endpoints"""

import pytest
from datetime import timedelta
from fastapi.testclient import TestClient
from credit_ledger.domain.models import IntentKind


@pytest.fixture
def funded_customer(client: TestClient, clock, today):
    """Account with a 1,000 limit and two sales: 200 (older) then 500"""
    client.post("/v1/accounts", json={"customer_id": "cust_1", "limit_cents": 1000})
    sales = []
    for principal in (200, 500):
        response = client.post(
            "/v1/credit-sales",
            json={
                "customer_id": "cust_1",
                "principal_cents": principal,
                "due_date": (today + timedelta(days=30)).isoformat(),
            },
        )
        assert response.status_code == 201
        sales.append(response.json()["obligation_id"])
        clock.advance(minutes=1)
    return sales


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "ledger_payments_applied_total" in response.text


def test_request_id_is_echoed(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_open_and_get_account(client: TestClient):
    """Test POST /v1/accounts then GET /v1/accounts/{customer_id}"""
    response = client.post("/v1/accounts", json={"customer_id": "cust_1", "limit_cents": 1000})

    assert response.status_code == 201
    assert response.json()["available_credit_cents"] == 1000

    response = client.get("/v1/accounts/cust_1")
    assert response.status_code == 200
    data = response.json()
    assert data["account"]["balance_cents"] == 0
    assert data["obligations"] == []

    duplicate = client.post("/v1/accounts", json={"customer_id": "cust_1", "limit_cents": 1000})
    assert duplicate.status_code == 409
    assert duplicate.json()["code"] == "account_already_exists"


def test_account_not_found(client: TestClient):
    response = client.get("/v1/accounts/nobody")
    assert response.status_code == 404
    assert response.json()["code"] == "account_not_found"


def test_credit_sale_over_limit(client: TestClient, funded_customer, today):
    """Test POST /v1/credit-sales rejected when the limit would be exceeded"""
    response = client.post(
        "/v1/credit-sales",
        json={"customer_id": "cust_1", "principal_cents": 301, "due_date": today.isoformat()},
    )

    assert response.status_code == 409
    assert response.json()["code"] == "limit_exceeded"
    assert client.get("/v1/accounts/cust_1").json()["account"]["balance_cents"] == 700


def test_limit_and_status_updates(client: TestClient, funded_customer):
    response = client.put("/v1/accounts/cust_1/limit", json={"limit_cents": 600})
    assert response.status_code == 422
    assert response.json()["code"] == "limit_below_balance"

    response = client.put("/v1/accounts/cust_1/limit", json={"limit_cents": 2000})
    assert response.json()["available_credit_cents"] == 1300

    response = client.put("/v1/accounts/cust_1/status", json={"status": "blocked"})
    assert response.json()["status"] == "blocked"


def test_delete_account(client: TestClient, funded_customer):
    assert client.delete("/v1/accounts/cust_1").status_code == 409

    client.post("/v1/accounts", json={"customer_id": "empty", "limit_cents": 0})
    assert client.delete("/v1/accounts/empty").status_code == 204


def test_apply_payment(client: TestClient, funded_customer, sink):
    """Test POST /v1/payments spreads oldest first and queues a confirmation"""
    older, newer = funded_customer

    response = client.post(
        "/v1/payments",
        json={"customer_id": "cust_1", "amount_cents": 300, "method": "cash"},
    )

    assert response.status_code == 200
    data = response.json()
    assert [(a["obligation_id"], a["amount_cents"]) for a in data["applied_allocations"]] == [
        (older, 200),
        (newer, 100),
    ]
    assert data["new_balance_cents"] == 400
    assert data["available_credit_cents"] == 600

    assert [i.kind for i in sink.sent] == [IntentKind.PAYMENT_RECEIVED]

    sale = client.get(f"/v1/credit-sales/{older}").json()
    assert sale["status"] == "completed"


def test_payment_errors(client: TestClient, funded_customer):
    response = client.post("/v1/payments", json={"customer_id": "cust_1", "amount_cents": 800, "method": "cash"})
    assert response.status_code == 409
    assert response.json()["code"] == "excess_payment"

    response = client.post("/v1/payments", json={"customer_id": "cust_1", "amount_cents": 0, "method": "cash"})
    assert response.status_code == 422
    assert response.json()["code"] == "invalid_amount"

    response = client.post("/v1/payments", json={"customer_id": "nobody", "amount_cents": 10, "method": "cash"})
    assert response.status_code == 404


def test_bulk_payments(client: TestClient, funded_customer):
    response = client.post(
        "/v1/payments/bulk",
        json=[
            {"customer_id": "cust_1", "amount_cents": 100, "method": "bank_transfer"},
            {"customer_id": "cust_1", "amount_cents": 10_000, "method": "cash"},
        ],
    )

    assert response.status_code == 200
    data = response.json()
    assert len(data["successful"]) == 1
    assert data["failed"][0]["index"] == 1
    assert data["failed"][0]["error_code"] == "excess_payment"


def test_gateway_payment(client: TestClient, funded_customer, verifier):
    body = {
        "customer_id": "cust_1",
        "amount_cents": 200,
        "order_id": "order_9",
        "payment_id": "pay_9",
        "signature": "not-a-signature",
    }

    response = client.post("/v1/payments/gateway", json=body)
    assert response.status_code == 409
    assert response.json()["code"] == "payment_verification_failed"

    body["signature"] = verifier.expected_signature("order_9", "pay_9")
    response = client.post("/v1/payments/gateway", json=body)
    assert response.status_code == 200
    assert response.json()["new_balance_cents"] == 500

    history = client.get("/v1/payments/customer/cust_1").json()
    assert history["payments"][0]["method"] == "gateway"
    assert history["payments"][0]["reference"] == "pay_9"


def test_cancel_sale(client: TestClient, funded_customer):
    """Test PATCH /v1/credit-sales/{id}/status"""
    _, newer = funded_customer

    response = client.patch(f"/v1/credit-sales/{newer}/status", json={"status": "cancelled"})

    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert client.get("/v1/accounts/cust_1").json()["account"]["balance_cents"] == 200

    again = client.patch(f"/v1/credit-sales/{newer}/status", json={"status": "completed"})
    assert again.status_code == 409
    assert again.json()["code"] == "invalid_transition"


def test_sale_cannot_return_to_pending(client: TestClient, funded_customer):
    """Pending is only a starting state; requesting it must not settle the sale"""
    older, _ = funded_customer

    response = client.patch(f"/v1/credit-sales/{older}/status", json={"status": "pending"})

    assert response.status_code == 409
    assert response.json()["code"] == "invalid_transition"
    assert client.get(f"/v1/credit-sales/{older}").json()["status"] == "pending"
    assert client.get("/v1/accounts/cust_1").json()["account"]["balance_cents"] == 700
    assert client.get("/v1/payments/customer/cust_1").json()["payments"] == []


def test_sale_not_found(client: TestClient):
    fake_uuid = "00000000-0000-0000-0000-000000000000"
    response = client.get(f"/v1/credit-sales/{fake_uuid}")
    assert response.status_code == 404


def test_aging_report(client: TestClient, funded_customer, today):
    response = client.get(
        "/v1/reports/aging",
        params={"as_of": (today + timedelta(days=45)).isoformat()},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["totals"]["0-30"] == 700
    assert len(data["buckets"]["0-30"]) == 2
    assert data["buckets"]["0-30"][0]["days_overdue"] == 15


def test_notifications_preview(client: TestClient, funded_customer):
    response = client.get("/v1/accounts/cust_1/notifications")

    assert response.status_code == 200
    # 70% used, sales not due for another 30 days
    assert [(i["kind"], i["threshold"]) for i in response.json()] == [("credit_warning", 70)]


def test_reminder_sweep(client: TestClient, funded_customer, today, sink):
    """Test POST /v1/reminders/sweep on the 7-days-before trigger"""
    run_date = (today + timedelta(days=23)).isoformat()

    response = client.post("/v1/reminders/sweep", params={"run_date": run_date})

    assert response.status_code == 200
    data = response.json()
    assert data["run_date"] == run_date
    assert [(i["kind"], i["days_offset"]) for i in data["intents"]] == [
        ("upcoming", 7),
        ("upcoming", 7),
        ("credit_warning", None),
    ]
    assert data["delivered"] == 3
    assert len(sink.sent) == 3
