from decimal import Decimal

import pytest


@pytest.fixture
def groceries(client):
    resp = client.post("/categories/", json={"name": "Groceries", "category_type": "expense"})
    return resp.json()


def test_upsert_normalizes_month_and_replaces_amount(client, groceries):
    first = client.post("/budgets/", json={"category_id": groceries["id"], "month": "2026-03-17", "amount": "200"})
    assert first.status_code == 200
    assert first.json()["month"] == "2026-03-01"

    second = client.post("/budgets/", json={"category_id": groceries["id"], "month": "2026-03-02", "amount": "250.00"})

    assert second.json()["id"] == first.json()["id"]
    assert Decimal(second.json()["amount"]) == Decimal("250.00")
    assert len(client.get("/budgets/", params={"month": "2026-03-01"}).json()) == 1


def test_upsert_for_missing_category_returns_404(client):
    resp = client.post("/budgets/", json={"category_id": 77, "month": "2026-03-01", "amount": "10"})

    assert resp.status_code == 404


def test_negative_amount_fails_validation(client, groceries):
    resp = client.post("/budgets/", json={"category_id": groceries["id"], "month": "2026-03-01", "amount": "-1"})

    assert resp.status_code == 422


def test_spending_counts_applied_expenses_of_the_month(client, groceries, make_account, make_transaction):
    account = make_account("Checking", balance="1000.00")
    client.post("/budgets/", json={"category_id": groceries["id"], "month": "2026-03-01", "amount": "100.00"})

    make_transaction(account["id"], "60.00", category_id=groceries["id"], transaction_date="2026-03-03")
    make_transaction(account["id"], "500.00", category_id=groceries["id"], transaction_date="2026-02-28")
    pending = make_transaction(
        account["id"], "50.00", category_id=groceries["id"], transaction_date="2026-03-10", status="pending"
    )
    client.post(f"/transactions/{pending['id']}/partial-confirm", json={"amount": "20.00"})

    budget = client.get("/budgets/", params={"month": "2026-03-15"}).json()[0]

    assert budget["category_name"] == "Groceries"
    assert Decimal(budget["spent"]) == Decimal("80.00")
    assert Decimal(budget["remaining"]) == Decimal("20.00")
    assert budget["percentage_used"] == 80.0
    assert budget["over_budget"] is False

    make_transaction(account["id"], "30.00", category_id=groceries["id"], transaction_date="2026-03-31")

    budget = client.get(f"/budgets/{budget['id']}").json()
    assert Decimal(budget["spent"]) == Decimal("110.00")
    assert budget["over_budget"] is True


def test_delete_by_id(client, groceries):
    budget = client.post("/budgets/", json={"category_id": groceries["id"], "month": "2026-03-01", "amount": "1"}).json()

    assert client.delete(f"/budgets/{budget['id']}").status_code == 204
    assert client.get(f"/budgets/{budget['id']}").status_code == 404
    assert client.delete(f"/budgets/{budget['id']}").status_code == 404


def test_delete_by_category_and_month(client, groceries):
    client.post("/budgets/", json={"category_id": groceries["id"], "month": "2026-03-01", "amount": "1"})
    client.post("/budgets/", json={"category_id": groceries["id"], "month": "2026-04-01", "amount": "1"})

    resp = client.delete("/budgets/", params={"category_id": groceries["id"], "month": "2026-03-20"})

    assert resp.status_code == 204
    assert client.get("/budgets/", params={"month": "2026-03-01"}).json() == []
    assert len(client.get("/budgets/", params={"month": "2026-04-01"}).json()) == 1

    missing = client.delete("/budgets/", params={"category_id": groceries["id"], "month": "2026-03-01"})
    assert missing.status_code == 404
