from decimal import Decimal


def test_create_account_with_opening_balance(client):
    resp = client.post("/accounts/", json={"name": "Checking", "account_type": "checking", "balance": "125.50"})

    assert resp.status_code == 201
    body = resp.json()
    assert body["name"] == "Checking"
    assert body["account_type"] == "checking"
    assert Decimal(body["balance"]) == Decimal("125.50")
    assert body["currency"] == "EUR"
    assert body["color"] == "#36a2eb"


def test_create_account_rounds_balance_and_uppercases_currency(client):
    resp = client.post(
        "/accounts/", json={"name": "Travel", "account_type": "cash", "balance": "10.005", "currency": "usd"}
    )

    assert resp.status_code == 201
    assert resp.json()["currency"] == "USD"
    assert Decimal(resp.json()["balance"]) == Decimal("10.00")


def test_duplicate_account_name_is_rejected(client, make_account):
    make_account("Checking")

    resp = client.post("/accounts/", json={"name": "Checking", "account_type": "savings"})

    assert resp.status_code == 400
    assert "already exists" in resp.json()["error"]


def test_invalid_color_fails_validation(client):
    resp = client.post("/accounts/", json={"name": "Odd", "account_type": "checking", "color": "blue"})

    assert resp.status_code == 422
    assert resp.json()["error"] == "Invalid request"
    assert resp.json()["details"]


def test_list_accounts_filters_by_type(client, make_account):
    make_account("Checking", account_type="checking")
    make_account("Savings", account_type="savings")

    resp = client.get("/accounts/", params={"account_type": "savings"})

    assert resp.status_code == 200
    assert [a["name"] for a in resp.json()] == ["Savings"]
    assert len(client.get("/accounts/").json()) == 2


def test_read_missing_account_returns_404(client):
    resp = client.get("/accounts/999")

    assert resp.status_code == 404
    assert resp.json() == {"error": "Account not found"}


def test_update_does_not_touch_balance(client, make_account):
    account = make_account("Checking", balance="100.00")

    resp = client.put(f"/accounts/{account['id']}", json={"name": "Main", "color": "#112233", "balance": "9999"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["name"] == "Main"
    assert body["color"] == "#112233"
    assert Decimal(body["balance"]) == Decimal("100.00")


def test_update_to_taken_name_is_rejected(client, make_account):
    make_account("Checking")
    savings = make_account("Savings")

    resp = client.put(f"/accounts/{savings['id']}", json={"name": "Checking"})

    assert resp.status_code == 400


def test_delete_account_without_transactions(client, make_account):
    account = make_account("Spare")

    resp = client.delete(f"/accounts/{account['id']}")

    assert resp.status_code == 200
    assert resp.json()["name"] == "Spare"
    assert client.get(f"/accounts/{account['id']}").status_code == 404


def test_delete_account_with_transactions_conflicts(client, make_account, make_transaction):
    account = make_account("Checking", balance="50.00")
    make_transaction(account["id"], "10.00")

    resp = client.delete(f"/accounts/{account['id']}")

    assert resp.status_code == 409
    assert "transaction" in resp.json()["error"]
    assert client.get(f"/accounts/{account['id']}").status_code == 200


def test_account_stats(client, make_account):
    make_account("Checking", balance="1000.00", account_type="checking")
    make_account("Savings", balance="500.00", account_type="savings")
    make_account("Card", balance="-200.00", account_type="credit")

    resp = client.get("/accounts/stats")

    assert resp.status_code == 200
    stats = resp.json()
    assert stats["total_accounts"] == 3
    assert stats["accounts_by_type"] == {"checking": 1, "savings": 1, "credit": 1}
    assert Decimal(stats["total_balance"]) == Decimal("1300.00")
    assert Decimal(stats["total_assets"]) == Decimal("1500.00")
    assert Decimal(stats["total_liabilities"]) == Decimal("200.00")


def test_blank_account_name_is_rejected(client, make_account):
    account = make_account("Checking")

    created = client.post("/accounts/", json={"name": "   ", "account_type": "cash"})
    updated = client.put(f"/accounts/{account['id']}", json={"name": "   "})

    assert created.status_code == 422
    assert updated.status_code == 422
    assert client.get(f"/accounts/{account['id']}").json()["name"] == "Checking"
