from financeflow.services.setup import DEFAULT_CATEGORY_TREE, DEFAULT_ACCOUNTS


def _expected_counts():
    level_1 = len(DEFAULT_CATEGORY_TREE)
    level_2 = sum(len(subs) for *_, subs in DEFAULT_CATEGORY_TREE)
    level_3 = sum(len(leaves) for *_, subs in DEFAULT_CATEGORY_TREE for _, _, leaves in subs)
    # the tree is seeded once for income and once for expense
    return 2 * level_1, 2 * level_2, 2 * level_3


def test_setup_seeds_categories_and_accounts(client):
    level_1, level_2, level_3 = _expected_counts()

    resp = client.post("/setup/")

    assert resp.status_code == 200
    result = resp.json()
    assert (result["level_1_categories"], result["level_2_categories"], result["level_3_categories"]) == (
        level_1, level_2, level_3
    )
    assert result["categories_created"] == result["total_categories"] == level_1 + level_2 + level_3
    assert result["accounts_created"] == result["total_accounts"] == len(DEFAULT_ACCOUNTS)

    accounts = client.get("/accounts/").json()
    assert {a["name"] for a in accounts} == {"Checking", "Savings", "Credit Card"}
    assert all(a["balance"] in ("0.00", "0") for a in accounts)


def test_setup_is_idempotent(client):
    client.post("/setup/")

    second = client.post("/setup/").json()

    assert second["categories_created"] == 0
    assert second["accounts_created"] == 0
    assert second["total_accounts"] == len(DEFAULT_ACCOUNTS)


def test_setup_keeps_existing_accounts(client, make_account):
    make_account("Wallet", balance="12.00", account_type="cash")

    result = client.post("/setup/").json()

    assert result["accounts_created"] == 0
    assert result["categories_created"] > 0
    assert [a["name"] for a in client.get("/accounts/").json()] == ["Wallet"]


def test_seeded_tree_is_three_levels_deep(client):
    client.post("/setup/")

    tree = client.get("/categories/tree", params={"category_type": "expense"}).json()

    food = next(node for node in tree if node["name"] == "Food & Drink")
    restaurants = next(node for node in food["children"] if node["name"] == "Restaurants & Dining")
    assert restaurants["level"] == 2
    assert {leaf["level"] for leaf in restaurants["children"]} == {3}
    assert all(leaf["color"] == food["color"] for leaf in restaurants["children"])
