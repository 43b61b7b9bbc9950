from decimal import Decimal


def test_savings_goal_lifecycle(client):
    resp = client.post("/savings-goals/", json={
        "name": "Vacation", "target_amount": "2000.00", "current_amount": "500.00", "target_date": "2027-06-01",
    })
    assert resp.status_code == 201
    goal = resp.json()
    assert goal["progress_percentage"] == 25.0

    resp = client.put(f"/savings-goals/{goal['id']}", json={"current_amount": "1500.00"})
    assert resp.status_code == 200
    assert resp.json()["progress_percentage"] == 75.0
    assert Decimal(resp.json()["target_amount"]) == Decimal("2000.00")

    assert client.get(f"/savings-goals/{goal['id']}").json()["name"] == "Vacation"

    assert client.delete(f"/savings-goals/{goal['id']}").status_code == 204
    assert client.get(f"/savings-goals/{goal['id']}").status_code == 404


def test_list_savings_goals_newest_first(client):
    for name in ("First", "Second", "Third"):
        client.post("/savings-goals/", json={"name": name, "target_amount": "100"})

    names = [g["name"] for g in client.get("/savings-goals/").json()]

    assert names == ["Third", "Second", "First"]


def test_target_must_be_positive(client):
    resp = client.post("/savings-goals/", json={"name": "Nothing", "target_amount": "0"})

    assert resp.status_code == 422


def test_update_missing_goal_returns_404(client):
    resp = client.put("/savings-goals/5", json={"name": "Ghost"})

    assert resp.status_code == 404
    assert "not found" in resp.json()["error"]


def test_blank_goal_name_is_rejected(client):
    goal = client.post("/savings-goals/", json={"name": "Car", "target_amount": "100"}).json()

    assert client.post("/savings-goals/", json={"name": " ", "target_amount": "100"}).status_code == 422
    assert client.put(f"/savings-goals/{goal['id']}", json={"name": " "}).status_code == 422
