def test_root(client):
    resp = client.get("/")

    assert resp.status_code == 200
    assert resp.json() == "Server is running."


def test_health(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_unknown_route_uses_error_shape(client):
    resp = client.get("/nowhere")

    assert resp.status_code == 404
    assert resp.json() == {"error": "Not Found"}
