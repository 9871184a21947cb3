"""Health endpoint tests."""


def test_health_returns_200(client):
    response = client.get("/")
    assert response.status_code == 200


def test_health_returns_ok_message(client):
    response = client.get("/")
    assert response.json() == {"message": "OK"}
