from fastapi.testclient import TestClient

from heat_seeker.services.coordinate_log import CoordinateStore, create_app


def test_liveness():
    client = TestClient(create_app())
    response = client.get("/bot/test")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "message": "Bot API is working"}


def test_coordinates_are_appended_in_order():
    store = CoordinateStore()
    client = TestClient(create_app(store))

    first = client.post("/bot/coordinates/add", json={"x": 1.5, "y": -2.0, "heading": 0.3})
    assert first.status_code == 201
    assert first.json() == {
        "message": "Coordinate recorded",
        "coordinate": {"x": 1.5, "y": -2.0, "heading": 0.3},
    }
    client.post("/bot/coordinates/add", json={"x": 1.5, "y": -2.0})

    listed = client.get("/bot/coordinates/get").json()
    assert listed == [{"x": 1.5, "y": -2.0, "heading": 0.3}, {"x": 1.5, "y": -2.0}]
    assert len(store.all()) == 2


def test_invalid_body_is_rejected():
    client = TestClient(create_app())
    assert client.post("/bot/coordinates/add", json={"x": "left"}).status_code == 422
    assert client.get("/bot/coordinates/get").json() == []


def test_unhandled_errors_return_generic_message():
    app = create_app()

    @app.get("/bot/explode")
    async def explode():
        raise RuntimeError("boom")

    client = TestClient(app, raise_server_exceptions=False)
    response = client.get("/bot/explode")
    assert response.status_code == 500
    assert response.json() == {"error": "Something broke!"}


def test_cors_is_open():
    client = TestClient(create_app())
    response = client.options(
        "/bot/test",
        headers={"Origin": "http://dashboard.local", "Access-Control-Request-Method": "GET"},
    )
    assert response.status_code == 200
    assert "access-control-allow-origin" in response.headers
