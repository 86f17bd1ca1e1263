from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from scout.middleware.request_context import RequestContextMiddleware


def make_client() -> TestClient:
    app = FastAPI()
    app.add_middleware(RequestContextMiddleware)

    @app.get("/ping")
    async def ping(request: Request):
        return {"request_id": request.state.request_id}

    return TestClient(app)


def test_request_id_is_generated():
    response = make_client().get("/ping")

    request_id = response.headers["X-Request-ID"]
    assert request_id
    assert response.json() == {"request_id": request_id}


def test_incoming_request_id_is_kept():
    response = make_client().get("/ping", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"
    assert response.json() == {"request_id": "req-123"}
