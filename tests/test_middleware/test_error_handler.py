"""Tests for ErrorHandlerMiddleware and error response helpers."""

from datetime import date

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from challenge_engine.domain.errors import (
    ChallengeNotFound,
    DuplicateChallengeBatch,
    InvalidClaim,
    StoreNotReady,
)
from challenge_engine.middleware.error_handler import (
    ErrorHandlerMiddleware,
    get_error_response,
    status_for,
)


@pytest.fixture
def client():
    app = FastAPI()
    app.add_middleware(ErrorHandlerMiddleware)

    @app.get("/ok")
    async def ok():
        return {"ok": True}

    @app.get("/claim")
    async def claim():
        raise InvalidClaim(1, 2, InvalidClaim.ALREADY_CLAIMED)

    @app.get("/missing")
    async def missing():
        raise ChallengeNotFound(2)

    @app.get("/not-ready")
    async def not_ready():
        raise StoreNotReady("list challenges")

    @app.get("/http")
    async def http():
        raise HTTPException(status_code=418, detail="teapot")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("secret connection string")

    return TestClient(app, raise_server_exceptions=False)


class TestStatusFor:
    @pytest.mark.parametrize(
        "error,expected",
        [
            (InvalidClaim(1, 2, InvalidClaim.NOT_FOUND), 409),
            (ChallengeNotFound(2), 404),
            (StoreNotReady("x"), 503),
            (DuplicateChallengeBatch(date(2026, 3, 11)), 400),
            (ValueError("x"), 500),
        ],
    )
    def test_mapping(self, error, expected):
        assert status_for(error) == expected


class TestErrorHandlerMiddleware:
    def test_success_gets_request_id(self, client):
        response = client.get("/ok")
        assert response.status_code == 200
        assert len(response.headers["X-Request-ID"]) == 8

    def test_invalid_claim_is_409(self, client):
        response = client.get("/claim")
        body = response.json()
        assert response.status_code == 409
        assert body["error"]["type"] == "InvalidClaim"
        assert body["error"]["reason"] == "already_claimed"
        assert body["request_id"] == response.headers["X-Request-ID"]

    def test_not_found_is_404(self, client):
        assert client.get("/missing").status_code == 404

    def test_store_not_ready_is_503(self, client):
        response = client.get("/not-ready")
        assert response.status_code == 503
        assert "list challenges" in response.json()["error"]["message"]

    def test_http_exception_passes_through(self, client):
        response = client.get("/http")
        assert response.status_code == 418
        assert response.json() == {"detail": "teapot"}

    def test_unhandled_error_hides_message(self, client, caplog):
        with caplog.at_level("ERROR"):
            response = client.get("/boom")

        body = response.json()
        assert response.status_code == 500
        assert body["error"] == {"message": "Internal server error", "type": "RuntimeError"}
        assert "secret" not in response.text
        assert "RuntimeError" in caplog.text


class TestGetErrorResponse:
    def test_basic(self):
        response = get_error_response(ChallengeNotFound(9))
        assert response == {
            "error": {"message": "Daily challenge 9 not found", "type": "ChallengeNotFound"}
        }

    def test_request_id_and_reason(self):
        response = get_error_response(InvalidClaim(1, 9, InvalidClaim.NOT_COMPLETED), "abc12345")
        assert response["request_id"] == "abc12345"
        assert response["error"]["reason"] == "not_completed"

    def test_traceback(self):
        try:
            raise ValueError("x")
        except ValueError as e:
            response = get_error_response(e, include_traceback=True)
        assert "ValueError" in response["error"]["traceback"]
