"""Tests for AdmissionMiddleware on an ASGI app."""

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from parley.admission import AbuseGuard, AdmissionController, RateLimiter
from parley.admission.middleware import AdmissionMiddleware
from parley.admission.stores import InMemoryCounterStore
from parley.config.models.admission import AdmissionConfig


@pytest.fixture
def controller() -> AdmissionController:
    store = InMemoryCounterStore()
    config = AdmissionConfig(request_limit=3)
    return AdmissionController(RateLimiter(store, config), AbuseGuard(store, config))


@pytest.fixture
def client(controller: AdmissionController) -> TestClient:
    app = FastAPI()

    @app.post("/webhooks/sms")
    async def sms() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/webhooks/private")
    async def private() -> dict[str, str]:
        raise HTTPException(status_code=401, detail="bad signature")

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "healthy"}

    app.add_middleware(AdmissionMiddleware, controller=controller)
    return TestClient(app)


class TestAdmissionMiddleware:
    """Request-rate and block checks on webhook requests."""

    def test_adds_rate_limit_headers(self, client: TestClient) -> None:
        response = client.post("/webhooks/sms", headers={"X-Parley-User": "u1"})

        assert response.status_code == 200
        assert response.headers["X-RateLimit-Limit"] == "3"
        assert response.headers["X-RateLimit-Remaining"] == "2"

    def test_rate_limited_returns_429(self, client: TestClient) -> None:
        for _ in range(3):
            client.post("/webhooks/sms", headers={"X-Parley-User": "u1"})

        response = client.post("/webhooks/sms", headers={"X-Parley-User": "u1"})

        assert response.status_code == 429
        assert response.json()["error"]["code"] == "RATE_LIMITED"
        assert "Retry-After" in response.headers

    def test_subject_header_separates_users(self, client: TestClient) -> None:
        for _ in range(4):
            client.post("/webhooks/sms", headers={"X-Parley-User": "u1"})

        response = client.post("/webhooks/sms", headers={"X-Parley-User": "u2"})
        assert response.status_code == 200

    def test_excluded_paths_skip_admission(self, client: TestClient) -> None:
        for _ in range(5):
            response = client.get("/health")
            assert response.status_code == 200
            assert "X-RateLimit-Limit" not in response.headers

    def test_auth_failures_block_source(self, client: TestClient) -> None:
        """Downstream 401s count against the client address until it is blocked."""
        for i in range(6):
            client.post("/webhooks/private", headers={"X-Parley-User": f"user-{i}"})

        response = client.post("/webhooks/sms", headers={"X-Parley-User": "fresh"})

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "SOURCE_BLOCKED"
