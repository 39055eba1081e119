"""
Tests for the Token service HTTP surface.
"""

import pytest
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient

from service_tokens.app.main import TokenService, create_app
from service_tokens.app.revocation.cache import RedisCache


class TestTokenServiceRoutes:
    """Test cases for token routes."""

    @pytest.fixture
    def service(self, settings, cache, clock):
        """Create service with in-memory revocation and a frozen clock."""
        return TokenService(settings=settings, cache=cache, clock=clock)

    @pytest.fixture
    def client(self, service):
        """Create test client."""
        return TestClient(service.app)

    @pytest.fixture
    def issue(self, service):
        """Issue tokens the way an authenticating application would."""
        def _issue(claims=None, subject="42"):
            return service.manager.issue(claims, subject=subject).to_string()
        return _issue

    def test_root_endpoint(self, client):
        """Test root endpoint."""
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "tokens"
        assert data["version"] == "1.0.0"

    def test_health_endpoint(self, client):
        """Test health endpoint reports the revocation cache."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["dependencies"] == {"revocation_cache": "ok"}

    def test_no_public_issuance(self, client):
        """Test tokens cannot be minted over HTTP."""
        response = client.post(
            "/auth/token",
            json={"subject": "admin", "claims": {"role": "superuser"}, "ttl_minutes": 5000000},
        )

        assert response.status_code == 404

    def test_invalid_claims_is_client_error(self, service, client):
        """Test rejected issuance input maps to 400 without an auth challenge."""
        @service.app.post("/test/issue")
        async def issue_with_registered_claim():
            service.manager.issue({"exp": 1}, subject="42")

        response = client.post("/test/issue")

        assert response.status_code == 400
        assert response.json()["code"] == "JWT_INVALID_CLAIMS"
        assert "WWW-Authenticate" not in response.headers

    def test_verify_valid(self, client, issue):
        """Test verification of a fresh token."""
        token = issue({"role": "admin"})

        response = client.post("/auth/verify", json={"token": token})

        data = response.json()
        assert data["valid"] is True
        assert data["claims"]["sub"] == "42"
        assert data["claims"]["role"] == "admin"

    def test_verify_invalid(self, client):
        """Test verification of garbage."""
        response = client.post("/auth/verify", json={"token": "not-a-token"})

        assert response.status_code == 200
        data = response.json()
        assert data["valid"] is False
        assert data["code"] == "JWT_MALFORMED"

    def test_me_with_bearer_header(self, client, issue):
        """Test current token from the Authorization header."""
        token = issue()

        response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json()["subject"] == "42"

    def test_me_with_query_token(self, client, issue):
        """Test current token from the query string."""
        token = issue()

        response = client.get("/auth/me", params={"token": token})

        assert response.status_code == 200
        assert response.json()["subject"] == "42"

    def test_me_without_token(self, client):
        """Test missing credential is a 401."""
        response = client.get("/auth/me")

        assert response.status_code == 401
        assert response.json()["code"] == "JWT_INVALID"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_me_with_expired_token(self, client, clock, issue):
        """Test expired credential is a 401 with its own code."""
        token = issue()
        clock.advance(3601)

        response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["code"] == "JWT_EXPIRED"

    def test_refresh(self, client, issue):
        """Test refresh exchanges and revokes the old token."""
        old = issue()

        response = client.post("/auth/refresh", json={"token": old})

        assert response.status_code == 200
        data = response.json()
        new = data["access_token"]
        assert new != old
        assert data["token_type"] == "Bearer"
        assert data["expires_in"] == 3600
        assert client.post("/auth/verify", json={"token": new}).json()["valid"] is True
        assert client.post("/auth/verify", json={"token": old}).json()["code"] == "JWT_REVOKED"

    def test_logout(self, client, issue):
        """Test logout revokes the token."""
        token = issue()

        response = client.post("/auth/logout", json={"token": token})

        assert response.status_code == 200
        assert response.json()["success"] is True
        verify = client.post("/auth/verify", json={"token": token}).json()
        assert verify["valid"] is False
        assert verify["code"] == "JWT_REVOKED"

    def test_metrics_endpoint(self, client, issue):
        """Test token counters are exported."""
        issue()

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "tokens_issued_total" in response.text


class TestTokenService:
    """Test cases for TokenService wiring."""

    def test_service_state(self, settings, cache, clock):
        """Test service exposes its manager through app state."""
        service = TokenService(settings=settings, cache=cache, clock=clock)

        assert service.app.state.token_service is service
        assert service.manager.store.cache is cache
        assert service.manager.codec.algorithm == "HS256"

    def test_create_app(self, settings, cache, clock):
        """Test application factory wires the given collaborators."""
        app = create_app(settings=settings, cache=cache, clock=clock)

        assert app.state.token_service.cache is cache

    def test_lifespan_manages_redis_cache(self, settings, clock):
        """Test Redis cache is started and stopped with the application."""
        cache = RedisCache("redis://localhost:6379/0")
        cache.start = AsyncMock()
        cache.stop = AsyncMock()
        service = TokenService(settings=settings, cache=cache, clock=clock)

        with TestClient(service.app):
            cache.start.assert_awaited_once()
            cache.stop.assert_not_awaited()

        cache.stop.assert_awaited_once()
