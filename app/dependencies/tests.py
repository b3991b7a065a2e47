"""
Tests de la autenticación por bearer token
"""
import pytest

from app.core.config import settings
from app.modules.pos.sessions import sessions

SECRET = "a-test-signing-secret-of-32-bytes!"


@pytest.fixture(autouse=True)
def discard_signed_sessions():
    yield
    sessions.discard("user-signed")


class TestAuthContext:

    def test_missing_token(self, client):
        response = client.get("/pos/venta")
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    def test_garbage_token(self, client):
        response = client.get("/pos/venta", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_token_without_subject(self, client, token_factory):
        token = token_factory(sub="")
        response = client.get("/pos/venta", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_unverified_token_is_accepted_without_secret(self, client, auth_headers, monkeypatch):
        monkeypatch.setattr(settings, "AUTH_JWT_SECRET", None)
        assert client.get("/pos/venta", headers=auth_headers).status_code == 200

    def test_signature_checked_with_secret(self, client, token_factory, monkeypatch):
        monkeypatch.setattr(settings, "AUTH_JWT_SECRET", SECRET)

        good = token_factory("user-signed", secret=SECRET)
        bad = token_factory("user-signed", secret="another-signing-secret-of-32-bytes")

        assert client.get("/pos/venta", headers={"Authorization": f"Bearer {good}"}).status_code == 200
        assert client.get("/pos/venta", headers={"Authorization": f"Bearer {bad}"}).status_code == 401

    def test_audience_checked_with_secret(self, client, token_factory, monkeypatch):
        monkeypatch.setattr(settings, "AUTH_JWT_SECRET", SECRET)
        token = token_factory("user-aud", secret=SECRET, aud="someone-else")
        assert client.get("/pos/venta", headers={"Authorization": f"Bearer {token}"}).status_code == 401

