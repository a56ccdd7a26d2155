"""
Unit Tests for Authentication Routes
====================================

Tests for steamauth/auth/routes.py through the full application, including
the signed session cookie.

Test Coverage:
--------------
1. Login redirect to Steam and callback handling
2. Profile, refresh and logout endpoints
3. Configuration errors and the debug endpoint

Run tests:
----------
    pytest steamauth/tests/test_routes.py -v
"""

from unittest.mock import Mock
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from fastapi import status
from fastapi.testclient import TestClient

from steamauth.main import create_app

from .factories import (
    INVALID_BODY,
    TEST_API_KEY,
    TEST_STEAMID,
    VALID_BODY,
    make_callback_query,
    make_player,
    make_response,
    make_summaries,
)


RETURN_TO = "http://testserver/auth/login"


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def steam_client():
    """Mock httpx Client standing in for Steam"""
    client = Mock(spec=httpx.Client)
    client.post.return_value = make_response(text=VALID_BODY)
    client.get.return_value = make_response(json_data=make_summaries(make_player()))
    return client


@pytest.fixture
def app(steam_client):
    return create_app(steam_options={"api_key": TEST_API_KEY}, http_client=steam_client)


@pytest.fixture
def client(app):
    return TestClient(app)


def sign_in(client: TestClient) -> httpx.Response:
    return client.get(
        "/auth/login",
        params=make_callback_query(return_to=RETURN_TO, dotted=True),
        follow_redirects=False,
    )


# ============================================================================
# Login Tests
# ============================================================================

def test_login_redirects_to_steam(client, steam_client):
    response = client.get("/auth/login", follow_redirects=False)

    assert response.status_code == status.HTTP_302_FOUND
    location = urlparse(response.headers["location"])
    params = parse_qs(location.query)
    assert location.netloc == "steamcommunity.com"
    assert params["openid.mode"] == ["checkid_setup"]
    assert params["openid.return_to"] == [RETURN_TO]
    assert params["openid.realm"] == ["http://testserver"]
    steam_client.post.assert_not_called()


def test_callback_signs_in_and_redirects_to_profile(client, steam_client):
    response = sign_in(client)

    assert response.status_code == status.HTTP_302_FOUND
    assert response.headers["location"].endswith("/auth/me")

    data = steam_client.post.call_args[1]["data"]
    assert data["openid.mode"] == "check_authentication"
    assert data["openid.return_to"] == RETURN_TO

    profile = client.get("/auth/me")
    assert profile.status_code == status.HTTP_200_OK
    assert profile.json()["steamid"] == TEST_STEAMID
    assert profile.json()["personaname"] == "gabe"


def test_rejected_callback_shows_error_page(client, steam_client):
    steam_client.post.return_value = make_response(text=INVALID_BODY)

    response = sign_in(client)

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert "<html" in response.text.lower()
    assert "Login Failed" in response.text
    assert client.get("/auth/me").status_code == status.HTTP_401_UNAUTHORIZED


def test_login_when_signed_in_skips_steam(client, steam_client):
    sign_in(client)
    steam_client.post.reset_mock()

    response = client.get("/auth/login", follow_redirects=False)

    assert response.status_code == status.HTTP_302_FOUND
    assert response.headers["location"].endswith("/auth/me")
    steam_client.post.assert_not_called()


def test_missing_api_key_returns_configuration_error(steam_client):
    client = TestClient(create_app(http_client=steam_client))

    response = client.get("/auth/login", follow_redirects=False)

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json()["error"] == "configuration_error"
    steam_client.post.assert_not_called()


def test_environment_api_key_is_used(monkeypatch, steam_client):
    monkeypatch.setenv("STEAM_AUTH_API_KEY", TEST_API_KEY)
    client = TestClient(create_app(http_client=steam_client))

    response = client.get("/auth/login", follow_redirects=False)

    assert response.status_code == status.HTTP_302_FOUND


# ============================================================================
# Profile Tests
# ============================================================================

def test_profile_omits_unset_fields_and_keeps_extras(client):
    sign_in(client)

    body = client.get("/auth/me").json()

    assert body["primaryclanid"] == "103582791429521408"
    assert "realname" not in body


def test_profile_requires_sign_in(client):
    response = client.get("/auth/me")

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert "steam" in response.json()["detail"].lower()


def test_refresh_replaces_profile(client, steam_client):
    sign_in(client)
    steam_client.get.return_value = make_response(
        json_data=make_summaries(make_player(personaname="gaben"))
    )

    response = client.post("/auth/refresh")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["personaname"] == "gaben"
    assert client.get("/auth/me").json()["personaname"] == "gaben"


def test_refresh_failure_returns_bad_gateway(client, steam_client):
    sign_in(client)
    steam_client.get.side_effect = httpx.ConnectError("down")

    response = client.post("/auth/refresh")

    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    assert client.get("/auth/me").json()["personaname"] == "gabe"


def test_refresh_requires_sign_in(client):
    assert client.post("/auth/refresh").status_code == status.HTTP_401_UNAUTHORIZED


# ============================================================================
# Logout Tests
# ============================================================================

def test_logout_ends_session(client):
    sign_in(client)

    response = client.get("/auth/logout")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"logged_out": True}
    assert client.get("/auth/me").status_code == status.HTTP_401_UNAUTHORIZED


def test_logout_when_anonymous(client):
    response = client.get("/auth/logout")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"logged_out": False}


def test_logout_redirects_to_logout_page(steam_client):
    app = create_app(
        steam_options={"api_key": TEST_API_KEY, "logout_page": "https://example.com/goodbye"},
        http_client=steam_client,
    )
    client = TestClient(app)
    sign_in(client)

    response = client.get("/auth/logout", follow_redirects=False)

    assert response.status_code == status.HTTP_302_FOUND
    assert response.headers["location"] == "https://example.com/goodbye"


def test_logout_redirects_to_relative_page(steam_client):
    app = create_app(
        steam_options={"api_key": TEST_API_KEY, "logout_page": "/"},
        http_client=steam_client,
    )
    client = TestClient(app)
    sign_in(client)

    response = client.get("/auth/logout", follow_redirects=False)

    assert response.status_code == status.HTTP_302_FOUND
    assert response.headers["location"] == "/"


# ============================================================================
# System Tests
# ============================================================================

def test_debug_hidden_by_default(client):
    assert client.get("/auth/debug").status_code == status.HTTP_404_NOT_FOUND


def test_debug_report_at_debug_level(client, monkeypatch):
    from steamauth.config import get_settings

    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    get_settings.cache_clear()
    sign_in(client)

    response = client.get("/auth/debug")

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["status"] == "authenticated"
    assert body["steamdata"]["steamid"] == TEST_STEAMID
    assert TEST_API_KEY not in response.text


def test_health(client):
    response = client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "ok"
