"""
Shared fixtures for the Steam sign-in tests.
"""

from unittest.mock import Mock

import httpx
import pytest

from steamauth.auth.session import MemorySessionStore
from steamauth.config import get_settings
from steamauth.models import RequestContext

from .factories import VALID_BODY, make_callback_query, make_player, make_response, make_summaries


STEAM_AUTH_FIELDS = (
    "API_KEY",
    "DOMAIN_NAME",
    "LOGIN_PAGE",
    "LOGOUT_PAGE",
    "SKIP_API",
    "OPENID_ENDPOINT",
    "API_BASE_URL",
    "HTTP_TIMEOUT_SECONDS",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep STEAM_AUTH_* variables from the host out of the tests."""
    for name in STEAM_AUTH_FIELDS:
        monkeypatch.delenv(f"STEAM_AUTH_{name}", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def mock_http_client():
    """Mock httpx Client that confirms assertions and returns one player."""
    client = Mock(spec=httpx.Client)
    client.post.return_value = make_response(text=VALID_BODY)
    client.get.return_value = make_response(json_data=make_summaries(make_player()))
    return client


@pytest.fixture
def store():
    return MemorySessionStore()


@pytest.fixture
def anonymous_request():
    return RequestContext(scheme="http", host="example.com", path="/login")


@pytest.fixture
def callback_request():
    return RequestContext(
        scheme="http",
        host="example.com",
        path="/login",
        query=make_callback_query(),
    )
