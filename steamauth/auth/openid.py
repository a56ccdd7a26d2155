"""
OpenID 2.0 protocol helpers for Steam sign-in.

This module handles:
- Building the checkid_setup redirect URL
- Normalising callback query parameters
- Building and sending the check_authentication request
- Extracting the 64-bit steamid from the claimed identifier

Everything except verify_assertion is pure and does no I/O.
"""

import logging
import re
from typing import Dict, Mapping, Optional
from urllib.parse import urlencode, urlparse

import httpx


logger = logging.getLogger(__name__)


OPENID_NS = "http://specs.openid.net/auth/2.0"
IDENTIFIER_SELECT = "http://specs.openid.net/auth/2.0/identifier_select"

_IS_VALID_PATTERN = re.compile(r"is_valid\s*:\s*true", re.IGNORECASE)
_ESCAPED_CHAR = re.compile(r"\\(.?)", re.DOTALL)


# =============================================================================
# Login Redirect
# =============================================================================

def build_login_url(endpoint: str, return_to: str, realm: str) -> str:
    """
    Build the URL that sends the browser to Steam's login page.

    Args:
        endpoint: Steam OpenID endpoint
        return_to: Page Steam redirects back to after login
        realm: scheme://host of the relying party

    Returns:
        Fully formed redirect URL with percent-encoded parameters
    """
    params = {
        "openid.ns": OPENID_NS,
        "openid.mode": "checkid_setup",
        "openid.return_to": return_to,
        "openid.realm": realm,
        "openid.identity": IDENTIFIER_SELECT,
        "openid.claimed_id": IDENTIFIER_SELECT,
    }
    return f"{endpoint}?{urlencode(params)}"


# =============================================================================
# Callback Parsing
# =============================================================================

def normalize_query(query: Mapping[str, str]) -> Dict[str, str]:
    """
    Rewrite openid.* keys as openid_*.

    Steam sends dotted keys. Some front ends hand them over with dots already
    replaced, so both spellings end up under the underscore form.
    """
    normalized: Dict[str, str] = {}
    for key, value in query.items():
        if key.startswith("openid."):
            key = key.replace(".", "_")
        normalized[key] = value
    return normalized


def is_callback(query: Mapping[str, str]) -> bool:
    """True if the query carries Steam's association handle."""
    return "openid_assoc_handle" in normalize_query(query)


def unescape(value: str) -> str:
    """Drop backslash escapes (\\x -> x)."""
    return _ESCAPED_CHAR.sub(r"\1", value)


def build_verification_params(query: Mapping[str, str]) -> Dict[str, str]:
    """
    Build the check_authentication form body from a callback query.

    Every field listed in openid_signed is echoed back so Steam can check the
    signature.

    Raises:
        KeyError: If a mandatory callback parameter is missing
    """
    query = normalize_query(query)

    params = {
        "openid.assoc_handle": query["openid_assoc_handle"],
        "openid.signed": query["openid_signed"],
        "openid.sig": query["openid_sig"],
        "openid.ns": OPENID_NS,
    }

    for item in query["openid_signed"].split(","):
        item = item.strip()
        if not item:
            continue
        value = query.get("openid_" + item.replace(".", "_"), "")
        params["openid." + item] = unescape(value)

    params["openid.mode"] = "check_authentication"
    return params


def extract_steamid(claimed_id: Optional[str], endpoint: str) -> Optional[str]:
    """
    Pull the steamid out of a claimed identifier.

    Args:
        claimed_id: Value of openid_claimed_id, e.g.
            https://steamcommunity.com/openid/id/76561198000000001
        endpoint: Steam OpenID endpoint, used to derive the provider host

    Returns:
        The 17-25 digit steamid, or None if it does not match or is zero
    """
    if not claimed_id:
        return None

    provider = urlparse(endpoint)
    pattern = re.compile(
        rf"^{re.escape(provider.scheme)}://{re.escape(provider.netloc)}"
        r"/openid/id/([0-9]{17,25})"
    )
    match = pattern.match(claimed_id)
    if not match:
        return None

    steamid = match.group(1)
    if int(steamid) <= 0:
        return None
    return steamid


def is_valid_assertion(body: str) -> bool:
    """True if Steam's key-value response asserts is_valid:true."""
    return bool(_IS_VALID_PATTERN.search(body or ""))


# =============================================================================
# Verification
# =============================================================================

def verify_assertion(
    client: httpx.Client,
    query: Mapping[str, str],
    endpoint: str,
) -> Optional[str]:
    """
    Verify a callback with Steam and return the proven steamid.

    Sends the signed fields back to Steam in check_authentication mode. Any
    failure, from a missing parameter to a network error, is logged and
    results in None; a forged or stale callback is not exceptional.

    Args:
        client: HTTP client used for the POST
        query: Callback query parameters
        endpoint: Steam OpenID endpoint

    Returns:
        steamid if Steam confirms the assertion, None otherwise
    """
    normalized = normalize_query(query)

    try:
        params = build_verification_params(normalized)
    except KeyError as e:
        logger.warning(f"Callback is missing parameter {e}")
        return None

    try:
        response = client.post(
            endpoint,
            data=params,
            headers={"Accept-Language": "en"},
        )
        response.raise_for_status()
        body = response.text
    except httpx.HTTPError as e:
        logger.warning(f"OpenID verification request failed: {e}")
        return None

    steamid = extract_steamid(normalized.get("openid_claimed_id"), endpoint)

    if not is_valid_assertion(body):
        logger.warning(
            "Steam rejected the OpenID assertion",
            extra={"claimed_id": normalized.get("openid_claimed_id")},
        )
        return None

    if steamid is None:
        logger.warning(
            "Claimed identifier is not a Steam profile",
            extra={"claimed_id": normalized.get("openid_claimed_id")},
        )
        return None

    return steamid
