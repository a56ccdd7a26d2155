"""
Builders for Steam callback queries, player records and mock responses.
"""

from typing import Any, Dict, Optional
from unittest.mock import Mock

from steamauth.auth.openid import OPENID_NS


TEST_API_KEY = "TESTKEY0123456789ABCDEF0123456789"
TEST_STEAMID = "76561198000000001"

VALID_BODY = "ns:http://specs.openid.net/auth/2.0\nis_valid:true\n"
INVALID_BODY = "ns:http://specs.openid.net/auth/2.0\nis_valid:false\n"


def make_callback_query(
    steamid: str = TEST_STEAMID,
    return_to: str = "http://example.com/login",
    dotted: bool = False,
) -> Dict[str, str]:
    """
    Build the query string Steam sends back after a successful login.

    Args:
        steamid: Steam ID embedded in the claimed identifier
        return_to: Return-to URL echoed by Steam
        dotted: Use openid.x keys (as sent on the wire) instead of openid_x
    """
    claimed_id = f"https://steamcommunity.com/openid/id/{steamid}"
    query = {
        "openid_ns": OPENID_NS,
        "openid_mode": "id_res",
        "openid_op_endpoint": "https://steamcommunity.com/openid/login",
        "openid_claimed_id": claimed_id,
        "openid_identity": claimed_id,
        "openid_return_to": return_to,
        "openid_response_nonce": "2026-10-19T12:00:00ZpP0mOzrcYU8vWc",
        "openid_assoc_handle": "1234567890",
        "openid_signed": "signed,op_endpoint,claimed_id,identity,return_to,response_nonce,assoc_handle",
        "openid_sig": "W0u5DRbtHE1GG0ZKXjerUZDUGmc=",
    }
    if dotted:
        query = {k.replace("openid_", "openid.", 1): v for k, v in query.items()}
    return query


def make_player(steamid: str = TEST_STEAMID, **extra: Any) -> Dict[str, Any]:
    """A GetPlayerSummaries player record."""
    player = {
        "steamid": steamid,
        "communityvisibilitystate": 3,
        "profilestate": 1,
        "personaname": "gabe",
        "profileurl": f"https://steamcommunity.com/profiles/{steamid}/",
        "avatar": "https://avatars.steamstatic.com/abc.jpg",
        "avatarmedium": "https://avatars.steamstatic.com/abc_medium.jpg",
        "avatarfull": "https://avatars.steamstatic.com/abc_full.jpg",
        "personastate": 1,
        "primaryclanid": "103582791429521408",
    }
    player.update(extra)
    return player


def make_summaries(*players: Dict[str, Any]) -> Dict[str, Any]:
    """Wrap player records in the GetPlayerSummaries envelope."""
    return {"response": {"players": list(players)}}


def make_response(text: str = "", json_data: Optional[Any] = None) -> Mock:
    """Mock httpx response with the given body."""
    response = Mock()
    response.status_code = 200
    response.text = text
    response.json.return_value = json_data
    return response
