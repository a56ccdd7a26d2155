"""
Steam Web API profile lookup.

Thin client for ISteamUser/GetPlayerSummaries. Failures are logged and
returned as None so the login handshake can treat them as "not signed in".
"""

import logging
from typing import Any, Dict, Optional

import httpx


logger = logging.getLogger(__name__)


def fetch_player_summaries(
    client: httpx.Client,
    url: str,
    api_key: str,
    steamid: str,
) -> Optional[Dict[str, Any]]:
    """
    Fetch the GetPlayerSummaries response for one steamid.

    Args:
        client: HTTP client used for the GET
        url: Full GetPlayerSummaries endpoint URL
        api_key: Steam Web API key
        steamid: 64-bit Steam ID

    Returns:
        Parsed JSON mapping, or None on network, status or parse failure
    """
    try:
        response = client.get(url, params={"key": api_key, "steamids": steamid})
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPError as e:
        logger.warning(f"Player summary request failed: {e}", extra={"steamid": steamid})
        return None
    except ValueError as e:
        logger.warning(f"Player summary response is not JSON: {e}", extra={"steamid": steamid})
        return None

    if not isinstance(data, dict):
        logger.warning("Player summary response is not an object", extra={"steamid": steamid})
        return None

    return data


def first_player(data: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Return response.players[0] from a GetPlayerSummaries body, if any."""
    if not data:
        return None

    players = (data.get("response") or {}).get("players") or []
    if not players or not isinstance(players[0], dict):
        return None
    return players[0]
