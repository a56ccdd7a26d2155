"""
Steam sign-in session.

AuthSession runs the whole OpenID handshake when it is constructed:

1. Resolve configuration (environment beats explicit arguments)
2. Detect a callback from Steam and verify it with check_authentication
3. Optionally enrich the steamid via GetPlayerSummaries
4. Persist the identity under the session's steamdata key

After construction every call works against the stored session state.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

import httpx
from pydantic import ValidationError

from steamauth.auth.openid import build_login_url, is_callback, verify_assertion
from steamauth.auth.players import fetch_player_summaries, first_player
from steamauth.auth.session import (
    STEAMDATA_KEY,
    SessionStore,
    StarletteSessionStore,
    ensure_started,
    stored_steamdata,
    stored_steamid,
)
from steamauth.config import SteamAuthSettings, resolve_steam_settings
from steamauth.models import HandshakeStatus, PlayerSummary, RequestContext


logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================

class SteamAuthError(Exception):
    """Base exception for Steam sign-in errors"""
    pass


class MissingCredential(SteamAuthError):
    """No Steam Web API key could be resolved"""
    pass


class PlayerDataError(SteamAuthError):
    """An explicit player data refresh failed"""
    pass


# =============================================================================
# AuthSession
# =============================================================================

class AuthSession:
    """
    Steam OpenID relying party bound to one request and one session.

    Example:
        >>> steam = AuthSession(RequestContext(host="example.com"), store, api_key="...")
        >>> if not steam.logged_in():
        ...     redirect(steam.login_url())
        >>> steam.get("personaname")
    """

    def __init__(
        self,
        request: RequestContext,
        store: SessionStore,
        api_key: Optional[str] = None,
        domain_name: Optional[str] = None,
        login_page: Optional[str] = None,
        logout_page: Optional[str] = None,
        skip_api: Optional[bool] = None,
        http_client: Optional[httpx.Client] = None,
        **overrides: Any,
    ):
        """
        Resolve configuration and run the handshake.

        Args:
            request: Query parameters and URL parts of the current request
            store: Session storage for the current browser session
            api_key: Steam Web API key (STEAM_AUTH_API_KEY wins if set)
            domain_name: Your website's domain
            login_page: Return-to page; defaults to the current page
            logout_page: Where logout() redirects to
            skip_api: Only keep the steamid, never call the Web API
            http_client: Client for outbound calls; one is created per call if omitted
            **overrides: Extra SteamAuthSettings fields, e.g. HTTP_TIMEOUT_SECONDS

        Raises:
            MissingCredential: If no API key is configured
        """
        self.settings: SteamAuthSettings = resolve_steam_settings(
            api_key=api_key,
            domain_name=domain_name,
            login_page=login_page,
            logout_page=logout_page,
            skip_api=skip_api,
            **overrides,
        )

        if not self.settings.API_KEY:
            self.status = HandshakeStatus.CONFIG_ERROR
            raise MissingCredential("Steam API Key Not Found")

        self.request = request
        self.store = store
        self.login_page = self.settings.LOGIN_PAGE or request.current_url
        self.player: Optional[PlayerSummary] = None
        self.callback_attempted = False
        self._client = http_client

        ensure_started(store)
        self.status = self._handshake()

    @classmethod
    def from_request(
        cls,
        request: Any,
        http_client: Optional[httpx.Client] = None,
        **options: Any,
    ) -> "AuthSession":
        """Build an AuthSession from a Starlette request with SessionMiddleware."""
        return cls(
            RequestContext.from_request(request),
            StarletteSessionStore(request.session),
            http_client=http_client,
            **options,
        )

    # =========================================================================
    # Handshake
    # =========================================================================

    def _handshake(self) -> HandshakeStatus:
        if stored_steamid(self.store) is None and is_callback(self.request.query):
            # Just returned from Steam's login page
            self.callback_attempted = True
            self._complete_login()

        data = stored_steamdata(self.store)
        if data and data.get("steamid"):
            self.player = self._restore_player(data)
            return HandshakeStatus.AUTHENTICATED

        return HandshakeStatus.UNAUTHENTICATED

    def _complete_login(self) -> None:
        with self._http() as client:
            steamid = verify_assertion(
                client, self.request.query, self.settings.OPENID_ENDPOINT
            )

        if steamid is None:
            return

        if self.settings.SKIP_API:
            self.store.set(STEAMDATA_KEY, {"steamid": steamid})
            logger.info("Steam login verified", extra={"steamid": steamid})
            return

        record = first_player(self.get_player_data(steamid))
        if record is None or self._to_player(record, steamid) is None:
            logger.warning(
                "Steam login verified but player data is unavailable",
                extra={"steamid": steamid},
            )
            return

        self.store.set(STEAMDATA_KEY, dict(record))
        logger.info("Steam login verified", extra={"steamid": steamid})

    def _restore_player(self, data: Dict[str, Any]) -> PlayerSummary:
        """Player from stored steamdata, kept as-is if it does not validate."""
        try:
            return PlayerSummary.model_validate(data)
        except ValidationError as e:
            # Other code sharing the session may have written these values
            logger.warning(
                f"Stored steamdata does not match PlayerSummary: {e}",
                extra={"steamid": data.get("steamid")},
            )
            return PlayerSummary.model_construct(**data)

    def _to_player(self, record: Dict[str, Any], steamid: str) -> Optional[PlayerSummary]:
        """Validate a player record and check it belongs to steamid."""
        try:
            player = PlayerSummary.model_validate(record)
        except ValidationError as e:
            logger.warning(f"Malformed player record: {e}", extra={"steamid": steamid})
            return None

        if player.steamid != steamid:
            logger.warning(
                "Player record is for a different steamid",
                extra={"steamid": steamid, "returned_steamid": player.steamid},
            )
            return None

        return player

    @contextmanager
    def _http(self) -> Iterator[httpx.Client]:
        if self._client is not None:
            yield self._client
            return

        with httpx.Client(timeout=self.settings.HTTP_TIMEOUT_SECONDS) as client:
            yield client

    # =========================================================================
    # Public API
    # =========================================================================

    def login_url(self) -> str:
        """URL that sends the browser to Steam's login page."""
        return build_login_url(
            self.settings.OPENID_ENDPOINT,
            return_to=self.login_page,
            realm=self.request.origin,
        )

    def logged_in(self) -> bool:
        return stored_steamid(self.store) is not None

    def logout(self, response: Any = None) -> bool:
        """
        Sign the user out.

        Removes steamdata from the session and destroys the session if
        nothing else is left in it. If a logout page is configured and a
        response is given, the response becomes a redirect to that page.

        Args:
            response: Optional Starlette Response to turn into a redirect

        Returns:
            False if nobody was signed in, True otherwise
        """
        if not self.logged_in():
            return False

        steamid = stored_steamid(self.store)
        self.store.delete(STEAMDATA_KEY)
        if self.store.is_empty():
            self.store.destroy()

        self.player = None
        self.status = HandshakeStatus.UNAUTHENTICATED

        if self.settings.LOGOUT_PAGE and response is not None:
            response.status_code = 302
            response.headers["location"] = self.settings.LOGOUT_PAGE

        logger.info("Steam user logged out", extra={"steamid": steamid})
        return True

    def force_reload(self) -> bool:
        """
        Refresh the stored player data from the Steam Web API.

        Returns:
            False if nobody is signed in, True once the data is current

        Raises:
            PlayerDataError: If the lookup fails; the stored data is kept
        """
        steamid = stored_steamid(self.store)
        if steamid is None:
            return False

        # Nothing to refresh without the Web API
        if self.settings.SKIP_API:
            return True

        record = first_player(self.get_player_data(steamid))
        if record is None:
            raise PlayerDataError(f"Unable to reload player data for {steamid}")

        player = self._to_player(record, steamid)
        if player is None:
            raise PlayerDataError(f"Invalid player data returned for {steamid}")

        self.store.set(STEAMDATA_KEY, dict(record))
        self.player = player
        return True

    def get_player_data(self, steamid: str) -> Optional[Dict[str, Any]]:
        """
        Retrieve the GetPlayerSummaries response for a steamid.

        Returns:
            Parsed JSON response, or None on failure
        """
        with self._http() as client:
            return fetch_player_summaries(
                client,
                self.settings.player_summaries_url,
                self.settings.API_KEY,
                steamid,
            )

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def steamid(self) -> Optional[str]:
        return self.player.steamid if self.player else None

    def get(self, name: str, default: Any = None) -> Any:
        """Read a player attribute, including ones Steam added recently."""
        if self.player is None:
            return default
        fields = {**vars(self.player), **(self.player.model_extra or {})}
        value = fields.get(name)
        return default if value is None else value

    def __getitem__(self, name: str) -> Any:
        value = self.get(name)
        if value is None:
            raise KeyError(name)
        return value

    def debug_report(self) -> Dict[str, Any]:
        """Resolved settings (API key masked) and stored session data."""
        return {
            "settings": self.settings.safe_dump(),
            "login_page": self.login_page,
            "status": self.status.value,
            "callback_attempted": self.callback_attempted,
            "steamdata": stored_steamdata(self.store),
        }


__all__ = [
    "AuthSession",
    "SteamAuthError",
    "MissingCredential",
    "PlayerDataError",
]
