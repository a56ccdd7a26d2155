"""
Authentication Package

This package handles Steam sign-in for the service using OpenID 2.0 and the
Steam Web API.

Key responsibilities:
- Building the redirect to Steam's login page
- Verifying Steam's signed callback with check_authentication
- Storing the verified steamid (and optional profile) in the session
- Logout and profile refresh endpoints

Modules:
- openid: OpenID 2.0 request building and response parsing
- players: GetPlayerSummaries profile lookup
- session: SessionStore capability and its implementations
- steam: AuthSession, the handshake and session lifecycle
- routes: Public endpoints (/auth/login, /auth/logout, /auth/me, ...)

The authentication flow:
1. Browser hits /auth/login and is redirected to Steam
2. User signs in on steamcommunity.com
3. Steam redirects back to /auth/login with a signed assertion
4. AuthSession re-validates the assertion with Steam, then stores the identity
5. Later requests read the identity from the session cookie
"""

from .routes import auth_router
from .steam import AuthSession, MissingCredential, PlayerDataError, SteamAuthError

__all__ = [
    "auth_router",
    "AuthSession",
    "MissingCredential",
    "PlayerDataError",
    "SteamAuthError",
]
