"""
Authentication routes for Steam OpenID sign-in.

The handshake itself lives in AuthSession; these endpoints only build one
per request and translate its state into HTTP responses.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import HTMLResponse, RedirectResponse

from steamauth.auth.steam import AuthSession, PlayerDataError
from steamauth.config import get_settings
from steamauth.models import LogoutResponse


logger = logging.getLogger(__name__)


# =============================================================================
# Router Setup
# =============================================================================

auth_router = APIRouter(
    prefix="/auth",
    tags=["authentication"],
)


# =============================================================================
# Dependencies
# =============================================================================

def get_auth_session(request: Request) -> AuthSession:
    """
    FastAPI dependency that runs the Steam handshake for this request.

    Explicit options and the HTTP client come from app.state, set by
    create_app(). STEAM_AUTH_* environment variables still take precedence.
    """
    return AuthSession.from_request(
        request,
        http_client=getattr(request.app.state, "http_client", None),
        **getattr(request.app.state, "steam_options", {}),
    )


def _require_login(steam: AuthSession) -> None:
    if not steam.logged_in():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not signed in with Steam",
        )


def _profile(steam: AuthSession) -> Dict[str, Any]:
    return steam.player.to_session()


# =============================================================================
# Login Endpoint
# =============================================================================

@auth_router.get("/login", name="login")
def login(request: Request, steam: AuthSession = Depends(get_auth_session)):
    """
    Start or finish Steam sign-in.

    This endpoint is also the default return-to page, so it:
    1. Redirects to the profile when the session is signed in
    2. Shows an error page when Steam's callback could not be verified
    3. Otherwise redirects the browser to Steam's login page
    """
    if steam.logged_in():
        return RedirectResponse(url=str(request.url_for("profile")), status_code=302)

    if steam.callback_attempted:
        return _render_error_page(
            title="Login Failed",
            message="Steam could not confirm your sign-in. Please try again.",
            status_code=401,
        )

    return RedirectResponse(url=steam.login_url(), status_code=302)


# =============================================================================
# Profile Endpoints
# =============================================================================

@auth_router.get("/me", name="profile")
def profile(steam: AuthSession = Depends(get_auth_session)) -> Dict[str, Any]:
    """Return the signed-in player's stored profile."""
    _require_login(steam)
    return _profile(steam)


@auth_router.post("/refresh")
def refresh(steam: AuthSession = Depends(get_auth_session)) -> Dict[str, Any]:
    """
    Reload the player's profile from the Steam Web API.

    Returns:
        Fresh profile

    Raises:
        HTTPException: 401 if not signed in, 502 if Steam could not be reached
    """
    _require_login(steam)

    try:
        steam.force_reload()
    except PlayerDataError as e:
        logger.warning(f"Profile refresh failed: {e}", extra={"steamid": steam.steamid})
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Unable to reload profile from Steam",
        )

    return _profile(steam)


# =============================================================================
# Logout Endpoint
# =============================================================================

@auth_router.get("/logout", response_model=LogoutResponse)
def logout(response: Response, steam: AuthSession = Depends(get_auth_session)):
    """
    End the Steam session.

    Redirects to the configured logout page, if any.
    """
    return LogoutResponse(logged_out=steam.logout(response))


# =============================================================================
# Debug Endpoint
# =============================================================================

@auth_router.get("/debug")
def debug(steam: AuthSession = Depends(get_auth_session)) -> Dict[str, Any]:
    """Resolved configuration and session data; only served at DEBUG level."""
    if not get_settings().debug_enabled:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    return steam.debug_report()


# =============================================================================
# HTML Response Templates
# =============================================================================

def _render_error_page(
    title: str,
    message: str,
    status_code: int = 400,
) -> HTMLResponse:
    """
    Render error page for sign-in failures.

    Args:
        title: Error title
        message: Error message (no PII)
        status_code: HTTP status code

    Returns:
        HTMLResponse with error information
    """
    html_content = f"""
    <!DOCTYPE html>
    <html lang="en">
    <head>
        <meta charset="UTF-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
        <title>{title}</title>
        <style>
            * {{ margin: 0; padding: 0; box-sizing: border-box; }}
            body {{
                font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Helvetica, Arial, sans-serif;
                background: linear-gradient(135deg, #171a21 0%, #1b2838 100%);
                min-height: 100vh;
                display: flex;
                align-items: center;
                justify-content: center;
                padding: 20px;
            }}
            .container {{
                background: white;
                border-radius: 12px;
                padding: 40px;
                max-width: 500px;
                width: 100%;
                text-align: center;
            }}
            h1 {{
                color: #1f2937;
                font-size: 24px;
                margin-bottom: 16px;
            }}
            .message {{
                color: #6b7280;
                font-size: 16px;
                margin-bottom: 32px;
            }}
            .button {{
                display: inline-block;
                background: #1b2838;
                color: white;
                padding: 14px 32px;
                border-radius: 8px;
                text-decoration: none;
                font-weight: 600;
            }}
        </style>
    </head>
    <body>
        <div class="container">
            <h1>{title}</h1>
            <p class="message">{message}</p>
            <a href="/auth/login" class="button">Sign in through Steam</a>
        </div>
    </body>
    </html>
    """

    return HTMLResponse(content=html_content, status_code=status_code)
