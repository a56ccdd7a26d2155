"""
Data Models Module

This module defines Pydantic models for the Steam sign-in flow and for
request/response serialization throughout the service.

Models are organized by functional area:
- Identity models (player summary stored in the session)
- Request context (the parts of an inbound request the handshake reads)
- Handshake status
- HTTP response models (profile, logout, health, errors)
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============================================================================
# Identity Models
# ============================================================================

class PlayerSummary(BaseModel):
    """
    Verified Steam identity, optionally enriched from GetPlayerSummaries.

    Only steamid is guaranteed. Attributes Steam returns that are not declared
    here are kept verbatim as extra fields.
    """
    model_config = ConfigDict(extra="allow")

    steamid: str = Field(..., description="64-bit Steam ID", pattern=r"^[0-9]{17,25}$")
    personaname: Optional[str] = Field(None, description="Display name")
    profileurl: Optional[str] = Field(None, description="Community profile URL")
    avatar: Optional[str] = Field(None, description="32x32 avatar URL")
    avatarmedium: Optional[str] = Field(None, description="64x64 avatar URL")
    avatarfull: Optional[str] = Field(None, description="184x184 avatar URL")
    personastate: Optional[int] = Field(None, description="Online status")
    communityvisibilitystate: Optional[int] = Field(
        None, description="1 = private, 3 = public"
    )
    profilestate: Optional[int] = Field(None, description="1 if the profile is configured")
    lastlogoff: Optional[int] = Field(None, description="Unix time of last logoff")
    realname: Optional[str] = Field(None, description="Real name, if public")
    timecreated: Optional[int] = Field(None, description="Unix time the account was created")
    loccountrycode: Optional[str] = Field(None, description="ISO country code")

    @field_validator("steamid", mode="before")
    @classmethod
    def coerce_steamid(cls, v: Any) -> Any:
        # Steam sends the id as a string, but tolerate numeric input
        if isinstance(v, int):
            return str(v)
        return v

    def to_session(self) -> Dict[str, Any]:
        """Plain mapping as stored under the session's steamdata key."""
        return self.model_dump(exclude_none=True, warnings=False)


# ============================================================================
# Request Context
# ============================================================================

class RequestContext(BaseModel):
    """The parts of the inbound request the handshake needs."""
    model_config = ConfigDict(frozen=True)

    query: Dict[str, str] = Field(default_factory=dict, description="Query parameters")
    scheme: str = Field(default="http", description="Request scheme (http or https)")
    host: str = Field(..., description="Host header, including port if any")
    path: str = Field(default="/", description="Script path, without query string")

    @property
    def origin(self) -> str:
        """scheme://host, used as the OpenID realm."""
        return f"{self.scheme}://{self.host}"

    @property
    def current_url(self) -> str:
        """scheme://host/path, the default return-to page."""
        return f"{self.origin}{self.path}"

    @classmethod
    def from_request(cls, request: Any) -> "RequestContext":
        """Build a context from a Starlette/FastAPI Request."""
        url = request.url
        host = request.headers.get("host") or url.netloc
        return cls(
            query=dict(request.query_params),
            scheme=url.scheme,
            host=host,
            path=url.path,
        )


# ============================================================================
# Handshake Status
# ============================================================================

class HandshakeStatus(str, Enum):
    """Outcome of constructing an AuthSession."""
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    CONFIG_ERROR = "config_error"


# ============================================================================
# HTTP Response Models
# ============================================================================

class LogoutResponse(BaseModel):
    """Response model for the logout endpoint."""
    logged_out: bool = Field(..., description="Whether a signed-in session was ended")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service health status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")


class ErrorResponse(BaseModel):
    """Standardized error response model."""
    error: str = Field(..., description="Error type or code")
    message: str = Field(..., description="Human-readable error message")
    detail: Optional[str] = Field(None, description="Additional error details")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Error timestamp",
    )
