"""
Session Storage Module
======================

The handshake never touches a web framework's session directly. It works
against the small SessionStore capability defined here, with two
implementations:

- StarletteSessionStore: wraps request.session from Starlette's
  SessionMiddleware (signed cookie sessions)
- MemorySessionStore: plain dict, for scripts and tests
"""

import logging
from typing import Any, Dict, MutableMapping, Optional, Protocol


logger = logging.getLogger(__name__)


STEAMDATA_KEY = "steamdata"


# =============================================================================
# Protocol
# =============================================================================

class SessionStore(Protocol):
    """Key-value storage scoped to one browser session."""

    def is_active(self) -> bool:
        ...

    def start(self) -> None:
        ...

    def destroy(self) -> None:
        ...

    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def delete(self, key: str) -> None:
        ...

    def is_empty(self) -> bool:
        ...


def ensure_started(store: SessionStore) -> None:
    """
    Start a session if none is active.

    Any leftover state is destroyed first so a stale session never leaks into
    a fresh one. An active session is left alone.
    """
    if store.is_active():
        return

    logger.debug("No active session, starting a fresh one")
    store.destroy()
    store.start()


def stored_steamdata(store: SessionStore) -> Optional[Dict[str, Any]]:
    """Return the stored identity mapping, or None if absent or empty."""
    data = store.get(STEAMDATA_KEY)
    if not data or not isinstance(data, dict):
        return None
    return data


def stored_steamid(store: SessionStore) -> Optional[str]:
    """Return the stored steamid, or None if not signed in."""
    data = stored_steamdata(store)
    if not data:
        return None
    return data.get("steamid") or None


# =============================================================================
# Implementations
# =============================================================================

class StarletteSessionStore:
    """
    SessionStore backed by Starlette's request.session.

    SessionMiddleware always provides a session mapping, so the store is
    always active; destroy() clears it and the middleware then drops the
    cookie on the response.
    """

    def __init__(self, session: MutableMapping[str, Any]):
        self._session = session

    def is_active(self) -> bool:
        return True

    def start(self) -> None:
        pass

    def destroy(self) -> None:
        self._session.clear()

    def get(self, key: str, default: Any = None) -> Any:
        return self._session.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._session[key] = value

    def delete(self, key: str) -> None:
        self._session.pop(key, None)

    def is_empty(self) -> bool:
        return not self._session


class MemorySessionStore:
    """In-process SessionStore for scripts and tests."""

    def __init__(self, data: Optional[Dict[str, Any]] = None, active: bool = True):
        self.data: Dict[str, Any] = dict(data or {})
        self.active = active

    def is_active(self) -> bool:
        return self.active

    def start(self) -> None:
        self.active = True

    def destroy(self) -> None:
        self.data.clear()
        self.active = False

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)

    def is_empty(self) -> bool:
        return not self.data


__all__ = [
    "STEAMDATA_KEY",
    "SessionStore",
    "StarletteSessionStore",
    "MemorySessionStore",
    "ensure_started",
    "stored_steamdata",
    "stored_steamid",
]
