"""
session.py - Session token store for the CareEvents client.

The session token is the opaque credential the auth backend hands out in
``meta.session_token``. It is written and cleared only by the response
interpreter in transport.py; nothing else should call set()/clear().

Design:
  - Backed by any MutableMapping (default: a private dict per store)
  - One store per client instance, so the token never leaks to another client
    (the per-tab sessionStorage scope of the browser front end)
  - Nothing is written to disk; the token dies with the client
  - No expiry timer: the token is trusted until the backend says otherwise
  - Token values are never logged
"""
import logging
from typing import MutableMapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "sessionToken"


class SessionTokenStore:
    """Single source of truth for the current session token."""

    def __init__(
        self,
        storage: Optional[MutableMapping[str, str]] = None,
        key: str = DEFAULT_STORAGE_KEY,
    ) -> None:
        self._storage: MutableMapping[str, str] = {} if storage is None else storage
        self.key = key

    def get(self) -> Optional[str]:
        """Return the stored token, or None if no session is held."""
        return self._storage.get(self.key)

    def set(self, token: str) -> None:
        """Persist token, replacing any previous value."""
        self._storage[self.key] = token
        logger.debug("Session token stored key=%s", self.key)

    def clear(self) -> None:
        """Forget the token. No-op when nothing is stored."""
        if self._storage.pop(self.key, None) is not None:
            logger.info("Session token cleared key=%s", self.key)

    def __bool__(self) -> bool:
        return self.get() is not None
