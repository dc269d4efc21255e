"""
events.py - In-process auth-change notification.

The response interpreter publishes here whenever an envelope signals a login,
logout or session expiry; UI code (or any other consumer) subscribes to react
without polling the session endpoint.

Delivery rules:
  - emit() is synchronous: every listener registered at call time has run
    before it returns
  - listeners run in registration order
  - no replay: a listener added after an emit never sees that payload
  - a listener that raises is logged and the remaining listeners still run
"""
import logging
from typing import Any, Callable, List

logger = logging.getLogger(__name__)

AUTH_CHANGE_EVENT = "allauth.auth.change"

AuthChangeListener = Callable[[Any], None]


class AuthChangeEmitter:
    """Publish/subscribe point for auth envelopes, owned by one client."""

    def __init__(self, name: str = AUTH_CHANGE_EVENT) -> None:
        self.name = name
        self._listeners: List[AuthChangeListener] = []

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: AuthChangeListener) -> Callable[[], None]:
        """Register listener; returns a callable that unregisters it."""
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: AuthChangeListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass  # already gone

    def emit(self, payload: Any) -> None:
        # Snapshot so a listener unsubscribing itself does not skip its neighbour
        listeners = list(self._listeners)
        logger.debug("Dispatching %s to %d listener(s)", self.name, len(listeners))
        for listener in listeners:
            try:
                listener(payload)
            except Exception:
                logger.exception("Auth change listener %r failed", listener)
