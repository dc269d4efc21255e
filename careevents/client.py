"""
client.py - CareEventsClient facade.

Wires one ApiClient (transport, token store, auth-change emitter) to the
auth API, the three resource clients and chat polling.

Usage:
    settings = ClientSettings(base_url="https://care.example", client="app")
    async with CareEventsClient(settings) as client:
        envelope = await client.auth.login({"email": "...", "password": "..."})
        elders = (await client.elders.list()).unwrap()
"""
import logging
from typing import Optional

import httpx

from careevents.auth.api import AuthApi
from careevents.auth.events import AuthChangeEmitter
from careevents.config import ClientSettings
from careevents.polling import ChatPoller, UpdateCallback
from careevents.resources.chat import ChatClient, ChatThread
from careevents.resources.elders import EldersClient
from careevents.resources.events import EventsClient
from careevents.session import SessionTokenStore
from careevents.transport import ApiClient, CsrfTokenProvider

logger = logging.getLogger(__name__)


class CareEventsClient:

    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        http: Optional[httpx.AsyncClient] = None,
        token_store: Optional[SessionTokenStore] = None,
        auth_events: Optional[AuthChangeEmitter] = None,
        csrf_token_provider: Optional[CsrfTokenProvider] = None,
    ) -> None:
        self.settings = settings or ClientSettings()
        self.api = ApiClient(
            self.settings,
            http=http,
            transport=transport,
            token_store=token_store,
            auth_events=auth_events,
            csrf_token_provider=csrf_token_provider,
        )
        self.auth = AuthApi(self.api)
        self.elders = EldersClient(self.api)
        self.events = EventsClient(self.api)
        self.chat = ChatClient(self.api)
        logger.debug(
            "CareEventsClient ready base_url=%s client=%s",
            self.settings.base_url, self.settings.client.value,
        )

    @property
    def token_store(self) -> SessionTokenStore:
        return self.api.token_store

    @property
    def auth_events(self) -> AuthChangeEmitter:
        return self.api.auth_events

    def poller(
        self,
        thread: ChatThread,
        on_update: UpdateCallback,
        interval: Optional[float] = None,
    ) -> ChatPoller:
        """Create (not start) a poller for one chat thread."""
        return ChatPoller(
            self.chat,
            thread,
            on_update,
            interval if interval is not None else self.settings.chat_poll_interval_seconds,
        )

    async def aclose(self) -> None:
        await self.api.aclose()

    async def __aenter__(self) -> "CareEventsClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
