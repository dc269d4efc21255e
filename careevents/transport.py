"""
transport.py - Authenticated request layer shared by every CareEvents call.

Components:
  ApiResponse             - status + parsed payload of one exchange
  ApiClient.build_request - headers, body encoding, CSRF / session credentials
  ApiClient.fetch         - send + parse + session-signal processing
  ApiClient.request       - fetch + final classification (payload or raise)

Response interpretation (applies to EVERY response, not just auth calls):
  1. Empty body -> no payload. Unparseable body -> no payload (warning if 2xx).
  2. Payload object with status 410          -> session token cleared
     Payload object with meta.session_token  -> token stored (overwrites)
     Status 401/410, or 200 + is_authenticated -> auth change emitted
  3. Non-2xx with payload -> payload returned, caller inspects it
     Non-2xx without payload -> BackendError
     2xx -> payload (or None)

All of this runs on one event loop with no locks: a token rotated by one
response is visible to the next request built, whichever task builds it.
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

import httpx

from careevents.auth.events import AuthChangeEmitter
from careevents.auth.schemas import Envelope
from careevents.auth.urls import AuthURLs
from careevents.config import ClientMode, ClientSettings
from careevents.errors import BackendError, NetworkError
from careevents.session import SessionTokenStore

logger = logging.getLogger(__name__)

CsrfTokenProvider = Callable[[], Optional[str]]

JSON_CONTENT_TYPE = "application/json"


@dataclass(frozen=True)
class ApiResponse:
    """One interpreted exchange. payload is None when the body was empty or not JSON."""
    status_code: int
    reason_phrase: str
    payload: Any = None
    url: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class ApiClient:
    """
    Session-aware HTTP client for the first-party REST API and the auth API.

    settings, token store and auth-change emitter are all per instance, so
    two clients in one process never share credentials.
    """

    def __init__(
        self,
        settings: ClientSettings,
        *,
        http: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        token_store: Optional[SessionTokenStore] = None,
        auth_events: Optional[AuthChangeEmitter] = None,
        csrf_token_provider: Optional[CsrfTokenProvider] = None,
    ) -> None:
        self.settings = settings
        self.http = http or httpx.AsyncClient(
            transport=transport,
            timeout=settings.request_timeout_seconds,
        )
        self.token_store = token_store or SessionTokenStore(key=settings.session_token_storage_key)
        self.auth_events = auth_events or AuthChangeEmitter()
        self.urls = AuthURLs.from_settings(settings)
        self._base_url = httpx.URL(settings.base_url)
        self._csrf_token_provider = csrf_token_provider or self._csrf_token_from_cookies

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        await self.http.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Request construction
    # ------------------------------------------------------------------

    def resolve(self, path: str) -> httpx.URL:
        """Join path onto base_url. Absolute URLs pass through unchanged."""
        return self._base_url.join(path)

    def build_request(
        self,
        method: str,
        path: str,
        data: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        *,
        files: Optional[Mapping[str, Any]] = None,
        form: Optional[Mapping[str, Any]] = None,
    ) -> httpx.Request:
        """
        Build the outbound request. Never raises.

        data is JSON-encoded; files/form produce a multipart body instead and
        data is ignored. Caller headers are applied last and win over defaults.
        """
        url = self.resolve(path)
        request_headers = httpx.Headers({"Accept": JSON_CONTENT_TYPE})

        if url.path != self.urls.config:
            for name, value in self._credential_headers().items():
                request_headers[name] = value

        content: Optional[bytes] = None
        multipart = files is not None or form is not None
        if not multipart and data is not None:
            content = json.dumps(data, separators=(",", ":")).encode("utf-8")
            request_headers["Content-Type"] = JSON_CONTENT_TYPE

        for name, value in (headers or {}).items():
            request_headers[name] = value

        return httpx.Request(
            method.upper(),
            url,
            headers=request_headers,
            content=content,
            data=dict(form) if form is not None else None,
            files=dict(files) if files is not None else None,
            cookies=self.http.cookies if self._sends_cookies(url) else None,
        )

    def _credential_headers(self) -> Dict[str, str]:
        settings = self.settings
        if settings.client == ClientMode.browser:
            csrf_token = self._csrf_token_provider()
            if csrf_token:
                return {settings.csrf_header_name: csrf_token}
            logger.debug("No CSRF token available; sending request without %s", settings.csrf_header_name)
            return {}

        # ClientMode.app
        credential_headers = {"User-Agent": settings.app_user_agent}
        session_token = self.token_store.get()
        if session_token:
            credential_headers[settings.session_token_header_name] = session_token
        return credential_headers

    def _csrf_token_from_cookies(self) -> Optional[str]:
        # Iterate the jar rather than Cookies.get(), which raises CookieConflict
        # when the same name is set for several domains.
        for cookie in self.http.cookies.jar:
            if cookie.name == self.settings.csrf_cookie_name:
                return cookie.value
        return None

    def _sends_cookies(self, url: httpx.URL) -> bool:
        same_origin = (
            url.scheme == self._base_url.scheme
            and url.host == self._base_url.host
            and url.port == self._base_url.port
        )
        return same_origin or self.settings.with_credentials

    # ------------------------------------------------------------------
    # Transport + interpretation
    # ------------------------------------------------------------------

    async def fetch(
        self,
        method: str,
        path: str,
        data: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        *,
        files: Optional[Mapping[str, Any]] = None,
        form: Optional[Mapping[str, Any]] = None,
    ) -> ApiResponse:
        """Send one request and interpret the response without classifying it."""
        request = self.build_request(method, path, data, headers, files=files, form=form)
        try:
            response = await self.http.send(request)
        except httpx.TransportError as exc:
            logger.error("Network error in request %s %s: %s", request.method, request.url.path, exc)
            raise NetworkError(request.method, str(request.url), exc) from exc

        logger.debug("%s %s -> %d", request.method, request.url.path, response.status_code)
        return self._interpret(request, response)

    async def request(
        self,
        method: str,
        path: str,
        data: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        *,
        files: Optional[Mapping[str, Any]] = None,
        form: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """
        Send a request and return the parsed payload.

        A non-2xx response with a JSON body is returned, not raised: the body
        carries the backend's own status/detail. Raises BackendError only when
        a non-2xx response has no parseable body, NetworkError when no
        response arrived at all.
        """
        response = await self.fetch(method, path, data, headers, files=files, form=form)
        if not response.ok:
            if response.payload is not None:
                return response.payload
            logger.error("HTTP error %d for %s. No JSON body.", response.status_code, response.url)
            raise BackendError(response.status_code, response.reason_phrase, response.url)
        return response.payload

    def _interpret(self, request: httpx.Request, response: httpx.Response) -> ApiResponse:
        payload = self._parse_body(request, response)
        envelope = Envelope.from_payload(payload)
        if envelope is not None:
            self._apply_session_signals(envelope, payload)
        return ApiResponse(
            status_code=response.status_code,
            reason_phrase=response.reason_phrase,
            payload=payload,
            url=str(request.url),
        )

    def _parse_body(self, request: httpx.Request, response: httpx.Response) -> Any:
        text = response.text
        if not text:
            return None  # 204-style no content
        try:
            return json.loads(text)
        except ValueError as exc:
            if response.is_success:
                logger.warning(
                    "Response was OK but failed to parse as JSON: %s %s (%s)",
                    request.method, request.url.path, exc,
                )
            return None

    def _apply_session_signals(self, envelope: Envelope, payload: Any) -> None:
        if envelope.is_session_gone:
            self.token_store.clear()
        if envelope.session_token:
            self.token_store.set(envelope.session_token)
        if envelope.signals_auth_change:
            logger.info(
                "Auth change status=%s is_authenticated=%s",
                envelope.status, envelope.is_authenticated,
            )
            self.auth_events.emit(payload)
