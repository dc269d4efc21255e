"""
test_transport.py - Request building and response interpretation in ApiClient.

Tests verify:
1. Credential headers per client mode, with the config endpoint exempt
2. JSON vs multipart body encoding and custom header precedence
3. Session token capture / clearing from response envelopes
4. Auth-change broadcast rules
5. Final classification: payload pass-through, BackendError, NetworkError
"""
from __future__ import annotations

import json
import logging

import httpx
import pytest

from careevents.client import CareEventsClient
from careevents.config import ClientMode, ClientSettings
from careevents.errors import BackendError, NetworkError
from careevents.transport import ApiClient
from sample_records import LOGIN_SUCCESS, NOT_AUTHENTICATED, SESSION_GONE

CONFIG_PATH = "/_allauth/browser/v1/config"
APP_CONFIG_PATH = "/_allauth/app/v1/config"


# ---------------------------------------------------------------------------
# Test Group 1: credential headers
# ---------------------------------------------------------------------------

def test_browser_mode_attaches_csrf_header(browser_settings: ClientSettings) -> None:
    api = ApiClient(browser_settings, csrf_token_provider=lambda: "csrf-123")
    request = api.build_request("post", "/api/elders/", {"name": "Jane Doe"})

    assert request.method == "POST"
    assert request.headers["X-CSRFToken"] == "csrf-123"
    assert request.headers["Accept"] == "application/json"
    assert "X-Session-Token" not in request.headers


def test_browser_mode_reads_csrf_token_from_cookie_jar(browser_settings: ClientSettings) -> None:
    api = ApiClient(browser_settings)
    api.http.cookies.set("csrftoken", "from-cookie")

    request = api.build_request("GET", "/api/events/")
    assert request.headers["X-CSRFToken"] == "from-cookie"


def test_browser_mode_without_csrf_cookie_sends_no_header(browser_settings: ClientSettings) -> None:
    api = ApiClient(browser_settings)
    request = api.build_request("GET", "/api/events/")
    assert "X-CSRFToken" not in request.headers


def test_app_mode_attaches_user_agent_and_session_token(app_settings: ClientSettings) -> None:
    api = ApiClient(app_settings)

    without_token = api.build_request("GET", "/api/elders/")
    assert without_token.headers["User-Agent"] == app_settings.app_user_agent
    assert "X-Session-Token" not in without_token.headers
    assert "X-CSRFToken" not in without_token.headers

    api.token_store.set("tok-1")
    with_token = api.build_request("GET", "/api/elders/")
    assert with_token.headers["X-Session-Token"] == "tok-1"


def test_config_endpoint_is_sent_without_credentials(
    browser_settings: ClientSettings, app_settings: ClientSettings
) -> None:
    browser_api = ApiClient(browser_settings, csrf_token_provider=lambda: "csrf-123")
    assert "X-CSRFToken" not in browser_api.build_request("GET", CONFIG_PATH).headers

    app_api = ApiClient(app_settings)
    app_api.token_store.set("tok-1")
    request = app_api.build_request("GET", APP_CONFIG_PATH)
    assert "X-Session-Token" not in request.headers
    assert request.headers.get("User-Agent") != app_settings.app_user_agent


# ---------------------------------------------------------------------------
# Test Group 2: body encoding and header precedence
# ---------------------------------------------------------------------------

def test_json_payload_sets_content_type_and_body(browser_settings: ClientSettings) -> None:
    api = ApiClient(browser_settings)
    request = api.build_request("POST", "/api/elders/", {"name": "Jane Doe", "extra_details": ""})

    assert request.headers["Content-Type"] == "application/json"
    assert request.content == b'{"name":"Jane Doe","extra_details":""}'


def test_no_payload_means_no_body_and_no_content_type(browser_settings: ClientSettings) -> None:
    api = ApiClient(browser_settings)
    request = api.build_request("GET", "/api/elders/")

    assert request.content == b""
    assert "Content-Type" not in request.headers


def test_multipart_payload_is_not_json(browser_settings: ClientSettings) -> None:
    api = ApiClient(browser_settings, csrf_token_provider=lambda: "csrf-123")
    request = api.build_request(
        "POST", "/api/elders/4/audio/",
        files={"audio_file": ("note.webm", b"\x1a\x45\xdf\xa3", "audio/webm")},
        form={"elder": "4"},
    )
    body = request.read()

    assert request.headers["Content-Type"].startswith("multipart/form-data; boundary=")
    assert b'name="audio_file"; filename="note.webm"' in body
    assert b'name="elder"' in body
    assert request.headers["X-CSRFToken"] == "csrf-123"


def test_custom_headers_override_defaults(browser_settings: ClientSettings) -> None:
    api = ApiClient(browser_settings, csrf_token_provider=lambda: "csrf-123")
    request = api.build_request(
        "GET", "/api/elders/",
        headers={"accept": "text/plain", "X-CSRFToken": "override", "X-Password-Reset-Key": "k"},
    )

    assert request.headers["Accept"] == "text/plain"
    assert request.headers.get_list("Accept") == ["text/plain"]
    assert request.headers["X-CSRFToken"] == "override"
    assert request.headers["X-Password-Reset-Key"] == "k"


def test_cross_origin_cookies_require_with_credentials() -> None:
    other = "http://files.elsewhere/upload/"

    plain = ApiClient(ClientSettings(base_url="http://testserver"))
    plain.http.cookies.set("sessionid", "abc")
    assert "Cookie" not in plain.build_request("GET", other).headers

    shared = ApiClient(ClientSettings(base_url="http://testserver", with_credentials=True))
    shared.http.cookies.set("sessionid", "abc")
    assert "sessionid=abc" in shared.build_request("GET", other).headers["Cookie"]


# ---------------------------------------------------------------------------
# Test Group 3: session token lifecycle
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_session_token_from_meta_is_stored(app_client: CareEventsClient, backend) -> None:
    backend.add("POST", "/_allauth/app/v1/auth/login", json=LOGIN_SUCCESS)

    await app_client.api.request("POST", "/_allauth/app/v1/auth/login", {"email": "a", "password": "b"})

    assert app_client.token_store.get() == "session-token-1"


@pytest.mark.asyncio
async def test_rotated_token_is_used_by_the_next_request(app_client: CareEventsClient, backend) -> None:
    backend.add("GET", "/api/elders/", json={"status": 200, "meta": {"session_token": "rotated"}})
    backend.add("GET", "/api/events/", json=[])
    app_client.token_store.set("original")

    await app_client.api.request("GET", "/api/elders/")
    await app_client.api.request("GET", "/api/events/")

    assert backend.requests[0].headers["X-Session-Token"] == "original"
    assert backend.requests[1].headers["X-Session-Token"] == "rotated"


@pytest.mark.asyncio
async def test_status_410_clears_stored_token(app_client: CareEventsClient, backend) -> None:
    backend.add("GET", "/_allauth/app/v1/auth/session", status=410, json=SESSION_GONE)
    app_client.token_store.set("stale")

    payload = await app_client.api.request("GET", "/_allauth/app/v1/auth/session")

    assert payload == SESSION_GONE
    assert app_client.token_store.get() is None


@pytest.mark.asyncio
async def test_token_signals_apply_regardless_of_http_status(app_client: CareEventsClient, backend) -> None:
    # Envelope says 410 while HTTP says 200: the envelope wins
    backend.add("GET", "/api/elders/", status=200, json={"status": 410})
    app_client.token_store.set("stale")

    await app_client.api.request("GET", "/api/elders/")
    assert app_client.token_store.get() is None


@pytest.mark.asyncio
async def test_empty_session_token_is_ignored(app_client: CareEventsClient, backend) -> None:
    backend.add("GET", "/api/elders/", json={"status": 200, "meta": {"session_token": ""}})
    app_client.token_store.set("keep-me")

    await app_client.api.request("GET", "/api/elders/")
    assert app_client.token_store.get() == "keep-me"


# ---------------------------------------------------------------------------
# Test Group 4: auth-change broadcast
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_authenticated_200_emits_exactly_one_notification(client: CareEventsClient, backend) -> None:
    backend.add("POST", "/_allauth/browser/v1/auth/login", json=LOGIN_SUCCESS)
    received = []
    client.auth_events.subscribe(received.append)

    await client.api.request("POST", "/_allauth/browser/v1/auth/login", {"email": "a", "password": "b"})

    assert received == [LOGIN_SUCCESS]


@pytest.mark.asyncio
@pytest.mark.parametrize("envelope", [NOT_AUTHENTICATED, SESSION_GONE])
async def test_401_and_410_envelopes_emit_notification(client: CareEventsClient, backend, envelope) -> None:
    backend.add("GET", "/_allauth/browser/v1/auth/session", status=envelope["status"], json=envelope)
    received = []
    client.auth_events.subscribe(received.append)

    await client.api.request("GET", "/_allauth/browser/v1/auth/session")

    assert received == [envelope]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"status": 200, "meta": {"is_authenticated": False}},
        {"status": 200, "data": {}},
        {"status": 400, "errors": []},
        [{"id": 1, "name": "Margaret Thompson"}],
        {"id": 1, "name": "Margaret Thompson", "extra_details": ""},
    ],
)
async def test_other_payloads_do_not_emit(client: CareEventsClient, backend, payload) -> None:
    backend.add("GET", "/api/elders/", json=payload)
    received = []
    client.auth_events.subscribe(received.append)

    await client.api.request("GET", "/api/elders/")
    assert received == []


# ---------------------------------------------------------------------------
# Test Group 5: classification
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_error_status_with_json_body_is_returned_not_raised(client: CareEventsClient, backend) -> None:
    body = {"status": 404, "detail": "not found"}
    backend.add("GET", "/api/elders/99/", status=404, json=body)

    payload = await client.api.request("GET", "/api/elders/99/")
    assert payload == body


@pytest.mark.asyncio
async def test_error_status_without_body_raises_backend_error(client: CareEventsClient, backend) -> None:
    backend.add("GET", "/api/elders/", status=500)

    with pytest.raises(BackendError) as exc_info:
        await client.api.request("GET", "/api/elders/")

    assert "500" in str(exc_info.value)
    assert exc_info.value.status_code == 500
    assert str(exc_info.value) == "HTTP error 500: Internal Server Error"


@pytest.mark.asyncio
async def test_error_status_with_html_body_raises_backend_error(client: CareEventsClient, backend) -> None:
    backend.add("GET", "/api/elders/", status=502, content=b"<html>Bad gateway</html>")

    with pytest.raises(BackendError, match="502"):
        await client.api.request("GET", "/api/elders/")


@pytest.mark.asyncio
async def test_empty_success_body_returns_none(client: CareEventsClient, backend) -> None:
    backend.add("DELETE", "/api/elders/1/", status=204)
    assert await client.api.request("DELETE", "/api/elders/1/") is None


@pytest.mark.asyncio
async def test_malformed_success_body_is_logged_not_raised(
    client: CareEventsClient, backend, caplog: pytest.LogCaptureFixture
) -> None:
    backend.add("GET", "/api/elders/", status=200, content=b"{not json")

    with caplog.at_level(logging.WARNING, logger="careevents.transport"):
        payload = await client.api.request("GET", "/api/elders/")

    assert payload is None
    assert "failed to parse as JSON" in caplog.text


@pytest.mark.asyncio
async def test_transport_failure_raises_network_error(client: CareEventsClient, backend) -> None:
    backend.add("GET", "/api/elders/", responder=httpx.ConnectError("connection refused"))

    with pytest.raises(NetworkError) as exc_info:
        await client.api.request("GET", "/api/elders/")

    assert isinstance(exc_info.value.cause, httpx.ConnectError)
    assert len(backend.requests) == 1  # no retry


@pytest.mark.asyncio
async def test_config_response_cookie_primes_csrf_header(backend, browser_settings: ClientSettings) -> None:
    backend.add(
        "GET", CONFIG_PATH,
        json={"status": 200, "data": {"account": {}}},
        headers={"Set-Cookie": "csrftoken=primed; Path=/"},
    )
    backend.add("POST", "/api/elders/", status=201, json={"id": 1, "name": "Jane Doe", "extra_details": ""})

    async with CareEventsClient(browser_settings, transport=httpx.MockTransport(backend)) as fresh:
        await fresh.api.request("GET", CONFIG_PATH)
        await fresh.api.request("POST", "/api/elders/", {"name": "Jane Doe", "extra_details": ""})

    config_request, create_request = backend.requests
    assert "X-CSRFToken" not in config_request.headers
    assert create_request.headers["X-CSRFToken"] == "primed"
    assert json.loads(create_request.content) == {"name": "Jane Doe", "extra_details": ""}


@pytest.mark.asyncio
async def test_two_clients_keep_separate_sessions(backend) -> None:
    backend.add("POST", "/_allauth/app/v1/auth/login", json=LOGIN_SUCCESS)
    settings = ClientSettings(base_url="http://testserver", client=ClientMode.app)

    async with CareEventsClient(settings, transport=httpx.MockTransport(backend)) as first, \
            CareEventsClient(settings, transport=httpx.MockTransport(backend)) as second:
        await first.api.request("POST", "/_allauth/app/v1/auth/login", {"email": "a", "password": "b"})

        assert first.token_store.get() == "session-token-1"
        assert second.token_store.get() is None
