"""
Test configuration for the CareEvents client tests.

sys.path is configured so both import styles resolve:
  - 'from careevents...'     (package under test, project root on the path)
  - 'from sample_records...' (shared fixtures data, this directory on the path)

No live backend is needed: every client talks to a MockBackend through
httpx.MockTransport.
"""
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import httpx
import pytest
import pytest_asyncio

_tests_dir = Path(__file__).parent                 # .../careevents/tests/
_project_root = _tests_dir.parent.parent           # .../

for _path in (_project_root, _tests_dir):
    if str(_path) not in sys.path:
        sys.path.insert(0, str(_path))

from careevents.client import CareEventsClient  # noqa: E402
from careevents.config import ClientMode, ClientSettings  # noqa: E402

BASE_URL = "http://testserver"

Responder = Union[httpx.Response, Callable[[httpx.Request], Any], BaseException]


class MockBackend:
    """
    Route table for httpx.MockTransport.

    Each (METHOD, path) route holds a queue of responders; the last one
    repeats once the queue is down to it. A responder is an httpx.Response,
    a (sync or async) callable taking the request, or an exception to raise.
    Every request that reaches the transport is recorded in .requests.
    """

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.routes: Dict[Tuple[str, str], List[Responder]] = {}

    def add(
        self,
        method: str,
        path: str,
        status: int = 200,
        json: Any = None,
        *,
        content: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
        responder: Optional[Responder] = None,
    ) -> None:
        if responder is None:
            if json is not None:
                responder = httpx.Response(status, json=json, headers=headers)
            else:
                responder = httpx.Response(status, content=content or b"", headers=headers)
        self.routes.setdefault((method.upper(), path), []).append(responder)

    def requests_to(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method.upper() and r.url.path == path]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"detail": "Not found."})
        responder = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(responder, BaseException):
            raise responder
        if isinstance(responder, httpx.Response):
            # Responses are single-use once read; hand out a fresh copy
            return httpx.Response(
                responder.status_code,
                content=responder.content,
                headers=responder.headers,
            )
        result = responder(request)
        if hasattr(result, "__await__"):
            result = await result
        return result


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def backend() -> MockBackend:
    return MockBackend()


@pytest.fixture
def browser_settings() -> ClientSettings:
    return ClientSettings(base_url=BASE_URL, client=ClientMode.browser)


@pytest.fixture
def app_settings() -> ClientSettings:
    return ClientSettings(base_url=BASE_URL, client=ClientMode.app)


@pytest_asyncio.fixture
async def client(backend: MockBackend, browser_settings: ClientSettings):
    """Browser-mode client with a CSRF cookie already in its jar."""
    async with CareEventsClient(browser_settings, transport=httpx.MockTransport(backend)) as ac:
        ac.api.http.cookies.set("csrftoken", "csrf-test-token")
        yield ac


@pytest_asyncio.fixture
async def app_client(backend: MockBackend, app_settings: ClientSettings):
    """App-mode client: session token header instead of CSRF."""
    async with CareEventsClient(app_settings, transport=httpx.MockTransport(backend)) as ac:
        yield ac
