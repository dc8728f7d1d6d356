import os
import sys
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs

import httpx
import pytest

# Allow running pytest from either the repo root or from within `backend/`.
BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

# pydantic-settings reads these when app.config.settings is first imported
os.environ.setdefault("TS_USERNAME", "barcode")
os.environ.setdefault("TS_PASSWORD", "test-pass")

from app.config.settings import Settings  # noqa: E402
from app.services.product_service import ProductService  # noqa: E402
from app.services.tsoft_auth_service import TSoftAuthService  # noqa: E402
from app.services.tsoft_service import TSoftService  # noqa: E402

LOGIN_MARKER = "/auth/login/"


class FakeClock:
    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeUpstream:
    """Stands in for T-Soft behind an httpx.MockTransport.

    Login always succeeds with ``token``; product calls pop queued bodies in
    order (an httpx.Response or an exception may be queued instead of a body)
    and answer ``{"data": []}`` once the queue is empty.
    """

    def __init__(self, product_responses=None, token: str = "tok-1", login_response=None):
        self.requests: list[httpx.Request] = []
        self.product_responses = list(product_responses or [])
        self.token = token
        self.login_response = login_response

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if LOGIN_MARKER in request.url.path:
            if self.login_response is not None:
                return self.login_response
            return httpx.Response(200, json={"data": [{"token": self.token}]})

        queued = self.product_responses.pop(0) if self.product_responses else {"data": []}
        if isinstance(queued, Exception):
            raise queued
        if isinstance(queued, httpx.Response):
            return queued
        return httpx.Response(200, json=queued)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    @property
    def login_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if LOGIN_MARKER in r.url.path]

    @property
    def product_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if LOGIN_MARKER not in r.url.path]


def request_params(request: httpx.Request) -> dict[str, str]:
    """Form body for POST, query string for GET, flattened to single values."""
    if request.method == "GET":
        return dict(request.url.params)
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


@pytest.fixture
def config() -> Settings:
    return Settings(
        _env_file=None,
        ts_base_url="https://maxstyle.com.tr",
        ts_api_prefix="/rest1",
        ts_username="barcode",
        ts_password="test-pass",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_services(config, clock):
    def _make(upstream: FakeUpstream, *, settings_override: Settings | None = None):
        cfg = settings_override or config
        auth = TSoftAuthService(cfg, transport=upstream.transport, clock=clock)
        tsoft = TSoftService(auth, cfg, transport=upstream.transport)
        return auth, tsoft, ProductService(tsoft, cfg)

    return _make
