import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from hostrelay import HostRelay
from hostrelay.forwarder import Forwarder
from hostrelay.rate_limiter import RateLimiter


CONFIG_KEYS = (
    "ALLOWED_HOSTS",
    "CLIENT_IP_ALLOWLIST",
    "CORS_ALLOWED_ORIGINS",
    "RATE_LIMIT",
    "RATE_WINDOW_MS",
    "PROXY_CLIENT_TIMEOUT_SECS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in CONFIG_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def anyio_backend():
    return 'asyncio'


@pytest.fixture
def upstream_requests():
    return []


@pytest.fixture
def make_client(upstream_requests):
    def default_handler(request: httpx.Request):
        return httpx.Response(200, json={"ok": True})

    def factory(handler=default_handler, limit=100, window_ms=60000):
        def recording_handler(request: httpx.Request):
            upstream_requests.append(request)
            return handler(request)

        relay = HostRelay(
            rate_limiter=RateLimiter(limit, window_ms),
            forwarder=Forwarder(transport=httpx.MockTransport(recording_handler)),
        )
        app = FastAPI()
        relay.to_fastapi(app)
        return TestClient(app)

    return factory
