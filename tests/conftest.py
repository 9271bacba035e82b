from __future__ import annotations

import json
from urllib.parse import urlsplit

import pytest
import requests

from findata_fetcher.cache_store import CacheStore
from findata_fetcher.config import FetcherConfig
from findata_fetcher.fetcher import RetryingFetcher


FMP_TEST_URL = "https://fmp.test"
FX_TEST_URL = "https://fx.test"


class FakeResponse:
    def __init__(self, text: str = "[]", *, status_code: int = 200):
        self.status_code = int(status_code)
        self.text = text


class FakeSession:
    """
    Stands in for requests.Session.

    `routes` maps a URL path to a body string, a FakeResponse, an exception instance,
    a callable taking the query params and returning one of those, or a list of
    those consumed one per call (the last one repeats).
    """

    def __init__(self, routes: dict | None = None, *, default=None):
        self.routes = dict(routes or {})
        self.default = default
        self.calls: list[dict] = []

    def get(self, url, params=None, timeout=None):
        path = urlsplit(url).path
        self.calls.append({"url": url, "path": path, "params": dict(params or {}), "timeout": timeout})
        handler = self.routes.get(path, self.default)
        if isinstance(handler, list):
            handler = handler.pop(0) if len(handler) > 1 else handler[0]
        if callable(handler):
            handler = handler(dict(params or {}))
        if handler is None:
            return FakeResponse("not found", status_code=404)
        if isinstance(handler, Exception):
            raise handler
        if isinstance(handler, FakeResponse):
            return handler
        return FakeResponse(handler)

    def paths(self) -> list[str]:
        return [c["path"] for c in self.calls]


def make_config(base_folder, **overrides) -> FetcherConfig:
    values = {
        "base_folder": str(base_folder),
        "api_key": "test-key",
        "base_url": FMP_TEST_URL,
        "fx_base_url": FX_TEST_URL,
        "rate_limit_per_minute": 0,  # disable limiter sleeps for tests
        "retry_delay_seconds": 0.0,
    }
    values.update(overrides)
    return FetcherConfig(**values)


@pytest.fixture
def store(tmp_path) -> CacheStore:
    return CacheStore(str(tmp_path / "cache"))


@pytest.fixture
def make_fetcher(store):
    def _make(session: FakeSession, **overrides) -> RetryingFetcher:
        return RetryingFetcher(make_config(store.root, **overrides), store, session=session)

    return _make


def write_profile(store: CacheStore, symbol: str, **fields) -> None:
    record = {"symbol": symbol}
    record.update(fields)
    store.write(f"fundamentals/{symbol}/profile.json", json.dumps([record]).encode("utf-8"))


@pytest.fixture
def connection_error():
    return requests.ConnectionError("connection reset")
