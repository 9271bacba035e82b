"""
Cached, rate-limited, retrying fetch of a single remote resource.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import json
import logging
import threading
import time

import requests

from .cache_store import CacheStore
from .config import FetcherConfig
from .endpoints import PROVIDER_FMP, FetchRequest
from .errors import FetchError
from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

# The remote API reports errors in-band with HTTP 200
ERROR_MARKER = "Error Message"


class FetchStatus(Enum):
    CACHED = "cached"
    FETCHED = "fetched"
    TRANSIENT_FAILURE = "transient_failure"
    SEMANTIC_FAILURE = "semantic_failure"


@dataclass(frozen=True)
class FetchOutcome:
    status: FetchStatus
    data: bytes | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status in (FetchStatus.CACHED, FetchStatus.FETCHED)


class RetryingFetcher:
    def __init__(
        self,
        config: FetcherConfig,
        store: CacheStore,
        *,
        limiter: RateLimiter | None = None,
        session: requests.Session | None = None,
    ):
        self.config = config
        self.store = store
        self.limiter = limiter or RateLimiter.per_minute(config.rate_limit_per_minute)
        self._session = session or requests.Session()
        self._counter_lock = threading.Lock()
        self.network_requests = 0
        self.cache_hits = 0

    def build_url(self, request: FetchRequest) -> tuple[str, dict[str, str]]:
        if request.provider == PROVIDER_FMP:
            params = {"apikey": self.config.require_api_key()}
            base_url = self.config.base_url
        else:
            params = {"access_key": self.config.fx_access_key} if self.config.fx_access_key else {}
            base_url = self.config.fx_base_url
        params.update(request.params())
        return f"{base_url.rstrip('/')}{request.path}", params

    def _count(self, *, network: bool) -> None:
        with self._counter_lock:
            if network:
                self.network_requests += 1
            else:
                self.cache_hits += 1

    def attempt(self, request: FetchRequest) -> FetchOutcome:
        """One try: cached bytes, or a single rate-limited remote call."""
        if self.store.exists(request.key):
            self._count(network=False)
            return FetchOutcome(FetchStatus.CACHED, data=self.store.read(request.key))

        url, params = self.build_url(request)
        self.limiter.acquire()
        self._count(network=True)
        logger.debug(f"GET {url} key={request.key}")
        try:
            res = self._session.get(url, params=params, timeout=self.config.request_timeout_seconds)
        except requests.RequestException as e:
            return FetchOutcome(FetchStatus.TRANSIENT_FAILURE, error=f"{type(e).__name__}: {e}")

        if not 200 <= res.status_code < 300:
            return FetchOutcome(FetchStatus.TRANSIENT_FAILURE, error=f"HTTP error: {res.status_code} {res.text[:200]}")

        text = res.text
        if ERROR_MARKER in text:
            return FetchOutcome(FetchStatus.SEMANTIC_FAILURE, error=f"API error: {text[:200]}")
        try:
            json.loads(text)
        except ValueError as e:
            return FetchOutcome(FetchStatus.TRANSIENT_FAILURE, error=f"invalid JSON body: {e}")

        data = text.encode("utf-8")
        try:
            self.store.write(request.key, data)
        except OSError as e:
            return FetchOutcome(FetchStatus.TRANSIENT_FAILURE, error=f"cache write failed: {e}")
        return FetchOutcome(FetchStatus.FETCHED, data=data)

    def fetch(self, request: FetchRequest) -> bytes:
        """
        Cached-or-fetched bytes for `request`.

        Failures are retried up to `max_attempts` with a fixed delay. Raises
        FetchError when every attempt failed; nothing is cached in that case.
        """
        last: FetchOutcome | None = None
        for attempt in range(1, self.config.max_attempts + 1):
            last = self.attempt(request)
            if last.ok:
                return last.data
            logger.warning(
                f"attempt {attempt}/{self.config.max_attempts} failed for {request.path} "
                f"({last.status.value}): {last.error}"
            )
            if attempt < self.config.max_attempts:
                time.sleep(self.config.retry_delay_seconds)

        raise FetchError(
            key=request.key,
            path=request.path,
            attempts=self.config.max_attempts,
            last_error=last.error if last else None,
        )

    def fetch_json(self, request: FetchRequest):
        return json.loads(self.fetch(request))
