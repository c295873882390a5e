"""HTTP client with retry/backoff and request metrics."""
from __future__ import annotations

import logging
import random
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests

from .cache import TTLCache, make_request_cache_key

logger = logging.getLogger(__name__)

REQUEST_KINDS = ("places", "routes", "geocode", "ratings")
RETRYABLE_STATUSES = (429, 500, 502, 503, 504)


class MissingApiKeyError(ValueError):
    pass


@dataclass
class RequestMetrics:
    network: Dict[str, int] = field(default_factory=lambda: {k: 0 for k in REQUEST_KINDS})
    cache_hits: Dict[str, int] = field(default_factory=lambda: {k: 0 for k in REQUEST_KINDS})
    failures: Dict[str, int] = field(default_factory=lambda: {k: 0 for k in REQUEST_KINDS})
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def _inc(self, counters: Dict[str, int], kind: str) -> None:
        if kind not in counters:
            raise ValueError(f"Unknown request kind: {kind}")
        with self._lock:
            counters[kind] += 1

    def inc_network(self, kind: str) -> None:
        self._inc(self.network, kind)

    def inc_cache_hit(self, kind: str) -> None:
        self._inc(self.cache_hits, kind)

    def inc_failure(self, kind: str) -> None:
        self._inc(self.failures, kind)

    def as_dict(self) -> Dict[str, Dict[str, int]]:
        with self._lock:
            return {
                "network": dict(self.network),
                "cache_hits": dict(self.cache_hits),
                "failures": dict(self.failures),
            }


class HttpClient:
    def __init__(
        self,
        timeout: int = 20,
        retry_max: int = 3,
        backoff_base: float = 1.0,
        backoff_max: float = 8.0,
    ) -> None:
        self.timeout = timeout
        self.retry_max = retry_max
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self.session = requests.Session()

    def get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        extra_headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        headers = {"Accept": "application/json"}
        if extra_headers:
            headers.update(extra_headers)

        for attempt in range(1, self.retry_max + 1):
            try:
                resp = self.session.get(url, params=params, headers=headers, timeout=self.timeout)
            except requests.RequestException as exc:
                logger.warning("Request to %s failed (attempt %s): %s", url, attempt, exc)
                if attempt >= self.retry_max:
                    raise
                self._sleep_backoff(attempt)
                continue

            status = resp.status_code
            if status == 200:
                try:
                    return resp.json()
                except ValueError:
                    logger.error("Non-JSON response from %s", url)
                    raise

            if status in RETRYABLE_STATUSES:
                logger.warning("HTTP %s from %s (attempt %s)", status, url, attempt)
                if attempt >= self.retry_max:
                    resp.raise_for_status()
                if not self._sleep_retry_after(resp):
                    self._sleep_backoff(attempt)
                continue

            # Non-retryable
            logger.error("HTTP %s from %s", status, url)
            resp.raise_for_status()

        raise RuntimeError("Unexpected HTTP retry loop exit")

    def close(self) -> None:
        self.session.close()

    def _sleep_backoff(self, attempt: int) -> None:
        base = min(self.backoff_base * (2 ** (attempt - 1)), self.backoff_max)
        jitter = random.uniform(0, self.backoff_base)
        time.sleep(base + jitter)

    def _sleep_retry_after(self, resp: requests.Response) -> bool:
        retry_after = resp.headers.get("Retry-After")
        if not retry_after:
            return False
        try:
            delay = float(retry_after)
        except ValueError:
            return False
        delay = max(0.0, min(delay, self.backoff_max))
        time.sleep(delay)
        return True


class CachedJsonClient:
    """Base for provider clients: GET JSON through an optional response cache."""

    kind = "places"
    api_key_param = "apiKey"

    def __init__(
        self,
        http_client: HttpClient,
        api_key: Optional[str],
        cache: Optional[TTLCache] = None,
        no_cache: bool = False,
        metrics: Optional[RequestMetrics] = None,
    ) -> None:
        if not api_key:
            raise MissingApiKeyError(f"API key is required for {type(self).__name__}")
        self.http = http_client
        self.api_key = api_key
        self.cache = cache
        self.no_cache = no_cache
        self.metrics = metrics

    def fetch_json(self, url: str, params: Dict[str, Any], kind: Optional[str] = None) -> Any:
        kind = kind or self.kind
        key = make_request_cache_key(url, params)
        use_cache = self.cache is not None and not self.no_cache
        if use_cache:
            cached = self.cache.get(key)
            if cached is not None:
                if self.metrics is not None:
                    self.metrics.inc_cache_hit(kind)
                return cached

        if self.metrics is not None:
            self.metrics.inc_network(kind)
        try:
            response = self.http.get_json(url, params=self._with_key(params))
        except Exception:
            if self.metrics is not None:
                self.metrics.inc_failure(kind)
            raise
        if use_cache and response is not None:
            self.cache.set(key, response)
        return response

    def _with_key(self, params: Dict[str, Any]) -> Dict[str, Any]:
        out = dict(params)
        out[self.api_key_param] = self.api_key
        return out
