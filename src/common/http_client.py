"""Shared HTTP helpers used by registry clients.

Encapsulates timeout, retry and caching so callers get a plain
``(status_code, headers, body)`` tuple and never see a transport exception.
Responses are cached only in a ``ResponseCache`` the caller owns, so nothing
outlives the client that created it.
"""
from __future__ import annotations

import json
import logging
import threading
import time
from typing import Any, Dict, Optional, Tuple

import requests

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)

Response = Tuple[int, Dict[str, str], str]


def _get_cache_key(method: str, url: str, headers: Optional[Dict[str, str]] = None) -> str:
    """Generate cache key from request parameters."""
    headers_str = str(sorted(headers.items())) if headers else ""
    return f"{method}:{url}:{headers_str}"


class ResponseCache:
    """In-memory TTL cache of GET responses; safe to share between worker threads."""

    def __init__(self, ttl_sec: Optional[float] = None):
        self.ttl_sec = Constants.HTTP_CACHE_TTL_SEC if ttl_sec is None else ttl_sec
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[Response, float]] = {}

    def _expired(self, cached_time: float, now: float) -> bool:
        return now - cached_time >= self.ttl_sec

    def get(self, key: str) -> Optional[Response]:
        now = time.time()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._expired(entry[1], now):
                del self._entries[key]
                return None
            return entry[0]

    def put(self, key: str, response: Response) -> None:
        now = time.time()
        with self._lock:
            stale = [k for k, (_, cached_time) in self._entries.items() if self._expired(cached_time, now)]
            for k in stale:
                del self._entries[k]
            self._entries[key] = (response, now)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def robust_get(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    cache: Optional[ResponseCache] = None,
    **kwargs: Any
) -> Response:
    """Perform GET request with timeout, retries, and caching with DEBUG traces.

    Args:
        url: Target URL
        headers: Optional request headers
        cache: Cache to read from and store into; no caching when omitted
        **kwargs: Additional requests.get parameters

    Returns:
        Tuple of (status_code, headers_dict, body_text); status_code is 0 when
        every attempt failed at the transport level.
    """
    cache_key = _get_cache_key('GET', url, headers)
    safe_target = safe_url(url)

    entry = cache.get(cache_key) if cache is not None else None
    if entry is not None:
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP cache hit",
                extra=extra_context(
                    event="cache_hit",
                    component="http_client",
                    action="GET",
                    target=safe_target
                )
            )
        return entry

    last_exception = None

    for attempt in range(Constants.HTTP_RETRY_MAX):
        if attempt:
            time.sleep(Constants.HTTP_RETRY_BASE_DELAY_SEC * (2 ** (attempt - 1)))
        with Timer() as t:
            try:
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP request",
                        extra=extra_context(
                            event="http_request",
                            component="http_client",
                            action="GET",
                            target=safe_target,
                            attempt=attempt + 1
                        )
                    )

                response = requests.get(
                    url,
                    timeout=Constants.REQUEST_TIMEOUT,
                    headers=headers,
                    **kwargs
                )

                result = (response.status_code, dict(response.headers), response.text)
                if response.status_code >= 500:
                    last_exception = f"HTTP {response.status_code}"
                    logger.debug("Server error from %s, retrying", safe_target)
                    continue

                if cache is not None:
                    cache.put(cache_key, result)

                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP response ok",
                        extra=extra_context(
                            event="http_response",
                            component="http_client",
                            action="GET",
                            outcome="success",
                            status_code=response.status_code,
                            duration_ms=t.duration_ms(),
                            target=safe_target
                        )
                    )
                return result

            except requests.Timeout:
                last_exception = "timeout"
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP timeout",
                        extra=extra_context(
                            event="http_exception",
                            component="http_client",
                            action="GET",
                            outcome="timeout",
                            attempt=attempt + 1,
                            target=safe_target
                        )
                    )
                continue
            except requests.RequestException as exc:
                last_exception = str(exc)
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP request exception",
                        extra=extra_context(
                            event="http_exception",
                            component="http_client",
                            action="GET",
                            outcome="request_exception",
                            attempt=attempt + 1,
                            target=safe_target
                        )
                    )
                continue

    logger.warning(
        "GET %s failed after %d attempts: %s",
        safe_target,
        Constants.HTTP_RETRY_MAX,
        last_exception,
    )
    return 0, {}, f"Request failed after {Constants.HTTP_RETRY_MAX} attempts: {last_exception}"


def get_json(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    cache: Optional[ResponseCache] = None,
    **kwargs: Any
) -> Tuple[int, Dict[str, str], Optional[Any]]:
    """Perform GET request and parse JSON response with DEBUG traces.

    Args:
        url: Target URL
        headers: Optional request headers
        cache: Optional response cache passed to robust_get
        **kwargs: Additional requests.get parameters

    Returns:
        Tuple of (status_code, headers_dict, parsed_json_or_none)
    """
    status_code, response_headers, text = robust_get(url, headers=headers, cache=cache, **kwargs)

    if status_code == 200 and text:
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            logger.debug(
                "JSON decode error",
                extra=extra_context(
                    event="parse",
                    component="http_client",
                    action="get_json",
                    outcome="json_decode_error",
                    status_code=status_code,
                    target=safe_url(url)
                )
            )
            return status_code, response_headers, None
        return status_code, response_headers, parsed

    return status_code, response_headers, None
