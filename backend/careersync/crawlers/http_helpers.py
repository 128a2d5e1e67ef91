from __future__ import annotations
import asyncio
import logging
import time
from typing import Any

from bs4 import BeautifulSoup
import httpx

from careersync.core.config import settings

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Accept": "application/json"}


def build_client(timeout: float | None = None, **kwargs: Any) -> httpx.AsyncClient:
    headers = {"User-Agent": settings.user_agent}
    headers.update(kwargs.pop("headers", {}))
    return httpx.AsyncClient(
        timeout=timeout or settings.fetch_timeout_s,
        follow_redirects=True,
        headers=headers,
        **kwargs,
    )


async def get_json(
    client: httpx.AsyncClient,
    url: str,
    timeout: float | None = None,
    **kwargs: Any,
) -> Any | None:
    """GET a JSON document; None on any transport error, non-2xx or undecodable body."""
    try:
        resp = await client.get(url, headers=JSON_HEADERS, timeout=timeout or settings.probe_timeout_s, **kwargs)
    except httpx.HTTPError as exc:
        logger.debug("GET %s failed: %s", url, exc)
        return None
    if not resp.is_success:
        logger.debug("GET %s -> HTTP %s", url, resp.status_code)
        return None
    try:
        return resp.json()
    except ValueError:
        logger.debug("GET %s returned non-JSON body", url)
        return None


async def post_json(
    client: httpx.AsyncClient,
    url: str,
    payload: dict[str, Any],
    timeout: float | None = None,
) -> Any | None:
    try:
        resp = await client.post(url, json=payload, headers=JSON_HEADERS, timeout=timeout or settings.probe_timeout_s)
    except httpx.HTTPError as exc:
        logger.debug("POST %s failed: %s", url, exc)
        return None
    if not resp.is_success:
        logger.debug("POST %s -> HTTP %s", url, resp.status_code)
        return None
    try:
        return resp.json()
    except ValueError:
        logger.debug("POST %s returned non-JSON body", url)
        return None


async def get_text(
    client: httpx.AsyncClient,
    url: str,
    timeout: float | None = None,
    accept: str = "text/html",
) -> httpx.Response | None:
    """GET a text document; the response is returned only when it is 2xx."""
    try:
        resp = await client.get(url, headers={"Accept": accept}, timeout=timeout or settings.probe_timeout_s)
    except httpx.HTTPError as exc:
        logger.debug("GET %s failed: %s", url, exc)
        return None
    if not resp.is_success:
        logger.debug("GET %s -> HTTP %s", url, resp.status_code)
        return None
    return resp


async def require_json(client: httpx.AsyncClient, url: str, **kwargs: Any) -> Any:
    """Strict variant used for known accounts: raises instead of returning None."""
    resp = await client.get(url, headers=JSON_HEADERS, timeout=settings.fetch_timeout_s, **kwargs)
    resp.raise_for_status()
    return resp.json()


def soup_of(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


class MinIntervalLimiter:
    """Spaces successive requests of one adapter at least ``interval`` seconds apart."""

    def __init__(self, interval: float):
        self.interval = interval
        self._lock: asyncio.Lock | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._last = 0.0

    def _get_lock(self) -> asyncio.Lock:
        # Adapters outlive event loops (module-level registry), the lock must not.
        loop = asyncio.get_running_loop()
        if self._lock is None or self._loop is not loop:
            self._lock = asyncio.Lock()
            self._loop = loop
        return self._lock

    async def wait(self) -> None:
        async with self._get_lock():
            delay = self._last + self.interval - time.monotonic()
            if delay > 0:
                await asyncio.sleep(delay)
            self._last = time.monotonic()
