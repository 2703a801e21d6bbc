"""Base class for DeFiLlama upstream sources."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, TypeVar
from urllib.parse import urlencode

import httpx

from defi_pulse.config import get_config, load_config
from defi_pulse.data_collection.fetcher import CachedFetcher, get_fetcher
from defi_pulse.utils.decorators import log_execution, retry
from defi_pulse.utils.errors import ConfigurationError, UpstreamError
from defi_pulse.utils.logging import get_logger


logger = get_logger(__name__)

T = TypeVar("T")


def cache_key(url: str, params: Optional[Dict[str, Any]] = None) -> str:
    """Request key: endpoint URL plus its sorted query parameters."""
    if not params:
        return url
    return f"{url}?{urlencode(sorted(params.items()))}"


class BaseSource(ABC):
    """Read-only JSON GET client whose requests go through a ``CachedFetcher``.

    Subclasses set ``NAME`` and ``BASE_URL_KEY`` (the config key holding the
    service's base URL) and expose typed methods built on ``_cached``.
    """

    NAME: str = "base"
    BASE_URL_KEY: str = ""
    DEFAULT_BASE_URL: str = ""

    def __init__(
        self,
        fetcher: Optional[CachedFetcher] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        try:
            cfg = get_config()
        except ConfigurationError:
            cfg = load_config()
        self.fetcher = fetcher or get_fetcher()
        self.base_url: str = (base_url or cfg.get(self.BASE_URL_KEY, self.DEFAULT_BASE_URL)).rstrip("/")
        self.timeout: float = float(timeout if timeout is not None else cfg.upstream_timeout)

    @retry(max_attempts=2, delay=0.5, exceptions=(httpx.TransportError,))
    async def _send(self, client, url: str, params: Optional[Dict[str, Any]]):
        return await client.get(url, params=params)

    @log_execution(log_args=True)
    async def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET ``url`` and parse its JSON body.

        Raises:
            UpstreamError: on network failure, non-2xx status or a body that is not JSON
        """
        resp = None
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await self._send(client, url, params)
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPStatusError as e:
            status = getattr(resp, "status_code", None)
            logger.error(
                f"{self.NAME} returned HTTP {status}",
                extra={"source": self.NAME, "url": url, "status_code": status},
            )
            raise UpstreamError(
                f"{self.NAME} returned HTTP {status} for {url}", source=self.NAME, status_code=status
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"{self.NAME} request failed: {e}", extra={"source": self.NAME, "url": url})
            raise UpstreamError(f"{self.NAME} request failed: {e}", source=self.NAME) from e
        except ValueError as e:
            logger.error(f"{self.NAME} returned invalid JSON", extra={"source": self.NAME, "url": url})
            raise UpstreamError(f"{self.NAME} returned invalid JSON for {url}", source=self.NAME) from e

    async def _cached(
        self,
        path: str,
        decode: Callable[[Any], T],
        params: Optional[Dict[str, Any]] = None,
        key_params: Optional[Dict[str, Any]] = None,
    ) -> T:
        """Fetch ``path`` through the cache, decoding before anything is stored.

        ``key_params`` replaces ``params`` in the cache key for requests whose
        query carries a moving value such as a start timestamp.
        """
        url = f"{self.base_url}{path}"

        async def source() -> T:
            payload = await self._get_json(url, params)
            return decode(payload)

        key = cache_key(url, key_params if key_params is not None else params)
        return await self.fetcher.fetch_with_cache(key, source)

    @abstractmethod
    async def health_check(self) -> bool:
        """Return True when the upstream service answers right now.

        Implementations call ``_get_json`` directly: a cached or stale value
        says nothing about whether the service is reachable.
        """
