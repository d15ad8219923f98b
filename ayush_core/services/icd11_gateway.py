"""Authenticated async client for the WHO ICD-11 API.

Tokens come either from an operator-supplied ``MANUAL_TOKEN`` or from the
client-credentials grant, and are cached until shortly before they expire.
Successful GET responses are cached per URL for a short TTL to bound WHO call
volume.  Both caches are owned by the gateway instance and take an injected
clock, so nothing here is module-global.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import Any, Callable, Mapping, Optional
from urllib.parse import urlencode

import httpx

from ayush_core.core.config import Settings
from ayush_core.core.exceptions import UpstreamUnavailableError
from ayush_core.models.terminology import IcdEntity
from ayush_core.repositories.record_adapters import icd_entity_from_payload

logger = logging.getLogger(__name__)

Clock = Callable[[], float]

_BEARER_PREFIX_RE = re.compile(r"^Bearer\s*", re.IGNORECASE)

WHO_HEADERS = {
    "API-Version": "v2",
    "Accept": "application/json",
    "Accept-Language": "en",
}


class TTLCache:
    """Key/value store whose entries expire ``ttl_seconds`` after being written."""

    def __init__(self, ttl_seconds: float, clock: Clock = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}

    def get(self, key: str) -> Any | None:
        item = self._entries.get(key)
        if item is None:
            return None
        expires_at, value = item
        if self._clock() > expires_at:
            self._entries.pop(key, None)
            return None
        return value

    def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        now = self._clock()
        self._purge_expired(now)
        self._entries[key] = (now + ttl, value)

    def _purge_expired(self, now: float) -> None:
        expired = [k for k, (expires_at, _) in self._entries.items() if now > expires_at]
        for k in expired:
            del self._entries[k]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class AccessTokenProvider:
    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        token_url: str,
        client_id: str = "",
        client_secret: str = "",
        scope: str = "icdapi_access",
        manual_token: str = "",
        expiry_margin_seconds: float = 20.0,
        clock: Clock = time.monotonic,
    ) -> None:
        self._client = client
        self._token_url = token_url
        self._client_id = client_id
        self._client_secret = client_secret
        self._scope = scope
        self._manual_token = _BEARER_PREFIX_RE.sub("", manual_token or "").strip()
        self._expiry_margin = expiry_margin_seconds
        self._clock = clock
        self._token: Optional[str] = None
        self._expires_at = 0.0

    async def get_token(self) -> str:
        if self._manual_token:
            return self._manual_token
        if self._token and self._clock() < self._expires_at:
            return self._token

        if not self._client_id or not self._client_secret:
            raise UpstreamUnavailableError("No MANUAL_TOKEN or CLIENT_ID+CLIENT_SECRET configured")

        try:
            response = await self._client.post(
                self._token_url,
                data={
                    "grant_type": "client_credentials",
                    "client_id": self._client_id,
                    "client_secret": self._client_secret,
                    "scope": self._scope,
                },
            )
            response.raise_for_status()
            payload = response.json()
            token = payload["access_token"]
        except (httpx.HTTPError, ValueError, KeyError) as exc:
            logger.warning("WHO token request failed: %s", exc)
            raise UpstreamUnavailableError("Failed to fetch authentication token from WHO API") from exc

        expires_in = float(payload.get("expires_in") or 3600)
        self._token = token
        self._expires_at = self._clock() + expires_in - self._expiry_margin
        return token

    def invalidate(self) -> None:
        self._token = None
        self._expires_at = 0.0


def _cache_key(url: str, params: Mapping[str, Any] | None) -> str:
    if not params:
        return url
    return f"{url}?{urlencode(sorted((k, str(v)) for k, v in params.items()))}"


class Icd11Gateway:
    def __init__(
        self,
        settings: Settings,
        *,
        client: httpx.AsyncClient | None = None,
        cache: TTLCache | None = None,
        token_provider: AccessTokenProvider | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self._settings = settings
        self._client = client or httpx.AsyncClient(timeout=settings.who_request_timeout_seconds)
        self._cache = cache or TTLCache(settings.who_cache_ttl_seconds, clock=clock)
        self._tokens = token_provider or AccessTokenProvider(
            self._client,
            token_url=settings.who_token_url,
            client_id=settings.client_id,
            client_secret=settings.client_secret,
            scope=settings.who_token_scope,
            manual_token=settings.manual_token,
            expiry_margin_seconds=settings.token_expiry_margin_seconds,
            clock=clock,
        )

    @property
    def release_url(self) -> str:
        return self._settings.who_release_url

    async def get_token(self) -> str:
        return await self._tokens.get_token()

    async def fetch(self, url: str, params: Mapping[str, Any] | None = None) -> Any:
        """GET a WHO resource, serving from cache when fresh.

        Raises :class:`UpstreamUnavailableError` on auth, transport, timeout or
        non-2xx failures.  Failures are never cached.
        """
        key = _cache_key(url, params)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        token = await self.get_token()
        try:
            response = await self._client.get(
                url,
                params=dict(params) if params else None,
                headers={"Authorization": f"Bearer {token}", **WHO_HEADERS},
                timeout=self._settings.who_request_timeout_seconds,
            )
            if response.status_code == 401:
                self._tokens.invalidate()
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as exc:
            logger.warning("WHO request timed out url=%s", url)
            raise UpstreamUnavailableError(f"WHO API timed out for {url}") from exc
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("WHO request failed url=%s error=%s", url, exc)
            raise UpstreamUnavailableError(f"WHO API request failed for {url}") from exc

        self._cache.set(key, data)
        return data

    async def search_icd(self, term: str) -> list[IcdEntity]:
        """Search ICD-11; degrades to ``[]`` when WHO is unavailable."""
        try:
            data = await self.fetch(
                self._settings.who_search_url,
                params={
                    "q": term,
                    "useFlexisearch": "true",
                    "includeKeyword": "true",
                    "flatResults": "true",
                },
            )
        except UpstreamUnavailableError:
            logger.warning("ICD-11 search unavailable for term=%r; continuing without ICD results", term)
            return []

        hits = data.get("destinationEntities") if isinstance(data, Mapping) else None
        return [icd_entity_from_payload(hit) for hit in hits or () if isinstance(hit, Mapping)]

    async def node_title(self, url: str) -> str:
        try:
            data = await self.fetch(url)
        except UpstreamUnavailableError:
            return url
        title = data.get("title") if isinstance(data, Mapping) else None
        if isinstance(title, Mapping):
            title = title.get("@value")
        return title or url

    async def child_summaries(self, children: list[str]) -> list[dict[str, str]]:
        titles = await asyncio.gather(*(self.node_title(child) for child in children))
        return [{"id": child, "title": title} for child, title in zip(children, titles)]

    async def aclose(self) -> None:
        await self._client.aclose()
