"""Catalog resolver with a Redis cache and a last-known-good snapshot."""

from __future__ import annotations

import logging

import redis.asyncio as redis
from pydantic import ValidationError as PydanticValidationError

from src.config import settings
from src.exceptions import DependencyUnavailableException, ValidationException
from src.modules.catalog.constants import CACHE_KEY_FRESH, CACHE_KEY_LAST_GOOD
from src.modules.catalog.provider import CatalogProviderBase, get_catalog_provider
from src.modules.catalog.schemas import Catalog

logger = logging.getLogger(__name__)


class CatalogService:
    """Resolve the product catalog for pricing.

    A fresh copy is cached for ``catalog_cache_ttl`` seconds. Every successful
    fetch also refreshes a snapshot without expiry, which is served when the
    store is down. Cache failures are logged and treated as misses.
    """

    def __init__(
        self,
        provider: CatalogProviderBase | None = None,
        redis_client: redis.Redis | None = None,
        ttl: int | None = None,
    ) -> None:
        self.provider = provider or get_catalog_provider()
        self._redis = redis_client
        self.ttl = ttl if ttl is not None else settings.catalog_cache_ttl

    async def _get_redis(self) -> redis.Redis:
        if self._redis is None:
            self._redis = redis.from_url(settings.redis_url, decode_responses=True)
        return self._redis

    async def _read(self, key: str) -> Catalog | None:
        try:
            client = await self._get_redis()
            raw = await client.get(key)
        except redis.RedisError as exc:
            logger.warning("Catalog cache read failed for %s: %s", key, exc)
            return None
        if raw is None:
            return None
        try:
            return Catalog.model_validate_json(raw)
        except PydanticValidationError:
            logger.warning("Discarding unreadable catalog cache entry %s", key)
            return None

    async def _write(self, catalog: Catalog) -> None:
        payload = catalog.model_dump_json(by_alias=True)
        try:
            client = await self._get_redis()
            await client.set(CACHE_KEY_FRESH, payload, ex=self.ttl)
            await client.set(CACHE_KEY_LAST_GOOD, payload)
        except redis.RedisError as exc:
            logger.warning("Catalog cache write failed: %s", exc)

    async def resolve(self) -> tuple[Catalog, bool]:
        """Return ``(catalog, stale)``; *stale* is True when the snapshot was served.

        Raises DependencyUnavailableException when the store fails and no
        snapshot exists.
        """
        cached = await self._read(CACHE_KEY_FRESH)
        if cached is not None:
            return cached, False

        try:
            catalog = await self.provider.fetch_catalog()
        except (DependencyUnavailableException, ValidationException) as exc:
            snapshot = await self._read(CACHE_KEY_LAST_GOOD)
            if snapshot is None:
                raise DependencyUnavailableException(
                    "Catalog is unavailable and no snapshot is cached",
                    details=[{"cause": exc.code, "message": exc.message}],
                ) from exc
            logger.warning(
                "Catalog fetch failed (%s), serving last-known-good snapshot", exc.code
            )
            return snapshot, True

        await self._write(catalog)
        return catalog, False

    async def get_catalog(self) -> Catalog:
        catalog, _ = await self.resolve()
        return catalog

    async def invalidate(self) -> None:
        """Drop the fresh copy so the next read goes to the store."""
        try:
            client = await self._get_redis()
            await client.delete(CACHE_KEY_FRESH)
        except redis.RedisError as exc:
            logger.warning("Catalog cache invalidation failed: %s", exc)


def get_catalog_service() -> CatalogService:
    """FastAPI dependency."""
    return CatalogService()
