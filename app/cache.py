"""
Redis caching utilities for the public pricing catalogue
Reduces database load on the booking flow's read-heavy endpoints
"""
import json
import logging
from typing import Any, Optional

import redis

from .config import (
    CACHE_ENABLED,
    PRICING_CACHE_TTL,
    REDIS_DB,
    REDIS_HOST,
    REDIS_PASSWORD,
    REDIS_PORT,
    REDIS_SSL,
    REDIS_URL,
)

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None


def get_redis_client() -> redis.Redis:
    """
    Get or create Redis client
    Supports both a REDIS_URL (managed Redis) and individual host settings
    """
    global redis_client

    if redis_client is None:
        logger.info("🔄 Initializing Redis connection for caching...")

        if REDIS_URL:
            client = redis.from_url(
                REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30,
            )
        else:
            client = redis.Redis(
                host=REDIS_HOST,
                port=REDIS_PORT,
                password=REDIS_PASSWORD,
                db=REDIS_DB,
                ssl=REDIS_SSL,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30,
            )

        # Test connection before keeping the client around
        client.ping()
        redis_client = client
        logger.info("Redis connected successfully")

    return redis_client


class Cache:
    """Redis cache wrapper with automatic serialization. Fails open on any Redis error."""

    def __init__(self, enabled: bool = CACHE_ENABLED):
        self.enabled = enabled
        self.redis_client = None

    def _get_client(self):
        """Lazy load Redis client"""
        if not self.enabled:
            return None
        if self.redis_client is None:
            try:
                self.redis_client = get_redis_client()
            except Exception as e:
                logger.warning(f"⚠️ Redis cache unavailable: {e}")
                return None
        return self.redis_client

    def get(self, key: str) -> Optional[Any]:
        """Get value from cache"""
        client = self._get_client()
        if not client:
            return None

        try:
            value = client.get(key)
            if value:
                logger.debug(f"✅ Cache HIT: {key}")
                return json.loads(value)
            logger.debug(f"❌ Cache MISS: {key}")
            return None
        except Exception as e:
            logger.error(f"❌ Cache get error for {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: int = 3600) -> bool:
        """Set value in cache with TTL (default 1 hour)"""
        client = self._get_client()
        if not client:
            return False

        try:
            client.setex(key, ttl, json.dumps(value))
            logger.debug(f"✅ Cache SET: {key} (TTL: {ttl}s)")
            return True
        except Exception as e:
            logger.error(f"❌ Cache set error for {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        """Delete value from cache"""
        client = self._get_client()
        if not client:
            return False

        try:
            client.delete(key)
            logger.debug(f"✅ Cache DELETE: {key}")
            return True
        except Exception as e:
            logger.error(f"❌ Cache delete error for {key}: {e}")
            return False

    def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching pattern (e.g., 'pricing:service:*')"""
        client = self._get_client()
        if not client:
            return 0

        try:
            keys = client.keys(pattern)
            if keys:
                deleted = client.delete(*keys)
                logger.debug(f"✅ Cache DELETE pattern: {pattern} ({deleted} keys)")
                return deleted
            return 0
        except Exception as e:
            logger.error(f"❌ Cache delete pattern error for {pattern}: {e}")
            return 0


# Global cache instance
cache = Cache()


def get_pricing_data_cached(service_id: int) -> Optional[dict]:
    """Get a service's public pricing catalogue from cache"""
    return cache.get(f"pricing:service:{service_id}")


def set_pricing_data_cached(service_id: int, data: dict, ttl: int = PRICING_CACHE_TTL) -> bool:
    """Set a service's public pricing catalogue in cache"""
    return cache.set(f"pricing:service:{service_id}", data, ttl)


def invalidate_pricing_cache(service_id: Optional[int] = None) -> int:
    """
    Invalidate cached pricing catalogues after an admin edit.
    Without a service id (global add-ons, special offers) every catalogue is dropped.
    """
    if service_id is None:
        return cache.delete_pattern("pricing:*")
    return int(cache.delete(f"pricing:service:{service_id}")) + int(cache.delete("pricing:offers"))


def get_special_offers_cached() -> Optional[list]:
    """Get the active special offers list from cache"""
    return cache.get("pricing:offers")


def set_special_offers_cached(offers: list, ttl: int = PRICING_CACHE_TTL) -> bool:
    """Set the active special offers list in cache"""
    return cache.set("pricing:offers", offers, ttl)
