"""
Caching for data the browser used to keep in localStorage
(payment settings, pricing, last selected package, user profile).

Redis is used when reachable; otherwise an in-process TTL store keeps
the app working (fail-open).
"""
import fnmatch
import json
import logging
import os
import time
from threading import Lock
from typing import Any, Optional

import redis

from .config import CACHE_BACKEND

logger = logging.getLogger(__name__)

# Redis connection
redis_client: Optional[redis.Redis] = None


def get_redis_client() -> redis.Redis:
    """
    Get or create Redis client
    Supports both a REDIS_URL and individual host/port settings
    """
    global redis_client

    if redis_client is None:
        redis_url = os.getenv("REDIS_URL")

        if redis_url:
            logger.info("📡 Using Redis URL connection")
            client = redis.from_url(
                redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )
        else:
            redis_host = os.getenv("REDIS_HOST", "localhost")
            redis_port = int(os.getenv("REDIS_PORT", "6379"))
            redis_ssl = os.getenv("REDIS_SSL", "false").lower() == "true"
            logger.info(f"📡 Using Redis at {redis_host}:{redis_port} (SSL: {redis_ssl})")
            client = redis.Redis(
                host=redis_host,
                port=redis_port,
                password=os.getenv("REDIS_PASSWORD", None),
                db=int(os.getenv("REDIS_DB", "0")),
                ssl=redis_ssl,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )

        # Test connection before publishing the client
        client.ping()
        redis_client = client
        logger.info("Redis connected successfully")

    return redis_client


class MemoryStore:
    """In-process key/value store with per-key expiry"""

    def __init__(self):
        self._data: dict[str, tuple[str, float]] = {}
        self._lock = Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if time.monotonic() >= expires_at:
                del self._data[key]
                return None
            return value

    def setex(self, key: str, ttl: int, value: str) -> None:
        with self._lock:
            self._data[key] = (value, time.monotonic() + ttl)

    def delete(self, *keys: str) -> int:
        deleted = 0
        with self._lock:
            for key in keys:
                if self._data.pop(key, None) is not None:
                    deleted += 1
        return deleted

    def keys(self, pattern: str) -> list[str]:
        with self._lock:
            return [k for k in self._data if fnmatch.fnmatchcase(k, pattern)]


class Cache:
    """Cache wrapper with automatic JSON serialization"""

    def __init__(self, backend: str = CACHE_BACKEND, store=None):
        self.backend = backend
        self._client = store
        self._memory = MemoryStore()

    def _get_client(self):
        """Lazy load the Redis client, falling back to memory"""
        if self._client is None:
            if self.backend != "redis":
                self._client = self._memory
            else:
                try:
                    self._client = get_redis_client()
                except Exception as e:
                    logger.warning(f"⚠️ Redis cache unavailable, using in-memory cache: {e}")
                    self._client = self._memory
        return self._client

    def get(self, key: str) -> Optional[Any]:
        """Get value from cache"""
        try:
            value = self._get_client().get(key)
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
        try:
            self._get_client().setex(key, ttl, json.dumps(value, default=str))
            logger.debug(f"✅ Cache SET: {key} (TTL: {ttl}s)")
            return True
        except Exception as e:
            logger.error(f"❌ Cache set error for {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        """Delete value from cache"""
        try:
            self._get_client().delete(key)
            logger.debug(f"✅ Cache DELETE: {key}")
            return True
        except Exception as e:
            logger.error(f"❌ Cache delete error for {key}: {e}")
            return False

    def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching pattern (e.g., 'selected_package:*')"""
        try:
            client = self._get_client()
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


def get_cache() -> Cache:
    """Dependency injection for the shared cache"""
    return cache

