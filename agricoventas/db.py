"""
Redis client for durable cart storage.

Provides a lazily created Upstash Redis client (REST based, synchronous),
configured from the standard Upstash environment variables.
"""

import os
from typing import Optional

from upstash_redis import Redis

# Upstash Redis - standard env var names per docs
UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")

_redis_client: Optional[Redis] = None


def get_redis_sync() -> Redis:
    """
    Get sync Upstash Redis client (singleton).

    Raises:
        ValueError: If the Upstash credentials are not configured
    """
    global _redis_client

    if _redis_client is None:
        if not UPSTASH_REDIS_REST_URL or not UPSTASH_REDIS_REST_TOKEN:
            raise ValueError("UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set")
        _redis_client = Redis(url=UPSTASH_REDIS_REST_URL, token=UPSTASH_REDIS_REST_TOKEN)

    return _redis_client


def reset_redis_client() -> None:
    """Drop the cached client (used by tests and after credential rotation)."""
    global _redis_client
    _redis_client = None
