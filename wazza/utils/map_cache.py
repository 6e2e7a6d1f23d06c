"""
Redis cache for the public business map.
Read on every map load, rebuilt from the database on a miss and dropped
whenever an admin changes a business status.
"""
import json
from typing import Any, Callable, Dict, List

import redis
from flask import current_app
from .extensions import redis_client
from .logging import get_logger

log = get_logger(__name__)

CACHE_PREFIX = "wazza:map:"
BUSINESSES_KEY = f"{CACHE_PREFIX}businesses"


def get_map_businesses(loader: Callable[[], List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    """
    Fast read path for the map listing.
    Falls back to ``loader`` (the database query) on a miss, a corrupt entry
    or when Redis is unreachable.
    """
    try:
        raw = redis_client.client.get(BUSINESSES_KEY)
    except redis.RedisError as e:
        log.warning("Redis unavailable, serving map from database: %s", e)
        return loader()

    if raw is not None:
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            log.warning("Corrupted Redis key %s, falling back to DB", BUSINESSES_KEY)

    businesses = loader()
    try:
        redis_client.client.set(
            BUSINESSES_KEY,
            json.dumps(businesses),
            ex=current_app.config.get("MAP_CACHE_TTL", 300),
        )
        log.debug("Map cache rebuilt (%d businesses)", len(businesses))
    except redis.RedisError as e:
        log.warning("Failed to write map cache: %s", e)
    return businesses


def invalidate_map_cache() -> None:
    """
    Call after any business status change.
    """
    try:
        count = redis_client.client.delete(BUSINESSES_KEY)
        log.info("Invalidated map cache (%d keys)", count)
    except redis.RedisError as e:
        log.warning("Failed to invalidate map cache: %s", e)
