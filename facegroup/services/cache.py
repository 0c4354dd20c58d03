import json
import logging
from typing import Any, Optional

import redis

from facegroup.config import settings

log = logging.getLogger("facegroup.cache")

_client: Optional[redis.Redis] = None
if settings.CACHE_ENABLED:
    _client = redis.from_url(settings.REDIS_URL, socket_connect_timeout=1, socket_timeout=1)


def clusters_by_group_key(group_id) -> str:
    return f"clusters:group:{group_id}"


# Cache is best effort: a redis outage degrades to uncached reads.

async def cache_get_json(key: str) -> Optional[Any]:
    if _client is None:
        return None
    try:
        raw = _client.get(key)
    except redis.RedisError as exc:
        log.debug("cache get %s failed: %s", key, exc)
        return None
    return json.loads(raw) if raw else None


async def cache_set_json(key: str, value: Any, ttl: Optional[int] = None) -> None:
    if _client is None:
        return
    try:
        _client.setex(key, ttl or settings.CACHE_TTL_SECONDS, json.dumps(value, default=str))
    except redis.RedisError as exc:
        log.debug("cache set %s failed: %s", key, exc)


async def cache_invalidate_prefix(prefix: str) -> int:
    if _client is None:
        return 0
    count = 0
    try:
        for k in _client.scan_iter(f"{prefix}*"):
            _client.delete(k)
            count += 1
    except redis.RedisError as exc:
        log.debug("cache invalidate %s failed: %s", prefix, exc)
        return 0
    return count


async def invalidate_group_clusters(group_id) -> None:
    await cache_invalidate_prefix(clusters_by_group_key(group_id))
