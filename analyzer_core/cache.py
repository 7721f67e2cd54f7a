"""
Result cache backed by Redis (Vercel KV / Upstash speak the same protocol).

Entries are keyed by the subject's display name and expire after a fixed
TTL. A source page that changes inside the TTL window is not picked up until
the entry expires.
"""

import json
import logging
import re
from typing import Any, Dict, Optional

import redis

from .config import Settings

logger = logging.getLogger(__name__)


def subject_slug(subject: str) -> str:
    """Lower-case a display name and collapse whitespace runs to hyphens."""
    return re.sub(r'\s+', '-', subject.strip().lower())


def build_redis_client(settings: Settings) -> Optional[redis.Redis]:
    """Connect to the configured key-value store, or None if there isn't one."""
    if not settings.redis_url:
        return None
    return redis.Redis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_timeout=settings.request_timeout
    )


class ResultCache:
    """Look up and store finished analyses by subject name."""

    def __init__(self, client, ttl_seconds: int = 24 * 60 * 60, prefix: str = 'famous:'):
        self.client = client
        self.ttl_seconds = ttl_seconds
        self.prefix = prefix

    def key_for(self, subject: str) -> str:
        return f'{self.prefix}{subject_slug(subject)}'

    def get(self, subject: str) -> Optional[Dict[str, Any]]:
        """Return the cached analysis for subject, or None on a miss."""
        key = self.key_for(subject)
        try:
            raw = self.client.get(key)
        except redis.RedisError as e:
            logger.warning('Cache read failed for %s, continuing uncached: %s', key, e)
            return None

        if raw is None:
            logger.info('Cache miss for %s', key)
            return None

        try:
            value = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning('Ignoring undecodable cache entry for %s', key)
            return None

        if not isinstance(value, dict):
            logger.warning('Ignoring non-object cache entry for %s', key)
            return None

        logger.info('Cache hit for %s', key)
        return value

    def set(self, subject: str, result: Dict[str, Any]) -> bool:
        """Store a fresh analysis. Error results are never cached."""
        if not isinstance(result, dict) or result.get('error'):
            return False

        key = self.key_for(subject)
        try:
            self.client.set(key, json.dumps(result), ex=self.ttl_seconds)
        except redis.RedisError as e:
            logger.warning('Cache write failed for %s: %s', key, e)
            return False
        return True
