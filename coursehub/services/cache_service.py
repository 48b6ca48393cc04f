"""
Redis cache for laid-out knowledge graphs

Keys are ``kgraph:<course id>:<direction>``; values are the JSON-encoded
graph. Every call degrades to a miss when Redis is switched off or down.
"""
import json
import logging
import os
from typing import Optional
import redis
from flask import current_app, has_app_context

logger = logging.getLogger(__name__)

GRAPH_PREFIX = 'kgraph'


def graph_key(course_id, direction) -> str:
    return f'{GRAPH_PREFIX}:{course_id}:{direction}'


class CacheService:
    """Process-wide Redis client shared by the graph endpoints"""

    _instance = None
    _redis_client = None

    def __new__(cls):
        """Singleton pattern"""
        if cls._instance is None:
            cls._instance = super(CacheService, cls).__new__(cls)
            cls._redis_client = cls._connect()

        return cls._instance

    def __init__(self):
        self.redis = self._redis_client

    @staticmethod
    def _setting(name, default):
        if has_app_context():
            return current_app.config.get(name, default)
        return os.getenv(name, default)

    @classmethod
    def _connect(cls):
        enabled = cls._setting('CACHE_ENABLED', True)
        if isinstance(enabled, str):
            enabled = enabled.strip().lower() in ('1', 'true', 'yes', 'on')
        if not enabled:
            logger.info("Graph cache disabled by configuration")
            return None

        host = cls._setting('REDIS_HOST', 'localhost')
        port = int(cls._setting('REDIS_PORT', 6379))

        client = redis.Redis(
            host=host,
            port=port,
            db=int(cls._setting('REDIS_DB', 0)),
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5
        )
        try:
            client.ping()
        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.warning("Redis unreachable at %s:%s (%s), serving graphs uncached", host, port, e)
            return None

        logger.info("Graph cache connected to Redis at %s:%s", host, port)
        return client

    @classmethod
    def reset(cls):
        """Forget the shared client; the next instance reconnects with current settings"""
        cls._instance = None
        cls._redis_client = None

    def is_available(self) -> bool:
        return self.redis is not None

    def get_graph(self, course_id, direction) -> Optional[dict]:
        """Cached graph of a course in one direction, or None on a miss"""
        if not self.is_available():
            return None

        key = graph_key(course_id, direction)
        try:
            payload = self.redis.get(key)
            return json.loads(payload) if payload else None
        except (redis.RedisError, ValueError) as e:
            logger.warning("Dropping unreadable cache entry %s: %s", key, e)
            return None

    def set_graph(self, course_id, direction, graph: dict, ttl: int = 3600) -> bool:
        if not self.is_available():
            return False

        key = graph_key(course_id, direction)
        try:
            self.redis.setex(key, ttl, json.dumps(graph, ensure_ascii=False))
            return True
        except (redis.RedisError, TypeError) as e:
            logger.warning("Could not cache %s: %s", key, e)
            return False

    def invalidate_course(self, course_id) -> int:
        """
        Remove the cached graphs of a course in every direction

        Returns:
            Number of keys removed
        """
        if not self.is_available():
            return 0

        pattern = graph_key(course_id, '*')
        try:
            keys = list(self.redis.scan_iter(match=pattern))
            return self.redis.delete(*keys) if keys else 0
        except redis.RedisError as e:
            logger.warning("Could not invalidate %s: %s", pattern, e)
            return 0
