from fnmatch import fnmatch

import pytest

from coursehub.services.cache_service import CacheService, graph_key
from coursehub.services.knowledge_graph_service import KnowledgeGraphService


class FakeRedis:
    """In-memory stand-in for the handful of redis commands the cache uses"""

    def __init__(self):
        self.store = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value

    def scan_iter(self, match='*'):
        return [key for key in list(self.store) if fnmatch(key, match)]

    def delete(self, *keys):
        removed = 0
        for key in keys:
            removed += self.store.pop(key, None) is not None
        return removed


@pytest.fixture
def fake_redis(app):
    with app.app_context():
        CacheService()
    fake = FakeRedis()
    CacheService._redis_client = fake
    return fake


def test_disabled_cache_is_a_no_op(app):
    with app.app_context():
        cache = CacheService()
        assert cache.is_available() is False
        assert cache.get_graph(1, 'TB') is None
        assert cache.set_graph(1, 'TB', {'nodes': []}) is False
        assert cache.invalidate_course(1) == 0


def test_graph_round_trip_and_invalidation(fake_redis):
    cache = CacheService()
    cache.set_graph(3, 'TB', {'nodes': [{'id': 'course-3'}], 'edges': []})
    cache.set_graph(3, 'LR', {'nodes': [], 'edges': []})
    cache.set_graph(30, 'TB', {'nodes': [], 'edges': []})

    assert cache.get_graph(3, 'TB')['nodes'] == [{'id': 'course-3'}]
    assert cache.invalidate_course(3) == 2
    assert cache.get_graph(3, 'TB') is None
    assert graph_key(30, 'TB') in fake_redis.store


def test_unreadable_entry_is_a_miss(fake_redis):
    fake_redis.store[graph_key(1, 'TB')] = '{not json'
    assert CacheService().get_graph(1, 'TB') is None


def test_course_graph_is_cached_until_the_tree_changes(app, seed, fake_redis):
    with app.test_request_context():
        first = KnowledgeGraphService.get_course_graph(seed.course)
        assert graph_key(seed.course, 'TB') in fake_redis.store

        KnowledgeGraphService.create_chapter(seed.course, 'Recursion')
        assert graph_key(seed.course, 'TB') not in fake_redis.store

        second = KnowledgeGraphService.get_course_graph(seed.course)
        assert len(second['nodes']) == len(first['nodes']) + 1
