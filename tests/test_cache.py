import pytest
from doubles import FakeRedis

from cache import PageCache, create_redis_client
from errors import CacheUnavailable


def test_create_redis_client_decodes_responses():
    client = create_redis_client("redis://cache.local:6380/2", password="s3cret")

    kwargs = client.connection_pool.connection_kwargs
    assert kwargs["decode_responses"] is True
    assert kwargs["password"] == "s3cret"
    assert kwargs["host"] == "cache.local"
    assert kwargs["port"] == 6380
    assert kwargs["db"] == 2


def test_setex_get_delete():
    cache = PageCache(FakeRedis())

    cache.setex("k", 30, "v")
    assert cache.get("k") == "v"

    cache.delete("k")
    assert cache.get("k") is None


@pytest.mark.parametrize("call", [
    lambda cache: cache.get("k"),
    lambda cache: cache.setex("k", 30, "v"),
    lambda cache: cache.delete("k"),
    lambda cache: cache.ping(),
])
def test_redis_errors_become_cache_unavailable(call):
    fake = FakeRedis()
    fake.fail = True

    with pytest.raises(CacheUnavailable):
        call(PageCache(fake))
