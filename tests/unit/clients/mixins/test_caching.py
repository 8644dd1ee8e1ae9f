from unittest.mock import Mock

import pytest

from prview.clients.mixins.caching import CacheMixin


class CacheTestHelper(CacheMixin):
    def __init__(self, cache_ttl: int = 300, cache_maxsize: int = 500) -> None:
        self.cache_ttl = cache_ttl
        self.cache_maxsize = cache_maxsize
        super().__init__()


def test_should_generate_consistent_keys_when_same_args_provided() -> None:
    instance = CacheTestHelper()

    key1 = instance._make_cache_key("arg1", "arg2", kwarg1="value1")
    key2 = instance._make_cache_key("arg1", "arg2", kwarg1="value1")
    key3 = instance._make_cache_key("arg1", "arg3", kwarg1="value1")

    assert key1 == key2
    assert key1 != key3


def test_should_return_cached_value_when_cache_hit_occurs() -> None:
    instance = CacheTestHelper(cache_ttl=60)
    mock_func = Mock(return_value="result")

    @instance.with_cache(key_prefix="test:")
    def cached_func(arg1: str, arg2: str) -> str:
        return mock_func(arg1, arg2)

    assert cached_func("a", "b") == "result"
    assert cached_func("a", "b") == "result"
    assert mock_func.call_count == 1


def test_should_call_function_when_arguments_differ() -> None:
    instance = CacheTestHelper()
    mock_func = Mock(side_effect=lambda value: value.upper())

    @instance.with_cache()
    def cached_func(value: str) -> str:
        return mock_func(value)

    assert cached_func("a") == "A"
    assert cached_func("b") == "B"
    assert mock_func.call_count == 2


def test_should_bypass_cache_when_ttl_is_zero() -> None:
    instance = CacheTestHelper(cache_ttl=0)
    mock_func = Mock(return_value="result")

    @instance.with_cache()
    def cached_func() -> str:
        return mock_func()

    cached_func()
    cached_func()

    assert mock_func.call_count == 2


def test_should_not_cache_failures() -> None:
    instance = CacheTestHelper()
    mock_func = Mock(side_effect=[RuntimeError("down"), "recovered"])

    @instance.with_cache()
    def cached_func() -> str:
        return mock_func()

    with pytest.raises(RuntimeError):
        cached_func()
    assert cached_func() == "recovered"
