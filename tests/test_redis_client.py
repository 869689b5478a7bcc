"""Tests for the Redis connection behind the account slots."""

from unittest.mock import patch

import pytest
import redis

from site_accounts.config import settings
from site_accounts.core import redis_client
from site_accounts.core.storage import RedisStorage
from site_accounts.dependencies import build_storage


@pytest.fixture(autouse=True)
def reset_redis_client():
    """Start every test without a shared client."""
    redis_client._redis_client = None
    yield
    redis_client._redis_client = None


@pytest.fixture
def redis_config():
    """Settings pointing the account slots at a Redis server."""
    return settings.model_copy(
        update={
            "storage_backend": "redis",
            "storage_key_prefix": "test_",
            "redis_host": "cache",
            "redis_port": 6380,
            "redis_username": "",
            "redis_password": "",
        }
    )


def test_create_redis_client_uses_settings(redis_config):
    """Test connection options come from settings."""
    with patch("site_accounts.core.redis_client.redis.Redis") as redis_cls:
        redis_client.create_redis_client(redis_config)

    kwargs = redis_cls.call_args.kwargs
    assert kwargs["host"] == "cache"
    assert kwargs["port"] == 6380
    assert kwargs["username"] is None
    assert kwargs["password"] is None


def test_get_redis_client_is_shared(redis_config):
    """Test the client is created once per process."""
    with patch("site_accounts.core.redis_client.redis.Redis") as redis_cls:
        first = redis_client.get_redis_client(redis_config)
        second = redis_client.get_redis_client(redis_config)

    assert first is second
    redis_cls.assert_called_once()


def test_build_storage_uses_key_prefix(redis_config):
    """Test the redis substrate is namespaced by the storage key prefix."""
    with patch("site_accounts.core.redis_client.redis.Redis") as redis_cls:
        storage = build_storage(redis_config)

    assert isinstance(storage, RedisStorage)
    assert storage.redis is redis_cls.return_value
    assert storage.users_key == "test_users"
    assert storage.current_user_key == "test_current_user"


@pytest.mark.asyncio
async def test_check_redis_connection(redis_config):
    """Test the health probe reports reachability."""
    with patch("site_accounts.core.redis_client.redis.Redis") as redis_cls:
        client = redis_client.get_redis_client(redis_config)
        client.ping.return_value = True
        assert await redis_client.check_redis_connection() is True

        client.ping.side_effect = redis.ConnectionError("connection refused")
        assert await redis_client.check_redis_connection() is False

    redis_cls.assert_called_once()


def test_close_redis_connection(redis_config):
    """Test closing drops the shared client."""
    with patch("site_accounts.core.redis_client.redis.Redis") as redis_cls:
        redis_client.get_redis_client(redis_config)
        redis_client.close_redis_connection()
        redis_client.close_redis_connection()

    redis_cls.return_value.close.assert_called_once_with()
    assert redis_client._redis_client is None
