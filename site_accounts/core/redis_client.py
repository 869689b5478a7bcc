"""Redis connection behind the account storage slots."""

import redis
from structlog import get_logger

from site_accounts.config import Settings, settings
from site_accounts.core.storage import RedisStorage

logger = get_logger(__name__)

# Process-wide client shared by the storage and the health probe
_redis_client: redis.Redis | None = None


def create_redis_client(config: Settings) -> redis.Redis:
    """
    Build a client for the account slots.

    Empty username or password means an unauthenticated connection.

    Args:
        config: Application settings

    Returns:
        Redis client
    """
    return redis.Redis(
        host=config.redis_host,
        port=config.redis_port,
        username=config.redis_username or None,
        password=config.redis_password or None,
        decode_responses=config.redis_decode_responses,
        socket_connect_timeout=5,
        health_check_interval=30,
    )


def get_redis_client(config: Settings = settings) -> redis.Redis:
    """Get or create the shared client."""
    global _redis_client

    if _redis_client is None:
        _redis_client = create_redis_client(config)
        logger.info("redis_client_created", host=config.redis_host, port=config.redis_port)

    return _redis_client


def create_redis_storage(config: Settings = settings) -> RedisStorage:
    """Account storage on the shared client, namespaced by ``STORAGE_KEY_PREFIX``."""
    return RedisStorage(get_redis_client(config), key_prefix=config.storage_key_prefix)


async def check_redis_connection() -> bool:
    """
    Ping the server holding the account slots.

    Returns:
        True if the server answered, False otherwise
    """
    try:
        return bool(get_redis_client().ping())
    except redis.RedisError as e:
        logger.warning("redis_unreachable", error=str(e))
        return False


def close_redis_connection() -> None:
    """Close the shared client; the next call to get_redis_client reconnects."""
    global _redis_client

    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None
