"""
Redis Store
===========

Key layout and Redis commands for client records, sessions and counters.

Keys:
    client:<client>:h     hash  regToken, regBy, secret
    session:<token>:h     hash  client (expires after the session TTL)
    count:<op>:<outcome>  int   outcome counters

Only this module knows the key formats; the auth service talks in clients,
tokens and counter names.
"""

import logging
from typing import Optional

import redis.asyncio as aioredis

from config import Settings, get_settings
from exceptions import ConfigurationError


# Set up module logger
logger = logging.getLogger(__name__)

REG_TOKEN_FIELD = "regToken"
REG_BY_FIELD = "regBy"
SECRET_FIELD = "secret"
SESSION_CLIENT_FIELD = "client"


def client_key(client: str) -> str:
    return f"client:{client}:h"


def session_key(token: str) -> str:
    return f"session:{token}:h"


def counter_key(operation: str, outcome: str) -> str:
    return f"count:{operation}:{outcome}"


class ClientStore:
    """
    Thin async repository over a shared redis.asyncio client.

    Every method is a single Redis command or a single MULTI/EXEC
    transaction, so per-key atomicity comes from Redis itself. Redis errors
    are not caught here.
    """

    def __init__(self, redis_client: aioredis.Redis):
        """
        Args:
            redis_client: Client created with decode_responses=True
        """
        self.redis_client = redis_client

    # -----------------------------------------------------------------
    # Client records
    # -----------------------------------------------------------------

    async def get_reg_token(self, client: str) -> Optional[str]:
        """Return the stored registration token hash, or None."""
        return await self.redis_client.hget(client_key(client), REG_TOKEN_FIELD)

    async def consume_reg_by(self, client: str) -> Optional[str]:
        """
        Read and delete the registration deadline in one transaction.

        Of several concurrent callers, only one can see the value.

        Returns:
            The raw regBy text, or None if it was already consumed or never set
        """
        key = client_key(client)
        async with self.redis_client.pipeline(transaction=True) as pipe:
            pipe.hget(key, REG_BY_FIELD)
            pipe.hdel(key, REG_BY_FIELD)
            reg_by, _deleted = await pipe.execute()
        return reg_by

    async def get_secret(self, client: str) -> Optional[str]:
        return await self.redis_client.hget(client_key(client), SECRET_FIELD)

    async def set_secret(self, client: str, hashed: str) -> None:
        await self.redis_client.hset(client_key(client), SECRET_FIELD, hashed)

    # -----------------------------------------------------------------
    # Sessions
    # -----------------------------------------------------------------

    async def create_session(self, token: str, client: str, ttl_seconds: int) -> None:
        """
        Replace whatever lives at the session key with a fresh record.

        DEL, HSET and EXPIRE run in one MULTI/EXEC so a session never exists
        without its TTL.
        """
        key = session_key(token)
        async with self.redis_client.pipeline(transaction=True) as pipe:
            pipe.delete(key)
            pipe.hset(key, SESSION_CLIENT_FIELD, client)
            pipe.expire(key, ttl_seconds)
            await pipe.execute()

    async def get_session_client(self, token: str) -> Optional[str]:
        return await self.redis_client.hget(session_key(token), SESSION_CLIENT_FIELD)

    async def get_session_ttl(self, token: str) -> int:
        """Remaining TTL in seconds (-2 if the session does not exist)."""
        return await self.redis_client.ttl(session_key(token))

    # -----------------------------------------------------------------
    # Counters / health
    # -----------------------------------------------------------------

    async def increment(self, operation: str, outcome: str) -> int:
        return await self.redis_client.incr(counter_key(operation, outcome))

    async def ping(self) -> bool:
        return await self.redis_client.ping()

    async def close(self) -> None:
        await self.redis_client.aclose()


def create_redis_client(settings: Optional[Settings] = None) -> aioredis.Redis:
    """
    Build the pooled async Redis client from settings.

    Raises:
        ConfigurationError: If redis_url cannot be parsed
    """
    settings = settings or get_settings()
    try:
        return aioredis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_timeout=settings.redis_socket_timeout
        )
    except ValueError as e:
        raise ConfigurationError("redis_url", str(e))


def create_store(settings: Optional[Settings] = None) -> ClientStore:
    """
    Factory function to create the Redis-backed store.

    Args:
        settings: Application settings

    Returns:
        A ClientStore sharing one connection pool
    """
    settings = settings or get_settings()
    logger.info("Creating Redis client store")
    return ClientStore(create_redis_client(settings))
