"""Redis-backed per-key locks.

Two request paths are read-then-write sequences against a store without
transactions: stock adjustment and the email uniqueness check on user
creation. With ``REDIS_LOCKS_ENABLED=true`` they run under a Redis lock
keyed by product id / email, serialising concurrent writers across all
instances. With locks disabled, or Redis unreachable, they run unlocked
and lost updates remain possible.

For Cloud Run with Memorystore:
- Set REDIS_HOST to the Memorystore instance IP
- Set REDIS_PASSWORD if authentication is enabled
- Ensure VPC connector is configured for Cloud Run
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import redis
import redis.asyncio as aioredis
from redis.exceptions import LockError

from tienda_api.core.config import settings
from tienda_api.core.errors import ConflictError
from tienda_api.core.logging import get_logger

logger = get_logger(__name__)

# Redis client (lazy initialization)
_redis_client: Optional[aioredis.Redis] = None
_key_lock: Optional["KeyLock"] = None

# Treated as "Redis is down": the guarded block runs without a lock
UNREACHABLE = (redis.ConnectionError, redis.TimeoutError)


def get_redis_client(
    host: Optional[str] = None,
    port: Optional[int] = None,
    db: Optional[int] = None,
    password: Optional[str] = None,
) -> Optional[aioredis.Redis]:
    """Get or create the async Redis client with connection pooling.

    Uses settings from environment variables if not explicitly provided.
    The connection is opened on first command, so an unreachable server
    surfaces when a lock is first taken, not here.

    Returns:
        Redis client instance or None if the client could not be built
    """
    global _redis_client

    host = host or settings.redis_host
    port = port or settings.redis_port
    db = db if db is not None else settings.redis_db
    password = password or settings.redis_password

    if _redis_client is None:
        logger.info(f"Initializing Redis connection pool: {host}:{port}")

        try:
            pool = aioredis.ConnectionPool(
                host=host,
                port=port,
                db=db,
                password=password,
                max_connections=50,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
            _redis_client = aioredis.Redis(connection_pool=pool)
        except redis.RedisError as e:
            logger.error(f"Redis initialization error: {e}", exc_info=True)
            _redis_client = None
            return None

    return _redis_client


class KeyLock:
    """Serialise critical sections per key.

    Example:
        >>> lock = KeyLock(redis_client=get_redis_client())
        >>> async with lock.hold("productos:abc123"):
        ...     await repo.reduce_stock("abc123", 2)
    """

    def __init__(
        self,
        redis_client: Optional[aioredis.Redis] = None,
        timeout: int = 10,
        blocking_timeout: int = 5,
        key_prefix: str = "lock:"
    ):
        """Initialize the lock helper.

        Args:
            redis_client: Async Redis client; None disables locking
            timeout: Seconds before a held lock expires on its own
            blocking_timeout: Seconds to wait for a busy lock before giving up
            key_prefix: Prefix for lock keys
        """
        self.redis = redis_client
        self.timeout = timeout
        self.blocking_timeout = blocking_timeout
        self.key_prefix = key_prefix

    @property
    def enabled(self) -> bool:
        return self.redis is not None

    def _make_key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Hold the lock for ``key`` for the duration of the block.

        Raises:
            ConflictError: The lock stayed busy past ``blocking_timeout``
        """
        if self.redis is None:
            yield
            return

        lock = self.redis.lock(
            self._make_key(key),
            timeout=self.timeout,
            blocking_timeout=self.blocking_timeout,
        )
        try:
            acquired = await lock.acquire()
        except UNREACHABLE as e:
            logger.warning(f"Redis unavailable, running {key} without lock: {e}")
            lock = None
            acquired = True

        if not acquired:
            logger.warning(f"Lock busy: {key}")
            raise ConflictError("Recurso ocupado, intente de nuevo", context={"lock": key})

        try:
            yield
        finally:
            if lock is not None:
                try:
                    await lock.release()
                except LockError:
                    logger.warning(f"Lock {key} expired before release")
                except UNREACHABLE as e:
                    logger.warning(f"Could not release lock {key}: {e}")


def get_key_lock() -> KeyLock:
    """Return the process-wide ``KeyLock`` (a no-op unless locks are enabled)."""
    global _key_lock

    if _key_lock is None:
        client = get_redis_client() if settings.redis_locks_enabled else None
        _key_lock = KeyLock(
            redis_client=client,
            timeout=settings.lock_timeout_seconds,
            blocking_timeout=settings.lock_blocking_timeout_seconds,
        )
        logger.info(f"KeyLock initialised (redis={'on' if client else 'off'})")

    return _key_lock
