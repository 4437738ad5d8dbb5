"""Cross-instance sweep lock backed by Redis."""

import asyncio
import logging
import uuid

import redis.asyncio as redis

logger = logging.getLogger(__name__)


class DistributedLockError(Exception):
    """Exception raised when the lock backend cannot be reached."""

    pass


class DistributedLock:
    """
    Redis-based lock shared by every process that sweeps the same database.

    Uses SET NX EX for atomic acquisition with expiration, so a crashed holder
    cannot block sweeps for longer than the timeout. Release and extend run as
    Lua scripts that only touch the key when we still own it.
    """

    # Lua script for safe lock release (only release if we own the lock)
    RELEASE_SCRIPT = """
    if redis.call("get", KEYS[1]) == ARGV[1] then
        return redis.call("del", KEYS[1])
    else
        return 0
    end
    """

    # Lua script for lock extension
    EXTEND_SCRIPT = """
    if redis.call("get", KEYS[1]) == ARGV[1] then
        return redis.call("pexpire", KEYS[1], ARGV[2])
    else
        return 0
    end
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        key: str,
        timeout_seconds: int = 300,
        retry_delay_ms: int = 100,
        max_retries: int = 0,
    ):
        """
        Initialize distributed lock.

        Args:
            redis_client: Redis client instance
            key: Lock key name
            timeout_seconds: Lock expiration time in seconds
            retry_delay_ms: Delay between retry attempts in milliseconds
            max_retries: Retry attempts for a blocking acquire
        """
        self.redis = redis_client
        self.key = f"lock:{key}"
        self.timeout_seconds = timeout_seconds
        self.retry_delay_ms = retry_delay_ms
        self.max_retries = max_retries
        self.token: str | None = None
        self._release_script = self.redis.register_script(self.RELEASE_SCRIPT)
        self._extend_script = self.redis.register_script(self.EXTEND_SCRIPT)

    async def acquire(self, blocking: bool = False) -> bool:
        """
        Acquire the lock.

        Args:
            blocking: If True, retry until acquired or max retries reached.
                     If False, try once and return immediately.

        Returns:
            True if lock was acquired, False otherwise.

        Raises:
            DistributedLockError: If Redis cannot be reached
        """
        token = str(uuid.uuid4())
        retries = 0

        while True:
            try:
                acquired = await self.redis.set(
                    self.key,
                    token,
                    nx=True,
                    ex=self.timeout_seconds,
                )
            except redis.RedisError as e:
                raise DistributedLockError(f"Lock backend unavailable: {e}") from e

            if acquired:
                self.token = token
                return True

            if not blocking or retries >= self.max_retries:
                return False

            retries += 1
            await asyncio.sleep(self.retry_delay_ms / 1000)

    async def release(self) -> bool:
        """
        Release the lock.

        Returns:
            True if lock was released, False if we didn't own the lock.
        """
        if self.token is None:
            return False

        token, self.token = self.token, None
        try:
            result = await self._release_script(keys=[self.key], args=[token])
        except redis.RedisError as e:
            # The key still expires on its own after timeout_seconds
            logger.warning(f"Failed to release lock {self.key}: {e}")
            return False
        return bool(result)

    async def extend(self, additional_seconds: int | None = None) -> bool:
        """
        Extend the lock expiration time.

        Returns:
            True if lock was extended, False if we didn't own the lock.
        """
        if self.token is None:
            return False

        timeout = additional_seconds or self.timeout_seconds
        try:
            result = await self._extend_script(
                keys=[self.key],
                args=[self.token, timeout * 1000],
            )
        except redis.RedisError as e:
            raise DistributedLockError(f"Lock backend unavailable: {e}") from e
        return bool(result)
