"""Owner-checked Redis leases.

A lease is a single key ``<prefix>:<part>:<part>...`` whose value is the
owner id. It is created with ``SET NX EX`` so it always expires, and it is
only released or extended by the owner that holds it.
"""

import asyncio
import contextlib
import os
import random
import socket
import time
import uuid
from typing import Optional

from loguru import logger

# KEYS[1] = lease key, ARGV[1] = owner
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
end
return 0
"""

# KEYS[1] = lease key, ARGV[1] = owner, ARGV[2] = ttl seconds
_EXTEND_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('EXPIRE', KEYS[1], ARGV[2])
end
return 0
"""


def default_owner_id() -> str:
    return f"{socket.gethostname()}:{os.getpid()}:{uuid.uuid4().hex[:8]}"


class LockManager:
    """One exclusive lease per instance.

    Usage:
        lock = LockManager(redis_client, default_ttl=30)
        if await lock.acquire("provision", user_id, blocking_timeout=10):
            async with lock:
                ...
    """

    def __init__(
        self,
        redis_client,
        lock_prefix: str = "lock",
        default_ttl: int = 30,
        owner: Optional[str] = None,
    ):
        self.redis_client = redis_client
        self.lock_prefix = lock_prefix
        self.default_ttl = int(default_ttl)
        self.owner = owner or default_owner_id()

        self.lock_key: Optional[str] = None
        self.acquired = False
        self._ttl = self.default_ttl

    def __bool__(self) -> bool:
        return self.acquired

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.acquired:
            await self.release()

    async def _set_nx(self) -> bool:
        return bool(await self.redis_client.set(self.lock_key, self.owner, nx=True, ex=self._ttl))

    async def _owner_script(self, script: str, *args) -> int:
        return await self.redis_client.eval(script, 1, self.lock_key, self.owner, *args)

    async def _poll(self, deadline: Optional[float], retry_interval: float, jitter: float) -> bool:
        while not await self._set_nx():
            pause = retry_interval + random.uniform(0, max(jitter, 0))
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                pause = min(pause, remaining)
            await asyncio.sleep(pause)
        return True

    async def acquire(
        self,
        *key_parts,
        ttl: Optional[int] = None,
        blocking: bool = True,
        blocking_timeout: Optional[float] = None,
        retry_interval: float = 0.2,
        jitter: float = 0.1,
    ) -> bool:
        """
        Take the lease on ``<lock_prefix>:<key_parts...>``.

        Args:
            ttl: Lease lifetime in seconds (default_ttl when omitted)
            blocking: Poll until taken or ``blocking_timeout`` elapses
            blocking_timeout: Seconds to poll; None polls forever, <= 0 tries once
            retry_interval: Seconds between polls, plus up to ``jitter``

        Returns:
            True if this instance now holds the lease
        """
        self.lock_key = f"{self.lock_prefix}:" + ":".join(str(part) for part in key_parts)
        self._ttl = int(ttl or self.default_ttl)

        if not blocking or (blocking_timeout is not None and blocking_timeout <= 0):
            self.acquired = await self._set_nx()
        else:
            deadline = None if blocking_timeout is None else time.monotonic() + blocking_timeout
            self.acquired = await self._poll(deadline, retry_interval, jitter)

        if self.acquired:
            logger.debug(f"Lease taken: key={self.lock_key} owner={self.owner} ttl={self._ttl}s")
        else:
            logger.warning(f"Lease busy: key={self.lock_key} owner={self.owner}")
        return self.acquired

    async def extend(self, ttl: Optional[int] = None) -> bool:
        """Restart the lease TTL from now. False if the lease is no longer ours."""
        if not self.acquired:
            return False

        new_ttl = int(ttl or self._ttl)
        try:
            extended = await self._owner_script(_EXTEND_LUA, new_ttl) == 1
        except Exception as e:
            logger.error(f"Lease extend failed: key={self.lock_key} error={e}")
            return False

        if extended:
            self._ttl = new_ttl
        else:
            self.acquired = False
            logger.warning(f"Lease lost before extend: key={self.lock_key} owner={self.owner}")
        return extended

    @contextlib.asynccontextmanager
    async def keep_alive(self, interval: Optional[float] = None):
        """Extend the lease every ``interval`` seconds (a third of the TTL by default) until the block exits.

        Stops refreshing once the lease is lost; check ``bool(lock)`` before acting on it.
        """
        interval = interval or self._ttl / 3

        async def _refresh() -> None:
            while self.acquired:
                await asyncio.sleep(interval)
                await self.extend()

        task = asyncio.create_task(_refresh())
        try:
            yield self
        finally:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def release(self) -> bool:
        """Delete the lease if we still own it. Errors are logged; the TTL cleans up."""
        if not self.acquired:
            return False

        self.acquired = False
        try:
            released = await self._owner_script(_RELEASE_LUA) == 1
        except Exception as e:
            logger.error(f"Lease release failed: key={self.lock_key} error={e}")
            return False

        if released:
            logger.debug(f"Lease released: key={self.lock_key} owner={self.owner}")
        else:
            # expired while held; another owner may have it now
            logger.warning(f"Lease expired before release: key={self.lock_key} owner={self.owner}")
        return released
