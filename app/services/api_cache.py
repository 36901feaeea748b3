from typing import Any, Callable, Optional

from fastapi_cache import FastAPICache
from fastapi_cache.decorator import cache
from loguru import logger

STREAM_KEYS_NAMESPACE = "stream_keys"


def cw_cache(
    expire_seconds: int | None = 60,
    namespace: str = "",
    key_builder: Optional[Callable[..., Any]] = None,
):
    """
    Wrapper around fastapi_cache.decorator.cache with default expire_seconds.

    Args:
        expire_seconds: Cache expiration time in seconds (default: 60)
        namespace: Cache namespace passed through to fastapi-cache
        key_builder: Optional custom key builder

    Returns:
        cache decorator configured with the specified expiration time
    """
    return cache(expire=expire_seconds, namespace=namespace, key_builder=key_builder)


def stream_keys_cache_key(user_id: str) -> str:
    return f"{FastAPICache.get_prefix()}:{STREAM_KEYS_NAMESPACE}:{user_id}"


def stream_keys_key_builder(
    func: Callable[..., Any],
    namespace: str = "",
    *,
    request: Any = None,
    response: Any = None,
    args: tuple = (),
    kwargs: dict | None = None,
) -> str:
    """One cache entry per authenticated user, so it can be dropped by user id."""
    user = (kwargs or {}).get("user")
    return stream_keys_cache_key(user.user_id if user else "anonymous")


async def invalidate_stream_keys(user_id: str) -> None:
    """Drop the cached stream keys of ``user_id``. Failures are logged, never raised."""
    key = f"{STREAM_KEYS_NAMESPACE}:{user_id}"
    try:
        key = stream_keys_cache_key(user_id)
        await FastAPICache.get_backend().clear(key=key)
    except KeyError:
        # in-memory backend: nothing cached for this user
        pass
    except Exception as e:
        logger.warning("Failed to invalidate stream keys cache: key={} error={}", key, str(e))
    else:
        logger.debug("Invalidated stream keys cache: key={}", key)
