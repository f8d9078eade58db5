from functools import wraps
from typing import Callable

from loguru import logger

from core.infrastructure.factory import get_data_sanitizer

from . import factory


def cache(
    timeout_seconds: int | None, key_prefix: str = ""
) -> Callable[[Callable], Callable]:
    """Decorator for caching the results of asynchronous functions.

    Cache key is generated based on the function's arguments.
    If a result is found in the cache, return it immediately.
    Otherwise, execute the function, cache a non-None result, and then return it.
    Cache failures are logged and the wrapped function is called directly.

    Parameters
    ----------
    timeout_seconds: int | None
        Time in seconds before the cached item expires.
        If None, the cache service default applies.
    key_prefix: str, default=""
        Optional prefix to add to the generated cache key for categorization.

    Returns
    -------
    Callable[[Callable], Callable]
        Decorator that can be applied to an asynchronous function.
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            func_name = f"{func.__module__}.{func.__qualname__}"

            cache_service = await factory.get_redis_cache_service()
            cache_key = cache_service.get_cache_key(
                key_prefix, func_name, *args, **kwargs
            )

            sanitizer = await get_data_sanitizer()
            sanitized_key = sanitizer.sanitize_for_logging(cache_key)

            try:
                cached_result = await cache_service.get(cache_key)
            except Exception as e:
                exc_msg = sanitizer.sanitize_exception_for_logging(e)
                logger.error(f"🔴 Cache ERROR: {exc_msg}")
                return await func(*args, **kwargs)

            if cached_result is not None:
                logger.debug(f"🎯 Cache HIT for key: {sanitized_key}")
                return cached_result

            logger.debug(f"🔍 Cache MISS for key: {sanitized_key}")
            result = await func(*args, **kwargs)

            if result is not None:
                try:
                    await cache_service.set(cache_key, result, timeout_seconds)
                except Exception as e:
                    exc_msg = sanitizer.sanitize_exception_for_logging(e)
                    logger.error(f"🔴 Cache ERROR: {exc_msg}")

            return result

        return async_wrapper

    return decorator
