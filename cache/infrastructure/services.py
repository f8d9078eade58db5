import hashlib
import pickle
from typing import Any

import msgpack

from config.base import Settings
from core.infrastructure.services import RedisService

from ..application.ports import CacheServiceInterface


class RedisCacheService(CacheServiceInterface):
    """Concrete implementation of `CacheServiceInterface` backed by Redis.

    Values are packed with `msgpack`; objects msgpack cannot represent (domain
    entities) fall back to `pickle`.
    """

    def __init__(self, redis_service: RedisService, settings: Settings):
        self.redis_service = redis_service
        self._settings = settings

    @staticmethod
    def get_cache_key(key_prefix: str, func_name: str, *args, **kwargs) -> str:
        """Generate a unique cache key based on function arguments.

        The bound instance (first positional argument of a method) is skipped
        so that every repository instance shares the same keys.

        Parameters
        ----------
        key_prefix: str
            String value to identify the key.
        func_name: str
            Qualified name of the function being cached.
        *args
            Positional arguments passed to the function.
        **kwargs
            Keyword arguments passed to the function.

        Returns
        -------
        str
            `<prefix>:<func_name>:<md5 of arguments>`.
        """
        key_parts = []

        for i, arg in enumerate(args):
            if i == 0 and hasattr(arg, "__dict__") and hasattr(arg, "__class__"):
                continue

            key_parts.append(f"arg{i}:{str(arg)}")

        for key, value in sorted(kwargs.items()):
            key_parts.append(f"{key}:{str(value)}")

        key_string = "|".join(key_parts)
        key_suffix = hashlib.md5(key_string.encode()).hexdigest()

        return (
            f"{key_prefix}:{func_name}:{key_suffix}"
            if key_prefix
            else f"{func_name}:{key_suffix}"
        )

    async def get(self, key: str) -> Any:
        redis_client = await self.redis_service._get_redis()
        data = await redis_client.get(key)
        if data is None:
            return None

        return self._deserialize_data(data)

    async def set(self, key: str, value: Any, timeout: int | None = None) -> bool:
        """Set a key-value pair with an optional expiration timeout.

        Parameters
        ----------
        key: str
            Key for the item.
        value: Any
            Value to be cached.
        timeout: int | None, optional
            Expiration time in seconds. If None, use `cache_timeout_seconds`.

        Returns
        -------
        bool
            True if Redis acknowledged the write.
        """
        redis_client = await self.redis_service._get_redis()
        serialized_value = self._serialize_value(value)
        timeout = timeout or self._settings.cache_timeout_seconds

        if timeout is not None:
            result = await redis_client.setex(key, timeout, serialized_value)
        else:
            result = await redis_client.set(key, serialized_value)

        return bool(result)

    def _serialize_value(self, value: Any) -> bytes:
        try:
            return msgpack.packb(value, use_bin_type=True)

        except (ValueError, TypeError):
            return pickle.dumps(value)

    def _deserialize_data(self, data: bytes) -> Any:
        try:
            return msgpack.unpackb(data, raw=False)

        except (msgpack.exceptions.ExtraData, ValueError, TypeError):
            return pickle.loads(data)
