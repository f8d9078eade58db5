from abc import ABC, abstractmethod
from typing import Any


class CacheServiceInterface(ABC):
    """Key/value store behind the `@cache` decorator.

    Producers resolve the same recipients and actors on every domain event, so
    directory lookups are memoized here for a few minutes.
    """

    @staticmethod
    @abstractmethod
    def get_cache_key(key_prefix: str, func_name: str, *args, **kwargs) -> str:
        """Derive a stable key for a call of `func_name` with these arguments."""
        pass

    @abstractmethod
    async def get(self, key: str) -> Any:
        """Return the cached value for `key`, or None on a miss."""
        pass

    @abstractmethod
    async def set(self, key: str, value: Any, timeout: int | None = None) -> bool:
        """Store `value` under `key` for `timeout` seconds.

        Parameters
        ----------
        key: str
            Key produced by `get_cache_key`.
        value: Any
            Value to be cached. None is never stored.
        timeout: int | None, optional
            Lifetime in seconds; the configured default applies when omitted.

        Returns
        -------
        bool
            True if the value was stored.
        """
        pass
