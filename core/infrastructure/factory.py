from config.base import get_settings

from .services import DataSanitizer, RedisService

# Process-wide singletons; tests swap `_redis_service` for a fake client.
_data_sanitizer: DataSanitizer | None = None
_redis_service: RedisService | None = None


async def get_data_sanitizer() -> DataSanitizer:
    """Provide the shared `DataSanitizer` used before anything is logged."""
    global _data_sanitizer

    if _data_sanitizer is None:
        _data_sanitizer = DataSanitizer()

    return _data_sanitizer


async def get_redis_service() -> RedisService:
    """Provide the shared `RedisService` backing the lookup cache.

    The client connects lazily, so obtaining the service never touches Redis.

    Returns
    -------
    RedisService
        Service built from the current settings on first call.
    """
    global _redis_service

    if _redis_service is None:
        _redis_service = RedisService(get_settings())

    return _redis_service


async def close_redis_service() -> None:
    """Close the shared Redis client on shutdown; a later call reconnects."""
    global _redis_service

    if _redis_service is not None:
        await _redis_service.close()
        _redis_service = None
