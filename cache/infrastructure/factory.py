from config.base import get_settings
from core.infrastructure.factory import get_redis_service

from .services import RedisCacheService


async def get_redis_cache_service() -> RedisCacheService:
    """Build the cache service over the shared Redis client.

    Looked up on every cached call, so tests and a restarted Redis service
    are picked up without re-decorating anything.
    """
    return RedisCacheService(await get_redis_service(), get_settings())
