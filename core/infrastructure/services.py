import re
from typing import Any, Dict, List, Pattern

from redis.asyncio import Redis

from config.base import Settings


class DataSanitizer:
    """Mask sensitive information before it reaches the log sinks.

    Field names matching a sensitive pattern (tokens, secrets, passwords) have
    their values replaced, e-mail addresses are partially masked, and bearer
    tokens or `token=` query parameters embedded in free text are redacted.
    """

    MASK = "***MASKED***"

    def __init__(self):
        self.sensitive_patterns: List[Pattern[str]] = [
            re.compile(r"password", re.IGNORECASE),
            re.compile(r"passwd", re.IGNORECASE),
            re.compile(r"secret", re.IGNORECASE),
            re.compile(r"token", re.IGNORECASE),
            re.compile(r"api_key", re.IGNORECASE),
            re.compile(r"authorization", re.IGNORECASE),
            re.compile(r"credential", re.IGNORECASE),
            re.compile(r"cookie", re.IGNORECASE),
            re.compile(r"session", re.IGNORECASE),
        ]
        self.email_pattern = re.compile(
            r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}"
        )
        self.bearer_pattern = re.compile(r"(Bearer\s+)[A-Za-z0-9\-_.=]+")
        self.token_param_pattern = re.compile(
            r"((?:access_)?token=)[^&\s]+", re.IGNORECASE
        )

    def sanitize_for_logging(self, data: Any) -> Any:
        """Sanitize data for logging purposes.

        Parameters
        ----------
        data: Any
            Data to be sanitized (string, dict, list, etc.).

        Returns
        -------
        Any
            Sanitized data with sensitive information masked.
        """
        return self._sanitize_value(data)

    def sanitize_exception_for_logging(self, exception: Exception | str) -> str:
        """Return a sanitized, single-line description of an exception.

        Parameters
        ----------
        exception: Exception | str
            Exception (or already formatted message) to sanitize.

        Returns
        -------
        str
            Sanitized message, or a generic placeholder if sanitization fails.
        """
        try:
            text = str(exception)
            text = re.sub(
                r"\[parameters: .*?\]", "[parameters: ***SANITIZED***]", text
            )
            return self._sanitize_string(text)
        except Exception:
            return f"***SANITIZED*** {type(exception).__name__}"

    def _is_sensitive_field(self, field_name: str) -> bool:
        return any(pattern.search(field_name) for pattern in self.sensitive_patterns)

    def _mask_email(self, email: str) -> str:
        """Mask an email address, e.g. `e****l@example.com`."""
        local, domain = email.split("@", 1)
        if len(local) <= 2:
            masked_local = "*" * len(local)
        else:
            masked_local = local[0] + "*" * (len(local) - 2) + local[-1]
        return f"{masked_local}@{domain}"

    def _sanitize_string(self, text: str, max_length: int = 1000) -> str:
        if len(text) > max_length:
            text = text[:max_length] + "..."

        text = self.email_pattern.sub(lambda m: self._mask_email(m.group()), text)
        text = self.bearer_pattern.sub(rf"\g<1>{self.MASK}", text)
        text = self.token_param_pattern.sub(rf"\g<1>{self.MASK}", text)
        return text

    def _sanitize_dict(
        self, data: Dict[str, Any], max_depth: int = 5
    ) -> Dict[str, Any]:
        if max_depth <= 0:
            return {"<max_depth_reached>": "..."}

        sanitized = {}
        for key, value in data.items():
            if self._is_sensitive_field(str(key)):
                sanitized[key] = self.MASK
            else:
                sanitized[key] = self._sanitize_value(value, max_depth - 1)

        return sanitized

    def _sanitize_value(self, value: Any, max_depth: int = 5) -> Any:
        if value is None:
            return None

        if isinstance(value, dict):
            return self._sanitize_dict(value, max_depth)
        elif isinstance(value, (list, tuple)):
            if max_depth <= 0:
                return ["<max_depth_reached>"]
            return [self._sanitize_value(item, max_depth - 1) for item in value[:10]]
        elif isinstance(value, (int, float, bool)):
            return value
        else:
            return self._sanitize_string(str(value))


class RedisService:
    """Own the shared asynchronous Redis client.

    Services that need Redis (the lookup cache) receive this object and call
    `_get_redis()` lazily, so the connection is only opened on first use.
    """

    def __init__(self, settings: Settings):
        self._settings = settings
        self._redis: Redis | None = None

    async def _get_redis(self) -> Redis:
        """Establish and return the asynchronous Redis client instance.

        Returns
        -------
        Redis
            Asynchronous Redis client instance.
        """
        if self._redis is None:
            self._redis = Redis(
                host=self._settings.redis_host,
                port=self._settings.redis_port,
                db=self._settings.redis_db,
                password=self._settings.redis_password,
                decode_responses=False,
                socket_connect_timeout=self._settings.redis_socket_connect_timeout,
                socket_timeout=self._settings.redis_socket_timeout,
                retry_on_timeout=True,
                health_check_interval=30,
                ssl_cert_reqs=self._settings.ssl_cert_reqs,
                ssl=self._settings.redis_use_ssl,
                max_connections=10,
            )

        return self._redis

    async def ping(self) -> bool:
        redis_client = await self._get_redis()
        return bool(await redis_client.ping())

    async def close(self) -> None:
        """Close the Redis connection."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None
