from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration settings with environment variable integration.

    Attributes
    ----------
    secret_key: str
        Key for JWT signing/verification.
    algorithm: str, default="HS256"
        JWT signing algorithm.
    access_token_expiry: int, default=30
        Access token lifetime in minutes.
    debug: bool, default=False
        Enable/disable debug mode.
    environment: str, default="development"
        Application environment: "development", "test", "production", etc.
    logging_level: str, default="INFO"
        Logging verbosity: e.g., "INFO", "DEBUG".
    base_dir: Path, default=auto-detected
        Project base directory.
    logs_dir: Path | None, optional
        Directory for log files, defaults to `base_dir / "logs"`.
    database_url: str | None, optional
        Async SQLAlchemy URL, defaults to a SQLite file inside `base_dir`.
    cache_timeout_seconds: int | None, default=1800
        Default cache entry timeout in seconds.
    cors_origins: List[str]
        Origins allowed to call the API from a browser.
    notification_fetch_limit: int, default=50
        Default page size when fetching notifications.
    notification_max_fetch_limit: int, default=100
        Upper bound accepted for the notification page size.
    notification_purge_interval_seconds: int, default=300
        Interval of the expired-notification sweeper, 0 disables it.
    deactivation_notice_hours: float, default=24
        Lifetime of the notice sent to a deactivated account.
    redis_host: str, default="localhost"
        Redis server hostname.
    redis_port: int, default=6379
        Redis server port.
    redis_db: int, default=0
        Redis database index.
    redis_password: str | None, optional
        Redis password.
    redis_socket_connect_timeout: int, default=5
        Redis socket connect timeout in seconds.
    redis_socket_timeout: int, default=5
        Redis socket read/write timeout in seconds.
    redis_use_ssl: bool, default=False
        Use SSL for Redis connection.
    ssl_cert_reqs: str | None, optional
        SSL certificate requirements for Redis.
    server_port: int, default=8001
        Port used by `manage.py runserver`.
    ssl_certfile_path: Path | None, optional
        Path to SSL certificate for Uvicorn.
    ssl_keyfile_path: Path | None, optional
        Path to SSL key for Uvicorn.

    Raises
    ------
    ValueError
        If the secret key is empty or the algorithm is unsupported.

    Notes
    -----
    Sensitive configuration values like secret keys and passwords
    should always be provided via environment variables or secure secret management
    systems, never committed to version control or hardcoded in source files.
    """

    secret_key: str
    algorithm: str = "HS256"
    access_token_expiry: int = 30
    debug: bool = False
    environment: str = "development"
    logging_level: str = "INFO"
    base_dir: Path = Path(__file__).resolve().parent.parent
    logs_dir: Path | None = None
    database_url: str | None = None
    cache_timeout_seconds: int | None = 1800
    cors_origins: List[str] = ["http://localhost:5173"]
    notification_fetch_limit: int = 50
    notification_max_fetch_limit: int = 100
    notification_purge_interval_seconds: int = 300
    deactivation_notice_hours: float = 24
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: str | None = None
    redis_socket_connect_timeout: int = 5
    redis_socket_timeout: int = 5
    redis_use_ssl: bool = False
    ssl_cert_reqs: str | None = None
    server_port: int = 8001
    ssl_certfile_path: Path | None = None
    ssl_keyfile_path: Path | None = None

    model_config = SettingsConfigDict(env_file=".env", extra="allow")

    @model_validator(mode="after")
    def ensure_valid_configuration(self) -> "Settings":
        """Resolve derived paths and validate signing configuration.

        Returns
        -------
        Settings
            Validated settings instance.

        Raises
        ------
        ValueError
            If secret key is missing or the algorithm is not HMAC based.
        """
        if self.logs_dir is None:
            self.logs_dir = self.base_dir / "logs"

        if not self.secret_key:
            raise ValueError("Secret Key value is required for token signing")

        if self.algorithm not in {"HS256", "HS384", "HS512"}:
            raise ValueError(f'Unsupported signing algorithm: "{self.algorithm}"')

        return self

    @property
    def log_file(self) -> Path:
        """Main log file path, derived from `logs_dir`."""
        return self.logs_dir / "construction_qa.log"

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in ["dev", "development", "local"]


@lru_cache
def get_settings() -> Settings:
    """Create and cache singleton Settings instance for application use.

    Returns
    -------
    Settings
        Cached singleton instance of application settings with all
        configuration values loaded and validated.
    """
    return Settings()
