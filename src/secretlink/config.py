from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    server_host: str = "0.0.0.0"
    server_port: int = 8080

    # Token lifetimes (seconds)
    link_ttl_seconds: int = 900  # 15 minutes
    code_ttl_seconds: int = 600  # 10 minutes
    # Random bytes per token id; 16 bytes = 128 bits
    token_id_bytes: int = 16
    # Id regeneration attempts when the store reports a collision
    issue_max_attempts: int = 5

    # Background expiry sweep. The display countdown polls validate() on its own
    # cadence; this is the authoritative eviction interval.
    sweep_enabled: bool = True
    sweep_interval_seconds: int = 60

    # Store backend: "memory", "sql" or "redis"
    token_store: str = "memory"
    database_url: str = "sqlite+aiosqlite:///./secretlink.db"
    db_pool_size: int = 5
    db_max_overflow: int = 10
    redis_url: str = ""
    redis_key_prefix: str = "token:"
    # Keep expired records this long in redis so lookups can still report "expired"
    redis_expired_retention_seconds: int = 3600
    # Socket/pool timeout for remote stores; exceeded -> StorageError
    store_timeout_seconds: float = 5.0

    # Credential checks
    link_master_password_hash: str = ""
    register_on_first_use: bool = True

    # Attempts per client IP across the verification endpoints
    rate_limit_calls: int = 5
    rate_limit_period_seconds: int = 900  # 15 minutes

    # Email / SendGrid
    sendgrid_api_key: str = ""
    email_from: str = "no-reply@example.com"
    frontend_url: str = "http://localhost:3000"


# module-level settings instance for convenience across the app
settings = Settings()
