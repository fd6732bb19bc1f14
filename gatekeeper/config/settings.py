"""Application settings loaded from environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    # Deployment environment (NODE_ENV equivalent)
    app_env: str = "development"  # development | production

    # Gatekeeper scope
    api_prefix: str = "/api"

    # CORS
    allowed_origins: str = (
        "https://bageledu.com,https://www.bageledu.com,https://admin.bageledu.com"
    )
    dev_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    cors_allow_methods: str = "GET, POST, PUT, DELETE, OPTIONS"
    cors_allow_headers: str = "Content-Type, Authorization, X-CSRF-Token"

    # Rate limiting
    rate_limit_max_requests: int = 60  # Requests per window per client
    rate_limit_window_ms: int = 60_000
    rate_limit_block_ms: int = 60_000
    rate_limit_store_backend: str = "memory"  # "memory" | "dynamodb"
    rate_limit_table_name: str = "gatekeeper-client-windows"

    # Idle window eviction
    eviction_interval_seconds: float = 600.0
    eviction_idle_ms: int = 600_000

    # Short links
    link_store_backend: str = "json"  # "json" | "dynamodb"
    link_store_path: str = "links.json"
    links_table_name: str = "gatekeeper-links"
    link_clicks_table_name: str = "gatekeeper-link-clicks"
    aws_region: str = "us-east-1"

    # Editor authentication
    # Comma-separated key=email pairs
    editor_api_keys: str = ""

    # Logging
    log_level: str = "INFO"
    audit_log_file: str = ""  # Empty = stdout only

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    @property
    def allowed_origins_list(self) -> list[str]:
        """Configured origins, plus local dev origins outside production."""
        origins = _split_csv(self.allowed_origins)
        if not self.is_production:
            origins.extend(o for o in _split_csv(self.dev_origins) if o not in origins)
        return origins

    @property
    def editor_keys(self) -> dict[str, str]:
        """Map API key -> editor email. Entries without '=' are ignored."""
        keys = {}
        for entry in _split_csv(self.editor_api_keys):
            key, sep, email = entry.partition("=")
            if sep and key.strip() and email.strip():
                keys[key.strip()] = email.strip()
        return keys


@lru_cache
def get_settings() -> Settings:
    return Settings()
