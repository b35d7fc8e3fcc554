"""Application configuration loaded from environment variables.

All configuration is via environment variables (or a local .env file).
No hardcoded URLs, ports, or credentials.
"""

from functools import lru_cache

from pydantic import AliasChoices, Field, PostgresDsn
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="PBNJ Article Service")
    app_version: str = Field(default="2.0.0")
    debug: bool = Field(default=False)
    environment: str = Field(default="development")
    frontend_url: str | None = Field(
        default=None, description="Allowed CORS origin for the dashboard"
    )

    # Server
    port: int = Field(default=8000, description="Port to bind to")
    host: str = Field(default="0.0.0.0", description="Host to bind to")

    # Database
    database_url: PostgresDsn = Field(
        ...,
        description="PostgreSQL connection string",
    )
    db_pool_size: int = Field(default=10, description="Database connection pool size")
    db_max_overflow: int = Field(default=5, description="Max overflow connections")
    db_pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    db_slow_query_threshold_ms: int = Field(
        default=100, description="Threshold for slow query warnings (ms)"
    )
    db_connect_timeout: int = Field(
        default=30, description="Connection timeout in seconds"
    )
    db_command_timeout: int = Field(
        default=60, description="Command timeout in seconds"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Log format: json or text")

    # OpenAI
    openai_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("openai_api_key", "next_public_openai_api_key"),
        description="OpenAI API key (NEXT_PUBLIC_OPENAI_API_KEY is also accepted)",
    )
    openai_model: str = Field(
        default="gpt-4o", description="OpenAI chat model used when no engine is given"
    )
    openai_timeout: float = Field(
        default=120.0, description="OpenAI request timeout in seconds"
    )
    openai_max_retries: int = Field(
        default=3, description="Maximum retry attempts for OpenAI requests"
    )
    openai_retry_delay: float = Field(
        default=1.0, description="Base delay between retries in seconds"
    )
    openai_max_tokens: int = Field(
        default=4096, description="Maximum tokens in an OpenAI response"
    )
    openai_circuit_failure_threshold: int = Field(
        default=5, description="Failures before circuit opens"
    )
    openai_circuit_recovery_timeout: float = Field(
        default=60.0, description="Seconds before attempting recovery"
    )

    # Claude/Anthropic
    anthropic_api_key: str | None = Field(
        default=None,
        description="Anthropic API key for Claude models",
    )
    claude_model: str = Field(
        default="claude-3-7-sonnet-20250219",
        description="Claude model used when an engine prefix routes to Anthropic",
    )
    claude_timeout: float = Field(
        default=120.0, description="Claude API request timeout in seconds"
    )
    claude_max_retries: int = Field(
        default=3, description="Maximum retry attempts for Claude API requests"
    )
    claude_retry_delay: float = Field(
        default=1.0, description="Base delay between retries in seconds"
    )
    claude_max_tokens: int = Field(
        default=4096, description="Maximum tokens in a Claude response"
    )
    claude_circuit_failure_threshold: int = Field(
        default=5, description="Failures before circuit opens"
    )
    claude_circuit_recovery_timeout: float = Field(
        default=60.0, description="Seconds before attempting recovery"
    )

    # Article pipeline
    default_engine: str = Field(
        default="gpt-4o",
        description="Engine used when a request does not name one (claude-* routes to Anthropic)",
    )
    prompt_token_budget: int = Field(
        default=3000, description="Word budget the prompt is trimmed to before each call"
    )
    pipeline_temperature: float = Field(
        default=0.7, description="Default sampling temperature for article stages"
    )
    remix_max_iterations: int = Field(
        default=10, description="Upper bound on remix iterations per request"
    )

    # WordPress
    wordpress_timeout: float = Field(
        default=30.0, description="WordPress REST API timeout in seconds"
    )

    # PBN publishing
    pbn_bulk_max_articles: int = Field(
        default=20, description="Maximum articles accepted by one bulk post"
    )
    pbn_site_reuse_window_days: int = Field(
        default=90,
        description="Avoid reusing a PBN site for the same client within this window",
    )
    pbn_default_category_id: int = Field(
        default=1, description="WordPress 'Uncategorized' category id"
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
