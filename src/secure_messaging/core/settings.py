"""Application settings and configuration.

This module defines all configuration options for the secure messaging service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Secure Messaging", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./secure_messaging.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Caller identity tokens are minted by the external identity subsystem
    identity_token_secret: str = Field(
        default="change-me-identity-secret",
        alias="IDENTITY_TOKEN_SECRET",
    )
    identity_token_algorithm: str = Field(default="HS256", alias="IDENTITY_TOKEN_ALGORITHM")

    # Conversation key derivation
    key_domain_separator: str = Field(
        default="mentalverse_phi_encryption_v1",
        alias="KEY_DOMAIN_SEPARATOR",
    )

    # Anti-abuse policy for message sending
    message_rate_limit_calls: int = Field(default=50, alias="MESSAGE_RATE_LIMIT_CALLS")
    message_rate_limit_window_ms: int = Field(default=60_000, alias="MESSAGE_RATE_LIMIT_WINDOW_MS")
    nonce_expiry_ms: int = Field(default=300_000, alias="NONCE_EXPIRY_MS")
    nonce_future_skew_ms: int = Field(default=60_000, alias="NONCE_FUTURE_SKEW_MS")

    # Input limits
    max_text_length: int = Field(default=10_000, alias="MAX_TEXT_LENGTH")
    max_payload_length: int = Field(default=1_000_000, alias="MAX_PAYLOAD_LENGTH")
    message_page_default: int = Field(default=50, alias="MESSAGE_PAGE_DEFAULT")
    message_page_max: int = Field(default=100, alias="MESSAGE_PAGE_MAX")

    # Serialized record ceilings (bytes)
    max_message_bytes: int = Field(default=10_240, alias="MAX_MESSAGE_BYTES")
    max_conversation_bytes: int = Field(default=2_048, alias="MAX_CONVERSATION_BYTES")
    max_user_key_bytes: int = Field(default=1_024, alias="MAX_USER_KEY_BYTES")
    max_rate_limit_bytes: int = Field(default=256, alias="MAX_RATE_LIMIT_BYTES")
    max_nonce_bytes: int = Field(default=256, alias="MAX_NONCE_BYTES")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides.

        Returns:
            The active database URL (test database if in testing mode, otherwise production)
        """
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def record_ceilings(self) -> dict[str, int]:
        """Return the per-map serialized size ceilings keyed by map name."""
        return {
            "messages": self.max_message_bytes,
            "conversations": self.max_conversation_bytes,
            "user_keys": self.max_user_key_bytes,
            "rate_limits": self.max_rate_limit_bytes,
            "nonces": self.max_nonce_bytes,
        }


settings = Settings()
