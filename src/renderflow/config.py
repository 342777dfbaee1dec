"""renderflow configuration using pydantic-settings.

All configuration is strongly typed and supports environment variables
and .env files.
"""

from typing import TypeGuard

from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid.

    This exception provides clear, actionable error messages when
    configuration values required by a specific operation are not set.

    Example:
        >>> Settings(_env_file=None).require_gateway_key()  # doctest: +ELLIPSIS
        Traceback (most recent call last):
        ...
        ConfigError: Generation gateway API key not configured. Set it in .env
        file or GATEWAY_API_KEY environment variable.
    """

    def __init__(self, key_name: str, env_var: str) -> None:
        """Initialize configuration error.

        Args:
            key_name: Human-readable name of the missing key.
            env_var: Environment variable name to set.
        """
        self.key_name = key_name
        self.env_var = env_var
        message = (
            f"{key_name} not configured. "
            f"Set it in .env file or {env_var} environment variable."
        )
        super().__init__(message)


class Settings(BaseSettings):
    """Application settings loaded from environment variables or .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    # Generation gateway (OpenAI-compatible chat completions endpoint)
    GATEWAY_API_KEY: str | None = None
    GATEWAY_BASE_URL: str = "https://ai.gateway.lovable.dev/v1"
    GENERATION_MODEL: str = "google/gemini-2.5-flash-image-preview"
    ANALYSIS_MODEL: str = "google/gemini-2.5-flash"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "console"  # "console" or "json"

    # Rate limiting and timeouts
    GATEWAY_RPM: int = 30  # Requests per minute sent to the gateway
    GATEWAY_MAX_ATTEMPTS: int = 1  # Connection-failure attempts; 1 = no retry
    GENERATION_TIMEOUT_SECONDS: float = 180.0
    ANALYSIS_TIMEOUT_SECONDS: float = 30.0
    IMAGE_FETCH_TIMEOUT_SECONDS: float = 30.0

    # Request assembly
    MAX_STYLE_REFERENCES: int = 3
    MASK_WIDTH: int = 1024
    MASK_HEIGHT: int = 576
    DEFAULT_ASPECT_RATIO: str = "16:9"

    # Cropping
    CROP_JPEG_QUALITY: int = 95
    CROP_CACHE_SIZE: int = 32  # 0 disables memoization

    @staticmethod
    def _is_configured_secret(value: str | None) -> TypeGuard[str]:
        return value is not None and value.strip() != ""

    def require_gateway_key(self) -> str:
        """Get the gateway API key, raising ConfigError if not set.

        Use this method when constructing gateway clients to get a clear
        error message instead of cryptic authentication failures.

        Returns:
            The gateway API key string.

        Raises:
            ConfigError: If GATEWAY_API_KEY is not configured.
        """
        if not self._is_configured_secret(self.GATEWAY_API_KEY):
            raise ConfigError("Generation gateway API key", "GATEWAY_API_KEY")
        return self.GATEWAY_API_KEY


# Singleton instance for import convenience
settings = Settings()
