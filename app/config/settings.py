from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PLAN_MODEL = "deepseek-chat"
DEFAULT_PROVIDER_API_URL = "https://api.deepseek.com/v1/chat/completions"


class Settings(BaseSettings):
    database_url: str = Field(
        default="",  # Empty selects the in-process store (local development only)
        validation_alias="DATABASE_URL",
    )
    plan_model: str = Field(default=DEFAULT_PLAN_MODEL, validation_alias="PLAN_MODEL")
    provider_api_url: str = Field(default=DEFAULT_PROVIDER_API_URL, validation_alias="PROVIDER_API_URL")
    provider_api_key: str = Field(default="", validation_alias="PROVIDER_API_KEY")
    provider_mock_mode: bool = Field(
        default=False,
        validation_alias="PROVIDER_MOCK_MODE",
        description="Force synthetic plan generation even when a credential is configured",
    )
    provider_timeout_seconds: float = Field(default=60.0, validation_alias="PROVIDER_TIMEOUT_SECONDS")
    auth_secret_key: str = Field(default="", validation_alias="AUTH_SECRET_KEY")
    auth_algorithm: str = Field(default="HS256", validation_alias="AUTH_ALGORITHM")
    auth_token_expire_days: int = Field(default=30, validation_alias="AUTH_TOKEN_EXPIRE_DAYS")
    cors_allowed_origins: str = Field(default="*", validation_alias="CORS_ALLOWED_ORIGINS")  # Comma-separated list
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="LOG_FILE")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid LOG_LEVEL '{value}'. Valid levels are: {', '.join(sorted(valid_levels))}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    @field_validator("provider_api_key")
    @classmethod
    def warn_missing_provider_key(cls, value: str) -> str:
        """Warn when no provider credential is configured.

        Plan generation still works without it: the generation client falls
        back to mock mode and synthesizes a deterministic plan locally.
        """
        if not value:
            logger.warning(
                "PROVIDER_API_KEY is not set. Plan generation will run in mock mode "
                "and no call to the generation provider will be made."
            )
        return value

    @field_validator("provider_timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("PROVIDER_TIMEOUT_SECONDS must be positive")
        return value

    @property
    def cors_origins(self) -> list[str]:
        """Parsed CORS origins; an empty setting allows every origin."""
        origins = [origin.strip() for origin in self.cors_allowed_origins.split(",") if origin.strip()]
        return origins or ["*"]
