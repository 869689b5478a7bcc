"""Application configuration."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_parse_none_str="null",
    )

    # Application
    app_name: str = Field(default="ilovexxh Accounts", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")
    api_v1_prefix: str = Field(default="/api/v1", alias="API_V1_PREFIX")

    # Server
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    reload: bool = Field(default=False, alias="RELOAD")

    # Account backend
    account_backend: Literal["local", "firebase"] = Field(default="local", alias="ACCOUNT_BACKEND")

    # Persistence substrate for records and the session pointer
    storage_backend: Literal["memory", "file", "redis"] = Field(
        default="file", alias="STORAGE_BACKEND"
    )
    storage_path: str = Field(default="data/accounts.json", alias="STORAGE_PATH")
    storage_key_prefix: str = Field(default="ilovexxh_", alias="STORAGE_KEY_PREFIX")

    # Redis
    redis_host: str = Field(default="localhost", alias="REDIS_HOST")
    redis_port: int = Field(default=6379, alias="REDIS_PORT")
    redis_username: str = Field(default="default", alias="REDIS_USERNAME")
    redis_password: str = Field(default="", alias="REDIS_PASSWORD")
    redis_decode_responses: bool = Field(default=True, alias="REDIS_DECODE_RESPONSES")

    # Firebase
    firebase_credentials_path: str | None = Field(
        default=None,
        alias="FIREBASE_CREDENTIALS_PATH",
        description="Path to Firebase service account JSON file",
    )

    firebase_config_json: str | None = Field(
        default=None,
        alias="FIREBASE_CONFIG_JSON",
        description="Raw JSON string of the Firebase service account",
    )

    firebase_web_api_key: str = Field(
        default="",
        alias="FIREBASE_WEB_API_KEY",
        description="Web API key used for password sign-in and reset emails",
    )

    # Passwords
    password_min_length: int = Field(default=6, alias="PASSWORD_MIN_LENGTH")
    checksum_salt: str = Field(default="ilovexxh_salt_2025", alias="CHECKSUM_SALT")

    # Simulated latency of the local backend, in seconds
    register_delay: float = Field(default=0.8, alias="REGISTER_DELAY")
    login_delay: float = Field(default=0.8, alias="LOGIN_DELAY")
    federated_login_delay: float = Field(default=1.2, alias="FEDERATED_LOGIN_DELAY")
    logout_delay: float = Field(default=0.3, alias="LOGOUT_DELAY")
    update_profile_delay: float = Field(default=0.6, alias="UPDATE_PROFILE_DELAY")
    get_profile_delay: float = Field(default=0.3, alias="GET_PROFILE_DELAY")

    # CORS
    cors_origins_str: str = Field(
        default="http://localhost:3000",
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")

    @property
    def cors_origins(self) -> list[str]:
        """Get CORS origins as a list."""
        if isinstance(self.cors_origins_str, str):
            return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]
        return [self.cors_origins_str]

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
