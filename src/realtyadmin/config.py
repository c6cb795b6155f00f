"""Settings read from the environment (prefix REALTYADMIN_) and an optional .env file."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="REALTYADMIN_", env_file=".env", env_file_encoding="utf-8"
    )

    database_path: str = "realtyadmin.db"
    busy_timeout: float = 5.0

    token_secret: str = Field(default="change-me", min_length=8)
    token_expiry_seconds: int = 24 * 60 * 60

    # client side limit for a single backend call
    request_timeout: float = 10.0

    owner_name: str = "Owner Admin"
    owner_phone: str = "9876543209"
    owner_password: str = "Owner@12345"

    host: str = "127.0.0.1"
    port: int = 5000
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
