from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    app_env: str = "dev"
    log_level: str = "INFO"

    # Infra
    gateway_base_url: str = "http://sms-gateway:8025"
    status_server_url: str = ""
    http_timeout_seconds: float = 10.0

    # Safety: only text allow-listed numbers while testing
    test_mode: bool = False
    test_phone_numbers: list[str] = []

    # Outbox
    max_sending: int = 2
    max_message_parts: int = 100
    min_wake_delay_seconds: float = 2.0

    # Rate limit (per sending channel)
    sms_channels: list[str] = ["default"]
    parts_per_window: int = 100
    rate_window_seconds: int = 3600

    # Retries
    retry_base_seconds: int = 60
    retry_max_seconds: int = 86400
    max_retries: int = 4

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
