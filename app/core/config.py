# app/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    aws_access_key_id: str
    aws_secret_access_key: str
    aws_region: str
    aws_s3_bucket_name: str
    aws_s3_endpoint_url: str | None = None  # MinIO / R2 / localstack

    database_url: str = "sqlite:///./fazshare.db"

    # Public origin used to build share links
    base_url: str = "http://localhost:8000"

    share_expiry_hours: int = 48
    share_code_length: int = 6
    share_code_max_attempts: int = 5
    storage_prefix: str = "shares"

    qr_box_size: int = 8
    qr_border: int = 2
    qr_fill_color: str = "#6B21A8"
    qr_back_color: str = "#FFFFFF"

    log_level: str = "INFO"

    # Tell pydantic-settings to load from .env at project root
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # ignore any extra stuff in .env
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
