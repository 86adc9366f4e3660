from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = "/api"
    log_level: str = "INFO"
    log_dir: str = "logs"  # dedicated user_activity log lives here
    cors_origins: list[str] = ["http://127.0.0.1:5500"]

    # uvicorn bind address for `python -m orbitfund`
    server_host: str = "127.0.0.1"
    server_port: int = 8000

    # JWT Settings
    jwt_secret_key: str = "orbitfund-dev-secret"  # CHANGE THIS!
    jwt_issuer: str = "orbitfund"
    jwt_audience: str = "orbitfund-clients"
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 120

    database_url: str = "sqlite:///./data_store/orbitfund.sqlite"
    sqlite_echo_log: bool = False  # set to True for SQL logging

    # Backblaze B2 (S3-compatible) object storage
    b2_access_key_id: Optional[str] = None
    b2_application_key: Optional[str] = None
    b2_service_url: Optional[str] = None
    b2_region: Optional[str] = None
    b2_bucket_name: Optional[str] = None
    b2_public_file_url_prefix: Optional[str] = None
    # Falls back to the in-memory client when the bucket is not configured
    use_in_memory_storage: bool = False

    # Upload limits per multipart field
    max_image_files: int = 10
    max_video_files: int = 5
    max_document_files: int = 10

    @property
    def b2_configured(self) -> bool:
        return all(
            [
                self.b2_access_key_id,
                self.b2_application_key,
                self.b2_service_url,
                self.b2_bucket_name,
                self.b2_public_file_url_prefix,
            ]
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()


settings = get_settings()
