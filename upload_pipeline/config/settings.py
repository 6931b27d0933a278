from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    storage_provider: str = "cloudinary"

    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""
    cloudinary_api_base_url: str = "https://api.cloudinary.com/v1_1"

    storage_timeout_seconds: int = 60
    storage_max_retries: int = 3
    storage_backoff_base_seconds: float = 2.0
    storage_max_connections: int = 10

    max_file_bytes: int = 5 * 1024 * 1024
    max_field_bytes: int = 10 * 1024 * 1024
    max_field_name_bytes: int = 100
    max_files: int = 1
    max_header_pairs: int = 2000

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"
