import pytest
from pydantic import ValidationError

from upload_pipeline.config.settings import Settings


class TestSettingsDefaults:
    def test_default_app_env(self) -> None:
        s = Settings()
        assert s.app_env == "dev"

    def test_default_storage_provider(self) -> None:
        s = Settings()
        assert s.storage_provider == "cloudinary"

    def test_default_retry_policy(self) -> None:
        s = Settings()
        assert s.storage_max_retries == 3
        assert s.storage_timeout_seconds == 60
        assert s.storage_backoff_base_seconds == 2.0

    def test_default_ingestion_ceilings(self) -> None:
        s = Settings()
        assert s.max_file_bytes == 5 * 1024 * 1024
        assert s.max_field_bytes == 10 * 1024 * 1024
        assert s.max_field_name_bytes == 100
        assert s.max_files == 1
        assert s.max_header_pairs == 2000


class TestSettingsFromEnv:
    def test_loads_app_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APP_ENV", "production")
        s = Settings()
        assert s.app_env == "production"
        assert s.is_production

    def test_loads_log_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        s = Settings()
        assert s.log_level == "DEBUG"

    def test_loads_cloudinary_credentials(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CLOUDINARY_CLOUD_NAME", "demo")
        monkeypatch.setenv("CLOUDINARY_API_KEY", "key")
        monkeypatch.setenv("CLOUDINARY_API_SECRET", "secret")
        s = Settings()
        assert s.cloudinary_cloud_name == "demo"
        assert s.cloudinary_api_key == "key"
        assert s.cloudinary_api_secret == "secret"

    def test_loads_max_retries(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STORAGE_MAX_RETRIES", "5")
        s = Settings()
        assert s.storage_max_retries == 5


class TestSettingsValidation:
    def test_invalid_timeout_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STORAGE_TIMEOUT_SECONDS", "not_a_number")
        with pytest.raises(ValidationError):
            Settings()

    def test_invalid_max_file_bytes_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MAX_FILE_BYTES", "abc")
        with pytest.raises(ValidationError):
            Settings()
