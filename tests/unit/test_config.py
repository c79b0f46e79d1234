"""Unit tests for configuration management."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from screensift.config import Settings


def test_default_values(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Test that default values are set correctly."""
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("BLOB_STORAGE_DIR", str(tmp_path / "blobs"))

    settings = Settings(_env_file=None)

    assert settings.vision_model == "gpt-4o-mini"
    assert settings.vision_detail_level == "low"
    assert settings.database_url.startswith("postgresql+asyncpg://")
    assert settings.blob_cache_control == "max-age=86400"
    assert settings.max_upload_bytes == 20 * 1024 * 1024
    assert settings.log_level == "INFO"


def test_missing_openai_key(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_vision_model_validation_invalid(monkeypatch: pytest.MonkeyPatch):
    """Test validation error for invalid vision model."""
    monkeypatch.setenv("VISION_MODEL", "invalid-model")

    with pytest.raises(ValidationError) as exc_info:
        Settings(_env_file=None)

    assert "Invalid vision_model" in str(exc_info.value)


@pytest.mark.parametrize("model", ["gpt-4o-mini", "gpt-4o", "gpt-4.1-mini", "gpt-4.1"])
def test_vision_model_validation_valid(monkeypatch: pytest.MonkeyPatch, model: str):
    monkeypatch.setenv("VISION_MODEL", model)

    assert Settings(_env_file=None).vision_model == model


def test_detail_level_validation(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("VISION_DETAIL_LEVEL", "ultra")

    with pytest.raises(ValidationError) as exc_info:
        Settings(_env_file=None)

    assert "vision_detail_level" in str(exc_info.value)


def test_cors_origins_comma_separated(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("CORS_ALLOWED_ORIGINS", "http://a.test, http://b.test")

    settings = Settings(_env_file=None)

    assert settings.cors_allowed_origins == ["http://a.test", "http://b.test"]


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("http://only.test", ["http://only.test"]),
        ('["http://a.test", "http://b.test"]', ["http://a.test", "http://b.test"]),
    ],
)
def test_cors_origins_single_and_json(monkeypatch: pytest.MonkeyPatch, raw, expected):
    monkeypatch.setenv("CORS_ALLOWED_ORIGINS", raw)

    settings = Settings(_env_file=None)

    assert settings.cors_allowed_origins == expected


def test_blob_storage_directory_created(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    target = tmp_path / "nested" / "blobs"
    monkeypatch.setenv("BLOB_STORAGE_DIR", str(target))

    Settings(_env_file=None)

    assert target.is_dir()


def test_production_requires_api_key(monkeypatch: pytest.MonkeyPatch):
    """Test that production with REQUIRE_API_KEY needs API_KEY."""
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("REQUIRE_API_KEY", "true")
    monkeypatch.delenv("API_KEY", raising=False)

    with pytest.raises(ValidationError) as exc_info:
        Settings(_env_file=None)

    assert "API_KEY must be set" in str(exc_info.value)


def test_production_with_api_key(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("REQUIRE_API_KEY", "true")
    monkeypatch.setenv("API_KEY", "secret")

    settings = Settings(_env_file=None)

    assert settings.api_key is not None
    assert settings.api_key.get_secret_value() == "secret"
