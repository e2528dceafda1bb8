import logging
import os
from pathlib import Path

from lms_admin.config import AppConfig
from lms_admin.utils.logging_config import configure_logging


def test_defaults(monkeypatch, tmp_path):
    for name in ("LMS_HOST", "LMS_PORT", "LMS_LOG_LEVEL", "CLOUDINARY_CLOUD_NAME", "CLOUDINARY_UPLOAD_PRESET", "LMS_SETTINGS_PATH"):
        monkeypatch.delenv(name, raising=False)
    config = AppConfig.from_env(tmp_path / "missing.env")
    assert (config.host, config.port, config.log_level) == ("127.0.0.1", 8000, "INFO")
    assert config.cloudinary_cloud_name == ""


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("LMS_PORT", "9100")
    monkeypatch.setenv("LMS_LOG_LEVEL", "debug")
    monkeypatch.setenv("LMS_SETTINGS_PATH", str(tmp_path / "prefs.json"))
    config = AppConfig.from_env(tmp_path / "missing.env")
    assert config.port == 9100
    assert config.log_level == "DEBUG"
    assert config.settings_path == Path(tmp_path / "prefs.json")


def test_dotenv_file_is_read(monkeypatch, tmp_path):
    monkeypatch.delenv("CLOUDINARY_CLOUD_NAME", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("CLOUDINARY_CLOUD_NAME=demo-cloud\n", encoding="utf-8")
    try:
        assert AppConfig.from_env(env_file).cloudinary_cloud_name == "demo-cloud"
    finally:
        os.environ.pop("CLOUDINARY_CLOUD_NAME", None)


def test_configure_logging_returns_package_logger():
    logger = configure_logging("warning")
    assert logger.name == "lms_admin"
    assert isinstance(logger, logging.Logger)
