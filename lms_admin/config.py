"""Runtime configuration read from the environment (and an optional .env file)."""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from dotenv import load_dotenv

from lms_admin.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT

DEFAULT_SETTINGS_PATH = Path.home() / ".lms_admin" / "settings.json"


@dataclass(slots=True, frozen=True)
class AppConfig:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "INFO"
    cloudinary_cloud_name: str = ""
    cloudinary_upload_preset: str = ""
    settings_path: Path = DEFAULT_SETTINGS_PATH

    @classmethod
    def from_env(cls, dotenv_path: str | Path | None = None) -> AppConfig:
        load_dotenv(dotenv_path)
        port = os.getenv("LMS_PORT")
        settings_path = os.getenv("LMS_SETTINGS_PATH")
        return cls(
            host=os.getenv("LMS_HOST", DEFAULT_HOST),
            port=int(port) if port else DEFAULT_PORT,
            log_level=os.getenv("LMS_LOG_LEVEL", "INFO").upper(),
            cloudinary_cloud_name=os.getenv("CLOUDINARY_CLOUD_NAME", ""),
            cloudinary_upload_preset=os.getenv("CLOUDINARY_UPLOAD_PRESET", ""),
            settings_path=Path(settings_path) if settings_path else DEFAULT_SETTINGS_PATH,
        )
