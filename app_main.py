"""Application entry point for the LMS admin console API."""

from __future__ import annotations

from lms_admin.config import AppConfig
from lms_admin.core.admin_manager import AdminManager
from lms_admin.core.services.document_store import InMemoryDocumentStore
from lms_admin.core.services.media_uploader import CloudinaryUploader
from lms_admin.core.session_context import JsonFileKeyValueStorage
from lms_admin.server.api_server import run_api_server
from lms_admin.utils.logging_config import configure_logging


def main() -> None:
    """Initialize logging, build the admin manager, and serve the API."""
    config = AppConfig.from_env()
    logger = configure_logging(config.log_level)
    logger.info("Starting LMS admin console...")

    uploader = CloudinaryUploader(config.cloudinary_cloud_name, config.cloudinary_upload_preset)
    if not uploader.configured:
        logger.warning("Media host is not configured; resource uploads will be rejected.")

    admin_manager = AdminManager(
        store=InMemoryDocumentStore(),
        uploader=uploader,
        settings=JsonFileKeyValueStorage(config.settings_path),
    )
    logger.info("Admin API available at http://%s:%d/", config.host, config.port)
    run_api_server(admin_manager, host=config.host, port=config.port, log_level=config.log_level)


if __name__ == "__main__":
    main()
