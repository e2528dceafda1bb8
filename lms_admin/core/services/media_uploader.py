"""Client for the third-party media host that stores uploaded files."""

from __future__ import annotations

import logging

import httpx

from lms_admin.constants.media_constants import CLOUDINARY_UPLOAD_URL_TEMPLATE, UPLOAD_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class MediaUploadError(Exception):
    """Raised when a file could not be uploaded; the message is user-facing."""


class CloudinaryUploader:
    """Unsigned uploads through an upload preset.

    The only contract the rest of the console relies on is
    ``upload(...) -> url``; the returned URL is stored verbatim.
    """

    def __init__(self, cloud_name: str, upload_preset: str, client: httpx.Client | None = None) -> None:
        self._cloud_name = cloud_name
        self._upload_preset = upload_preset
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self._cloud_name and self._upload_preset)

    def upload(self, filename: str, content: bytes, content_type: str) -> str:
        if not self.configured:
            raise MediaUploadError(
                "Media host configuration missing. Set CLOUDINARY_CLOUD_NAME and CLOUDINARY_UPLOAD_PRESET."
            )
        resource_type = "auto" if "pdf" in content_type else "image"
        url = CLOUDINARY_UPLOAD_URL_TEMPLATE.format(cloud_name=self._cloud_name, resource_type=resource_type)
        try:
            response = self._post(
                url,
                data={"upload_preset": self._upload_preset},
                files={"file": (filename, content, content_type)},
            )
        except httpx.HTTPError as exc:
            logger.error("Upload of %s failed: %s", filename, exc)
            raise MediaUploadError(f"Upload failed: {exc}") from exc

        if response.is_error:
            message = _error_message(response)
            logger.error("Media host rejected %s (%s): %s", filename, response.status_code, message)
            raise MediaUploadError(message)

        secure_url = _secure_url(response)
        if not secure_url:
            raise MediaUploadError("Upload failed: the media host returned no URL.")
        logger.info("Uploaded %s to %s", filename, secure_url)
        return secure_url

    def _post(self, url: str, **kwargs: object) -> httpx.Response:
        if self._client is not None:
            return self._client.post(url, **kwargs)
        with httpx.Client(timeout=UPLOAD_TIMEOUT_SECONDS) as client:
            return client.post(url, **kwargs)


def _secure_url(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    url = body.get("secure_url") if isinstance(body, dict) else None
    return url if isinstance(url, str) else None


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return "Upload failed"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return "Upload failed"
