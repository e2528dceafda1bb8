"""Service for study resources hosted on the media host."""

from __future__ import annotations

import logging
from typing import Any

from lms_admin.constants.store_constants import DEFAULT_RESOURCE_CATEGORIES, RESOURCES_COLLECTION
from lms_admin.core.models import Resource
from lms_admin.core.services.document_store import DocumentStore
from lms_admin.core.services.media_uploader import CloudinaryUploader

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS: dict[str, str] = {
    "title": "title",
    "category": "category",
    "is_protected": "isProtected",
    "can_download": "canDownload",
    "target_class": "targetClass",
    "target_division": "targetDivision",
}


def resource_type_for(content_type: str) -> str:
    return "pdf" if "pdf" in content_type else "image"


class ResourceService:
    def __init__(self, store: DocumentStore, uploader: CloudinaryUploader) -> None:
        self._store = store
        self._uploader = uploader

    def list_resources(self) -> list[Resource]:
        return [Resource.from_document(doc["id"], doc) for doc in self._store.list_documents(RESOURCES_COLLECTION)]

    def categories(self) -> list[str]:
        """Default categories followed by any custom ones already in use."""
        existing = [resource.category for resource in self.list_resources() if resource.category]
        return list(dict.fromkeys([*DEFAULT_RESOURCE_CATEGORIES, *existing]))

    def upload_resource(
        self,
        *,
        filename: str,
        content: bytes,
        content_type: str,
        title: str,
        category: str = "General",
        is_protected: bool = True,
        can_download: bool = True,
        target_class: str = "",
        target_division: str = "",
    ) -> Resource:
        """Upload the file, then record it; nothing is stored if the upload fails."""
        if not title.strip():
            raise ValueError("Resource title must not be empty.")
        url = self._uploader.upload(filename, content, content_type)
        resource = Resource(
            id="",
            title=title,
            type=resource_type_for(content_type),
            url=url,
            category=category.strip() or "General",
            is_protected=is_protected,
            can_download=can_download,
            target_class=target_class,
            target_division=target_division if target_class else "",
        )
        resource.id = self._store.create(RESOURCES_COLLECTION, resource.to_document())
        logger.info("Stored resource %s (%s)", resource.id, resource.type)
        return resource

    def update_resource(self, resource_id: str, **changes: Any) -> None:
        unknown = set(changes) - set(_EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown resource field(s): {', '.join(sorted(unknown))}")
        document = {_EDITABLE_FIELDS[name]: value for name, value in changes.items()}
        self._store.update(RESOURCES_COLLECTION, resource_id, document)

    def toggle_download(self, resource: Resource) -> bool:
        resource.can_download = not resource.can_download
        self._store.update(RESOURCES_COLLECTION, resource.id, {"canDownload": resource.can_download})
        return resource.can_download

    def toggle_protection(self, resource: Resource) -> bool:
        resource.is_protected = not resource.is_protected
        self._store.update(RESOURCES_COLLECTION, resource.id, {"isProtected": resource.is_protected})
        return resource.is_protected

    def delete_resource(self, resource_id: str) -> None:
        self._store.delete(RESOURCES_COLLECTION, resource_id)
