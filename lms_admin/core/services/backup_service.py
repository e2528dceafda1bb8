"""Full export of every collection for offline backup."""

from __future__ import annotations

import json
import logging
from typing import Any

from lms_admin.constants.store_constants import ALL_COLLECTIONS, BACKUP_FORMAT_VERSION, BACKUP_KEYS
from lms_admin.core.services.document_store import DocumentStore
from lms_admin.utils.timestamps import to_iso, utc_now

logger = logging.getLogger(__name__)


class BackupService:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def export_all(self, exported_by: str | None = None) -> dict[str, Any]:
        data: dict[str, Any] = {
            "metadata": {
                "version": BACKUP_FORMAT_VERSION,
                "exportDate": to_iso(utc_now()),
                "exportedBy": exported_by or "system",
            }
        }
        for collection in ALL_COLLECTIONS:
            data[BACKUP_KEYS[collection]] = self._store.list_documents(collection)
        logger.info("Exported backup of %d collection(s)", len(ALL_COLLECTIONS))
        return data

    def export_json(self, exported_by: str | None = None) -> str:
        return json.dumps(self.export_all(exported_by), indent=2, ensure_ascii=False)
