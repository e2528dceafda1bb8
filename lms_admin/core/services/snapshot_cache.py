"""Process-local cache of one collection, fed by a store subscription."""

from __future__ import annotations

import logging
from threading import Lock
from typing import Callable, Generic, TypeVar

from lms_admin.core.services.document_store import (
    Document,
    DocumentStore,
    PermissionDeniedError,
    Unsubscribe,
)

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT")


class SnapshotCache(Generic[RecordT]):
    """Holds the latest snapshot of a collection as converted records.

    Errors from the subscription never propagate: they are logged and kept in
    ``last_error``. For optional collections a permission error marks the
    cache unavailable instead, so the features depending on it can be hidden.
    """

    def __init__(
        self,
        store: DocumentStore,
        collection: str,
        converter: Callable[[Document], RecordT],
        *,
        optional: bool = False,
        on_update: Callable[[list[RecordT]], None] | None = None,
    ) -> None:
        self._store = store
        self._collection = collection
        self._converter = converter
        self._optional = optional
        self._on_update = on_update
        self._lock = Lock()
        self._records: list[RecordT] = []
        self._unsubscribe: Unsubscribe | None = None
        self._available = True
        self._loaded = False
        self.last_error: Exception | None = None

    @property
    def collection(self) -> str:
        return self._collection

    @property
    def available(self) -> bool:
        return self._available

    @property
    def loaded(self) -> bool:
        return self._loaded

    def start(self) -> None:
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self._store.subscribe(self._collection, self._handle_snapshot, self._handle_error)

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def records(self) -> list[RecordT]:
        with self._lock:
            return list(self._records)

    def _handle_snapshot(self, documents: list[Document]) -> None:
        records: list[RecordT] = []
        for document in documents:
            try:
                records.append(self._converter(document))
            except (TypeError, ValueError, KeyError) as exc:
                logger.warning("Skipping malformed %s document %s: %s", self._collection, document.get("id"), exc)
        with self._lock:
            self._records = records
            self._available = True
            self._loaded = True
            self.last_error = None
        if self._on_update is not None:
            self._on_update(list(records))

    def _handle_error(self, error: Exception) -> None:
        self.last_error = error
        if self._optional and isinstance(error, PermissionDeniedError):
            logger.info("Optional collection '%s' is not readable; feature disabled", self._collection)
            self._available = False
            return
        logger.error("Error fetching %s: %s", self._collection, error)
