"""Document store contract and an in-process implementation.

The admin console only needs a handful of operations from its backing
store: live subscriptions that deliver full collection snapshots, single
document writes, and all-or-nothing batches. Writes are last-write-wins;
there is no version checking.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import copy
from dataclasses import dataclass, field
import logging
from threading import Lock
from typing import Any, Callable
from uuid import uuid4

logger = logging.getLogger(__name__)

Document = dict[str, Any]
SnapshotListener = Callable[[list[Document]], None]
ErrorListener = Callable[[Exception], None]
Unsubscribe = Callable[[], None]


class StoreError(Exception):
    """Raised when a store read or write fails."""


class DocumentNotFoundError(StoreError):
    def __init__(self, collection: str, doc_id: str) -> None:
        super().__init__(f"Document {collection}/{doc_id} does not exist.")
        self.collection = collection
        self.doc_id = doc_id


class PermissionDeniedError(StoreError):
    def __init__(self, collection: str) -> None:
        super().__init__(f"Permission denied for collection '{collection}'.")
        self.collection = collection


class BatchCommitError(StoreError):
    """Raised when a batch cannot be applied; none of its writes took effect."""


@dataclass(slots=True)
class _BatchOperation:
    kind: str
    collection: str
    doc_id: str
    data: Document | None = None


@dataclass(slots=True)
class WriteBatch:
    """Collects writes and applies them together on :meth:`commit`."""

    _store: DocumentStore
    _operations: list[_BatchOperation] = field(default_factory=list)

    def update(self, collection: str, doc_id: str, data: Document) -> WriteBatch:
        self._operations.append(_BatchOperation("update", collection, doc_id, dict(data)))
        return self

    def delete(self, collection: str, doc_id: str) -> WriteBatch:
        self._operations.append(_BatchOperation("delete", collection, doc_id))
        return self

    def __len__(self) -> int:
        return len(self._operations)

    def commit(self) -> None:
        self._store._commit_batch(list(self._operations))
        self._operations.clear()


class DocumentStore(ABC):
    """Collections of JSON-like documents with live change notification."""

    @abstractmethod
    def subscribe(
        self,
        collection: str,
        on_change: SnapshotListener,
        on_error: ErrorListener | None = None,
    ) -> Unsubscribe:
        """Deliver the full collection now and after every change until unsubscribed."""

    @abstractmethod
    def create(self, collection: str, data: Document) -> str: ...

    @abstractmethod
    def update(self, collection: str, doc_id: str, data: Document) -> None: ...

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> None: ...

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Document | None: ...

    @abstractmethod
    def list_documents(self, collection: str) -> list[Document]: ...

    def batch(self) -> WriteBatch:
        return WriteBatch(self)

    @abstractmethod
    def _commit_batch(self, operations: list[_BatchOperation]) -> None: ...


@dataclass(slots=True)
class _Subscription:
    collection: str
    on_change: SnapshotListener
    on_error: ErrorListener | None


class InMemoryDocumentStore(DocumentStore):
    """Thread-safe in-process store.

    Listeners are called outside the lock, after the write has been applied,
    with deep copies so they cannot mutate stored state.
    """

    def __init__(self, seed: dict[str, dict[str, Document]] | None = None) -> None:
        self._lock = Lock()
        self._collections: dict[str, dict[str, Document]] = {
            name: {doc_id: copy.deepcopy(data) for doc_id, data in documents.items()}
            for name, documents in (seed or {}).items()
        }
        self._subscriptions: dict[int, _Subscription] = {}
        self._subscription_counter = 0
        self._denied: set[str] = set()

    # --- Access control (simulates security rules) ---

    def deny_access(self, collection: str) -> None:
        with self._lock:
            self._denied.add(collection)

    def allow_access(self, collection: str) -> None:
        with self._lock:
            self._denied.discard(collection)

    # --- Reads ---

    def subscribe(
        self,
        collection: str,
        on_change: SnapshotListener,
        on_error: ErrorListener | None = None,
    ) -> Unsubscribe:
        with self._lock:
            self._subscription_counter += 1
            token = self._subscription_counter
            self._subscriptions[token] = _Subscription(collection, on_change, on_error)
            denied = collection in self._denied
            snapshot = None if denied else self._snapshot(collection)

        if denied:
            self._report_error(on_error, PermissionDeniedError(collection))
        else:
            on_change(snapshot)

        def unsubscribe() -> None:
            with self._lock:
                self._subscriptions.pop(token, None)

        return unsubscribe

    def get(self, collection: str, doc_id: str) -> Document | None:
        with self._lock:
            self._check_access(collection)
            data = self._collections.get(collection, {}).get(doc_id)
            return None if data is None else {**copy.deepcopy(data), "id": doc_id}

    def list_documents(self, collection: str) -> list[Document]:
        with self._lock:
            self._check_access(collection)
            return self._snapshot(collection)

    # --- Writes ---

    def create(self, collection: str, data: Document) -> str:
        doc_id = uuid4().hex
        with self._lock:
            self._check_access(collection)
            self._collections.setdefault(collection, {})[doc_id] = self._strip_id(data)
        self._notify({collection})
        return doc_id

    def set(self, collection: str, doc_id: str, data: Document) -> None:
        """Create or overwrite a document under a caller-chosen id."""
        with self._lock:
            self._check_access(collection)
            self._collections.setdefault(collection, {})[doc_id] = self._strip_id(data)
        self._notify({collection})

    def update(self, collection: str, doc_id: str, data: Document) -> None:
        with self._lock:
            self._check_access(collection)
            document = self._require(collection, doc_id)
            document.update(self._strip_id(data))
        self._notify({collection})

    def delete(self, collection: str, doc_id: str) -> None:
        with self._lock:
            self._check_access(collection)
            self._require(collection, doc_id)
            del self._collections[collection][doc_id]
        self._notify({collection})

    def _commit_batch(self, operations: list[_BatchOperation]) -> None:
        if not operations:
            return
        with self._lock:
            try:
                for operation in operations:
                    self._check_access(operation.collection)
                    self._require(operation.collection, operation.doc_id)
            except StoreError as exc:
                raise BatchCommitError(f"Batch of {len(operations)} write(s) rejected: {exc}") from exc
            for operation in operations:
                documents = self._collections[operation.collection]
                if operation.kind == "delete":
                    documents.pop(operation.doc_id, None)
                elif operation.doc_id in documents:
                    documents[operation.doc_id].update(self._strip_id(operation.data or {}))
        self._notify({operation.collection for operation in operations})

    # --- Internals ---

    def _snapshot(self, collection: str) -> list[Document]:
        return [
            {**copy.deepcopy(data), "id": doc_id}
            for doc_id, data in self._collections.get(collection, {}).items()
        ]

    def _check_access(self, collection: str) -> None:
        if collection in self._denied:
            raise PermissionDeniedError(collection)

    def _require(self, collection: str, doc_id: str) -> Document:
        document = self._collections.get(collection, {}).get(doc_id)
        if document is None:
            raise DocumentNotFoundError(collection, doc_id)
        return document

    @staticmethod
    def _strip_id(data: Document) -> Document:
        return {key: copy.deepcopy(value) for key, value in data.items() if key != "id"}

    def _notify(self, collections: set[str]) -> None:
        with self._lock:
            deliveries = [
                (subscription, self._snapshot(subscription.collection))
                for subscription in self._subscriptions.values()
                if subscription.collection in collections and subscription.collection not in self._denied
            ]
        for subscription, snapshot in deliveries:
            try:
                subscription.on_change(snapshot)
            except Exception:  # a faulty listener must not break the writer
                logger.exception("Snapshot listener for '%s' failed", subscription.collection)

    @staticmethod
    def _report_error(on_error: ErrorListener | None, error: Exception) -> None:
        if on_error is None:
            logger.warning("Unhandled subscription error: %s", error)
            return
        on_error(error)
