"""Service for announcements shown to students."""

from __future__ import annotations

import logging

from lms_admin.constants.store_constants import NOTICES_COLLECTION
from lms_admin.core.models import Notice
from lms_admin.core.preview_renderer import PreviewRenderer, renderer as default_renderer
from lms_admin.core.services.document_store import DocumentStore, DocumentNotFoundError
from lms_admin.utils.timestamps import sort_key, utc_now

logger = logging.getLogger(__name__)

NOTICE_PRIORITIES: tuple[str, ...] = ("low", "medium", "high")


class NoticeService:
    def __init__(self, store: DocumentStore, renderer: PreviewRenderer = default_renderer) -> None:
        self._store = store
        self._renderer = renderer

    def list_notices(self) -> list[Notice]:
        notices = [Notice.from_document(doc["id"], doc) for doc in self._store.list_documents(NOTICES_COLLECTION)]
        return sorted(notices, key=lambda notice: sort_key(notice.date), reverse=True)

    def post_notice(self, title: str, content: str, priority: str = "medium", is_pinned: bool = False) -> Notice:
        if not title.strip() or not content.strip():
            raise ValueError("A notice needs both a title and content.")
        if priority not in NOTICE_PRIORITIES:
            raise ValueError(f"Priority must be one of {', '.join(NOTICE_PRIORITIES)}.")
        notice = Notice(id="", title=title, content=content, date=utc_now(), priority=priority, is_pinned=is_pinned)
        notice.id = self._store.create(NOTICES_COLLECTION, notice.to_document())
        logger.info("Posted notice %s (%s)", notice.id, priority)
        return notice

    def delete_notice(self, notice_id: str) -> None:
        self._store.delete(NOTICES_COLLECTION, notice_id)

    def render_notice_html(self, notice_id: str) -> str:
        document = self._store.get(NOTICES_COLLECTION, notice_id)
        if document is None:
            raise DocumentNotFoundError(NOTICES_COLLECTION, notice_id)
        return self._renderer.render_notice(Notice.from_document(notice_id, document))
