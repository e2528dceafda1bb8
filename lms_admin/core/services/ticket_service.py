"""Service for the support ticket inbox."""

from __future__ import annotations

import logging

from lms_admin.constants.store_constants import HELP_REQUESTS_COLLECTION
from lms_admin.core.models import HelpRequest
from lms_admin.core.services.document_store import DocumentStore
from lms_admin.utils.timestamps import sort_key

logger = logging.getLogger(__name__)

TICKET_STATUSES: tuple[str, ...] = ("open", "resolved")


def filter_tickets(tickets: list[HelpRequest], search: str = "", status: str = "open") -> list[HelpRequest]:
    """Newest first; ``status`` is ``open``, ``resolved`` or ``all``."""
    needle = search.lower()
    matching = [
        ticket
        for ticket in tickets
        if (status == "all" or ticket.status == status)
        and (
            not needle
            or needle in ticket.subject.lower()
            or needle in ticket.student_name.lower()
            or needle in ticket.email.lower()
        )
    ]
    return sorted(matching, key=lambda ticket: sort_key(ticket.created_at), reverse=True)


class TicketService:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def list_tickets(self) -> list[HelpRequest]:
        return [
            HelpRequest.from_document(doc["id"], doc)
            for doc in self._store.list_documents(HELP_REQUESTS_COLLECTION)
        ]

    def set_status(self, ticket_id: str, status: str) -> None:
        if status not in TICKET_STATUSES:
            raise ValueError(f"Ticket status must be one of {', '.join(TICKET_STATUSES)}.")
        self._store.update(HELP_REQUESTS_COLLECTION, ticket_id, {"status": status})

    def toggle_star(self, ticket: HelpRequest) -> bool:
        starred = not ticket.is_starred
        self._store.update(HELP_REQUESTS_COLLECTION, ticket.id, {"isStarred": starred})
        ticket.is_starred = starred
        return starred

    def set_starred(self, ticket_id: str, starred: bool) -> None:
        self._store.update(HELP_REQUESTS_COLLECTION, ticket_id, {"isStarred": starred})

    def save_notes(self, ticket_id: str, notes: str) -> None:
        self._store.update(HELP_REQUESTS_COLLECTION, ticket_id, {"adminNotes": notes})

    def delete_ticket(self, ticket_id: str) -> None:
        self._store.delete(HELP_REQUESTS_COLLECTION, ticket_id)

    def bulk_resolve(self, ticket_ids: list[str]) -> int:
        """Resolve all tickets in one batch; either every ticket changes or none."""
        batch = self._store.batch()
        for ticket_id in dict.fromkeys(ticket_ids):
            batch.update(HELP_REQUESTS_COLLECTION, ticket_id, {"status": "resolved"})
        count = len(batch)
        batch.commit()
        logger.info("Resolved %d ticket(s)", count)
        return count

    def bulk_delete(self, ticket_ids: list[str]) -> int:
        batch = self._store.batch()
        for ticket_id in dict.fromkeys(ticket_ids):
            batch.delete(HELP_REQUESTS_COLLECTION, ticket_id)
        count = len(batch)
        batch.commit()
        logger.info("Deleted %d ticket(s)", count)
        return count
