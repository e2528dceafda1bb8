"""Service for user profiles and class groups."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
import logging
from typing import Any

from lms_admin.constants.store_constants import (
    CLASS_GROUPS_COLLECTION,
    ROSTER_ONLINE_WINDOW_SECONDS,
    USERS_COLLECTION,
)
from lms_admin.core.models import ClassGroup, UserProfile
from lms_admin.core.services.document_store import DocumentNotFoundError, DocumentStore
from lms_admin.utils.timestamps import utc_now

logger = logging.getLogger(__name__)

USER_ROLES: tuple[str, ...] = ("student", "admin", "instructor")
USER_STATUSES: tuple[str, ...] = ("active", "inactive", "suspended")

_PROFILE_FIELDS: dict[str, str] = {
    "display_name": "displayName",
    "phone_number": "phoneNumber",
    "role": "role",
    "status": "status",
    "assigned_class": "assignedClass",
    "assigned_division": "assignedDivision",
}


def is_user_online(
    last_login: datetime | None,
    now: datetime | None = None,
    window_seconds: int = ROSTER_ONLINE_WINDOW_SECONDS,
) -> bool:
    if last_login is None:
        return False
    now = now or utc_now()
    return now - last_login < timedelta(seconds=window_seconds)


@dataclass(slots=True)
class UserFilter:
    search: str = ""
    role: str | None = None
    status: str | None = None  # "online" or "banned"
    class_name: str | None = None
    division: str | None = None

    def matches(self, user: UserProfile, now: datetime) -> bool:
        needle = self.search.lower()
        if needle and needle not in (user.display_name or "").lower() and needle not in (user.email or "").lower():
            return False
        if self.role is not None and user.role != self.role:
            return False
        if self.status == "online" and (user.status == "suspended" or not is_user_online(user.last_login, now)):
            return False
        if self.status == "banned" and user.status != "suspended":
            return False
        if self.class_name is not None and user.assigned_class != self.class_name:
            return False
        return self.division is None or user.assigned_division == self.division


def filter_users(users: list[UserProfile], user_filter: UserFilter, now: datetime | None = None) -> list[UserProfile]:
    now = now or utc_now()
    return [user for user in users if user_filter.matches(user, now)]


class RosterService:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    # --- Users ---

    def list_users(self) -> list[UserProfile]:
        return [UserProfile.from_document(doc["id"], doc) for doc in self._store.list_documents(USERS_COLLECTION)]

    def update_profile(self, uid: str, **changes: Any) -> None:
        unknown = set(changes) - set(_PROFILE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown profile field(s): {', '.join(sorted(unknown))}")
        if "role" in changes and changes["role"] not in USER_ROLES:
            raise ValueError(f"Role must be one of {', '.join(USER_ROLES)}.")
        if "status" in changes and changes["status"] not in USER_STATUSES:
            raise ValueError(f"Status must be one of {', '.join(USER_STATUSES)}.")
        self._store.update(USERS_COLLECTION, uid, {_PROFILE_FIELDS[k]: v for k, v in changes.items()})
        logger.info("Updated profile %s: %s", uid, ", ".join(sorted(changes)))

    def delete_user(self, uid: str) -> None:
        self._store.delete(USERS_COLLECTION, uid)
        logger.info("Deleted user %s", uid)

    # --- Class groups ---

    def create_class_group(self, name: str) -> ClassGroup:
        cleaned = name.strip()
        if not cleaned:
            raise ValueError("Class name must not be empty.")
        group = ClassGroup(id="", name=cleaned, divisions=[])
        group.id = self._store.create(CLASS_GROUPS_COLLECTION, group.to_document())
        return group

    def delete_class_group(self, group_id: str) -> None:
        # Students keep their assignedClass; deleting a class does not touch profiles.
        self._store.delete(CLASS_GROUPS_COLLECTION, group_id)

    def add_division(self, group_id: str, division: str) -> list[str]:
        cleaned = division.strip()
        if not cleaned:
            raise ValueError("Division name must not be empty.")
        group = self._get_group(group_id)
        divisions = [*group.divisions, cleaned]
        self._store.update(CLASS_GROUPS_COLLECTION, group_id, {"divisions": divisions})
        return divisions

    def remove_division(self, group_id: str, division: str) -> list[str]:
        group = self._get_group(group_id)
        divisions = [name for name in group.divisions if name != division]
        self._store.update(CLASS_GROUPS_COLLECTION, group_id, {"divisions": divisions})
        return divisions

    def _get_group(self, group_id: str) -> ClassGroup:
        document = self._store.get(CLASS_GROUPS_COLLECTION, group_id)
        if document is None:
            raise DocumentNotFoundError(CLASS_GROUPS_COLLECTION, group_id)
        return ClassGroup.from_document(group_id, document)
