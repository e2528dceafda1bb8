"""Business logic shared by every admin surface (HTTP API, scripts, tests)."""

from __future__ import annotations

from datetime import datetime
from threading import Lock

from lms_admin.constants.store_constants import (
    CLASS_GROUPS_COLLECTION,
    RESULTS_COLLECTION,
    USERS_COLLECTION,
)
from lms_admin.core.models import ClassGroup, Exam, Result, UserProfile
from lms_admin.core.preview_renderer import PreviewRenderer, renderer as default_renderer
from lms_admin.core.result_reconciler import ResultReview
from lms_admin.core.results_view import (
    ResultFilter,
    ResultRow,
    ResultSort,
    ResultsSummary,
    filter_results,
    merge_profiles,
    results_to_csv,
    sort_results,
    summarize_results,
)
from lms_admin.core.services.backup_service import BackupService
from lms_admin.core.services.dashboard_service import DashboardStats, build_dashboard
from lms_admin.core.services.document_store import DocumentStore
from lms_admin.core.services.exam_repository import ExamRepository
from lms_admin.core.services.media_uploader import CloudinaryUploader
from lms_admin.core.services.notice_service import NoticeService
from lms_admin.core.services.resource_service import ResourceService
from lms_admin.core.services.result_service import ResultService
from lms_admin.core.services.roster_service import RosterService, UserFilter, filter_users
from lms_admin.core.services.snapshot_cache import SnapshotCache
from lms_admin.core.services.ticket_service import TicketService
from lms_admin.core.session_context import KeyValueStorage, MemoryKeyValueStorage, SessionContext


class AdminManager:
    """Facade for the admin services and the live snapshot caches.

    Results, users and class groups are read from caches kept current by
    store subscriptions; everything else is read from the store on demand.
    """

    def __init__(
        self,
        store: DocumentStore,
        uploader: CloudinaryUploader | None = None,
        settings: KeyValueStorage | None = None,
        renderer: PreviewRenderer = default_renderer,
    ) -> None:
        self._lock = Lock()
        self._started = False
        self.store = store
        self.renderer = renderer
        self.session = SessionContext(storage=settings or MemoryKeyValueStorage())

        # Services
        self.exams = ExamRepository(store)
        self.results = ResultService(store, self.exams)
        self.tickets = TicketService(store)
        self.notices = NoticeService(store, renderer)
        self.resources = ResourceService(store, uploader or CloudinaryUploader("", ""))
        self.roster = RosterService(store)
        self.backup = BackupService(store)

        # Live snapshots
        self._result_cache: SnapshotCache[Result] = SnapshotCache(
            store, RESULTS_COLLECTION, lambda doc: Result.from_document(doc["id"], doc)
        )
        self._user_cache: SnapshotCache[UserProfile] = SnapshotCache(
            store, USERS_COLLECTION, lambda doc: UserProfile.from_document(doc["id"], doc)
        )
        self._class_cache: SnapshotCache[ClassGroup] = SnapshotCache(
            store,
            CLASS_GROUPS_COLLECTION,
            lambda doc: ClassGroup.from_document(doc["id"], doc),
            optional=True,
        )

    # --- Lifecycle ---

    def start(self) -> None:
        with self._lock:
            if self._started:
                return
            for cache in self._caches():
                cache.start()
            self._started = True

    def stop(self) -> None:
        with self._lock:
            for cache in self._caches():
                cache.stop()
            self._started = False

    def _caches(self) -> tuple[SnapshotCache, ...]:
        return (self._result_cache, self._user_cache, self._class_cache)

    # --- Snapshot reads ---

    def all_results(self) -> list[Result]:
        return self._result_cache.records()

    def all_users(self) -> list[UserProfile]:
        return self._user_cache.records()

    def class_groups(self) -> list[ClassGroup]:
        return self._class_cache.records()

    def class_groups_available(self) -> bool:
        return self._class_cache.available

    def find_users(self, user_filter: UserFilter, now: datetime | None = None) -> list[UserProfile]:
        return filter_users(self.all_users(), user_filter, now)

    # --- Results ---

    def result_rows(
        self,
        result_filter: ResultFilter | None = None,
        order: ResultSort = ResultSort.DATE_DESC,
    ) -> list[ResultRow]:
        profiles = {user.uid: user for user in self.all_users()}
        rows = merge_profiles(self.all_results(), profiles)
        return sort_results(filter_results(rows, result_filter or ResultFilter()), order)

    def results_summary(self, rows: list[ResultRow]) -> ResultsSummary:
        return summarize_results(rows)

    def results_csv(self, result_filter: ResultFilter | None = None, order: ResultSort = ResultSort.DATE_DESC) -> str:
        return results_to_csv(self.result_rows(result_filter, order))

    def review_result(self, result_id: str) -> ResultReview:
        result = self.results.get_result(result_id)
        return self.results.review(result, self.all_results())

    # --- Exams ---

    def preview_exam(self, exam: Exam) -> str:
        return self.renderer.render_exam(exam)

    # --- Dashboard ---

    def dashboard(self, now: datetime | None = None) -> DashboardStats:
        return build_dashboard(
            users=self.all_users(),
            results=self.all_results(),
            tickets=self.tickets.list_tickets(),
            exam_count=len(self.exams.list_exams()),
            resource_count=len(self.resources.list_resources()),
            now=now,
        )
