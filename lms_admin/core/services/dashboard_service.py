"""Service for the overview counters and recent-activity feed."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from lms_admin.constants.store_constants import (
    DASHBOARD_ACTIVITY_LIMIT,
    DASHBOARD_LIVE_WINDOW_SECONDS,
    DASHBOARD_NEWEST_STUDENTS,
    DASHBOARD_RECENT_SUBMISSIONS,
)
from lms_admin.core.models import HelpRequest, Result, UserProfile
from lms_admin.core.result_reconciler import score_percentage
from lms_admin.core.services.roster_service import is_user_online
from lms_admin.utils.timestamps import sort_key, utc_now


@dataclass(slots=True)
class ActivityItem:
    kind: str  # "submission" or "join"
    title: str
    timestamp: datetime | None
    detail: str = ""


@dataclass(slots=True)
class DashboardStats:
    students: int
    online_students: int
    exams: int
    resources: int
    open_tickets: int
    recent_activity: list[ActivityItem] = field(default_factory=list)


def build_dashboard(
    users: list[UserProfile],
    results: list[Result],
    tickets: list[HelpRequest],
    exam_count: int,
    resource_count: int,
    now: datetime | None = None,
) -> DashboardStats:
    now = now or utc_now()
    students = [user for user in users if user.role == "student"]
    online = sum(1 for user in users if is_user_online(user.last_login, now, DASHBOARD_LIVE_WINDOW_SECONDS))

    recent_results = sorted(results, key=lambda r: sort_key(r.submitted_at), reverse=True)[:DASHBOARD_RECENT_SUBMISSIONS]
    newest_students = sorted(students, key=lambda u: sort_key(u.joined_at), reverse=True)[:DASHBOARD_NEWEST_STUDENTS]
    activity = [
        ActivityItem(
            kind="submission",
            title=result.student_name or "Unknown Student",
            timestamp=result.submitted_at,
            detail=f"{result.exam_title}: {score_percentage(result.score, result.total_marks)}%",
        )
        for result in recent_results
    ] + [
        ActivityItem(kind="join", title=user.display_name or user.email or user.uid, timestamp=user.joined_at)
        for user in newest_students
    ]
    activity.sort(key=lambda item: sort_key(item.timestamp), reverse=True)

    return DashboardStats(
        students=len(students),
        online_students=online,
        exams=exam_count,
        resources=resource_count,
        open_tickets=sum(1 for ticket in tickets if ticket.status == "open"),
        recent_activity=activity[:DASHBOARD_ACTIVITY_LIMIT],
    )
