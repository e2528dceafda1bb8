"""Derived views over the results snapshot.

Results and user profiles arrive through independent subscriptions, so the
join below is best effort: a result whose student profile has not arrived
yet (or was deleted) falls back to the name and email stored on the result.
All functions are pure and work on whatever snapshots the caller holds.
"""

from __future__ import annotations

import csv
from dataclasses import dataclass
from enum import Enum
import io

from lms_admin.core.models import Result, UserProfile
from lms_admin.core.result_reconciler import is_passing, score_percentage
from lms_admin.utils.timestamps import sort_key

UNKNOWN_STUDENT = "Unknown Student"
NO_EMAIL = "No Email"
UNASSIGNED_CLASS = "Unassigned"

CSV_HEADERS: tuple[str, ...] = (
    "Student Name",
    "Email",
    "ID",
    "Class",
    "Division",
    "Exam Title",
    "Score",
    "Total Marks",
    "Percentage",
    "Time Taken(s)",
    "Date",
    "Status",
)


@dataclass(slots=True)
class ResultRow:
    """A result joined with the profile data of its student."""

    result: Result
    student_name: str
    student_email: str
    student_class: str
    student_division: str

    @property
    def percentage(self) -> int:
        return score_percentage(self.result.score, self.result.total_marks)

    @property
    def passed(self) -> bool:
        return is_passing(self.percentage)


class ResultSort(str, Enum):
    DATE_DESC = "date_desc"
    DATE_ASC = "date_asc"
    SCORE_DESC = "score_desc"
    SCORE_ASC = "score_asc"
    NAME_ASC = "name_asc"


@dataclass(slots=True)
class ResultFilter:
    search: str = ""
    exam_title: str | None = None
    class_name: str | None = None
    division: str | None = None
    show_hidden: bool = False

    def matches(self, row: ResultRow) -> bool:
        needle = self.search.lower()
        haystack = (
            row.student_name,
            row.student_email,
            row.result.exam_title,
            row.result.student_id,
        )
        if needle and not any(needle in (value or "").lower() for value in haystack):
            return False
        if self.exam_title is not None and row.result.exam_title != self.exam_title:
            return False
        if self.class_name is not None and row.student_class != self.class_name:
            return False
        if self.division is not None and row.student_division != self.division:
            return False
        return self.show_hidden or not row.result.is_hidden


@dataclass(slots=True)
class ResultsSummary:
    total: int
    average_percentage: float
    passed_count: int
    pass_rate: float
    top_performer: ResultRow | None


def merge_profiles(results: list[Result], users: dict[str, UserProfile]) -> list[ResultRow]:
    rows: list[ResultRow] = []
    for result in results:
        profile = users.get(result.student_id)
        rows.append(
            ResultRow(
                result=result,
                student_name=(profile and profile.display_name) or result.student_name or UNKNOWN_STUDENT,
                student_email=(profile and profile.email) or result.student_email or NO_EMAIL,
                student_class=(profile and profile.assigned_class) or UNASSIGNED_CLASS,
                student_division=(profile and profile.assigned_division) or "",
            )
        )
    return rows


def filter_results(rows: list[ResultRow], result_filter: ResultFilter) -> list[ResultRow]:
    return [row for row in rows if result_filter.matches(row)]


def _ratio(row: ResultRow) -> float:
    total = row.result.total_marks
    return row.result.score / total if total else 0.0


def sort_results(rows: list[ResultRow], order: ResultSort = ResultSort.DATE_DESC) -> list[ResultRow]:
    if order is ResultSort.DATE_DESC:
        return sorted(rows, key=lambda row: sort_key(row.result.submitted_at), reverse=True)
    if order is ResultSort.DATE_ASC:
        return sorted(rows, key=lambda row: sort_key(row.result.submitted_at))
    if order is ResultSort.SCORE_DESC:
        return sorted(rows, key=_ratio, reverse=True)
    if order is ResultSort.SCORE_ASC:
        return sorted(rows, key=_ratio)
    return sorted(rows, key=lambda row: row.student_name.casefold())


def unique_exam_titles(rows: list[ResultRow]) -> list[str]:
    return sorted({row.result.exam_title for row in rows})


def summarize_results(rows: list[ResultRow]) -> ResultsSummary:
    if not rows:
        return ResultsSummary(total=0, average_percentage=0.0, passed_count=0, pass_rate=0.0, top_performer=None)
    total = len(rows)
    average = sum(_ratio(row) for row in rows) / total * 100
    passed = sum(1 for row in rows if _ratio(row) >= 0.5)
    # First row wins ties, like the dashboard's running comparison.
    top: ResultRow | None = None
    for row in rows:
        if top is None or _ratio(row) > _ratio(top):
            top = row
    return ResultsSummary(
        total=total,
        average_percentage=average,
        passed_count=passed,
        pass_rate=passed / total * 100,
        top_performer=top,
    )


def results_to_csv(rows: list[ResultRow]) -> str:
    """Render rows as CSV for spreadsheet import."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for row in rows:
        result = row.result
        submitted = result.submitted_at
        date_text = submitted.strftime("%Y-%m-%d %H:%M:%S").replace(",", "") if submitted else "N/A"
        writer.writerow(
            (
                row.student_name,
                row.student_email,
                result.student_id,
                row.student_class,
                row.student_division,
                result.exam_title,
                result.score,
                result.total_marks,
                f"{row.percentage}%",
                result.time_taken_seconds or 0,
                date_text,
                "Hidden" if result.is_hidden else "Visible",
            )
        )
    return buffer.getvalue()
