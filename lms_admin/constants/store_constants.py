"""Collection names and store-related constants."""

EXAMS_COLLECTION: str = "exams"
RESULTS_COLLECTION: str = "results"
USERS_COLLECTION: str = "users"
CLASS_GROUPS_COLLECTION: str = "class_groups"
RESOURCES_COLLECTION: str = "resources"
NOTICES_COLLECTION: str = "notices"
HELP_REQUESTS_COLLECTION: str = "help_requests"

ALL_COLLECTIONS: tuple[str, ...] = (
    EXAMS_COLLECTION,
    USERS_COLLECTION,
    RESOURCES_COLLECTION,
    RESULTS_COLLECTION,
    CLASS_GROUPS_COLLECTION,
    NOTICES_COLLECTION,
    HELP_REQUESTS_COLLECTION,
)

# Backup file keys differ from collection names for class groups and tickets.
BACKUP_KEYS: dict[str, str] = {
    EXAMS_COLLECTION: "exams",
    USERS_COLLECTION: "users",
    RESOURCES_COLLECTION: "resources",
    RESULTS_COLLECTION: "results",
    CLASS_GROUPS_COLLECTION: "classes",
    NOTICES_COLLECTION: "notices",
    HELP_REQUESTS_COLLECTION: "helpRequests",
}
BACKUP_FORMAT_VERSION: str = "1.0"

DEFAULT_RESOURCE_CATEGORIES: tuple[str, ...] = (
    "General",
    "Mathematics",
    "Science",
    "History",
    "Programming",
)

ROSTER_ONLINE_WINDOW_SECONDS: int = 5 * 60
DASHBOARD_LIVE_WINDOW_SECONDS: int = 15 * 60
DASHBOARD_RECENT_SUBMISSIONS: int = 5
DASHBOARD_NEWEST_STUDENTS: int = 5
DASHBOARD_ACTIVITY_LIMIT: int = 6
