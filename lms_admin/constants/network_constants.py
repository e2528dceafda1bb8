"""Network configuration constants for the admin API."""

DEFAULT_HOST: str = "127.0.0.1"
DEFAULT_PORT: int = 8000
ADMIN_ROLES: frozenset[str] = frozenset({"admin", "instructor"})
USER_ID_HEADER: str = "X-User-Id"
USER_ROLE_HEADER: str = "X-User-Role"
