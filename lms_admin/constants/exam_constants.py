"""Exam-related constants shared across the core and API layers."""

DEFAULT_DURATION_MINUTES: int = 60
DEFAULT_TOTAL_MARKS: int = 100
DEFAULT_DIFFICULTY: str = "Medium"
DEFAULT_MAX_ATTEMPTS: int = 1
DIFFICULTY_LEVELS: tuple[str, ...] = ("Easy", "Medium", "Hard")

TRUE_FALSE_OPTIONS: tuple[str, str] = ("True", "False")
PLACEHOLDER_OPTION_COUNT: int = 4
MIN_CHOICE_OPTIONS: int = 2
CLONE_SUFFIX: str = " (Copy)"

PASS_THRESHOLD_PERCENT: int = 50
SKIPPED_ANSWER: int = -1
