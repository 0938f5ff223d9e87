"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_CREDITS = 3
DEFAULT_SEMESTER = "Fall 2024"
DEFAULT_DEPARTMENT = "CSE"
DEFAULT_TEACHER_NAME = "N/A"
MIN_PASSWORD_LENGTH = 6
MAX_MARKS = 5
