"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

HOMEROOM_SUBJECT = "Homeroom"
HOMEROOM_CODE = "HR"

NOTES_MAX_LENGTH = 500
DEFAULT_WEEK_DAYS = 7

DEFAULT_SCHOOL_START_DATE = "2024-09-02"
DEFAULT_SAVE_TIMEOUT_SECONDS = 10
DEFAULT_SAVE_RETRIES = 2

COLLECTION_USERS = "users"
COLLECTION_STUDENTS = "students"
COLLECTION_SECTIONS = "sections"
COLLECTION_SUBJECTS = "subjects"
COLLECTION_ATTENDANCE = "attendance"
COLLECTION_PASSWORD_RESETS = "password_resets"
