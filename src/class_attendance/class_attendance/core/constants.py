"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_LATE_GRACE_MINUTES = 15
DEFAULT_LIST_LIMIT = 200
SETTINGS_ROW_ID = 1

TOKEN_WIRE_FIELDS = ("student_id", "uuid", "academic_year_id", "semester_id", "issued_at", "sig")
