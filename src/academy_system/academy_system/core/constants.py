"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

MAX_ACCUMULATED_ACTIVITIES = 5
ALLOWED_NUMBER_OF_PARTIALS = (1, 2, 3, 4)

DEFAULT_NUMBER_OF_PARTIALS = 3
DEFAULT_PASSING_GRADE = 70
DEFAULT_MAX_INDIVIDUAL_ACTIVITY_SCORE = 50
DEFAULT_MAX_TOTAL_ACCUMULATED_SCORE = 50
DEFAULT_MAX_EXAM_SCORE = 50

GRADING_CONFIG_KEY = "currentGradingConfig"

MIN_PASSWORD_LENGTH = 6
DEFAULT_LATE_GRACE_MINUTES = 10
DEFAULT_REPORT_DAYS = 7
DEFAULT_HISTORY_LIMIT = 30

STAFF_QR_PAYLOAD_TYPE = "teacher-attendance"
STAFF_QR_CODE_USED = "QR_SCAN"
