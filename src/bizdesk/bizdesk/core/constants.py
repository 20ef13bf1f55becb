"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from .enums import LeaveType

DEFAULT_SESSION_DAYS = 7
PASSWORD_RESET_MAX_AGE = 60 * 60

DEFAULT_LEAVE_ALLOCATION = {
    LeaveType.SICK: 7,
    LeaveType.CASUAL: 7,
    LeaveType.ANNUAL: 10,
}
WORKING_DAYS_IN_MONTH = 22
MIN_LEAVE_DAYS = 0.5
MAX_LEAVE_DAYS = 30
LEAVE_REASON_MIN = 10
LEAVE_REASON_MAX = 500
REMARKS_MAX = 500

MIN_LOG_HOURS = 0.1
MAX_LOG_HOURS = 24
LOG_DESCRIPTION_MIN = 5

RETAINER_DAYS_PER_MONTH = 30

MAX_PROFILE_PICTURE_BYTES = 5 * 1024 * 1024
MAX_POLICY_FILE_BYTES = 10 * 1024 * 1024
PROFILE_PICTURE_PREFIX = "profile-pictures"
POLICY_FILE_PREFIX = "policies"

RECENT_LOGS_LIMIT = 50
TOP_USERS_LIMIT = 10
BIRTHDAY_WINDOW_DAYS = 60
COMPANY_ID_PREFIX = "C"
