"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
Runtime overrides live in the settings modules (``IMPORT_CONFIG``).
"""

ALLOWED_UPLOAD_EXTENSIONS = (".csv", ".srp")

DEFAULT_BATCH_SIZE = 500
DEFAULT_TX_MAX_WAIT_SECONDS = 30
DEFAULT_TX_TIMEOUT_SECONDS = 60
DEFAULT_RETRY_MAX_ATTEMPTS = 1
DEFAULT_RETRY_BACKOFF_SECONDS = 2.0

DEFAULT_RESPONSE_ERROR_LIMIT = 50
DEFAULT_HISTORY_LIMIT = 50
DEFAULT_STALE_UPLOAD_MINUTES = 30

# Inner out/in gap strictly longer than this is a lunch, otherwise a break.
LUNCH_THRESHOLD_MINUTES = 45
# SRP partial evidence below this many hours is a half day.
HALF_DAY_HOURS = 4

DEFAULT_EMAIL_DOMAIN = "company.com"
DEFAULT_DEPARTMENT = "General"
DEFAULT_DESIGNATION = "Employee"

CSV_REQUIRED_HEADERS = ("employeeCode", "date")
