import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "workforce_test_db"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

MAX_CONTENT_LENGTH = 1024 * 1024

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

IMPORT_CONFIG = {"batch_size": 50, "retry_backoff_seconds": 0.0}
