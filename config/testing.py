import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "school_attendance_test"),
    "connect_timeout": int(os.getenv("DB_CONNECT_TIMEOUT", "5")),
}

DEBUG = False
TESTING = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

SCHOOL_START_DATE = os.getenv("SCHOOL_START_DATE", "2024-09-02")
SAVE_TIMEOUT_SECONDS = float(os.getenv("SAVE_TIMEOUT_SECONDS", "2"))
SAVE_RETRIES = int(os.getenv("SAVE_RETRIES", "1"))

ADMIN_EMAIL = None
ADMIN_PASSWORD = None
