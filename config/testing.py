import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "depot_ops_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

AFTERSHIP_API_KEY = "test-key"
AFTERSHIP_SLUG = "evri"
AFTERSHIP_BASE_URL = "https://api.aftership.test/v4"
TRACKING_REFRESH_COOLDOWN_SECONDS = 30.0
TRACKING_MAX_WORKERS = 2
