import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "depot_ops_db"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

AFTERSHIP_API_KEY = os.getenv("AFTERSHIP_API_KEY", "")
AFTERSHIP_SLUG = os.getenv("AFTERSHIP_SLUG", "evri")
AFTERSHIP_BASE_URL = os.getenv("AFTERSHIP_BASE_URL", "https://api.aftership.com/v4")
TRACKING_REFRESH_COOLDOWN_SECONDS = float(os.getenv("TRACKING_REFRESH_COOLDOWN_SECONDS", "30"))
TRACKING_MAX_WORKERS = int(os.getenv("TRACKING_MAX_WORKERS", "8"))
