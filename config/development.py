import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "depot_ops_db"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo registries on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

AFTERSHIP_API_KEY = os.getenv("AFTERSHIP_API_KEY", "")
AFTERSHIP_SLUG = os.getenv("AFTERSHIP_SLUG", "evri")
AFTERSHIP_BASE_URL = os.getenv("AFTERSHIP_BASE_URL", "https://api.aftership.com/v4")
TRACKING_REFRESH_COOLDOWN_SECONDS = float(os.getenv("TRACKING_REFRESH_COOLDOWN_SECONDS", "30"))
TRACKING_MAX_WORKERS = int(os.getenv("TRACKING_MAX_WORKERS", "8"))
