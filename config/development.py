import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "bizdesk"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo data on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", "uploads")
PUBLIC_UPLOAD_URL = os.getenv("PUBLIC_UPLOAD_URL", "/uploads")

# PIN required to self-register an admin account
PARENT_PIN = os.getenv("PARENT_PIN", "1094")

SESSION_DAYS = int(os.getenv("SESSION_DAYS", "7"))
