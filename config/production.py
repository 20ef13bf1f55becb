import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "bizdesk"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", "/var/lib/bizdesk/uploads")
PUBLIC_UPLOAD_URL = os.getenv("PUBLIC_UPLOAD_URL", "/uploads")

PARENT_PIN = os.getenv("PARENT_PIN", "1094")

SESSION_DAYS = int(os.getenv("SESSION_DAYS", "7"))
