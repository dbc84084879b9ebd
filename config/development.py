import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "visit_billing_db"),
}

# Fractions applied to a guest's subtotal, e.g. 0.10 = 10%
SERVICE_RATE = float(os.getenv("SERVICE_RATE", "0.10"))
TAX_RATE = float(os.getenv("TAX_RATE", "0.10"))

DEBUG = True

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed a demo visit on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
