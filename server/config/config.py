import os
from dotenv import load_dotenv

''' Settings read from the environment (and a local .env file) '''

load_dotenv(override=False)


def _env_bool(name, default):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name, default):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# MongoDB
MONGODB_URI = os.getenv("MONGODB_URI", "")
MONGODB_USERNAME = os.getenv("MONGODB_USERNAME", "")
MONGODB_PASSWORD = os.getenv("MONGODB_PASSWORD", "")
CLUSTER_NAME = os.getenv("CLUSTER_NAME", "")
APP_NAME = os.getenv("APP_NAME", "VolunteerHub")
DATABASE_NAME = os.getenv("DATABASE_NAME", "volunteer_hub")

# Sessions and tokens
SESSION_SECRET_KEY = os.getenv("SESSION_SECRET_KEY")
SESSION_MAX_AGE = _env_int("SESSION_MAX_AGE", 3600)
SESSION_HTTPS_ONLY = _env_bool("SESSION_HTTPS_ONLY", True)
SECRET_KEY = os.getenv("SECRET_KEY", "")
RESET_TOKEN_EXPIRE_MINUTES = _env_int("RESET_TOKEN_EXPIRE_MINUTES", 30)
BCRYPT_ROUNDS = _env_int("BCRYPT_ROUNDS", 12)

FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# First admin, created at startup when no account exists for ADMIN_EMAIL
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "")
ADMIN_NAME = os.getenv("ADMIN_NAME", "Administrator")

ORGANIZATION_NAME = os.getenv("ORGANIZATION_NAME", "Connect Club")
AVATAR_BASE_URL = os.getenv("AVATAR_BASE_URL", "https://i.pravatar.cc/150?u=")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
