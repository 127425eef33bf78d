# survey_backend/config.py
import os
from pathlib import Path

from dotenv import load_dotenv

PACKAGE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT_DIR = PACKAGE_DIR.parent

# Load .env from the project root (works even if this module is imported indirectly)
dotenv_path = PROJECT_ROOT_DIR / ".env"
if dotenv_path.exists():
    load_dotenv(dotenv_path)
else:
    load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# --- Database ---
DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_URL_IS_FALLBACK = DATABASE_URL is None
if DATABASE_URL is None:
    # Local SQLite file next to the package when no server database is configured
    DATABASE_URL = f"sqlite+aiosqlite:///{PACKAGE_DIR / 'survey_backend.db'}"

DB_ECHO = _env_bool("DB_ECHO", False)
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "5"))
DB_POOL_TIMEOUT = float(os.getenv("DB_POOL_TIMEOUT", "30"))
AUTO_CREATE_TABLES = _env_bool("AUTO_CREATE_TABLES", DATABASE_URL_IS_FALLBACK)

# --- HTTP server ---
PORT = int(os.getenv("PORT", "3000"))
PORT_SEARCH_LIMIT = int(os.getenv("PORT_SEARCH_LIMIT", "100"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

FALLBACK_ORIGINS = [
    "http://127.0.0.1:5173",
    "http://localhost:5173",
    "http://localhost:3000",
]
env_origins = os.getenv("BACKEND_ALLOWED_ORIGINS")
ALLOWED_ORIGINS = (
    [origin.strip() for origin in env_origins.split(",") if origin.strip()]
    if env_origins
    else []
) or FALLBACK_ORIGINS

# Reported back in submission results and the thank-you mail footer
SERVICE_USERNAME = os.getenv("SERVICE_USERNAME", "survey-service")
DEFAULT_SURVEY_TITLE = os.getenv("DEFAULT_SURVEY_TITLE", "Career Readiness Survey")

# --- Email ---
EMAIL_HOST = os.getenv("EMAIL_HOST", "localhost")
EMAIL_PORT = int(os.getenv("EMAIL_PORT", "587"))
EMAIL_USE_TLS = _env_bool("EMAIL_USE_TLS", True)
EMAIL_USER = os.getenv("EMAIL_USER")
EMAIL_PASS = os.getenv("EMAIL_PASS")
EMAIL_FROM = os.getenv(
    "EMAIL_FROM", f"Career Services <{EMAIL_USER or 'career-survey@example.com'}>"
)
EMAIL_TIMEOUT = float(os.getenv("EMAIL_TIMEOUT", "10"))
