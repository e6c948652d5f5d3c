# survey_api/config.py
import os
import logging
from pathlib import Path
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT_DIR = PACKAGE_DIR.parent

# .env im Projekt-Root hat Vorrang, sonst normale Suche ab cwd
dotenv_path = PROJECT_ROOT_DIR / ".env"
if dotenv_path.exists():
    load_dotenv(dotenv_path)
else:
    load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return int(value)


DATABASE_URL = os.getenv("DATABASE_URL")
if DATABASE_URL is None:
    sqlite_db_path = PACKAGE_DIR / "survey_app.db"
    DATABASE_URL = f"sqlite+aiosqlite:///{sqlite_db_path}"
    logger.warning(
        "DATABASE_URL not set, falling back to local SQLite database %s",
        sqlite_db_path,
    )

SQL_ECHO = _env_bool("SQL_ECHO", False)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Public web root; uploaded images end up in PUBLIC_DIR/images
APP_URL = os.getenv("APP_URL", "http://127.0.0.1:8000").rstrip("/")
PUBLIC_DIR = Path(os.getenv("PUBLIC_DIR", str(PROJECT_ROOT_DIR / "public")))
IMAGES_SUBDIR = "images"

FALLBACK_ORIGINS = [
    "http://127.0.0.1:5173",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://localhost:3000",
]
_env_origins = os.getenv("BACKEND_ALLOWED_ORIGINS")
ALLOWED_ORIGINS = (
    [origin.strip() for origin in _env_origins.split(",") if origin.strip()]
    if _env_origins
    else []
)
if not ALLOWED_ORIGINS:
    ALLOWED_ORIGINS = FALLBACK_ORIGINS

SURVEY_PAGE_SIZE = _env_int("SURVEY_PAGE_SIZE", 15)

# 0 = Token läuft nie ab
TOKEN_EXPIRE_MINUTES = _env_int("TOKEN_EXPIRE_MINUTES", 120)
REMEMBER_TOKEN_EXPIRE_DAYS = _env_int("REMEMBER_TOKEN_EXPIRE_DAYS", 30)

BCRYPT_ROUNDS = _env_int("BCRYPT_ROUNDS", 12)
