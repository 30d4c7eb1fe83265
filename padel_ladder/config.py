import os
import logging
from dotenv import load_dotenv

# ✅ Load environment variables (a local .env file is optional)
load_dotenv()


def _get_bool(name, default=False):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./padel_ladder.db")
DATABASE_ECHO = _get_bool("DATABASE_ECHO")

# Per-call limit on every write against the store
STORE_WRITE_TIMEOUT_SECONDS = float(os.getenv("STORE_WRITE_TIMEOUT_SECONDS", 5.0))
PLAYER_UPDATE_MAX_ATTEMPTS = int(os.getenv("PLAYER_UPDATE_MAX_ATTEMPTS", 3))

CORS_ALLOWED_ORIGINS = [
    o.strip() for o in os.getenv("CORS_ALLOWED_ORIGINS", "*").split(",") if o.strip()
]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

PORT = int(os.getenv("PORT", 8080))
FORWARDED_ALLOW_IPS = os.getenv("FORWARDED_ALLOW_IPS", "*")


def configure_logging():
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
