import logging
import os

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./promoscreen.db")
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# Gemini text generation
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
SCORING_MODEL = os.getenv("SCORING_MODEL", "gemini-2.5-flash-lite")
SCORING_TEMPERATURE = _env_float("SCORING_TEMPERATURE", 0.7)

# Google Cloud Speech-to-Text V2
GOOGLE_CLOUD_PROJECT = os.getenv("GOOGLE_CLOUD_PROJECT")
STT_MODEL = os.getenv("STT_MODEL", "long")
STT_LANGUAGE = os.getenv("STT_LANGUAGE", "en-US")

# Audio object store. Without a bucket the clips land in a local directory.
AUDIO_BUCKET = os.getenv("AUDIO_BUCKET")
AUDIO_LOCAL_DIR = os.getenv("AUDIO_LOCAL_DIR", "./audio")
AUTO_ANALYZE_AUDIO = _env_flag("AUTO_ANALYZE_AUDIO", False)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger once for the whole service."""
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level or LOG_LEVEL)
        return
    logging.basicConfig(
        level=level or LOG_LEVEL,
        format="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
