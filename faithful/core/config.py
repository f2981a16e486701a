# faithful/core/config.py
import os
from dataclasses import dataclass, field
from typing import Dict, Optional

from dotenv import load_dotenv

# Load .env
load_dotenv()

# ---- ENV VALUES ----
BIBLE_API_KEY = os.getenv("BIBLE_API_KEY", "")
BIBLE_API_URL = os.getenv("BIBLE_API_URL", "https://api.scripture.api.bible/v1")
BIBLE_API_TIMEOUT = float(os.getenv("BIBLE_API_TIMEOUT", "5"))

DEFAULT_TRANSLATION = os.getenv("DEFAULT_TRANSLATION", "ESV")

ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY")
CLAUDE_MODEL = os.getenv("CLAUDE_MODEL", "claude-3-haiku-20240307")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4.1-mini")

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
FAITHFUL_DB = os.getenv("FAITHFUL_DB", os.path.join(BASE_DIR, "faithful.db"))
LOCAL_CACHE_DIR = os.getenv("FAITHFUL_LOCAL_CACHE_DIR")


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


DAILY_VERSE_SEEDED_SHUFFLE = _env_flag("DAILY_VERSE_SEEDED_SHUFFLE", True)


@dataclass
class Settings:
    """
    Snapshot of runtime configuration.

    Services take a Settings instead of reading module globals so tests can
    build isolated instances.
    """
    bible_api_key: str = ""
    bible_api_url: str = "https://api.scripture.api.bible/v1"
    bible_api_timeout: float = 5.0
    bible_ids: Dict[str, str] = field(default_factory=dict)
    default_translation: str = "ESV"
    db_path: str = ":memory:"
    local_cache_dir: Optional[str] = None
    seeded_shuffle: bool = True


def get_settings() -> Settings:
    """Build Settings from the current environment."""
    bible_ids = {
        code: os.getenv(code, "")
        for code in ("ESV", "KJV", "NIV", "NASB", "NLT")
    }
    return Settings(
        bible_api_key=BIBLE_API_KEY,
        bible_api_url=BIBLE_API_URL.rstrip("/"),
        bible_api_timeout=BIBLE_API_TIMEOUT,
        bible_ids=bible_ids,
        default_translation=DEFAULT_TRANSLATION,
        db_path=FAITHFUL_DB,
        local_cache_dir=LOCAL_CACHE_DIR,
        seeded_shuffle=DAILY_VERSE_SEEDED_SHUFFLE,
    )
