# faithful/utils/db.py
import sqlite3

from ..core.config import FAITHFUL_DB


DAILY_VERSES_SCHEMA = """
CREATE TABLE IF NOT EXISTS daily_verses (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    date_key TEXT NOT NULL,
    translation TEXT NOT NULL,
    reference TEXT NOT NULL,
    text TEXT NOT NULL,
    copyright TEXT,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (date_key, translation)
);
"""


def get_db(path: str = None):
    """
    Return a sqlite3 connection to the Faithful DB.

    check_same_thread is off because the daily verse store is shared by
    request threads; DailyVerseStore serializes its use of the connection.
    """
    conn = sqlite3.connect(path or FAITHFUL_DB, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(conn) -> None:
    """Create the tables this package reads and writes."""
    conn.executescript(DAILY_VERSES_SCHEMA)
    conn.commit()
