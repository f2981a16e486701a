# faithful/services/references/daily_verse.py
"""
Verse of the day.

One reference per calendar day per translation. Lookup order:

1. Client-local cache entry for (date, translation), valid until midnight
2. Persisted daily_verses row for (date, translation)
3. A fresh selection derived from the date, resolved through the
   VerseResolver, persisted, then cached

Selection: dateHash = (dayOfYear + year) % 366 picks a book from a
shuffled book list, chapter = (dateHash * 31) % chapters + 1 and
verse = (dateHash * 13) % 30 + 1. If the resolver can only return the
offline placeholder, the corpus verse at dateHash % len(corpus) is used.

The shuffle is seeded from dateHash unless seeded_shuffle is off, in
which case each cold start may pick a different book until a row is
persisted for the day.
"""

import logging
import random
import sqlite3
import threading
from datetime import date, datetime
from typing import Callable, List, Optional, Tuple

from .corpus import DEFAULT_COPYRIGHT_TEMPLATE, StaticCorpus
from .models import DailyVerseRecord, Passage
from .verse_cache import LocalCache, NullLocalCache
from .verse_resolver import VerseResolver, is_offline_passage

logger = logging.getLogger(__name__)

CACHE_VERSION = "v1"

# Canonical books with chapter counts. The interleaved order is the
# historical one; persisted selections were made against it.
BIBLE_BOOKS: List[Tuple[str, int]] = [
    ("Genesis", 50), ("Matthew", 28), ("Exodus", 40), ("Mark", 16),
    ("Leviticus", 27), ("Luke", 24), ("Numbers", 36), ("John", 21),
    ("Deuteronomy", 34), ("Acts", 28), ("Joshua", 24), ("Romans", 16),
    ("Judges", 21), ("1 Corinthians", 16), ("Ruth", 4), ("2 Corinthians", 13),
    ("1 Samuel", 31), ("Galatians", 6), ("2 Samuel", 24), ("Ephesians", 6),
    ("1 Kings", 22), ("Philippians", 4), ("2 Kings", 25), ("Colossians", 4),
    ("1 Chronicles", 29), ("1 Thessalonians", 5), ("2 Chronicles", 36),
    ("2 Thessalonians", 3), ("Ezra", 10), ("1 Timothy", 6), ("Nehemiah", 13),
    ("2 Timothy", 4), ("Esther", 10), ("Titus", 3), ("Job", 42),
    ("Philemon", 1), ("Psalms", 150), ("Hebrews", 13), ("Proverbs", 31),
    ("James", 5), ("Ecclesiastes", 12), ("1 Peter", 5), ("Song of Solomon", 8),
    ("2 Peter", 3), ("Isaiah", 66), ("1 John", 5), ("Jeremiah", 52),
    ("2 John", 1), ("Lamentations", 5), ("3 John", 1), ("Ezekiel", 48),
    ("Jude", 1), ("Daniel", 12), ("Revelation", 22), ("Hosea", 14),
    ("Joel", 3), ("Amos", 9), ("Obadiah", 1), ("Jonah", 4), ("Micah", 7),
    ("Nahum", 3), ("Habakkuk", 3), ("Zephaniah", 3), ("Haggai", 2),
    ("Zechariah", 14), ("Malachi", 4),
]


def date_hash_for(day: date) -> int:
    day_of_year = day.timetuple().tm_yday
    return (day_of_year + day.year) % 366


def select_reference(date_hash: int, books: List[Tuple[str, int]]) -> str:
    """Map a date hash onto a reference within an (already ordered) book list."""
    name, chapters = books[date_hash % len(books)]
    chapter = (date_hash * 31) % chapters + 1
    verse = (date_hash * 13) % 30 + 1
    return f"{name} {chapter}:{verse}"


# -----------------------------------------------------------------------------
# Persistence
# -----------------------------------------------------------------------------

class DailyVerseStore:
    """
    daily_verses table access.

    The table is UNIQUE on (date_key, translation) and inserts are
    INSERT OR IGNORE, so racing first-of-day writers leave one row and the
    loser's selection is discarded. Readers take the first row.

    The connection is shared by request threads, so every statement and
    its commit run under one lock.
    """

    def __init__(self, conn):
        self.db = conn
        self._lock = threading.Lock()

    def get_daily_verse(self, date_key: str, translation: str) -> Optional[DailyVerseRecord]:
        with self._lock:
            cur = self.db.cursor()
            cur.execute(
                """SELECT date_key, translation, reference, text, copyright
                   FROM daily_verses
                   WHERE date_key = ? AND translation = ?
                   ORDER BY id ASC
                   LIMIT 1""",
                (date_key, translation),
            )
            row = cur.fetchone()
        if not row:
            return None
        return DailyVerseRecord(
            date_key=row["date_key"],
            translation=row["translation"],
            passage=Passage(
                reference=row["reference"],
                translation=row["translation"],
                text=row["text"],
                copyright=row["copyright"],
            ),
        )

    def insert_daily_verse(self, record: DailyVerseRecord) -> bool:
        """Returns True if this call created the row."""
        passage = record.passage
        with self._lock:
            cur = self.db.cursor()
            cur.execute(
                """INSERT OR IGNORE INTO daily_verses
                   (date_key, translation, reference, text, copyright)
                   VALUES (?, ?, ?, ?, ?)""",
                (
                    record.date_key,
                    record.translation,
                    passage.reference,
                    passage.text,
                    passage.copyright or DEFAULT_COPYRIGHT_TEMPLATE.format(translation=passage.translation),
                ),
            )
            self.db.commit()
            return cur.rowcount > 0


# -----------------------------------------------------------------------------
# Selector
# -----------------------------------------------------------------------------

class DailyVerseSelector:
    """
    Serves the verse of the day, idempotently per calendar day.

    Usage:
        selector = DailyVerseSelector(resolver, DailyVerseStore(conn), corpus)
        passage = selector.daily_verse("ESV")
    """

    def __init__(
        self,
        resolver: VerseResolver,
        store: Optional[DailyVerseStore],
        corpus: StaticCorpus,
        local_cache: Optional[LocalCache] = None,
        clock: Callable[[], datetime] = datetime.now,
        seeded_shuffle: bool = True,
        rng: Optional[random.Random] = None,
    ):
        self.resolver = resolver
        self.store = store
        self.corpus = corpus
        self.local_cache = local_cache or NullLocalCache()
        self.clock = clock
        self.seeded_shuffle = seeded_shuffle
        self._rng = rng or random.Random()

    @staticmethod
    def cache_key(date_key: str, translation: str) -> str:
        return f"dailyVerse_{CACHE_VERSION}_{date_key}_{translation}"

    # ------------------------------------------------------------------
    # Client cache
    # ------------------------------------------------------------------

    def _read_local(self, key: str, now: datetime) -> Optional[Passage]:
        try:
            cached = self.local_cache.get(key)
            if not cached:
                return None
            cached_at = datetime.fromisoformat(cached["timestamp"])
            if cached_at.date() != now.date():
                # Entry from a previous day; expires at midnight
                self.local_cache.delete(key)
                return None
            verse = cached["verse"]
            return Passage(
                reference=verse["reference"],
                translation=verse["translation"],
                text=verse["text"],
                copyright=verse.get("copyright"),
            )
        except Exception as e:
            logger.warning(f"Error reading daily verse from local cache: {e}")
            return None

    def _write_local(self, key: str, passage: Passage, now: datetime) -> None:
        try:
            self.local_cache.set(key, {"verse": passage.to_dict(), "timestamp": now.isoformat()})
        except Exception as e:
            logger.warning(f"Error saving daily verse to local cache: {e}")

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def _ordered_books(self, date_hash: int) -> List[Tuple[str, int]]:
        books = list(BIBLE_BOOKS)
        if self.seeded_shuffle:
            random.Random(date_hash).shuffle(books)
        else:
            self._rng.shuffle(books)
        return books

    def _corpus_passage(self, date_hash: int, translation: str) -> Passage:
        reference, text = self.corpus.at(date_hash)
        return Passage(
            reference=reference,
            translation=translation,
            text=text,
            copyright=DEFAULT_COPYRIGHT_TEMPLATE.format(translation=translation),
        )

    def select(self, day: date, translation: str) -> Passage:
        """Pick and resolve the verse for a day, without persisting."""
        date_hash = date_hash_for(day)
        reference = select_reference(date_hash, self._ordered_books(date_hash))

        passage = self.resolver.resolve(reference, translation)
        if is_offline_passage(passage):
            logger.info(f"Daily verse {reference} unavailable, using corpus fallback")
            passage = self._corpus_passage(date_hash, translation)
        return passage

    def _persist(self, date_key: str, translation: str, passage: Passage) -> Passage:
        """Insert and return whichever row won for the day."""
        if self.store is None:
            return passage
        try:
            record = DailyVerseRecord(date_key=date_key, translation=translation, passage=passage)
            if not self.store.insert_daily_verse(record):
                logger.info(f"Daily verse for {date_key} ({translation}) already stored")
            stored = self.store.get_daily_verse(date_key, translation)
            if stored:
                return stored.passage
        except sqlite3.Error as e:
            logger.error(f"Error storing daily verse: {e}")
        return passage

    def _load(self, date_key: str, translation: str) -> Optional[Passage]:
        if self.store is None:
            return None
        try:
            record = self.store.get_daily_verse(date_key, translation)
        except sqlite3.Error as e:
            logger.error(f"Error loading daily verse: {e}")
            return None
        return record.passage if record else None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def daily_verse(self, translation: Optional[str] = None) -> Passage:
        """Return today's verse for a translation. Never raises."""
        translation = translation or self.resolver.registry.default
        now = self.clock()
        date_key = now.date().isoformat()
        key = self.cache_key(date_key, translation)

        try:
            cached = self._read_local(key, now)
            if cached:
                logger.debug("Using client-side cached daily verse")
                return cached

            passage = self._load(date_key, translation)
            if passage is None:
                passage = self._persist(date_key, translation, self.select(now.date(), translation))

            self._write_local(key, passage, now)
            return passage

        except Exception as e:
            logger.error(f"Error getting daily verse: {e}")
            passage = self._corpus_passage(date_hash_for(now.date()), translation)
            self._write_local(key, passage, now)
            return passage
