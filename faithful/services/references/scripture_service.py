# faithful/services/references/scripture_service.py
"""
Unified scripture service.

Builds the registry, corpus, caches, provider client, resolver, daily
verse selector and search orchestrator from one Settings snapshot, and
exposes the entry points the routes call.
"""

import logging
from typing import List, Optional

from ...core.config import Settings, get_settings
from ...utils.db import get_db, init_db
from .bible_api_client import BibleApiClient
from .corpus import StaticCorpus
from .daily_verse import DailyVerseSelector, DailyVerseStore
from .health import ProviderHealth
from .models import Passage, SearchResponse
from .search_orchestrator import SearchOrchestrator
from .study_catalog import StudyCatalog
from .translations import TranslationRegistry
from .verse_cache import FileLocalCache, LocalCache, MemoryLocalCache, VerseCache
from .verse_resolver import VerseResolver

logger = logging.getLogger(__name__)


class ScriptureService:
    """
    Single entry point for verse lookup, verse of the day and search.

    Usage:
        service = ScriptureService.from_settings(get_settings(), llm=get_best_available_client())

        service.resolve("John 3:16", "KJV")
        service.daily_verse("ESV")
        service.search("forgiveness")
    """

    def __init__(
        self,
        resolver: VerseResolver,
        daily: DailyVerseSelector,
        searcher: SearchOrchestrator,
    ):
        self.resolver = resolver
        self.daily = daily
        self.searcher = searcher

    @classmethod
    def from_settings(cls, settings: Settings, llm=None, local_cache: Optional[LocalCache] = None):
        registry = TranslationRegistry(settings.bible_ids, settings.default_translation)
        corpus = StaticCorpus()
        health = ProviderHealth()

        provider = None
        if settings.bible_api_key:
            provider = BibleApiClient(
                settings.bible_api_key,
                settings.bible_api_url,
                timeout=settings.bible_api_timeout,
            )
        else:
            logger.warning("BIBLE_API_KEY not set; verse lookup limited to the static corpus")

        resolver = VerseResolver(provider, corpus, VerseCache(), health, registry)

        store = None
        try:
            conn = get_db(settings.db_path)
            init_db(conn)
            store = DailyVerseStore(conn)
        except Exception as e:
            logger.error(f"Daily verse persistence unavailable: {e}")

        if local_cache is None:
            if settings.local_cache_dir:
                local_cache = FileLocalCache(settings.local_cache_dir)
            else:
                local_cache = MemoryLocalCache()

        daily = DailyVerseSelector(
            resolver,
            store,
            corpus,
            local_cache=local_cache,
            seeded_shuffle=settings.seeded_shuffle,
        )
        searcher = SearchOrchestrator(resolver, corpus, llm=llm, catalog=StudyCatalog())
        return cls(resolver, daily, searcher)

    @property
    def health(self) -> ProviderHealth:
        return self.resolver.health

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def resolve(self, reference: str, translation: Optional[str] = None) -> Passage:
        return self.resolver.resolve(reference, translation)

    def resolve_many(self, references: List[str], translation: Optional[str] = None) -> List[Passage]:
        return self.resolver.resolve_many(references, translation)

    def daily_verse(self, translation: Optional[str] = None) -> Passage:
        return self.daily.daily_verse(translation)

    def search(self, query: str, translation: Optional[str] = None, limit: int = 10) -> SearchResponse:
        return self.searcher.search(query, translation, limit)

    def search_all(self, query: str, translation: Optional[str] = None, limit: int = 10) -> SearchResponse:
        return self.searcher.search_all(query, translation, limit)

    def list_translations(self) -> List[dict]:
        return self.resolver.list_translations()


# Singleton
_scripture_service: Optional[ScriptureService] = None


def get_scripture_service() -> ScriptureService:
    """Get or create the process-wide scripture service."""
    global _scripture_service
    if _scripture_service is None:
        from ..llm_service import get_best_available_client

        _scripture_service = ScriptureService.from_settings(
            get_settings(), llm=get_best_available_client()
        )
    return _scripture_service


def set_scripture_service(service: Optional[ScriptureService]) -> None:
    """Replace the process-wide service (tests, app factory)."""
    global _scripture_service
    _scripture_service = service
