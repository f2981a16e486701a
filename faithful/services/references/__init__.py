# faithful/services/references/__init__.py
"""
Scripture lookup services for Faithful Study.

This package provides:
- ScriptureService: Unified interface for lookup, verse of the day and search
- VerseResolver: Tiered single-reference lookup (cache, corpus, API.Bible)
- DailyVerseSelector: One verse per calendar day per translation
- SearchOrchestrator: Cascading scripture search
- StudyCatalog: Built-in study search
- BibleApiClient: API.Bible access
- StaticCorpus: Bundled verses and keyword tables
"""

from .bible_api_client import (
    BibleApiClient,
    BibleApiError,
    BibleApiAuthError,
    BibleApiNetworkError,
    extract_text_from_html,
)
from .corpus import StaticCorpus, load_corpus, reload_corpus
from .daily_verse import DailyVerseSelector, DailyVerseStore
from .health import ProviderHealth
from .models import (
    DailyVerseRecord,
    Passage,
    ResultKind,
    SearchResponse,
    SearchResult,
    StudyResult,
    VerseResult,
)
from .search_orchestrator import SearchOrchestrator
from .study_catalog import StudyCatalog, load_studies, reload_studies
from .translations import TranslationRegistry
from .verse_cache import (
    FileLocalCache,
    LocalCache,
    MemoryLocalCache,
    NullLocalCache,
    VerseCache,
)
from .verse_resolver import VerseResolver
from .scripture_service import ScriptureService, get_scripture_service, set_scripture_service

__all__ = [
    # Unified Service (primary interface)
    "ScriptureService",
    "get_scripture_service",
    "set_scripture_service",
    # Core pipeline
    "VerseResolver",
    "DailyVerseSelector",
    "DailyVerseStore",
    "SearchOrchestrator",
    "StudyCatalog",
    "load_studies",
    "reload_studies",
    # Provider
    "BibleApiClient",
    "BibleApiError",
    "BibleApiAuthError",
    "BibleApiNetworkError",
    "extract_text_from_html",
    "ProviderHealth",
    # Data
    "StaticCorpus",
    "load_corpus",
    "reload_corpus",
    "TranslationRegistry",
    "VerseCache",
    "LocalCache",
    "NullLocalCache",
    "MemoryLocalCache",
    "FileLocalCache",
    # Models
    "Passage",
    "DailyVerseRecord",
    "ResultKind",
    "SearchResponse",
    "SearchResult",
    "StudyResult",
    "VerseResult",
]
