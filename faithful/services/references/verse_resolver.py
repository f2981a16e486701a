# faithful/services/references/verse_resolver.py
"""
Verse resolver.

Resolves one reference in one translation through an ordered set of
sources, stopping at the first hit:

1. Process-tier verse cache
2. Static corpus
3. API.Bible search endpoint (reference text -> passage -> plain text)
4. API.Bible passages endpoint, tried once if step 3 fails
5. Static corpus again, then the offline-mode placeholder

resolve() never raises. Steps 2-4 populate the cache on success. An
unauthorized/forbidden answer marks the provider degraded and steps 3-4
are skipped for the rest of the process.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import List, Optional

from .bible_api_client import (
    BibleApiAuthError,
    BibleApiClient,
    BibleApiError,
    extract_text_from_html,
)
from .corpus import DEFAULT_COPYRIGHT_TEMPLATE, StaticCorpus
from .health import ProviderHealth
from .models import Passage
from .translations import TranslationRegistry
from .verse_cache import VerseCache

logger = logging.getLogger(__name__)

OFFLINE_TEXT_TEMPLATE = (
    '"{reference}" - This verse is available in your Bible. '
    "We're currently using offline mode for verse lookup."
)
OFFLINE_COPYRIGHT = "Please refer to your physical Bible for the complete text."

MAX_PARALLEL_LOOKUPS = 5


def offline_passage(reference: str, translation: str) -> Passage:
    """The generic passage returned when no source has the text."""
    return Passage(
        reference=reference,
        translation=translation,
        text=OFFLINE_TEXT_TEMPLATE.format(reference=reference),
        copyright=OFFLINE_COPYRIGHT,
    )


def is_offline_passage(passage: Passage) -> bool:
    return passage.copyright == OFFLINE_COPYRIGHT and passage.text == OFFLINE_TEXT_TEMPLATE.format(
        reference=passage.reference
    )


class VerseResolver:
    """
    Single-reference lookup with tiered fallback.

    Usage:
        resolver = VerseResolver(client, StaticCorpus(), VerseCache(), ProviderHealth(),
                                 TranslationRegistry(bible_ids))
        passage = resolver.resolve("John 3:16", "ESV")
        passages = resolver.resolve_many(["John 3:16", "Romans 8:28"], "KJV")
    """

    def __init__(
        self,
        provider: Optional[BibleApiClient],
        corpus: StaticCorpus,
        cache: VerseCache,
        health: ProviderHealth,
        registry: TranslationRegistry,
        max_workers: int = MAX_PARALLEL_LOOKUPS,
    ):
        self.provider = provider
        self.corpus = corpus
        self.cache = cache
        self.health = health
        self.registry = registry
        self.max_workers = max_workers

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def provider_available(self) -> bool:
        return (
            self.provider is not None
            and self.provider.is_configured()
            and self.health.available
        )

    def _default_copyright(self, translation: str) -> str:
        return DEFAULT_COPYRIGHT_TEMPLATE.format(translation=translation)

    def _store(self, reference: str, translation: str, text: str, copyright: Optional[str]) -> Passage:
        self.cache.put(reference, translation, text, copyright)
        return Passage(reference=reference, translation=translation, text=text, copyright=copyright)

    def _note_failure(self, reference: str, error: Exception) -> None:
        if isinstance(error, BibleApiAuthError):
            self.health.mark_degraded(str(error))
        else:
            logger.warning(f"Bible API lookup failed for {reference}: {error}")

    def _from_cache(self, reference: str, translation: str) -> Optional[Passage]:
        cached = self.cache.get(reference, translation)
        if cached is None:
            return None
        return Passage(reference=reference, translation=translation, text=cached.text, copyright=cached.copyright)

    def _from_corpus(self, reference: str, translation: str) -> Optional[Passage]:
        text = self.corpus.get(reference)
        if text is None:
            return None
        return self._store(reference, translation, text, self._default_copyright(translation))

    def _fetch_primary(self, reference: str, translation: str) -> Optional[Passage]:
        """Search by reference text, then pull plain text from the first passage."""
        bible_id = self.registry.bible_id(translation)
        data = self.provider.search_by_reference(bible_id, reference.strip())

        passages = data.get("passages") or []
        if not passages:
            logger.info(f"No passages found for reference: {reference}")
            return None

        passage = passages[0]
        content = passage.get("content")
        if not content and passage.get("id"):
            content = self.provider.passage_by_id(bible_id, passage["id"]).get("content")

        text = extract_text_from_html(content or "")
        if not text:
            return None

        copyright = data.get("copyright") or self._default_copyright(translation)
        return self._store(reference, translation, text, copyright)

    def _fetch_secondary(self, reference: str, translation: str) -> Optional[Passage]:
        bible_id = self.registry.bible_id(translation)
        passages = self.provider.passages_by_query(bible_id, reference.strip())
        if not passages:
            return None

        passage = passages[0]
        text = extract_text_from_html(passage.get("content") or "")
        if not text:
            return None

        copyright = passage.get("copyright") or self._default_copyright(translation)
        return self._store(reference, translation, text, copyright)

    def _fetch_by_id(self, verse_id: str, reference: str, translation: str) -> Optional[Passage]:
        data = self.provider.verse_by_id(self.registry.bible_id(translation), verse_id)
        text = extract_text_from_html(data.get("content") or "")
        if not text:
            return None
        copyright = data.get("copyright") or self._default_copyright(translation)
        return self._store(reference, translation, text, copyright)

    def _from_provider(self, reference: str, translation: str, fetches=None) -> Optional[Passage]:
        for fetch in fetches or (self._fetch_primary, self._fetch_secondary):
            if not self.provider_available():
                return None
            try:
                passage = fetch(reference, translation)
            except BibleApiError as e:
                self._note_failure(reference, e)
                continue
            if passage:
                return passage
        return None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve(self, reference: str, translation: Optional[str] = None) -> Passage:
        """
        Resolve a reference to a Passage. Never raises.

        Args:
            reference: Reference string (e.g., "John 3:16")
            translation: Translation code; defaults to the registry default

        Returns:
            Passage; the offline placeholder when nothing has the text
        """
        translation = translation or self.registry.default

        try:
            passage = self._from_cache(reference, translation)
            if passage:
                return passage

            passage = self._from_corpus(reference, translation)
            if passage:
                return passage

            if self.provider_available():
                passage = self._from_provider(reference, translation)
                if passage:
                    return passage

            passage = self._from_corpus(reference, translation)
            if passage:
                return passage

        except Exception as e:
            logger.error(f"Unexpected error resolving {reference}: {e}")

        return offline_passage(reference, translation)

    def resolve_by_id(self, verse_id: str, reference: str, translation: Optional[str] = None) -> Passage:
        """
        Resolve when the provider verse id is already known
        (e.g., "JHN.3.16"). Never raises.

        The verse endpoint replaces the search-by-reference step; if it
        fails, the passages-by-query endpoint is tried once before the
        offline placeholder.
        """
        translation = translation or self.registry.default

        try:
            passage = self._from_cache(reference, translation)
            if passage:
                return passage

            passage = self._from_corpus(reference, translation)
            if passage:
                return passage

            by_id = partial(self._fetch_by_id, verse_id)
            passage = self._from_provider(reference, translation, (by_id, self._fetch_secondary))
            if passage:
                return passage

        except Exception as e:
            logger.error(f"Unexpected error resolving {verse_id} ({reference}): {e}")

        return offline_passage(reference, translation)

    def resolve_many(self, references: List[str], translation: Optional[str] = None) -> List[Passage]:
        """
        Resolve several references concurrently.

        Results are in the order of the input list, not completion order.
        """
        if not references:
            return []
        workers = max(1, min(self.max_workers, len(references)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(lambda ref: self.resolve(ref, translation), references))

    def list_translations(self) -> List[dict]:
        """Provider translation list, or the static five when unavailable."""
        if not self.provider_available():
            return self.registry.default_translations()
        try:
            return self.provider.list_translations()
        except BibleApiError as e:
            self._note_failure("translations", e)
            return self.registry.default_translations()
