# faithful/services/references/search_orchestrator.py
"""
Scripture search.

A query runs through an ordered list of tiers; the first tier that yields
at least one result wins:

1. curated  - static keyword -> curated passages, no network
2. remote   - API.Bible full-text search, bounded by limit
3. ai       - generative model recommends 3-5 references, each resolved
              through the VerseResolver in parallel (aiRecommended=True).
              If the model is unavailable or errors, the static topic
              table stands in (tier "topic", not AI-recommended).
4. corpus   - substring scan of the static corpus, capped at 5
5. help     - a single "Search Help" pseudo-result

search() never raises.
"""

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Tuple

from .bible_api_client import BibleApiAuthError, BibleApiError, extract_text_from_html
from .corpus import DEFAULT_COPYRIGHT_TEMPLATE, StaticCorpus
from .models import Passage, SearchResponse, VerseResult, result_sort_key
from .study_catalog import StudyCatalog
from .verse_resolver import VerseResolver, is_offline_passage

logger = logging.getLogger(__name__)

CORPUS_SCAN_LIMIT = 5
DEFAULT_SEARCH_LIMIT = 10

REFERENCE_SHAPE = re.compile(r"[A-Za-z]+ \d+:\d+")

APP_COPYRIGHT = "Bible Study App"
UNAVAILABLE_TEXT = "Verse text unavailable. Please check your Bible for this reference."
UNAVAILABLE_COPYRIGHT = "Scripture reference"

RECOMMENDATION_SYSTEM_PROMPT = (
    "You are a biblical scholar who recommends relevant scripture references."
)

RECOMMENDATION_PROMPT = """I'm looking for Bible verses related to this topic or question: "{query}"

As a biblical scholar, please recommend 3-5 specific Bible verse references (like "John 3:16" or "Psalm 23:1-6") that are most relevant to this query.

Consider:
- Key theological themes in the query
- Well-known passages that address this topic
- Both Old and New Testament references when appropriate
- Verses that provide comfort, guidance, or insight on this topic

Return ONLY the verse references in a simple comma-separated list, with no additional text or explanation.
For example: "John 3:16, Romans 8:28, Philippians 4:13\""""


class RecommenderUnavailable(Exception):
    """The generative recommender could not be called."""


def parse_recommendations(text: str) -> List[str]:
    """Split a comma-separated model reply into reference-shaped candidates."""
    candidates = []
    for part in (text or "").split(","):
        candidate = part.strip().strip("\"'").strip()
        if candidate and REFERENCE_SHAPE.search(candidate):
            candidates.append(candidate)
    return candidates


def help_response(query: str) -> SearchResponse:
    passage = Passage(
        reference="Search Help",
        translation="",
        text=(
            f'We couldn\'t find exact matches for "{query}". Try searching for specific '
            'words like "love", "faith", "hope", or check your spelling.'
        ),
        copyright=APP_COPYRIGHT,
    )
    return SearchResponse(results=(VerseResult(passage),), tier="help")


def error_response() -> SearchResponse:
    passage = Passage(
        reference="Search Error",
        translation="",
        text=(
            "We encountered an issue while searching. Please try again with "
            "different search terms or check your connection."
        ),
        copyright=APP_COPYRIGHT,
    )
    return SearchResponse(results=(VerseResult(passage),), tier="error")


Tier = Tuple[str, Callable[[str, str, int], Optional[SearchResponse]]]


class SearchOrchestrator:
    """
    Cascading scripture search.

    Usage:
        search = SearchOrchestrator(resolver, corpus, llm=get_best_available_client())
        response = search.search("forgiveness", "ESV")
        combined = search.search_all("forgiveness", "ESV")
    """

    def __init__(
        self,
        resolver: VerseResolver,
        corpus: StaticCorpus,
        llm=None,
        catalog: Optional[StudyCatalog] = None,
    ):
        self.resolver = resolver
        self.corpus = corpus
        self.llm = llm
        self.catalog = catalog if catalog is not None else StudyCatalog()

    @property
    def tiers(self) -> List[Tier]:
        return [
            ("curated", self._curated),
            ("remote", self._remote),
            ("ai", self._recommended),
            ("corpus", self._corpus_scan),
        ]

    # ------------------------------------------------------------------
    # Tiers
    # ------------------------------------------------------------------

    def _curated(self, query: str, translation: str, limit: int) -> Optional[SearchResponse]:
        match = self.corpus.curated_for(query)
        if not match:
            return None
        keyword, entries = match
        logger.info(f'Using curated results for query containing "{keyword}"')
        copyright = self.corpus.curated_copyright or DEFAULT_COPYRIGHT_TEMPLATE.format(translation=translation)
        results = tuple(
            VerseResult(
                Passage(
                    reference=entry["reference"],
                    translation=translation,
                    text=entry["text"],
                    copyright=entry.get("copyright") or copyright,
                )
            )
            for entry in entries
        )
        return SearchResponse(results=results, tier="curated")

    def _remote(self, query: str, translation: str, limit: int) -> Optional[SearchResponse]:
        provider = self.resolver.provider
        if not self.resolver.provider_available():
            return None

        try:
            data = provider.search_by_reference(
                self.resolver.registry.bible_id(translation), query, limit=limit
            )
        except BibleApiAuthError as e:
            self.resolver.health.mark_degraded(str(e))
            return None
        except BibleApiError as e:
            logger.warning(f"Bible API search failed: {e}")
            return None

        passages = data.get("passages") or []
        if not passages:
            logger.info("Bible API search returned no results")
            return None

        copyright = data.get("copyright") or DEFAULT_COPYRIGHT_TEMPLATE.format(translation=translation)
        results = tuple(
            VerseResult(
                Passage(
                    reference=p.get("reference", ""),
                    translation=translation,
                    text=extract_text_from_html(p.get("content") or ""),
                    copyright=copyright,
                )
            )
            for p in passages[:limit]
        )
        return SearchResponse(results=results, tier="remote")

    def recommend_references(self, query: str) -> List[str]:
        """
        Ask the generative model for references.

        Raises:
            RecommenderUnavailable: no model configured, or the call failed
        """
        if self.llm is None or not self.llm.is_configured():
            raise RecommenderUnavailable("No generative provider configured")
        try:
            text = self.llm.generate(
                RECOMMENDATION_SYSTEM_PROMPT,
                RECOMMENDATION_PROMPT.format(query=query),
                temperature=0.2,
                max_tokens=200,
            )
        except Exception as e:
            raise RecommenderUnavailable(str(e)) from e
        return parse_recommendations(text)

    def _resolve_listed(self, references: List[str], translation: str) -> Tuple[VerseResult, ...]:
        results = []
        for ref, passage in zip(references, self.resolver.resolve_many(references, translation)):
            if is_offline_passage(passage):
                passage = Passage(
                    reference=ref,
                    translation=translation,
                    text=UNAVAILABLE_TEXT,
                    copyright=UNAVAILABLE_COPYRIGHT,
                )
            results.append(VerseResult(passage))
        return tuple(results)

    def _recommended(self, query: str, translation: str, limit: int) -> Optional[SearchResponse]:
        try:
            references = self.recommend_references(query)
            ai_recommended = True
        except RecommenderUnavailable as e:
            logger.warning(f"Verse recommendations unavailable, using topic table: {e}")
            references = self.corpus.topic_references(query)
            ai_recommended = False

        if not references:
            return None

        logger.info(f"Got verse recommendations: {references}")
        return SearchResponse(
            results=self._resolve_listed(references, translation),
            ai_recommended=ai_recommended,
            tier="ai" if ai_recommended else "topic",
        )

    def _corpus_scan(self, query: str, translation: str, limit: int) -> Optional[SearchResponse]:
        matches = self.corpus.scan(query, limit=CORPUS_SCAN_LIMIT)
        if not matches:
            return None
        copyright = DEFAULT_COPYRIGHT_TEMPLATE.format(translation=translation)
        results = tuple(
            VerseResult(Passage(reference=ref, translation=translation, text=text, copyright=copyright))
            for ref, text in matches
        )
        return SearchResponse(results=results, tier="corpus")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def search(
        self,
        query: str,
        translation: Optional[str] = None,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> SearchResponse:
        """Run the tier cascade. Never raises."""
        translation = translation or self.resolver.registry.default
        try:
            for name, tier in self.tiers:
                response = tier(query, translation, limit)
                if response and response.results:
                    logger.debug(f"Search tier {name} answered {query!r}")
                    return response
            return help_response(query)
        except Exception as e:
            logger.error(f"Error in search: {e}")
            return error_response()

    def search_studies(self, query: str, limit: int = 5):
        return self.catalog.search_studies(query, limit=limit)

    def search_all(
        self,
        query: str,
        translation: Optional[str] = None,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> SearchResponse:
        """Studies and scripture searched side by side; studies listed first."""
        with ThreadPoolExecutor(max_workers=2) as pool:
            studies_future = pool.submit(self.search_studies, query)
            verses_future = pool.submit(self.search, query, translation, limit)

            try:
                studies = studies_future.result()
            except Exception as e:
                logger.error(f"Error searching studies: {e}")
                studies = []
            verses = verses_future.result()

        combined = sorted(list(studies) + list(verses.results), key=result_sort_key)
        return SearchResponse(
            results=tuple(combined),
            ai_recommended=verses.ai_recommended,
            tier=verses.tier,
        )
