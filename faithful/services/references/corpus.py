# faithful/services/references/corpus.py
"""
Static reference corpus.

Loads the bundled verse table, curated keyword results and topic tables
from data/corpus.yml. The corpus is the fast path that avoids provider
calls and the last resort when everything upstream is down.
"""

import os
from functools import lru_cache
from typing import Any, Dict, List, Optional, Tuple

import yaml

CORPUS_PATH = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
    "data",
    "corpus.yml",
)

DEFAULT_COPYRIGHT_TEMPLATE = "Scripture from {translation}"


@lru_cache(maxsize=1)
def load_corpus() -> Dict[str, Any]:
    """Load the corpus from YAML."""
    if not os.path.exists(CORPUS_PATH):
        return get_default_corpus()

    with open(CORPUS_PATH, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or get_default_corpus()


def get_default_corpus() -> Dict[str, Any]:
    """Minimal corpus if the data file is missing."""
    return {
        "version": "1.0",
        "curated_copyright": "",
        "verses": {
            "John 3:16": (
                "For God so loved the world, that he gave his only Son, that "
                "whoever believes in him should not perish but have eternal life."
            ),
            "Psalm 23:1": "The LORD is my shepherd; I shall not want.",
        },
        "curated_results": {},
        "topic_references": {},
        "generic_references": ["John 3:16", "Psalm 23:1"],
    }


def reload_corpus() -> Dict[str, Any]:
    """Clear cache and reload the corpus."""
    load_corpus.cache_clear()
    return load_corpus()


class StaticCorpus:
    """
    Read-only view over the corpus tables.

    Lookups are exact on the trimmed reference string; "john 3:16" and
    "John 3:16" are different keys.
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        data = data if data is not None else load_corpus()
        # Never empty: at() and the offline fallbacks index into it
        self._verses: Dict[str, str] = dict(data.get("verses") or get_default_corpus()["verses"])
        self._curated: Dict[str, List[dict]] = dict(data.get("curated_results") or {})
        self._topics: Dict[str, List[str]] = dict(data.get("topic_references") or {})
        self._generic: List[str] = list(data.get("generic_references") or [])
        self.curated_copyright: str = data.get("curated_copyright") or ""

    def __len__(self) -> int:
        return len(self._verses)

    def __contains__(self, reference: str) -> bool:
        return reference.strip() in self._verses

    def get(self, reference: str) -> Optional[str]:
        return self._verses.get(reference.strip())

    def references(self) -> List[str]:
        return list(self._verses)

    def at(self, index: int) -> Tuple[str, str]:
        """Return the (reference, text) pair at index, wrapping around."""
        refs = self.references()
        ref = refs[index % len(refs)]
        return ref, self._verses[ref]

    def curated_for(self, query: str) -> Optional[Tuple[str, List[dict]]]:
        """First curated keyword contained in the normalized query."""
        normalized = query.lower().strip()
        for keyword, passages in self._curated.items():
            if keyword.lower() in normalized:
                return keyword, passages
        return None

    def topic_references(self, query: str) -> List[str]:
        """References for the first topic contained in the query, else the generic set."""
        normalized = query.lower()
        for topic, refs in self._topics.items():
            if topic in normalized:
                return list(refs)
        return list(self._generic)

    def scan(self, query: str, limit: int = 5) -> List[Tuple[str, str]]:
        """Case-insensitive substring match over references and texts."""
        needle = query.lower().strip()
        if not needle:
            return []
        matches = []
        for ref, text in self._verses.items():
            if needle in text.lower() or needle in ref.lower():
                matches.append((ref, text))
                if len(matches) >= limit:
                    break
        return matches
