# faithful/services/references/models.py
"""
Value types returned by the scripture services.

Every value here is created per request and never mutated afterwards,
so they are frozen dataclasses.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union


@dataclass(frozen=True)
class Passage:
    """
    Resolved text for a reference in one translation.

    Attributes:
        reference: Reference string as the caller asked for it
        translation: Translation code (e.g., "ESV")
        text: Plain passage text
        copyright: Copyright or provenance notice, if any
    """
    reference: str
    translation: str
    text: str
    copyright: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "reference": self.reference,
            "translation": self.translation,
            "text": self.text,
            "copyright": self.copyright,
        }


@dataclass(frozen=True)
class DailyVerseRecord:
    """The persisted verse-of-the-day selection for one date and translation."""
    date_key: str
    translation: str
    passage: Passage

    @property
    def reference(self) -> str:
        return self.passage.reference


class ResultKind(str, Enum):
    STUDY = "study"
    VERSE = "verse"


@dataclass(frozen=True)
class StudyResult:
    """A study from the local catalog that matched a search."""
    id: str
    title: str
    description: str
    verses: Tuple[str, ...] = ()
    category: str = ""

    kind = ResultKind.STUDY

    def to_dict(self) -> dict:
        return {
            "type": self.kind.value,
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "verses": list(self.verses),
            "category": self.category,
        }


@dataclass(frozen=True)
class VerseResult:
    """A scripture passage that matched a search."""
    passage: Passage

    kind = ResultKind.VERSE

    def to_dict(self) -> dict:
        data = self.passage.to_dict()
        data["type"] = self.kind.value
        return data


SearchResult = Union[StudyResult, VerseResult]


def result_sort_key(result: SearchResult) -> int:
    """Studies sort before verses; stable sort keeps tier order otherwise."""
    if isinstance(result, StudyResult):
        return 0
    if isinstance(result, VerseResult):
        return 1
    raise TypeError(f"Unknown search result type: {type(result).__name__}")


@dataclass(frozen=True)
class SearchResponse:
    """
    Outcome of a search.

    Attributes:
        results: Matches in display order
        ai_recommended: True only when the verses came from the
            generative recommender
        tier: Name of the cascade tier that produced the results
    """
    results: Tuple[SearchResult, ...] = ()
    ai_recommended: bool = False
    tier: str = ""

    @property
    def passages(self) -> List[Passage]:
        return [r.passage for r in self.results if isinstance(r, VerseResult)]

    def to_dict(self) -> dict:
        return {
            "results": [r.to_dict() for r in self.results],
            "isAiRecommended": self.ai_recommended,
            "tier": self.tier,
        }
