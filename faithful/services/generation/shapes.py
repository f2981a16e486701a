# faithful/services/generation/shapes.py
"""
Structured content produced by the generative service.

GeneratedAnswer and GeneratedStudy always carry their status fields:
isApiError, cannotAnswer/cannotGenerate and reason. Success paths leave
them false/None; degraded paths set them and give a readable reason.
Callers branch on these instead of catching exceptions.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ParseStage(str, Enum):
    """How a generated object was obtained from the raw model text."""
    STRICT = "strict"
    SANITIZED = "sanitized"
    HEURISTIC = "heuristic"
    FALLBACK = "fallback"
    UNAVAILABLE = "unavailable"


DEFAULT_TRANSLATION = "NIV"

DEFAULT_RELATED_QUESTIONS = [
    "What do these passages reveal about God's character?",
    "How does this teaching challenge the way you live today?",
    "What is one step you can take this week to apply this study?",
]


@dataclass(frozen=True)
class ScriptureCitation:
    reference: str
    translation: str = DEFAULT_TRANSLATION
    text: str = ""

    @classmethod
    def from_value(cls, value: Any) -> Optional["ScriptureCitation"]:
        """Accept a {reference, translation, text} dict or a bare reference string."""
        if isinstance(value, str):
            return cls(reference=value.strip()) if value.strip() else None
        if not isinstance(value, dict) or not value.get("reference"):
            return None
        return cls(
            reference=str(value["reference"]).strip(),
            translation=str(value.get("translation") or DEFAULT_TRANSLATION),
            text=str(value.get("text") or ""),
        )

    def to_dict(self) -> dict:
        return {
            "reference": self.reference,
            "translation": self.translation,
            "text": self.text,
        }


def _citation_list(value: Any) -> List[ScriptureCitation]:
    """A list of citations; a lone string or dict counts as one citation."""
    if not isinstance(value, list):
        value = [value] if isinstance(value, (str, dict)) else []
    citations = (ScriptureCitation.from_value(v) for v in value)
    return [c for c in citations if c is not None]


def _string_list(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list):
        return None
    items = [str(v).strip() for v in value if isinstance(v, (str, int, float)) and str(v).strip()]
    return items or None


@dataclass
class GeneratedAnswer:
    """
    Answer to a Bible question.

    Attributes:
        content: Main explanation
        scriptures: Supporting citations
        application: How to apply the teaching
        is_api_error: True whenever the answer is not exactly what the
            model produced as valid JSON
        cannot_answer: True when the answer is a static placeholder
        reason: Human-readable explanation for degraded answers
        parse_stage: Which salvage stage produced the answer
    """
    content: str
    scriptures: List[ScriptureCitation] = field(default_factory=list)
    application: str = ""
    is_api_error: bool = False
    cannot_answer: bool = False
    reason: Optional[str] = None
    parse_stage: ParseStage = ParseStage.STRICT

    FIELDS = ("content", "scriptures", "application")

    @classmethod
    def from_dict(cls, data: Dict[str, Any], stage: ParseStage = ParseStage.STRICT) -> "GeneratedAnswer":
        """Build from decoded model JSON. Missing fields get empty values."""
        return cls(
            content=str(data.get("content") or ""),
            scriptures=_citation_list(data.get("scriptures")),
            application=str(data.get("application") or ""),
            parse_stage=stage,
        )

    def to_dict(self) -> dict:
        return {
            "content": self.content,
            "scriptures": [s.to_dict() for s in self.scriptures],
            "application": self.application,
            "isApiError": self.is_api_error,
            "cannotAnswer": self.cannot_answer,
            "reason": self.reason,
            "parseStage": self.parse_stage.value,
        }


def default_read_time(verses: List[str]) -> str:
    return f"{math.ceil(len(verses) * 2)} min"


@dataclass
class GeneratedStudy:
    """A generated Bible study. Status fields mirror GeneratedAnswer."""
    title: str
    verses: List[str] = field(default_factory=list)
    context: str = ""
    key_points: List[str] = field(default_factory=list)
    application: str = ""
    read_time: str = ""
    related_questions: List[str] = field(default_factory=lambda: list(DEFAULT_RELATED_QUESTIONS))
    is_api_error: bool = False
    cannot_generate: bool = False
    reason: Optional[str] = None
    parse_stage: ParseStage = ParseStage.STRICT

    FIELDS = ("title", "verses", "context", "keyPoints", "application")

    def __post_init__(self):
        if not self.read_time:
            self.read_time = default_read_time(self.verses)

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        stage: ParseStage = ParseStage.STRICT,
        topic: str = "",
    ) -> "GeneratedStudy":
        verses = _string_list(data.get("verses")) or []
        return cls(
            title=str(data.get("title") or (f"Study on {topic}" if topic else "")),
            verses=verses,
            context=str(data.get("context") or ""),
            key_points=_string_list(data.get("keyPoints")) or [],
            application=str(data.get("application") or ""),
            read_time=str(data.get("readTime") or default_read_time(verses)),
            related_questions=_string_list(data.get("relatedQuestions")) or list(DEFAULT_RELATED_QUESTIONS),
            parse_stage=stage,
        )

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "verses": list(self.verses),
            "context": self.context,
            "keyPoints": list(self.key_points),
            "application": self.application,
            "readTime": self.read_time,
            "relatedQuestions": list(self.related_questions),
            "isApiError": self.is_api_error,
            "cannotGenerate": self.cannot_generate,
            "reason": self.reason,
            "parseStage": self.parse_stage.value,
        }
