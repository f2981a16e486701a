# faithful/services/generation/__init__.py
"""
Generated content for Faithful Study.

This package provides:
- BibleAI: question answering and study generation
- salvage: recovery of structured objects from raw model text
- GeneratedAnswer / GeneratedStudy: result shapes with status fields
"""

from .shapes import (
    GeneratedAnswer,
    GeneratedStudy,
    ParseStage,
    ScriptureCitation,
)
from .salvage import (
    AnswerShape,
    StudyShape,
    salvage,
)
from .bible_ai import (
    BibleAI,
    StudyKind,
    ask_bible_question,
    build_study_passages,
    generate_bible_study,
    get_bible_ai,
    is_quota_error,
    set_bible_ai,
)

__all__ = [
    "GeneratedAnswer",
    "GeneratedStudy",
    "ParseStage",
    "ScriptureCitation",
    "AnswerShape",
    "StudyShape",
    "salvage",
    "BibleAI",
    "StudyKind",
    "ask_bible_question",
    "build_study_passages",
    "generate_bible_study",
    "get_bible_ai",
    "is_quota_error",
    "set_bible_ai",
]
