# faithful/services/generation/salvage.py
"""
Response salvage pipeline.

Turns raw model text into a GeneratedAnswer or GeneratedStudy and never
raises. Stages run in order; the first one that yields a value wins:

1. Delimiter extraction: slice from the first "{" to the last "}"
   (empty when there is no such pair)
2. Strict parse of the slice
3. Sanitized parse: control characters stripped, \\' normalized, raw
   newlines/tabs inside strings accepted
4. Heuristic field extraction: per-field regexes over the raw text,
   each field defaulting independently

Anything that still fails gets the shape's static fallback.

Stage 2 and 3 results are not degradations (isApiError stays false);
stage 4 and the fallback set isApiError and a reason.

Usage:
    answer = salvage(raw_text, AnswerShape(question))
    study = salvage(raw_text, StudyShape(topic))
"""

import json
import logging
import re
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from .shapes import (
    DEFAULT_RELATED_QUESTIONS,
    DEFAULT_TRANSLATION,
    GeneratedAnswer,
    GeneratedStudy,
    ParseStage,
    ScriptureCitation,
)

logger = logging.getLogger(__name__)

# Control characters outside the allowed whitespace set (\n, \r, \t)
CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F-\x9F]")

FORMATTING_REASON = "The response had formatting issues, but we extracted the key information."
PROCESSING_REASON = (
    "There was an error processing the AI response. This could be due to formatting issues."
)


# -----------------------------------------------------------------------------
# Text-level helpers
# -----------------------------------------------------------------------------

def extract_json_slice(text: str) -> str:
    """Text between the first '{' and the last '}', inclusive; "" if absent."""
    text = text or ""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or start > end:
        return ""
    return text[start:end + 1]


def sanitize_json(text: str) -> str:
    text = CONTROL_CHARS.sub("", text)
    return text.replace("\\'", "'")


def _decode(text: str, strict: bool = True) -> Optional[Dict[str, Any]]:
    if not text:
        return None
    try:
        data = json.loads(text, strict=strict)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def first_success(strategies: Iterable[Callable[..., Optional[Any]]], *args) -> Optional[Any]:
    """Return the first non-None strategy result."""
    for strategy in strategies:
        result = strategy(*args)
        if result is not None:
            return result
    return None


# -----------------------------------------------------------------------------
# Field heuristics
# -----------------------------------------------------------------------------

def _label(name: str) -> str:
    return r"(?<![A-Za-z])" + re.escape(name) + r"[\"']?\s*:\s*"


def _unescape(value: str) -> str:
    try:
        return json.loads(f'"{value}"', strict=False)
    except json.JSONDecodeError:
        return value


def _scalar_patterns(name: str) -> List[re.Pattern]:
    label = _label(name)
    return [
        re.compile(label + r'"((?:[^"\\]|\\.)+)"', re.S),
        re.compile(label + r"[\"']([^\"']+)[\"']"),
        re.compile(label + r"[\"'](.+?)[\"']"),
        re.compile(label + r"[\"']([\s\S]+?)[\"']"),
    ]


def find_scalar(text: str, name: str) -> Optional[str]:
    """Value of `name: "..."`, trying progressively looser patterns."""
    for pattern in _scalar_patterns(name):
        match = pattern.search(text)
        if match and match.group(1).strip():
            return _unescape(match.group(1)).strip()
    return None


def find_all_scalars(text: str, name: str) -> List[str]:
    pattern = re.compile(_label(name) + r"(?:\"((?:[^\"\\]|\\.)+)\"|'([^']+)')")
    values = []
    for match in pattern.finditer(text):
        if match.group(1) is not None:
            values.append(_unescape(match.group(1)).strip())
        else:
            values.append(match.group(2).strip())
    return values


def find_list(text: str, name: str) -> Optional[List[str]]:
    """Quoted strings inside `name: [...]`."""
    match = re.search(_label(name) + r"\[(.*?)\]", text, re.S)
    if not match:
        return None
    body = match.group(1)
    items = [_unescape(v) for v in re.findall(r'"((?:[^"\\]|\\.)+)"', body)]
    if not items:
        items = re.findall(r"[\"']([^\"']+)[\"']", body)
    items = [i.strip() for i in items if i.strip()]
    return items or None


def _first_paragraph(text: str) -> Optional[str]:
    paragraphs = re.split(r"\n\n|\r\n\r\n", text)
    if len(paragraphs) < 2:
        return None
    for para in paragraphs:
        trimmed = para.strip()
        if len(trimmed) > 50 and not trimmed.startswith("{") and '":"' not in trimmed:
            return trimmed
    return None


# -----------------------------------------------------------------------------
# Shapes
# -----------------------------------------------------------------------------

class AnswerShape:
    """Expected shape for a question answer."""

    DEFAULT_APPLICATION = (
        "Consider studying this topic further in Scripture and discussing it "
        "with your faith community."
    )
    DEFAULT_SCRIPTURES = [
        ScriptureCitation(
            reference="Psalm 119:105",
            translation="NIV",
            text="Your word is a lamp for my feet, a light on my path.",
        ),
        ScriptureCitation(
            reference="Proverbs 2:6",
            translation="NIV",
            text="For the LORD gives wisdom; from his mouth come knowledge and understanding.",
        ),
    ]
    MAX_SCRIPTURES = 4

    def __init__(self, question: str = ""):
        self.question = question

    def build(self, data: Dict[str, Any], stage: ParseStage) -> Optional[GeneratedAnswer]:
        if not any(key in data for key in GeneratedAnswer.FIELDS):
            return None
        return GeneratedAnswer.from_dict(data, stage)

    def _scriptures(self, text: str) -> List[ScriptureCitation]:
        references = find_all_scalars(text, "reference")
        translations = find_all_scalars(text, "translation")
        texts = find_all_scalars(text, "text")
        citations = []
        for i, reference in enumerate(references[:self.MAX_SCRIPTURES]):
            citations.append(
                ScriptureCitation(
                    reference=reference,
                    translation=translations[i] if i < len(translations) else DEFAULT_TRANSLATION,
                    text=texts[i] if i < len(texts) else "Scripture text not available",
                )
            )
        return citations

    def heuristic(self, text: str) -> Optional[GeneratedAnswer]:
        content = find_scalar(text, "content") or _first_paragraph(text)
        if not content:
            # Nothing answer-like in the text; use the static fallback.
            return None
        return GeneratedAnswer(
            content=content,
            scriptures=self._scriptures(text) or self.DEFAULT_SCRIPTURES[:1],
            application=find_scalar(text, "application") or self.DEFAULT_APPLICATION,
            is_api_error=True,
            cannot_answer=False,
            reason=FORMATTING_REASON,
            parse_stage=ParseStage.HEURISTIC,
        )

    def fallback(self) -> GeneratedAnswer:
        if self.question:
            content = (
                f'I apologize, but I encountered an issue processing your question about "{self.question}". '
                "The Bible offers wisdom on many topics, and I encourage you to explore Scripture "
                "for insights related to your question."
            )
        else:
            content = (
                "I apologize, but I encountered an issue processing your question. The Bible offers "
                "wisdom on many topics, and I encourage you to explore Scripture for insights related "
                "to your question."
            )
        return GeneratedAnswer(
            content=content,
            scriptures=list(self.DEFAULT_SCRIPTURES),
            application=(
                "Consider discussing this question with your pastor or in a Bible study group. "
                "Different perspectives can help deepen your understanding. As you search Scripture, "
                "pray for God's guidance to reveal His truth about this topic."
            ),
            is_api_error=True,
            cannot_answer=True,
            reason=PROCESSING_REASON,
            parse_stage=ParseStage.FALLBACK,
        )


class StudyShape:
    """Expected shape for a generated study."""

    DEFAULT_VERSES = ["John 3:16", "Romans 8:28"]
    DEFAULT_CONTEXT = "This study explores biblical teachings related to this topic."
    DEFAULT_KEY_POINTS = [
        "Understanding biblical principles",
        "Applying God's Word to daily life",
        "Growing in faith through Scripture",
    ]
    DEFAULT_APPLICATION = (
        "Apply these biblical principles to your daily life through prayer and reflection."
    )

    def __init__(self, topic: str = ""):
        self.topic = topic

    def build(self, data: Dict[str, Any], stage: ParseStage) -> Optional[GeneratedStudy]:
        if not any(key in data for key in GeneratedStudy.FIELDS):
            return None
        return GeneratedStudy.from_dict(data, stage, topic=self.topic)

    def heuristic(self, text: str) -> GeneratedStudy:
        verses = find_list(text, "verses") or list(self.DEFAULT_VERSES)
        return GeneratedStudy(
            title=find_scalar(text, "title") or f"Study on {self.topic}",
            verses=verses,
            context=find_scalar(text, "context") or self.DEFAULT_CONTEXT,
            key_points=find_list(text, "keyPoints") or list(self.DEFAULT_KEY_POINTS),
            application=find_scalar(text, "application") or self.DEFAULT_APPLICATION,
            related_questions=find_list(text, "relatedQuestions") or list(DEFAULT_RELATED_QUESTIONS),
            is_api_error=True,
            cannot_generate=False,
            reason=FORMATTING_REASON,
            parse_stage=ParseStage.HEURISTIC,
        )

    def fallback(self) -> GeneratedStudy:
        return GeneratedStudy(
            title=f"Study on {self.topic} (Limited)",
            verses=["Proverbs 2:1-6", "James 1:5", "Psalm 119:105"],
            context=(
                f'We encountered an issue generating a complete study on "{self.topic}". The Bible '
                "offers wisdom on many topics, and we encourage you to explore Scripture for "
                "insights related to this topic."
            ),
            key_points=[
                "Biblical wisdom begins with reverence for God",
                "Wisdom is available to all who ask God for it",
                "Scripture provides guidance for making wise decisions",
            ],
            application=(
                "Make Scripture reading a daily habit and pray specifically for wisdom, "
                "trusting God's promise to provide it."
            ),
            is_api_error=True,
            cannot_generate=True,
            reason=PROCESSING_REASON,
            parse_stage=ParseStage.FALLBACK,
        )


# -----------------------------------------------------------------------------
# Stages
# -----------------------------------------------------------------------------

def strict_stage(text: str, shape):
    data = _decode(extract_json_slice(text))
    if data is None:
        return None
    return shape.build(data, ParseStage.STRICT)


def sanitized_stage(text: str, shape):
    data = _decode(sanitize_json(extract_json_slice(text)), strict=False)
    if data is None:
        return None
    logger.info("Parsed model response after sanitizing")
    return shape.build(data, ParseStage.SANITIZED)


def heuristic_stage(text: str, shape):
    logger.warning("Model response is not valid JSON, extracting fields heuristically")
    return shape.heuristic(text or "")


STAGES: Sequence[Callable] = (strict_stage, sanitized_stage, heuristic_stage)


def salvage(raw_text: str, shape):
    """
    Recover a structured object from raw model text. Never raises.

    Args:
        raw_text: Model output, possibly malformed
        shape: AnswerShape or StudyShape

    Returns:
        GeneratedAnswer or GeneratedStudy
    """
    try:
        result = first_success(STAGES, raw_text or "", shape)
    except Exception as e:
        logger.error(f"Salvage pipeline failed: {e}")
        result = None

    if result is None:
        logger.warning("All parsing stages failed, using static fallback")
        return shape.fallback()
    return result
