# tests/test_salvage.py
"""
Tests for recovering structured answers and studies from raw model text.
"""

import json

from faithful.services.generation import (
    AnswerShape,
    GeneratedAnswer,
    GeneratedStudy,
    ParseStage,
    StudyShape,
    salvage,
)
from faithful.services.generation.salvage import (
    extract_json_slice,
    find_list,
    find_scalar,
    first_success,
)
from faithful.services.generation.shapes import DEFAULT_RELATED_QUESTIONS

ANSWER = {
    "content": "Scripture calls believers to cast their anxieties on God.",
    "scriptures": [
        {
            "reference": "1 Peter 5:7",
            "translation": "NIV",
            "text": "Cast all your anxiety on him because he cares for you.",
        },
        {
            "reference": "Philippians 4:6",
            "translation": "ESV",
            "text": "Do not be anxious about anything.",
        },
    ],
    "application": "Bring each worry to God in prayer.",
}


def test_well_formed_answer_round_trips():
    raw = "Here is your answer:\n" + json.dumps(ANSWER) + "\nBlessings!"

    answer = salvage(raw, AnswerShape("worry"))

    assert isinstance(answer, GeneratedAnswer)
    data = answer.to_dict()
    for key, value in ANSWER.items():
        assert data[key] == value
    assert data["isApiError"] is False
    assert data["cannotAnswer"] is False
    assert data["reason"] is None
    assert data["parseStage"] == "strict"


def test_control_characters_are_sanitized_without_degrading():
    raw = (
        '{"content": "Line one\nline two\x07", "scriptures": [], '
        '"application": "Don\\\'t\tworry"}'
    )

    answer = salvage(raw, AnswerShape("worry"))

    assert answer.parse_stage is ParseStage.SANITIZED
    assert answer.is_api_error is False
    assert answer.content == "Line one\nline two"
    assert answer.application == "Don't\tworry"


def test_heuristic_answer_extraction():
    raw = (
        'content: "God\'s love never fails", '
        'reference: "1 Corinthians 13:8", translation: "ESV", text: "Love never ends.", '
        'application: "Love one another",'
    )

    answer = salvage(raw, AnswerShape("love"))

    assert answer.parse_stage is ParseStage.HEURISTIC
    assert answer.content == "God's love never fails"
    assert answer.scriptures[0].reference == "1 Corinthians 13:8"
    assert answer.scriptures[0].translation == "ESV"
    assert answer.scriptures[0].text == "Love never ends."
    assert answer.application == "Love one another"
    assert answer.is_api_error is True
    assert answer.cannot_answer is False
    assert answer.reason


def test_trailing_comma_json_keeps_apostrophes():
    raw = '{"content": "God\'s grace is enough", "application": "Rest in it",}'

    answer = salvage(raw, AnswerShape("grace"))

    assert answer.parse_stage is ParseStage.HEURISTIC
    assert answer.content == "God's grace is enough"
    # No citations in the text; the default citation is used
    assert answer.scriptures[0].reference == "Psalm 119:105"


def test_free_text_answer_gets_static_fallback():
    answer = salvage("Sorry, I can't help with that.", AnswerShape("the trinity"))

    assert answer.parse_stage is ParseStage.FALLBACK
    assert answer.is_api_error is True
    assert answer.cannot_answer is True
    assert answer.reason
    assert '"the trinity"' in answer.content
    assert [s.reference for s in answer.scriptures] == ["Psalm 119:105", "Proverbs 2:6"]


def test_free_text_study_gets_field_defaults():
    study = salvage("I could not produce a study today.", StudyShape("patience"))

    assert isinstance(study, GeneratedStudy)
    assert study.parse_stage is ParseStage.HEURISTIC
    assert study.title == "Study on patience"
    assert study.verses == ["John 3:16", "Romans 8:28"]
    assert study.related_questions == DEFAULT_RELATED_QUESTIONS
    assert study.read_time == "4 min"
    assert study.is_api_error is True
    assert study.cannot_generate is False
    assert study.reason


def test_truncated_study_recovers_fields():
    raw = (
        '{"title": "Grace Upon Grace", "verses": ["Ephesians 2:8-9", "Titus 2:11"], '
        '"keyPoints": ["Grace is a gift", "Grace trains us"], "context": "Paul writes'
    )

    study = salvage(raw, StudyShape("grace"))

    assert study.title == "Grace Upon Grace"
    assert study.verses == ["Ephesians 2:8-9", "Titus 2:11"]
    assert study.key_points == ["Grace is a gift", "Grace trains us"]
    assert study.context == StudyShape.DEFAULT_CONTEXT


def test_strict_study_fills_read_time_and_questions():
    raw = json.dumps(
        {
            "title": "The Power of Prayer",
            "verses": ["Matthew 6:6", "Philippians 4:6-7", "1 Thessalonians 5:16-18"],
            "context": "Prayer is a vital part of the Christian life.",
            "keyPoints": ["Prayer is communication with God"],
            "application": "Set aside time each day to pray.",
        }
    )

    study = salvage(raw, StudyShape("prayer"))

    assert study.parse_stage is ParseStage.STRICT
    assert study.is_api_error is False
    assert study.read_time == "6 min"
    assert study.related_questions == DEFAULT_RELATED_QUESTIONS
    assert study.to_dict()["keyPoints"] == ["Prayer is communication with God"]


def test_unrelated_json_is_not_accepted_as_answer():
    answer = salvage('{"foo": 1}', AnswerShape("x"))
    assert answer.parse_stage is ParseStage.FALLBACK


def test_extract_json_slice():
    assert extract_json_slice('noise {"a": {"b": 1}} tail') == '{"a": {"b": 1}}'
    assert extract_json_slice("no braces here") == ""
    assert extract_json_slice("} backwards {") == ""


def test_field_helpers():
    text = 'title: "A \\"quoted\\" title", verses: [\n  "John 1:1",\n  \'John 1:14\'\n]'
    assert find_scalar(text, "title") == 'A "quoted" title'
    assert find_list(text, "verses") == ["John 1:1"]
    assert find_scalar(text, "missing") is None


def test_first_success():
    calls = []

    def none(x):
        calls.append("none")
        return None

    def hit(x):
        calls.append("hit")
        return x * 2

    def never(x):
        calls.append("never")
        return x

    assert first_success([none, hit, never], 21) == 42
    assert calls == ["none", "hit"]
    assert first_success([none], 1) is None


def test_scripture_string_becomes_single_citation():
    raw = '{"content": "Grace.", "scriptures": "John 3:16", "application": "Rest."}'

    answer = salvage(raw, AnswerShape("grace"))

    assert answer.parse_stage is ParseStage.STRICT
    assert [s.reference for s in answer.scriptures] == ["John 3:16"]


def test_scripture_object_becomes_single_citation():
    raw = json.dumps(
        {
            "content": "Grace.",
            "scriptures": {"reference": "Ephesians 2:8", "translation": "ESV", "text": "For by grace..."},
        }
    )

    answer = salvage(raw, AnswerShape("grace"))

    assert len(answer.scriptures) == 1
    assert answer.scriptures[0].reference == "Ephesians 2:8"
    assert answer.scriptures[0].translation == "ESV"


def test_scripture_number_is_ignored():
    answer = salvage('{"content": "Grace.", "scriptures": 3}', AnswerShape("grace"))
    assert answer.scriptures == []
