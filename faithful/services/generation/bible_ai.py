# faithful/services/generation/bible_ai.py
"""
Bible question answering and study generation.

Both entry points call the generative provider once and hand the raw
text to the salvage pipeline. Neither raises: if the provider call
itself fails, a static object is returned whose reason tells a
quota/billing rejection apart from a connectivity problem.
"""

import logging
from enum import Enum
from typing import List, Optional

from ..references.models import Passage
from .salvage import AnswerShape, StudyShape, salvage
from .shapes import GeneratedAnswer, GeneratedStudy, ParseStage, ScriptureCitation

logger = logging.getLogger(__name__)

QUOTA_MARKERS = ("credit balance", "billing", "upgrade", "quota")

CONNECTIVITY_REASON = (
    "There was an error connecting to the AI service. This could be due to "
    "network issues or service unavailability."
)

JSON_REMINDER = " Remember to respond ONLY with valid JSON."

BIBLE_SYSTEM_PROMPT = """You are a knowledgeable biblical scholar assistant for a Bible study app called "Faithful Study".
Your purpose is to answer questions about the Bible, theology, and Christian living with accuracy and wisdom.

When responding to questions:
1. Always base your answers on biblical teachings and scripture.
2. Include 2-4 relevant scripture references with each answer.
3. For each scripture reference, provide:
   - The full reference (e.g., "John 3:16")
   - The translation (default to "NIV" unless specified)
   - The complete text of the verse
4. Structure your response in this format:
   - Main answer (1-3 paragraphs explaining the biblical perspective)
   - Scripture references (formatted as described above)
   - Application (1 paragraph on how to apply this teaching)
5. Maintain a respectful, pastoral tone that encourages spiritual growth.
6. If a question is outside the scope of biblical teaching, gently redirect to relevant biblical principles.
7. Avoid political commentary or denominational bias.
8. For controversial topics, present the main biblical perspectives fairly.

EXTREMELY IMPORTANT: Your response MUST be ONLY valid JSON with NO preamble, NO explanations, and NO text before or after the JSON. Start your response with "{" and end with "}". Do not include any markdown formatting, control characters, or non-printable characters.

Your responses should be formatted to be parsed into JSON with these fields:
- content: The main explanation
- scriptures: Array of scripture references, each with reference, translation, and text
- application: Practical application of the teaching

Example format:
{
  "content": "Your explanation here...",
  "scriptures": [
    {
      "reference": "John 3:16",
      "translation": "NIV",
      "text": "For God so loved the world that he gave his one and only Son, that whoever believes in him shall not perish but have eternal life."
    }
  ],
  "application": "How to apply this teaching..."
}"""

STUDY_SYSTEM_PROMPT = """You are a helpful assistant for creating Bible study materials.
Your purpose is to generate well-structured and insightful Bible studies based on a given topic, verse, or question.

When creating Bible studies:
1.  Provide a clear and engaging title for the study.
2.  List 2-4 relevant scripture verses that support the study's theme.
3.  Write a concise context paragraph that introduces the topic and verses.
4.  Identify 3-5 key points or insights from the verses and context.
5.  Include a practical application paragraph that encourages personal reflection and action.

EXTREMELY IMPORTANT: Your response MUST be ONLY valid JSON with NO preamble, NO explanations, and NO text before or after the JSON. Start your response with "{" and end with "}". Do not include any markdown formatting, control characters, or non-printable characters.

Structure your response in this format:
- title: The title of the Bible study
- verses: Array of scripture references used in the study
- context: A paragraph providing context for the verses
- keyPoints: Array of key insights or points from the verses
- application: Practical steps for applying the study to daily life

Example format:
{
"title": "The Power of Prayer",
"verses": ["Matthew 6:6", "Philippians 4:6-7", "1 Thessalonians 5:16-18"],
"context": "Prayer is a vital part of the Christian life...",
"keyPoints": ["Prayer is communication with God...", "Prayer brings peace...", "We should pray without ceasing..."],
"application": "Set aside time each day to pray..."
}"""


class StudyKind(str, Enum):
    """What the study request is about; selects the user prompt."""
    TOPIC = "topic"
    VERSE = "verse"
    QUESTION = "question"

    @property
    def prompt_template(self) -> str:
        return _STUDY_PROMPTS[self]

    def prompt(self, subject: str) -> str:
        return self.prompt_template.format(subject=subject) + JSON_REMINDER


_STUDY_PROMPTS = {
    StudyKind.TOPIC: "Create a Bible study on the topic: {subject}.",
    StudyKind.VERSE: "Create a Bible study based on this scripture passage: {subject}.",
    StudyKind.QUESTION: "Create a Bible study that addresses this question: {subject}.",
}


def is_quota_error(message: str) -> bool:
    message = (message or "").lower()
    return any(marker in message for marker in QUOTA_MARKERS)


def unavailable_reason(error: Exception, noun: str) -> str:
    if is_quota_error(str(error)):
        return f"The app requires additional API credits to generate more {noun}."
    return CONNECTIVITY_REASON


def unavailable_answer(question: str, error: Exception) -> GeneratedAnswer:
    return GeneratedAnswer(
        content=f'I\'m currently unable to provide a specific answer to your question about "{question}".',
        scriptures=[
            ScriptureCitation(
                reference="Proverbs 3:5-6",
                translation="NIV",
                text=(
                    "Trust in the LORD with all your heart and lean not on your own understanding; "
                    "in all your ways submit to him, and he will make your paths straight."
                ),
            )
        ],
        application=(
            "While I can't answer your specific question right now, I encourage you to explore "
            "this topic in Scripture and discuss it with your pastor or Bible study group."
        ),
        is_api_error=True,
        cannot_answer=True,
        reason=unavailable_reason(error, "responses"),
        parse_stage=ParseStage.UNAVAILABLE,
    )


def unavailable_study(topic: str, error: Exception) -> GeneratedStudy:
    return GeneratedStudy(
        title=f"Study on {topic} (Unavailable)",
        verses=["Psalm 119:105", "Proverbs 2:6"],
        context=f'We\'re currently unable to generate a complete study on "{topic}".',
        key_points=[
            "The full version would provide detailed insights on your topic",
            "Technical limitations prevented generating the complete study",
            "We apologize for the inconvenience",
        ],
        application="We encourage you to explore this topic in Scripture directly.",
        is_api_error=True,
        cannot_generate=True,
        reason=unavailable_reason(error, "studies"),
        parse_stage=ParseStage.UNAVAILABLE,
    )


class BibleAI:
    """
    Generated answers and studies.

    Usage:
        ai = BibleAI(get_best_available_client(), resolver)
        answer = ai.ask_bible_question("What does the Bible say about worry?")
        study = ai.generate_bible_study("Romans 8:28", StudyKind.VERSE)
        passages = ai.build_study_passages(study, "ESV")
    """

    ANSWER_TEMPERATURE = 0.7
    ANSWER_MAX_TOKENS = 1000
    STUDY_TEMPERATURE = 0.7
    STUDY_MAX_TOKENS = 1500

    def __init__(self, llm=None, resolver=None):
        self.llm = llm
        self.resolver = resolver

    def _generate(self, system_prompt: str, user_prompt: str, temperature: float, max_tokens: int) -> str:
        if self.llm is None or not self.llm.is_configured():
            raise RuntimeError("No generative provider configured")
        return self.llm.generate(
            system_prompt,
            user_prompt,
            temperature=temperature,
            max_tokens=max_tokens,
        )

    def ask_bible_question(self, question: str) -> GeneratedAnswer:
        """Answer a question with scripture citations. Never raises."""
        prompt = (
            f"Question about the Bible: {question}\n\n"
            "Please provide a biblically-based answer with scripture references." + JSON_REMINDER
        )
        try:
            text = self._generate(
                BIBLE_SYSTEM_PROMPT, prompt, self.ANSWER_TEMPERATURE, self.ANSWER_MAX_TOKENS
            )
        except Exception as e:
            logger.error(f"Error calling generative service for question: {e}")
            return unavailable_answer(question, e)

        return salvage(text, AnswerShape(question))

    def generate_bible_study(self, topic: str, kind: StudyKind = StudyKind.TOPIC) -> GeneratedStudy:
        """Generate a study for a topic, passage or question. Never raises."""
        kind = StudyKind(kind)
        try:
            text = self._generate(
                STUDY_SYSTEM_PROMPT, kind.prompt(topic), self.STUDY_TEMPERATURE, self.STUDY_MAX_TOKENS
            )
        except Exception as e:
            logger.error(f"Error calling generative service for study: {e}")
            return unavailable_study(topic, e)

        return salvage(text, StudyShape(topic))

    def build_study_passages(self, study: GeneratedStudy, translation: Optional[str] = None) -> List[Passage]:
        """Resolve every study verse concurrently, in study order."""
        resolver = self.resolver
        if resolver is None:
            from ..references.scripture_service import get_scripture_service

            resolver = get_scripture_service().resolver
        return resolver.resolve_many(list(study.verses), translation)


# Singleton
_bible_ai: Optional[BibleAI] = None


def get_bible_ai() -> BibleAI:
    global _bible_ai
    if _bible_ai is None:
        from ..llm_service import get_best_available_client
        from ..references.scripture_service import get_scripture_service

        _bible_ai = BibleAI(get_best_available_client(), get_scripture_service().resolver)
    return _bible_ai


def set_bible_ai(ai: Optional[BibleAI]) -> None:
    global _bible_ai
    _bible_ai = ai


def ask_bible_question(question: str) -> GeneratedAnswer:
    return get_bible_ai().ask_bible_question(question)


def generate_bible_study(topic: str, kind: StudyKind = StudyKind.TOPIC) -> GeneratedStudy:
    return get_bible_ai().generate_bible_study(topic, kind)


def build_study_passages(study: GeneratedStudy, translation: Optional[str] = None) -> List[Passage]:
    return get_bible_ai().build_study_passages(study, translation)
