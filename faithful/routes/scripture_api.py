# faithful/routes/scripture_api.py
"""
API endpoints for scripture lookup, search and generated content.

Provides access to:
- Single verse lookup
- Verse of the day
- Scripture and study search
- Translation listing
- Bible question answering and study generation

The services behind these routes never raise; error responses here are
for request validation only.
"""

from flask import Blueprint, jsonify, request

from ..services.generation import StudyKind, get_bible_ai
from ..services.references import get_scripture_service
from ..utils.errors import invalid_field, missing_field

scripture_bp = Blueprint("scripture_api", __name__, url_prefix="/api/scripture")


# =============================================================================
# Scripture Endpoints
# =============================================================================

@scripture_bp.get("/verse")
def get_verse():
    """
    Look up a scripture passage.

    Query params:
        ref: Reference string (required) e.g., "John 3:16"
        translation: Translation code (optional) e.g., "KJV"
        id: Provider verse id (optional) e.g., "JHN.3.16"

    Returns:
        {"reference": "John 3:16", "translation": "KJV", "text": "...", "copyright": "..."}
    """
    ref = request.args.get("ref")
    if not ref:
        return missing_field("ref")

    translation = request.args.get("translation")
    verse_id = request.args.get("id")

    service = get_scripture_service()
    if verse_id:
        passage = service.resolver.resolve_by_id(verse_id, ref, translation)
    else:
        passage = service.resolve(ref, translation)
    return jsonify(passage.to_dict())


@scripture_bp.get("/daily")
def daily_verse():
    """Verse of the day for a translation (query param, optional)."""
    passage = get_scripture_service().daily_verse(request.args.get("translation"))
    return jsonify(passage.to_dict())


@scripture_bp.get("/search")
def search():
    """
    Search scripture and the study catalog.

    Query params:
        q: Search text (required)
        translation: Translation code (optional)
        limit: Max remote results (optional, default 10)
        studies: "false" to search scripture only (optional)

    Returns:
        {"results": [...], "isAiRecommended": false, "tier": "curated"}
    """
    query = (request.args.get("q") or "").strip()
    if not query:
        return missing_field("q")

    try:
        limit = int(request.args.get("limit", 10))
    except ValueError:
        return invalid_field("limit", "limit must be an integer")
    if limit < 1:
        return invalid_field("limit", "limit must be positive")

    translation = request.args.get("translation")
    service = get_scripture_service()

    if request.args.get("studies", "true").lower() == "false":
        response = service.search(query, translation, limit)
    else:
        response = service.search_all(query, translation, limit)
    return jsonify(response.to_dict())


@scripture_bp.get("/translations")
def list_translations():
    """Available translations; the static five when the provider is down."""
    service = get_scripture_service()
    return jsonify({
        "translations": service.list_translations(),
        "provider": service.health.status(),
    })


# =============================================================================
# Generated Content Endpoints
# =============================================================================

@scripture_bp.post("/ask")
def ask():
    """
    Answer a Bible question.

    Request body:
        {"question": "What does the Bible say about worry?"}
    """
    data = request.get_json(silent=True) or {}
    question = (data.get("question") or "").strip()
    if not question:
        return missing_field("question")

    answer = get_bible_ai().ask_bible_question(question)
    return jsonify(answer.to_dict())


@scripture_bp.post("/studies/generate")
def generate_study():
    """
    Generate a Bible study.

    Request body:
        {
            "topic": "Romans 8:28",
            "type": "verse",          // topic | verse | question (default topic)
            "translation": "ESV",     // optional
            "includePassages": true   // optional, resolves study verses
        }
    """
    data = request.get_json(silent=True) or {}
    topic = (data.get("topic") or "").strip()
    if not topic:
        return missing_field("topic")

    try:
        kind = StudyKind(data.get("type") or StudyKind.TOPIC.value)
    except ValueError:
        return invalid_field("type", "type must be one of: topic, verse, question")

    ai = get_bible_ai()
    study = ai.generate_bible_study(topic, kind)
    payload = study.to_dict()

    if data.get("includePassages"):
        passages = ai.build_study_passages(study, data.get("translation"))
        payload["passages"] = [p.to_dict() for p in passages]

    return jsonify(payload)
