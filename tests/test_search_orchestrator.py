# tests/test_search_orchestrator.py
"""
Tests for the cascading scripture search and the study catalog.
"""

from conftest import FakeBibleApi, FakeLLM

from faithful.services.references import (
    BibleApiAuthError,
    StudyCatalog,
    StudyResult,
    VerseResult,
)
from faithful.services.references.search_orchestrator import (
    UNAVAILABLE_TEXT,
    parse_recommendations,
)


def remote_provider(query="shepherd"):
    return FakeBibleApi(
        passages={
            query: [
                {"reference": "Psalm 23:1", "content": "<p>The LORD is my shepherd</p>"},
                {"reference": "John 10:11", "content": "<p>I am the good shepherd.</p>"},
            ],
            "forgiveness": [{"reference": "Luke 6:37", "content": "<p>Forgive</p>"}],
        }
    )


def test_forgiveness_uses_curated_results_without_network(make_search):
    provider = remote_provider()
    llm = FakeLLM(reply="John 3:16")
    search = make_search(provider, llm)

    response = search.search("forgiveness", "ESV")

    assert response.tier == "curated"
    assert [p.reference for p in response.passages] == [
        "Matthew 6:14-15",
        "Colossians 3:13",
        "Ephesians 4:32",
    ]
    assert response.ai_recommended is False
    assert provider.calls == []
    assert llm.calls == []


def test_curated_match_is_substring_of_normalized_query(make_search):
    response = make_search().search("  How do I find PEACE?  ")
    assert response.tier == "curated"
    assert response.passages


def test_remote_tier_when_no_curated_match(make_search):
    provider = remote_provider()
    search = make_search(provider, FakeLLM(reply="John 3:16"))

    response = search.search("shepherd", "KJV", limit=5)

    assert response.tier == "remote"
    assert response.ai_recommended is False
    assert [p.text for p in response.passages] == ["The LORD is my shepherd", "I am the good shepherd."]
    assert provider.calls == [("search", "kjv-id", "shepherd", 5)]


def test_remote_auth_failure_degrades_and_falls_through(make_search):
    provider = FakeBibleApi(error=BibleApiAuthError("Bible API error: 401", status=401))
    search = make_search(provider, FakeLLM(reply="John 3:16, Romans 8:28"))

    response = search.search("shepherd")

    assert search.resolver.health.degraded
    assert response.tier == "ai"


def test_ai_tier_sets_flag_and_resolves_in_order(make_search):
    llm = FakeLLM(reply='"Romans 8:28, John 3:16, not a reference, Psalm 23:1-6"')
    search = make_search(None, llm)

    response = search.search("shepherd", "NIV")

    assert response.tier == "ai"
    assert response.ai_recommended is True
    assert [p.reference for p in response.passages] == ["Romans 8:28", "John 3:16", "Psalm 23:1-6"]
    assert llm.calls[0]["temperature"] == 0.2
    assert llm.calls[0]["max_tokens"] == 200
    assert '"shepherd"' in llm.calls[0]["user"]


def test_unresolvable_recommendation_gets_placeholder(make_search):
    search = make_search(None, FakeLLM(reply="Obadiah 1:3, John 3:16"))

    passages = search.search("shepherd").passages

    assert passages[0].reference == "Obadiah 1:3"
    assert passages[0].text == UNAVAILABLE_TEXT
    assert passages[1].reference == "John 3:16"
    assert passages[1].text != UNAVAILABLE_TEXT


def test_topic_table_when_recommender_fails(make_search, corpus):
    llm = FakeLLM(error=RuntimeError("API error: overloaded"))
    response = make_search(None, llm).search("shepherd")

    assert len(llm.calls) == 1
    assert response.tier == "topic"
    assert response.ai_recommended is False
    assert [p.reference for p in response.passages] == corpus.topic_references("shepherd")


def test_topic_table_matches_partial_query(corpus):
    assert corpus.topic_references("verses for healing after loss") == [
        "Psalm 147:3", "Jeremiah 17:14", "James 5:14-15",
    ]


def test_generic_references_when_no_model_configured(make_search):
    response = make_search(None, None).search("shepherd")

    assert response.tier == "topic"
    assert [p.reference for p in response.passages] == [
        "John 3:16", "Romans 8:28", "Philippians 4:13", "Psalm 23:1", "Proverbs 3:5-6",
    ]


def test_corpus_scan_when_recommender_has_nothing(make_search):
    search = make_search(None, FakeLLM(reply="I am not sure."))

    response = search.search("shepherd")

    assert response.tier == "corpus"
    assert response.ai_recommended is False
    assert [p.reference for p in response.passages] == ["Psalm 23:1"]


def test_corpus_scan_is_capped_at_five(make_search):
    response = make_search(None, FakeLLM(reply="")).search("the")
    assert response.tier == "corpus"
    assert len(response.passages) == 5


def test_search_help_when_nothing_matches(make_search):
    response = make_search(None, FakeLLM(reply="none")).search("xyzzy")

    assert response.tier == "help"
    assert len(response.results) == 1
    only = response.passages[0]
    assert only.reference == "Search Help"
    assert '"xyzzy"' in only.text
    assert only.copyright == "Bible Study App"


def test_parse_recommendations():
    assert parse_recommendations('"John 3:16, Psalm 23:1-6", Hello, 1 John 4:7') == [
        "John 3:16",
        "Psalm 23:1-6",
        "1 John 4:7",
    ]
    assert parse_recommendations("") == []


def test_search_all_lists_studies_first(make_search):
    response = make_search().search_all("forgiveness", "ESV")

    kinds = [type(r) for r in response.results]
    assert kinds[0] is StudyResult
    assert response.results[0].id == "forgiveness"
    first_verse = kinds.index(VerseResult)
    assert all(k is StudyResult for k in kinds[:first_verse])
    assert all(k is VerseResult for k in kinds[first_verse:])

    data = response.to_dict()
    assert data["results"][0]["type"] == "study"
    assert data["isAiRecommended"] is False


def test_study_catalog_search():
    catalog = StudyCatalog()

    by_keyword = catalog.search_studies("how do I forgive my brother")
    assert [s.id for s in by_keyword] == ["forgiveness"]

    by_verse = catalog.search_studies("matthew 5:3")
    assert "beatitudes" in [s.id for s in by_verse]

    assert catalog.search_studies("   ") == []
    assert len(catalog.search_studies("a", limit=2)) == 2
