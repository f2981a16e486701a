# tests/test_verse_resolver.py
"""
Tests for the tiered verse resolver.
"""

from conftest import FakeBibleApi

from faithful.services.references import (
    BibleApiAuthError,
    BibleApiNetworkError,
    ProviderHealth,
)
from faithful.services.references.verse_resolver import (
    OFFLINE_COPYRIGHT,
    is_offline_passage,
)

JOHN_3_16 = (
    "For God so loved the world, that he gave his only Son, that whoever "
    "believes in him should not perish but have eternal life."
)


def test_corpus_text_wins_when_provider_errors(make_resolver):
    """A corpus reference resolves verbatim even with a failing provider."""
    provider = FakeBibleApi(error=BibleApiNetworkError("connection refused"))
    resolver = make_resolver(provider)

    for translation in ("ESV", "KJV", "NIV"):
        passage = resolver.resolve("John 3:16", translation)
        assert passage.text == JOHN_3_16
        assert passage.translation == translation

    assert provider.calls == []


def test_unknown_reference_falls_back_to_offline_template(make_resolver):
    provider = FakeBibleApi(error=BibleApiNetworkError("timed out"))
    resolver = make_resolver(provider)

    passage = resolver.resolve("Obadiah 1:3", "ESV")

    assert passage.text == (
        '"Obadiah 1:3" - This verse is available in your Bible. '
        "We're currently using offline mode for verse lookup."
    )
    assert passage.copyright == OFFLINE_COPYRIGHT
    assert is_offline_passage(passage)
    # Primary search, then the secondary passages endpoint once
    assert [c[0] for c in provider.calls] == ["search", "passages"]


def test_resolve_without_provider_never_raises(make_resolver):
    resolver = make_resolver(None)
    passage = resolver.resolve("Nahum 2:4")
    assert is_offline_passage(passage)
    assert passage.translation == "ESV"


def test_auth_failure_marks_provider_degraded(make_resolver):
    provider = FakeBibleApi(error=BibleApiAuthError("Bible API error: 401 Unauthorized", status=401))
    health = ProviderHealth()
    resolver = make_resolver(provider, health=health)

    resolver.resolve("Obadiah 1:3", "ESV")

    assert health.degraded
    assert "401" in health.reason
    # The secondary endpoint is skipped once the flag is set
    assert len(provider.calls) == 1

    resolver.resolve("Jude 1:3", "ESV")
    assert len(provider.calls) == 1


def test_remote_passage_is_extracted_and_cached(make_resolver):
    html = (
        '<p class="p"><span data-number="3" data-sid="OBA 1:3" class="v">3</span>'
        "The pride of your heart&nbsp;has deceived you, you who live in the clefts "
        "of the rock&mdash;</p>"
    )
    provider = FakeBibleApi(passages={"Obadiah 1:3": [{"id": "OBA.1.3", "content": html}]})
    resolver = make_resolver(provider)

    passage = resolver.resolve("Obadiah 1:3", "KJV")

    assert passage.text == (
        "The pride of your heart has deceived you, you who live in the clefts of the rock—"
    )
    assert passage.copyright == "Fake Copyright"
    assert provider.calls[0] == ("search", "kjv-id", "Obadiah 1:3", None)

    again = resolver.resolve("Obadiah 1:3", "KJV")
    assert again == passage
    assert len(provider.calls) == 1


def test_secondary_endpoint_used_when_search_is_empty(make_resolver):
    provider = FakeBibleApi(
        secondary={"Obadiah 1:3": [{"content": "<p>Secondary text</p>", "copyright": "Second"}]}
    )
    resolver = make_resolver(provider)

    passage = resolver.resolve("Obadiah 1:3", "ESV")

    assert passage.text == "Secondary text"
    assert passage.copyright == "Second"


def test_cache_keys_are_case_sensitive(make_resolver):
    resolver = make_resolver(None)
    assert not is_offline_passage(resolver.resolve("John 3:16"))
    assert is_offline_passage(resolver.resolve("john 3:16"))


def test_resolve_many_keeps_request_order(make_resolver):
    resolver = make_resolver(None)
    refs = ["Psalm 23:1", "Unknown 9:9", "John 3:16", "Romans 8:28", "Hebrews 11:1", "Psalm 46:1"]

    passages = resolver.resolve_many(refs, "NIV")

    assert [p.reference for p in passages] == refs
    assert is_offline_passage(passages[1])
    assert resolver.resolve_many([], "NIV") == []


def test_resolve_by_id_uses_verse_endpoint(make_resolver):
    provider = FakeBibleApi()
    resolver = make_resolver(provider)

    passage = resolver.resolve_by_id("OBA.1.3", "Obadiah 1:3", "ESV")

    assert passage.text == "Text of OBA.1.3"
    assert provider.calls == [("verse_by_id", "esv-id", "OBA.1.3")]


class FailingVerseApi(FakeBibleApi):
    def verse_by_id(self, bible_id, verse_id):
        self._record("verse_by_id", bible_id, verse_id)
        raise BibleApiNetworkError("Timed out")


def test_resolve_by_id_falls_back_to_query_endpoint_only(make_resolver):
    provider = FailingVerseApi(secondary={"Obadiah 1:3": [{"content": "<p>The pride of your heart</p>"}]})
    resolver = make_resolver(provider)

    passage = resolver.resolve_by_id("OBA.1.3", "Obadiah 1:3", "ESV")

    assert passage.text == "The pride of your heart"
    assert provider.calls == [
        ("verse_by_id", "esv-id", "OBA.1.3"),
        ("passages", "esv-id", "Obadiah 1:3"),
    ]


def test_resolve_by_id_offline_when_both_endpoints_fail(make_resolver):
    provider = FailingVerseApi()
    passage = make_resolver(provider).resolve_by_id("OBA.1.3", "Obadiah 1:3", "ESV")

    assert is_offline_passage(passage)
    assert [c[0] for c in provider.calls] == ["verse_by_id", "passages"]


def test_list_translations_falls_back_to_static_list(make_resolver):
    assert [t["abbreviation"] for t in make_resolver(None).list_translations()] == [
        "ESV", "KJV", "NIV", "NASB", "NLT",
    ]

    provider = FakeBibleApi(error=BibleApiAuthError("Bible API error: 403 Forbidden", status=403))
    resolver = make_resolver(provider)
    translations = resolver.list_translations()

    assert len(translations) == 5
    assert resolver.health.degraded


def test_list_translations_from_provider(make_resolver):
    translations = make_resolver(FakeBibleApi()).list_translations()
    assert translations == [{"id": "esv-id", "name": "English Standard Version", "abbreviation": "ESV"}]
