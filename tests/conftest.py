# tests/conftest.py
"""
Shared fakes for the scripture and generation tests.

Nothing here touches the network: the provider and the generative
service are replaced by in-process fakes that record their calls.
"""

from datetime import datetime

import pytest

from faithful.services.references import (
    BibleApiError,
    DailyVerseSelector,
    DailyVerseStore,
    MemoryLocalCache,
    ProviderHealth,
    SearchOrchestrator,
    StaticCorpus,
    StudyCatalog,
    TranslationRegistry,
    VerseCache,
    VerseResolver,
)
from faithful.utils.db import get_db, init_db

BIBLE_IDS = {
    "ESV": "esv-id",
    "KJV": "kjv-id",
    "NIV": "niv-id",
    "NASB": "nasb-id",
    "NLT": "nlt-id",
}


class FakeBibleApi:
    """
    Stand-in for BibleApiClient.

    `passages` maps a query to the passages returned by the search
    endpoint; `error` (an exception instance) is raised by every call.
    """

    def __init__(self, passages=None, secondary=None, error=None, copyright="Fake Copyright"):
        self.passages = passages or {}
        self.secondary = secondary or {}
        self.error = error
        self.copyright = copyright
        self.calls = []

    def is_configured(self):
        return True

    def _record(self, name, *args):
        self.calls.append((name,) + args)
        if self.error is not None:
            raise self.error

    def search_by_reference(self, bible_id, query, limit=None):
        self._record("search", bible_id, query, limit)
        return {"passages": self.passages.get(query, []), "verses": [], "copyright": self.copyright}

    def passages_by_query(self, bible_id, query):
        self._record("passages", bible_id, query)
        return self.secondary.get(query, [])

    def passage_by_id(self, bible_id, passage_id):
        self._record("passage_by_id", bible_id, passage_id)
        raise BibleApiError("no passage content")

    def verse_by_id(self, bible_id, verse_id):
        self._record("verse_by_id", bible_id, verse_id)
        return {"content": f"<p>Text of {verse_id}</p>"}

    def list_translations(self):
        self._record("translations")
        return [{"id": "esv-id", "name": "English Standard Version", "abbreviation": "ESV"}]


class FakeLLM:
    """Stand-in for an LLMProvider; returns `reply` or raises `error`."""

    def __init__(self, reply="", error=None, configured=True):
        self.reply = reply
        self.error = error
        self.configured = configured
        self.calls = []

    def is_configured(self):
        return self.configured

    def generate(self, system_prompt, user_prompt, temperature=0.7, max_tokens=1000):
        self.calls.append(
            {
                "system": system_prompt,
                "user": user_prompt,
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )
        if self.error is not None:
            raise self.error
        return self.reply


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def corpus():
    return StaticCorpus()


@pytest.fixture
def registry():
    return TranslationRegistry(BIBLE_IDS)


@pytest.fixture
def make_resolver(corpus, registry):
    def _make(provider=None, health=None):
        return VerseResolver(
            provider,
            corpus,
            VerseCache(),
            health or ProviderHealth(),
            registry,
        )

    return _make


@pytest.fixture
def db():
    conn = get_db(":memory:")
    init_db(conn)
    yield conn
    conn.close()


@pytest.fixture
def make_selector(make_resolver, corpus, db):
    def _make(provider=None, now=datetime(2024, 3, 15, 9, 30), local_cache=None, store="db", **kwargs):
        return DailyVerseSelector(
            make_resolver(provider),
            DailyVerseStore(db) if store == "db" else store,
            corpus,
            local_cache=local_cache if local_cache is not None else MemoryLocalCache(),
            clock=FixedClock(now),
            **kwargs,
        )

    return _make


@pytest.fixture
def make_search(make_resolver, corpus):
    def _make(provider=None, llm=None, studies=None):
        return SearchOrchestrator(
            make_resolver(provider),
            corpus,
            llm=llm,
            catalog=StudyCatalog(studies),
        )

    return _make
