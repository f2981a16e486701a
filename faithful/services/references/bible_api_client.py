# faithful/services/references/bible_api_client.py
"""
API.Bible client.

Thin wrapper over the REST endpoints the resolver and search need. Every
call is bounded by a short timeout. Errors are raised as BibleApiError
subclasses; callers decide how to fall back.
"""

import logging
import re
from typing import List, Optional

import requests

logger = logging.getLogger(__name__)


class BibleApiError(Exception):
    """Base exception for API.Bible client errors."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class BibleApiAuthError(BibleApiError):
    """Raised on 401/403: the key is missing, invalid or expired."""
    pass


class BibleApiNetworkError(BibleApiError):
    """Raised on timeouts and connection failures."""
    pass


# Verse number markers API.Bible embeds in passage HTML
_VERSE_NUMBER_RE = re.compile(r'<span data-number="\d+"[^>]*>(\d+)</span>')
_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")

HTML_ENTITIES = (
    ("&nbsp;", " "),
    ("&ldquo;", '"'),
    ("&rdquo;", '"'),
    ("&lsquo;", "'"),
    ("&rsquo;", "'"),
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&mdash;", "—"),
    ("&ndash;", "-"),
)


def extract_text_from_html(html_content: str) -> str:
    """
    Turn API.Bible passage HTML into plain text.

    Verse number spans are dropped first, then remaining tags, then the
    fixed entity set is decoded and whitespace collapsed.
    """
    if not html_content:
        return ""

    cleaned = _VERSE_NUMBER_RE.sub("", html_content)
    text = _TAG_RE.sub("", cleaned)
    for entity, replacement in HTML_ENTITIES:
        text = text.replace(entity, replacement)
    return _WHITESPACE_RE.sub(" ", text).strip()


class BibleApiClient:
    """
    Client for the API.Bible REST service.

    Usage:
        client = BibleApiClient(api_key, "https://api.scripture.api.bible/v1")

        data = client.search_by_reference(bible_id, "John 3:16")
        passage = data["passages"][0]
        print(extract_text_from_html(passage["content"]))
    """

    def __init__(self, api_key: str, base_url: str, timeout: float = 5.0):
        self.api_key = api_key
        self.base_url = (base_url or "").rstrip("/")
        self._request_timeout = timeout

    def is_configured(self) -> bool:
        return bool(self.api_key and self.base_url)

    def _get(self, path: str, params: Optional[dict] = None) -> dict:
        url = f"{self.base_url}{path}"
        try:
            logger.debug(f"Fetching {url}")
            response = requests.get(
                url,
                params=params,
                headers={"api-key": self.api_key},
                timeout=self._request_timeout,
            )
        except requests.Timeout as e:
            raise BibleApiNetworkError(f"Timed out after {self._request_timeout}s: {url}") from e
        except requests.RequestException as e:
            raise BibleApiNetworkError(f"Network error fetching {url}: {e}") from e

        if response.status_code in (401, 403):
            raise BibleApiAuthError(
                f"Bible API error: {response.status_code} {response.reason}",
                status=response.status_code,
            )
        if not response.ok:
            raise BibleApiError(
                f"Bible API error: {response.status_code} {response.reason}",
                status=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise BibleApiError(f"Invalid JSON from {url}") from e

    def search_by_reference(self, bible_id: str, query: str, limit: Optional[int] = None) -> dict:
        """
        Search endpoint. Reference-shaped queries come back as passages.

        Returns:
            {"passages": [{"id", "reference", "content"}, ...], "verses": [...],
             "copyright": "..."}
        """
        params = {"query": query}
        if limit:
            params["limit"] = limit
        data = self._get(f"/bibles/{bible_id}/search", params).get("data") or {}
        return {
            "passages": data.get("passages") or [],
            "verses": data.get("verses") or [],
            "copyright": data.get("copyright"),
        }

    def passages_by_query(self, bible_id: str, query: str) -> List[dict]:
        """Secondary passages endpoint, queried by reference text."""
        data = self._get(f"/bibles/{bible_id}/passages", {"q": query}).get("data")
        if isinstance(data, dict):
            data = [data]
        return data or []

    def passage_by_id(self, bible_id: str, passage_id: str) -> dict:
        data = self._get(
            f"/bibles/{bible_id}/passages/{passage_id}",
            {"content-type": "html", "include-verse-numbers": "true"},
        ).get("data")
        if not data:
            raise BibleApiError(f"Invalid response format for passage {passage_id}")
        return data

    def verse_by_id(self, bible_id: str, verse_id: str) -> dict:
        data = self._get(
            f"/bibles/{bible_id}/verses/{verse_id}",
            {"content-type": "text"},
        ).get("data")
        if not data:
            raise BibleApiError(f"Invalid response format for verse {verse_id}")
        return data

    def list_translations(self) -> List[dict]:
        data = self._get("/bibles").get("data")
        if data is None:
            raise BibleApiError("Invalid response format")
        return [
            {
                "id": bible.get("id"),
                "name": bible.get("name"),
                "abbreviation": bible.get("abbreviation"),
            }
            for bible in data
        ]
