# faithful/services/references/translations.py
"""
Translation registry.

Maps the short translation codes the app uses to API.Bible bible ids.
The ids come from the environment; unknown codes fall back to the
default translation's id.
"""

from typing import Dict, List, Optional

DEFAULT_TRANSLATION = "ESV"

TRANSLATION_NAMES: Dict[str, str] = {
    "ESV": "English Standard Version",
    "KJV": "King James Version",
    "NIV": "New International Version",
    "NASB": "New American Standard Bible",
    "NLT": "New Living Translation",
}


class TranslationRegistry:
    """
    Static map from translation code to provider bible id.

    Usage:
        registry = TranslationRegistry({"ESV": "de4e12af7f28f599-02"})
        registry.bible_id("ESV")   # "de4e12af7f28f599-02"
        registry.bible_id("XYZ")   # falls back to the ESV id
    """

    def __init__(
        self,
        bible_ids: Optional[Dict[str, str]] = None,
        default: str = DEFAULT_TRANSLATION,
    ):
        self._ids = {code.upper(): bid for code, bid in (bible_ids or {}).items()}
        self.default = default.upper()

    def bible_id(self, translation: str) -> str:
        code = (translation or "").upper()
        return self._ids.get(code) or self._ids.get(self.default, "")

    def default_translations(self) -> List[dict]:
        """The static translation list served when the provider is unavailable."""
        return [
            {"id": self._ids.get(code, ""), "name": name, "abbreviation": code}
            for code, name in TRANSLATION_NAMES.items()
        ]
