# faithful/services/references/study_catalog.py
"""
Built-in study catalog.

Structured study content (not scripture) searched by keyword and title
and merged ahead of verse results in the combined search view.
"""

import os
from functools import lru_cache
from typing import Any, Dict, List, Optional

import yaml

from .models import StudyResult

STUDIES_PATH = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
    "data",
    "studies.yml",
)


@lru_cache(maxsize=1)
def load_studies() -> List[Dict[str, Any]]:
    """Load the study catalog from YAML."""
    if not os.path.exists(STUDIES_PATH):
        return []

    with open(STUDIES_PATH, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return list(data.get("studies") or [])


def reload_studies() -> List[Dict[str, Any]]:
    """Clear cache and reload the catalog."""
    load_studies.cache_clear()
    return load_studies()


def _matches(study: Dict[str, Any], needle: str) -> bool:
    if needle in study.get("title", "").lower():
        return True
    if needle in study.get("description", "").lower():
        return True
    if needle in study.get("content", "").lower():
        return True
    # Keywords match the other way round: "how do I forgive" hits "forgive"
    if any(keyword in needle for keyword in study.get("keywords") or []):
        return True
    return any(needle in verse.lower() for verse in study.get("verses") or [])


class StudyCatalog:
    def __init__(self, studies: Optional[List[Dict[str, Any]]] = None):
        self._studies = studies if studies is not None else load_studies()

    def search_studies(self, query: str, limit: int = 5) -> List[StudyResult]:
        """Studies whose title, description, content, keywords or verses match."""
        needle = query.lower().strip()
        if not needle:
            return []

        results = []
        for study in self._studies:
            if _matches(study, needle):
                results.append(
                    StudyResult(
                        id=study["id"],
                        title=study.get("title", ""),
                        description=study.get("description", ""),
                        verses=tuple(study.get("verses") or ()),
                        category=study.get("category", ""),
                    )
                )
            if len(results) >= limit:
                break
        return results
