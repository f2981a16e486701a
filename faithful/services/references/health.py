# faithful/services/references/health.py
"""
Scripture provider health.

One ProviderHealth is built per process and shared by the resolver and
the search orchestrator. Once the provider answers 401/403 it is marked
degraded and every later lookup skips the network until restart. There
is no automatic recovery.
"""

import logging
from datetime import datetime
from typing import Optional

logger = logging.getLogger(__name__)


class ProviderHealth:
    """Process-scoped "upstream is degraded" flag."""

    def __init__(self):
        self._degraded = False
        self._reason: Optional[str] = None
        self._since: Optional[datetime] = None

    @property
    def degraded(self) -> bool:
        return self._degraded

    @property
    def available(self) -> bool:
        return not self._degraded

    def mark_degraded(self, reason: str) -> None:
        # Only the first transition is logged; later callers stay quiet.
        if self._degraded:
            return
        self._degraded = True
        self._reason = reason
        self._since = datetime.now()
        logger.error(f"Scripture provider marked degraded: {reason}")

    def status(self) -> dict:
        return {
            "degraded": self._degraded,
            "reason": self._reason,
            "since": self._since.isoformat() if self._since else None,
        }
