"""
In-memory analysis state for the web host.

The engine keeps no state. This module holds what the host needs:
- a fingerprint cache of recent results
- the latest analysis per appraisal with last-write-wins by revision

Nothing here is persisted; a restart starts empty. The result cache is
bounded by size. The latest-result table is not: it keeps one entry per
appraisal id for the life of the process, since dropping an entry would
let an older revision be accepted again.
"""

import hashlib
import json
import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from core.appraisal_engine import MarketAnalysis


logger = logging.getLogger(__name__)


def fingerprint(canonical: dict) -> str:
    """SHA-256 of the canonical JSON form of an analysis request."""
    payload = json.dumps(canonical, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class StoredAnalysis:
    """Latest analysis accepted for an appraisal."""
    appraisal_id: str
    revision: int
    fingerprint: str
    analysis: MarketAnalysis
    calculated_at: datetime

    def to_dict(self) -> dict:
        return {
            "appraisal_id": self.appraisal_id,
            "revision": self.revision,
            "fingerprint": self.fingerprint,
            "calculated_at": self.calculated_at.isoformat(),
            "analysis": self.analysis.to_dict(),
        }


class AnalysisStore:
    """
    Thread-safe result cache and per-appraisal latest-result table.
    """

    def __init__(self, cache_size: int = 128):
        self._cache_size = max(cache_size, 0)
        self._cache: "OrderedDict[str, MarketAnalysis]" = OrderedDict()
        self._latest: Dict[str, StoredAnalysis] = {}
        self._lock = threading.Lock()

    def get_or_compute(
        self,
        key: str,
        compute: Callable[[], MarketAnalysis],
    ) -> MarketAnalysis:
        """
        Return the cached analysis for a fingerprint, computing it on a miss.

        The computation runs outside the lock.
        """
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                self._cache.move_to_end(key)
                return cached

        analysis = compute()

        if self._cache_size:
            with self._lock:
                self._cache[key] = analysis
                self._cache.move_to_end(key)
                while len(self._cache) > self._cache_size:
                    self._cache.popitem(last=False)
        return analysis

    def submit(
        self,
        appraisal_id: str,
        revision: int,
        key: str,
        analysis: MarketAnalysis,
    ) -> tuple[bool, StoredAnalysis]:
        """
        Offer a result for an appraisal.

        A result replaces the current one only if its revision is not older.

        Returns:
            Tuple of (whether it was applied, the entry now current)
        """
        with self._lock:
            current = self._latest.get(appraisal_id)
            if current is not None and revision < current.revision:
                logger.info(
                    "Discarding stale analysis for %s: revision %d < %d",
                    appraisal_id,
                    revision,
                    current.revision,
                )
                return False, current

            entry = StoredAnalysis(
                appraisal_id=appraisal_id,
                revision=revision,
                fingerprint=key,
                analysis=analysis,
                calculated_at=datetime.now(timezone.utc),
            )
            self._latest[appraisal_id] = entry
            return True, entry

    def latest(self, appraisal_id: str) -> Optional[StoredAnalysis]:
        with self._lock:
            return self._latest.get(appraisal_id)
