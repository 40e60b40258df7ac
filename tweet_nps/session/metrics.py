"""Session metrics.

Counts fetches, pages and per-provider failures so a caller can tell a
fully covered session from a degraded one without reading the logs.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from ..sentiment.base import ProviderResult, SentimentLabel

logger = logging.getLogger(__name__)


@dataclass
class SessionMetrics:
    """Metrics collected during one session."""
    
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None
    
    fetch_calls: int = 0
    fetch_errors: int = 0
    pages_processed: int = 0
    mentions_seen: int = 0
    
    provider_failures: Counter = field(default_factory=Counter)
    provider_timeouts: Counter = field(default_factory=Counter)
    missing_labels: Counter = field(default_factory=Counter)
    
    def record_fetch(self) -> None:
        self.fetch_calls += 1
    
    def record_fetch_error(self) -> None:
        self.fetch_errors += 1
    
    def record_page(self, mention_count: int) -> None:
        self.pages_processed += 1
        self.mentions_seen += mention_count
    
    def record_provider_result(self, result: ProviderResult, labels: List[SentimentLabel]) -> None:
        if result.failed:
            if result.timed_out:
                self.provider_timeouts[result.provider] += 1
            else:
                self.provider_failures[result.provider] += 1
            return
        missing = sum(1 for label in labels if label.is_missing)
        if missing:
            self.missing_labels[result.provider] += missing
    
    def finish(self) -> None:
        self.finished_at = datetime.now(timezone.utc)
    
    @property
    def degraded(self) -> bool:
        """True when any page or label was lost to an error."""
        return bool(
            self.fetch_errors
            or sum(self.provider_failures.values())
            or sum(self.provider_timeouts.values())
            or sum(self.missing_labels.values())
        )
    
    @property
    def duration_seconds(self) -> float:
        end = self.finished_at or datetime.now(timezone.utc)
        return (end - self.started_at).total_seconds()
    
    def summary(self) -> dict:
        return {
            "fetch_calls": self.fetch_calls,
            "fetch_errors": self.fetch_errors,
            "pages_processed": self.pages_processed,
            "mentions_seen": self.mentions_seen,
            "provider_failures": dict(self.provider_failures),
            "provider_timeouts": dict(self.provider_timeouts),
            "missing_labels": dict(self.missing_labels),
            "degraded": self.degraded,
            "duration_seconds": round(self.duration_seconds, 2),
        }
    
    def log_summary(self) -> None:
        logger.info("=" * 60)
        logger.info("NPS SESSION METRICS")
        logger.info("=" * 60)
        logger.info(f"Duration: {self.duration_seconds:.1f}s")
        logger.info(f"Fetch calls: {self.fetch_calls} (errors: {self.fetch_errors})")
        logger.info(f"Pages processed: {self.pages_processed}, mentions: {self.mentions_seen}")
        if self.provider_failures:
            logger.info(f"Provider failures: {dict(self.provider_failures)}")
        if self.provider_timeouts:
            logger.info(f"Provider timeouts: {dict(self.provider_timeouts)}")
        if self.missing_labels:
            logger.info(f"Unlabelled mentions: {dict(self.missing_labels)}")
        logger.info(f"Degraded coverage: {self.degraded}")
        logger.info("=" * 60)
