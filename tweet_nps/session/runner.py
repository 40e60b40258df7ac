"""NPS session runner.

Flow:
Fetch page -> (empty? stop) -> Enrich with both providers -> Merge -> Advance token
... until a page has no next token, then Score -> optional Export.

Fetch errors end pagination early; provider errors only cost that page's
labels. Scoring and export errors propagate to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Sequence

from ..mentions import Mention, MentionPage, TimeWindow
from ..scoring import NpsResult, calculate_nps
from ..sentiment.enrichment import BatchEnrichmentStage
from .accumulator import SessionAccumulator, SessionSnapshot
from .metrics import SessionMetrics

logger = logging.getLogger(__name__)


class MentionFetcher(Protocol):
    def fetch_page(
        self,
        subject_id: str,
        window: TimeWindow,
        page_size: int,
        pagination_token: Optional[str] = None,
    ) -> MentionPage:
        ...


class ReportWriter(Protocol):
    def write(self, snapshot: SessionSnapshot, window: TimeWindow) -> Optional[str]:
        ...


NpsReducer = Callable[..., NpsResult]


@dataclass(frozen=True)
class SessionConfig:
    """Fixed inputs of one session."""
    window: TimeWindow
    subject_id: str
    page_size: int = 100
    export_requested: bool = False


@dataclass
class SessionResult:
    nps: NpsResult
    metrics: SessionMetrics
    snapshot: SessionSnapshot
    report_path: Optional[str] = None


class NpsSession:
    """
    One end-to-end run over a fixed time window.

    Usage::

        with BatchEnrichmentStage(comprehend, google) as stage:
            session = NpsSession(config, fetcher, stage, report_writer=report)
            result = session.run()
    """

    def __init__(
        self,
        config: SessionConfig,
        fetcher: MentionFetcher,
        enrichment: BatchEnrichmentStage,
        reducer: NpsReducer = calculate_nps,
        report_writer: Optional[ReportWriter] = None,
    ):
        self.config = config
        self.fetcher = fetcher
        self.enrichment = enrichment
        self.reducer = reducer
        self.report_writer = report_writer

        name_a, name_b = enrichment.provider_names
        self.accumulator = SessionAccumulator(provider_a=name_a, provider_b=name_b)
        self.metrics = SessionMetrics()
        self._next_token: Optional[str] = None
        self._finished = False

    def _fetch(self) -> Optional[MentionPage]:
        """Fetch the page for the current token; None on failure."""
        self.metrics.record_fetch()
        try:
            return self.fetcher.fetch_page(
                self.config.subject_id,
                self.config.window,
                self.config.page_size,
                pagination_token=self._next_token,
            )
        except Exception as e:
            self.metrics.record_fetch_error()
            logger.error(f"Error while fetching mentions for {self.config.subject_id}: {e}")
            return None

    def _process_page(self, items: Sequence[Mention]) -> None:
        enriched = self.enrichment.enrich(items)

        self.metrics.record_provider_result(enriched.result_a, enriched.labels_a)
        self.metrics.record_provider_result(enriched.result_b, enriched.labels_b)

        self.accumulator.merge_page(items, enriched.labels_a, enriched.labels_b)
        self.metrics.record_page(len(items))

    def paginate(self) -> SessionSnapshot:
        """Walk the mention source to exhaustion and return the final state."""
        if self._finished:
            raise RuntimeError("Session already ran; create a new NpsSession")

        while True:
            page = self._fetch()

            if page is None or not page.items:
                logger.info(" --- No more mentions to process --- ")
                break

            logger.info(
                f"Processing page {self.accumulator.pages_merged + 1} "
                f"({len(page.items)} mentions)"
            )
            self._process_page(page.items)

            self._next_token = page.next_token
            if not self._next_token:
                break

        self._finished = True
        return self.accumulator.snapshot()

    def _score(self, snapshot: SessionSnapshot) -> NpsResult:
        return self.reducer(
            snapshot.total_count,
            list(snapshot.labels_a),
            list(snapshot.labels_b),
            provider_a=snapshot.provider_a,
            provider_b=snapshot.provider_b,
        )

    def _export(self, snapshot: SessionSnapshot) -> Optional[str]:
        if not self.config.export_requested:
            return None
        if self.report_writer is None:
            logger.warning("Export requested but no report writer configured")
            return None
        path = self.report_writer.write(snapshot, self.config.window)
        logger.info(f"Wrote mention sentiments report: {path}")
        return path

    def run(self) -> SessionResult:
        """
        Paginate, score, then export if requested.

        Returns:
            SessionResult with the NPS, coverage metrics and report path
        """
        snapshot = self.paginate()

        if not self.accumulator.is_aligned():
            logger.warning(
                f"Label coverage incomplete: items={snapshot.total_count} "
                f"{snapshot.provider_a}={len(snapshot.labels_a)} "
                f"{snapshot.provider_b}={len(snapshot.labels_b)}"
            )

        nps = self._score(snapshot)
        report_path = self._export(snapshot)

        self.metrics.finish()
        self.metrics.log_summary()

        return SessionResult(
            nps=nps,
            metrics=self.metrics,
            snapshot=snapshot,
            report_path=report_path,
        )
