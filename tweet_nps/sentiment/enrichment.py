"""Batch enrichment stage.

Sends one page of mentions to both sentiment providers concurrently and
joins the two outcomes before the page is merged. A provider that raises
or exceeds its timeout yields a failed `ProviderResult` with no labels;
the page and the session always continue.

Each provider has its own single worker. A call that overran its deadline
keeps that worker until it returns, and the provider is skipped for later
pages in the meantime; the other provider is never held up by it.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from ..mentions import Mention
from .base import ProviderResult, SentimentLabel, SentimentProvider, reconcile_labels

logger = logging.getLogger(__name__)


@dataclass
class PageEnrichment:
    """Both providers' outcomes for one page."""
    result_a: ProviderResult
    result_b: ProviderResult
    labels_a: List[SentimentLabel]
    labels_b: List[SentimentLabel]


class BatchEnrichmentStage:
    """Concurrent fan-out of a page to two sentiment providers."""

    def __init__(
        self,
        provider_a: SentimentProvider,
        provider_b: SentimentProvider,
        timeout_seconds: Optional[float] = 30.0,
    ):
        if provider_a.name == provider_b.name:
            raise ValueError(f"Sentiment providers need distinct names, both are {provider_a.name!r}")

        self.provider_a = provider_a
        self.provider_b = provider_b
        self.timeout_seconds = timeout_seconds
        self._executors: Dict[str, ThreadPoolExecutor] = {}
        self._in_flight: Dict[str, Future] = {}

    @property
    def provider_names(self) -> tuple:
        return (self.provider_a.name, self.provider_b.name)

    def _get_executor(self, provider: SentimentProvider) -> ThreadPoolExecutor:
        executor = self._executors.get(provider.name)
        if executor is None:
            executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"sentiment-{provider.name}")
            self._executors[provider.name] = executor
        return executor

    def _submit(self, provider: SentimentProvider, batch: List[Mention]) -> Optional[Future]:
        """Start a call, or return None while the provider's last call still runs."""
        previous = self._in_flight.get(provider.name)
        if previous is not None and not previous.done():
            return None

        future = self._get_executor(provider).submit(provider.classify_batch, batch)
        self._in_flight[provider.name] = future
        return future

    def _collect(self, provider: SentimentProvider, future: Optional[Future]) -> ProviderResult:
        if future is None:
            logger.warning(f"{provider.name} still busy with an earlier page, treating page as unlabelled")
            return ProviderResult.failure(provider.name, ProviderResult.BUSY)

        if not future.done():
            logger.warning(f"{provider.name} timed out after {self.timeout_seconds}s, treating page as unlabelled")
            return ProviderResult.failure(provider.name, ProviderResult.TIMEOUT)

        try:
            labels = future.result()
        except Exception as e:
            logger.error(f"Error while fetching sentiments from {provider.name}: {e}")
            return ProviderResult.failure(provider.name, str(e) or type(e).__name__)

        return ProviderResult.success(provider.name, labels or [])

    def enrich(self, items: Sequence[Mention]) -> PageEnrichment:
        """
        Classify one page with both providers.

        Args:
            items: Non-empty page of mentions

        Returns:
            PageEnrichment with the raw outcomes and reconciled label lists
        """
        batch = list(items)

        future_a = self._submit(self.provider_a, batch)
        future_b = self._submit(self.provider_b, batch)
        # Both calls share one deadline
        started = [f for f in (future_a, future_b) if f is not None]
        if started:
            wait(started, timeout=self.timeout_seconds)

        result_a = self._collect(self.provider_a, future_a)
        result_b = self._collect(self.provider_b, future_b)

        return PageEnrichment(
            result_a=result_a,
            result_b=result_b,
            labels_a=reconcile_labels(batch, result_a),
            labels_b=reconcile_labels(batch, result_b),
        )

    def close(self) -> None:
        """Release worker threads; calls that already timed out are abandoned."""
        for executor in self._executors.values():
            executor.shutdown(wait=False)
        self._executors.clear()
        self._in_flight.clear()

    def __enter__(self) -> "BatchEnrichmentStage":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
