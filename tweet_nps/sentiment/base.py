"""Sentiment provider interface and shared label types.

Provider adapters classify a batch of mentions and return one label per
mention they could classify. Every call into an adapter is wrapped into a
`ProviderResult`, so a failed call is a value (failed, no labels) rather
than an exception travelling through the session.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Protocol, Sequence

from ..mentions import Mention

logger = logging.getLogger(__name__)


Sentiment = Literal["POSITIVE", "NEGATIVE", "NEUTRAL", "MIXED"]

SENTIMENTS = ("POSITIVE", "NEGATIVE", "NEUTRAL", "MIXED")


class ProviderError(Exception):
    """Raised by an adapter when a batch cannot be classified."""


@dataclass(frozen=True)
class SentimentLabel:
    """Classification of one mention by one provider.

    `sentiment` is None for a missing marker: the provider answered for the
    page but not for this mention.
    """
    item_id: str
    sentiment: Optional[Sentiment]
    provider: str
    score: Optional[float] = None

    @property
    def is_missing(self) -> bool:
        return self.sentiment is None


class SentimentProvider(Protocol):
    name: str

    def classify_batch(self, items: Sequence[Mention]) -> List[SentimentLabel]:
        ...


@dataclass
class ProviderResult:
    """Outcome of one provider call for one page."""
    provider: str
    labels: List[SentimentLabel] = field(default_factory=list)
    error: Optional[str] = None

    # Error values for calls that did not finish in time. BUSY means the
    # previous page's call was still running, so this page was not sent.
    TIMEOUT = "timeout"
    BUSY = "busy"

    @classmethod
    def success(cls, provider: str, labels: Sequence[SentimentLabel]) -> "ProviderResult":
        return cls(provider=provider, labels=list(labels))

    @classmethod
    def failure(cls, provider: str, error: str) -> "ProviderResult":
        return cls(provider=provider, labels=[], error=error)

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def timed_out(self) -> bool:
        return self.error in (self.TIMEOUT, self.BUSY)


def reconcile_labels(items: Sequence[Mention], result: ProviderResult) -> List[SentimentLabel]:
    """
    Align a provider's labels with the page's mentions.

    Args:
        items: Mentions of the page, in fetch order
        result: Provider outcome for the same page

    Returns:
        Empty list if the provider failed or returned nothing; otherwise
        exactly one label per mention in mention order, with missing
        markers for mentions the provider skipped.
    """
    if result.failed or not result.labels:
        return []

    page_ids = {item.item_id for item in items}
    by_id: Dict[str, SentimentLabel] = {}
    for label in result.labels:
        if label.item_id not in page_ids:
            logger.warning(f"{result.provider}: dropping label for unknown item {label.item_id}")
            continue
        # First label wins on duplicates
        by_id.setdefault(label.item_id, label)

    aligned: List[SentimentLabel] = []
    for item in items:
        label = by_id.get(item.item_id)
        if label is None:
            label = SentimentLabel(item_id=item.item_id, sentiment=None, provider=result.provider)
        aligned.append(label)

    missing = sum(1 for label in aligned if label.is_missing)
    if missing:
        logger.warning(f"{result.provider}: {missing}/{len(items)} mentions left unlabelled on this page")

    return aligned
