"""Session accumulator.

Holds three independently growing sequences: every mention seen so far and
each provider's labels. Provider labels are only ever appended onto their
own running sequence.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from ..mentions import Mention
from ..sentiment.base import SentimentLabel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionSnapshot:
    """Final accumulated state; input to scoring and export."""
    items: Tuple[Mention, ...]
    labels_a: Tuple[SentimentLabel, ...]
    labels_b: Tuple[SentimentLabel, ...]
    provider_a: str
    provider_b: str

    @property
    def total_count(self) -> int:
        return len(self.items)


@dataclass
class SessionAccumulator:
    provider_a: str = "provider_a"
    provider_b: str = "provider_b"
    items: List[Mention] = field(default_factory=list)
    labels_a: List[SentimentLabel] = field(default_factory=list)
    labels_b: List[SentimentLabel] = field(default_factory=list)
    pages_merged: int = 0

    def merge_page(
        self,
        items: Sequence[Mention],
        labels_a: Sequence[SentimentLabel],
        labels_b: Sequence[SentimentLabel],
    ) -> None:
        """Append one page's mentions and labels, preserving order."""
        self.items.extend(items)
        self.labels_a.extend(labels_a)
        self.labels_b.extend(labels_b)
        self.pages_merged += 1

        logger.debug(
            f"Merged page {self.pages_merged}: items={len(self.items)} "
            f"{self.provider_a}={len(self.labels_a)} {self.provider_b}={len(self.labels_b)}"
        )

    def is_aligned(self) -> bool:
        """True when both label sequences cover every mention."""
        return len(self.labels_a) == len(self.labels_b) == len(self.items)

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            items=tuple(self.items),
            labels_a=tuple(self.labels_a),
            labels_b=tuple(self.labels_b),
            provider_a=self.provider_a,
            provider_b=self.provider_b,
        )
