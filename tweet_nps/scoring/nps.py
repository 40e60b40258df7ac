"""Net Promoter Score from sentiment labels.

Sentiment buckets map onto NPS buckets:
- POSITIVE -> promoter
- NEUTRAL, MIXED -> passive
- NEGATIVE -> detractor

NPS = (promoters - detractors) / total * 100, where total is the number of
mentions in the session, not the number of labelled mentions. Mentions a
provider never labelled therefore pull its score toward zero.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence

from ..sentiment.base import SentimentLabel


@dataclass(frozen=True)
class ProviderScore:
    """NPS breakdown for one provider."""
    provider: str
    promoters: int
    passives: int
    detractors: int
    labelled: int
    nps: float


@dataclass(frozen=True)
class NpsResult:
    """Session NPS: mean of the two provider scores."""
    nps: float
    total_count: int
    provider_scores: Dict[str, ProviderScore] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "nps": self.nps,
            "total_count": self.total_count,
            "providers": {
                name: {
                    "nps": s.nps,
                    "promoters": s.promoters,
                    "passives": s.passives,
                    "detractors": s.detractors,
                    "labelled": s.labelled,
                }
                for name, s in self.provider_scores.items()
            },
        }


def _nps(promoters: int, detractors: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round((promoters - detractors) / total * 100, 2)


def score_provider(provider: str, labels: Sequence[SentimentLabel], total_count: int) -> ProviderScore:
    counts = Counter(label.sentiment for label in labels if not label.is_missing)
    promoters = counts.get("POSITIVE", 0)
    detractors = counts.get("NEGATIVE", 0)
    passives = counts.get("NEUTRAL", 0) + counts.get("MIXED", 0)

    return ProviderScore(
        provider=provider,
        promoters=promoters,
        passives=passives,
        detractors=detractors,
        labelled=promoters + passives + detractors,
        nps=_nps(promoters, detractors, total_count),
    )


def _provider_name(labels: Sequence[SentimentLabel], explicit: Optional[str], fallback: str) -> str:
    if explicit:
        return explicit
    if labels:
        return labels[0].provider
    return fallback


def calculate_nps(
    total_count: int,
    labels_a: Sequence[SentimentLabel],
    labels_b: Sequence[SentimentLabel],
    provider_a: Optional[str] = None,
    provider_b: Optional[str] = None,
) -> NpsResult:
    """
    Reduce both providers' labels to a single NPS.

    Args:
        total_count: Number of mentions in the session
        labels_a: All labels from the first provider
        labels_b: All labels from the second provider
        provider_a: Name of the first provider (default: taken from labels)
        provider_b: Name of the second provider (default: taken from labels)

    Returns:
        NpsResult with the combined score and per-provider breakdown

    Raises:
        ValueError: both providers resolve to the same name
    """
    name_a = _provider_name(labels_a, provider_a, "provider_a")
    name_b = _provider_name(labels_b, provider_b, "provider_b")
    if name_a == name_b:
        raise ValueError(f"Provider names must differ to score separately, both are {name_a!r}")

    score_a = score_provider(name_a, labels_a, total_count)
    score_b = score_provider(name_b, labels_b, total_count)

    return NpsResult(
        nps=round((score_a.nps + score_b.nps) / 2, 2),
        total_count=total_count,
        provider_scores={name_a: score_a, name_b: score_b},
    )
