"""Sentiment providers and the batch enrichment stage."""

from .base import (
    ProviderError,
    ProviderResult,
    Sentiment,
    SentimentLabel,
    SentimentProvider,
    reconcile_labels,
)
from .aws_comprehend import ComprehendSentimentProvider
from .google_nlp import GoogleNlpSentimentProvider, classify_score
from .enrichment import BatchEnrichmentStage, PageEnrichment

__all__ = [
    "ProviderError",
    "ProviderResult",
    "Sentiment",
    "SentimentLabel",
    "SentimentProvider",
    "reconcile_labels",
    "ComprehendSentimentProvider",
    "GoogleNlpSentimentProvider",
    "classify_score",
    "BatchEnrichmentStage",
    "PageEnrichment",
]
