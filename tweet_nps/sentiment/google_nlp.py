"""Google Cloud Natural Language sentiment provider.

REST endpoint: POST https://language.googleapis.com/v1/documents:analyzeSentiment

The API scores one document per request: `score` in [-1, 1] and a
non-negative `magnitude`. Scores are bucketed into labels with thresholds.
"""

from __future__ import annotations

import os
import logging
from typing import List, Optional, Sequence

import requests

from ..mentions import Mention
from .base import ProviderError, Sentiment, SentimentLabel

logger = logging.getLogger(__name__)


def classify_score(
    score: float,
    magnitude: float = 0.0,
    pos_threshold: float = 0.25,
    neg_threshold: float = -0.25,
    mixed_magnitude: float = 1.5,
) -> Sentiment:
    if score >= pos_threshold:
        return "POSITIVE"
    if score <= neg_threshold:
        return "NEGATIVE"
    # Near-zero score with strong emotion both ways
    if magnitude >= mixed_magnitude:
        return "MIXED"
    return "NEUTRAL"


class GoogleNlpSentimentProvider:
    """Per-document sentiment via Google Natural Language."""

    name = "google_nlp"

    BASE_URL = "https://language.googleapis.com"
    DEFAULT_TIMEOUT = 10

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        positive_threshold: float = 0.25,
        negative_threshold: float = -0.25,
        mixed_magnitude: float = 1.5,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the Google NLP provider.

        Args:
            api_key: API key. If not provided, reads GOOGLE_NLP_API_KEY.
            base_url: API root (default: https://language.googleapis.com)
            timeout: Per-document request timeout in seconds
            positive_threshold: Minimum score labelled POSITIVE
            negative_threshold: Maximum score labelled NEGATIVE
            mixed_magnitude: Magnitude at which a neutral score counts as MIXED
            session: Optional requests session (tests inject a mock)
        """
        self.api_key = api_key or os.getenv("GOOGLE_NLP_API_KEY")
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.timeout = timeout
        self.positive_threshold = positive_threshold
        self.negative_threshold = negative_threshold
        self.mixed_magnitude = mixed_magnitude
        self._session = session or requests.Session()

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/v1/documents:analyzeSentiment"

    def classify_batch(self, items: Sequence[Mention]) -> List[SentimentLabel]:
        """
        Classify each mention with one request.

        A 4xx for a single document (e.g. unsupported language) skips that
        mention. Network errors, timeouts and 5xx abort the whole batch.
        """
        if not self.api_key:
            raise ProviderError("GOOGLE_NLP_API_KEY not configured")

        labels: List[SentimentLabel] = []
        for item in items:
            body = {
                "document": {"type": "PLAIN_TEXT", "content": item.text or ""},
                "encodingType": "UTF8",
            }
            response = self._session.post(
                self.endpoint,
                params={"key": self.api_key},
                json=body,
                timeout=self.timeout,
            )

            if 400 <= response.status_code < 500:
                logger.warning(
                    f"Google NLP rejected item {item.item_id} "
                    f"(HTTP {response.status_code}), skipping"
                )
                continue
            response.raise_for_status()

            document = response.json().get("documentSentiment") or {}
            if "score" not in document:
                logger.warning(f"Google NLP returned no score for item {item.item_id}")
                continue

            score = float(document["score"])
            magnitude = float(document.get("magnitude", 0.0))
            labels.append(
                SentimentLabel(
                    item_id=item.item_id,
                    sentiment=classify_score(
                        score,
                        magnitude,
                        pos_threshold=self.positive_threshold,
                        neg_threshold=self.negative_threshold,
                        mixed_magnitude=self.mixed_magnitude,
                    ),
                    provider=self.name,
                    score=score,
                )
            )

        logger.debug(f"Google NLP labels: {[(l.item_id, l.sentiment) for l in labels]}")
        return labels
