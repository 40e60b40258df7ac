"""AWS Comprehend sentiment provider.

Uses `batch_detect_sentiment`, which accepts at most 25 documents per call
and at most 5000 bytes of UTF-8 text per document.

Credentials come from boto3's default chain (env vars, shared config,
instance role). Never print or log secret keys.
"""

from __future__ import annotations

import os
import logging
from typing import Any, List, Optional, Sequence

from ..mentions import Mention
from .base import SENTIMENTS, SentimentLabel

logger = logging.getLogger(__name__)


COMPREHEND_BATCH_LIMIT = 25
COMPREHEND_MAX_BYTES = 5000

# SentimentScore keys per label
_SCORE_KEYS = {
    "POSITIVE": "Positive",
    "NEGATIVE": "Negative",
    "NEUTRAL": "Neutral",
    "MIXED": "Mixed",
}


def _truncate_utf8(text: str, max_bytes: int = COMPREHEND_MAX_BYTES) -> str:
    encoded = text.encode("utf-8")
    if len(encoded) <= max_bytes:
        return text
    return encoded[:max_bytes].decode("utf-8", errors="ignore")


class ComprehendSentimentProvider:
    """Batch sentiment via AWS Comprehend."""

    name = "aws_comprehend"

    def __init__(
        self,
        region: Optional[str] = None,
        language_code: str = "en",
        client: Any = None,
    ):
        """
        Initialize the Comprehend provider.

        Args:
            region: AWS region. AWS_REGION overrides it; default us-east-1.
            language_code: Language passed to Comprehend
            client: Pre-built boto3 comprehend client (tests inject a mock)
        """
        self.region = os.getenv("AWS_REGION") or region or "us-east-1"
        self.language_code = language_code
        self._client = client

    def _get_client(self):
        """Lazy init of the boto3 client."""
        if self._client is None:
            import boto3
            from botocore.config import Config as BotoConfig

            self._client = boto3.client(
                "comprehend",
                region_name=self.region,
                config=BotoConfig(retries={"max_attempts": 3, "mode": "standard"}),
            )
        return self._client

    def classify_batch(self, items: Sequence[Mention]) -> List[SentimentLabel]:
        """
        Classify mentions in chunks of 25.

        Documents listed in Comprehend's ErrorList get no label. Client
        errors propagate to the caller.
        """
        client = self._get_client()
        labels: List[SentimentLabel] = []

        for offset in range(0, len(items), COMPREHEND_BATCH_LIMIT):
            chunk = items[offset:offset + COMPREHEND_BATCH_LIMIT]
            response = client.batch_detect_sentiment(
                TextList=[_truncate_utf8(item.text or " ") for item in chunk],
                LanguageCode=self.language_code,
            )

            for error in response.get("ErrorList", []):
                logger.warning(
                    f"Comprehend could not classify item {error.get('Index')}: "
                    f"{error.get('ErrorCode')} {error.get('ErrorMessage', '')}"
                )

            for result in sorted(response.get("ResultList", []), key=lambda r: r.get("Index", 0)):
                index = result.get("Index")
                if index is None or not 0 <= index < len(chunk):
                    logger.warning(f"Comprehend returned out-of-range index {index}")
                    continue

                sentiment = (result.get("Sentiment") or "").upper()
                if sentiment not in SENTIMENTS:
                    logger.warning(f"Comprehend returned unknown sentiment {sentiment!r}")
                    continue

                score = (result.get("SentimentScore") or {}).get(_SCORE_KEYS[sentiment])
                labels.append(
                    SentimentLabel(
                        item_id=chunk[index].item_id,
                        sentiment=sentiment,
                        provider=self.name,
                        score=float(score) if score is not None else None,
                    )
                )

        logger.debug(f"Comprehend labels: {[(l.item_id, l.sentiment) for l in labels]}")
        return labels
