"""Mention sentiments CSV report.

One row per mention in fetch order, with each provider's label and score
joined by tweet id. Mentions a provider did not label have empty cells.

Outputs CSV files to reports/ directory.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Sequence

import pandas as pd

from ..mentions import TimeWindow
from ..sentiment.base import SentimentLabel
from ..session.accumulator import SessionSnapshot

logger = logging.getLogger(__name__)


def _index_labels(labels: Sequence[SentimentLabel]) -> Dict[str, SentimentLabel]:
    indexed: Dict[str, SentimentLabel] = {}
    for label in labels:
        if label.is_missing:
            continue
        indexed.setdefault(label.item_id, label)
    return indexed


def build_report_rows(snapshot: SessionSnapshot) -> List[Dict]:
    """Flatten a session snapshot into report rows."""
    providers = [
        (snapshot.provider_a, _index_labels(snapshot.labels_a)),
        (snapshot.provider_b, _index_labels(snapshot.labels_b)),
    ]

    rows = []
    for item in snapshot.items:
        row = {
            "tweet_id": item.tweet_id,
            "created_at": item.created_at.isoformat() if item.created_at else "",
            "author_id": item.author_id,
            "text": item.text,
        }
        for name, by_id in providers:
            label = by_id.get(item.item_id)
            row[f"{name}_sentiment"] = label.sentiment if label else None
            row[f"{name}_score"] = round(label.score, 4) if label and label.score is not None else None
        rows.append(row)
    return rows


class TweetSentimentsReport:
    """Writes the accumulated mentions and sentiments of a session to CSV."""

    def __init__(self, output_dir: str = "reports"):
        self.output_dir = Path(output_dir)

    def _filename(self, window: TimeWindow) -> str:
        start = window.start_param.replace(":", "").replace("-", "")
        end = window.end_param.replace(":", "").replace("-", "")
        return f"tweet_sentiments_{start}_{end}.csv"

    def write(self, snapshot: SessionSnapshot, window: TimeWindow) -> str:
        """
        Write the report.

        Args:
            snapshot: Final session state
            window: Session time window (used in the filename)

        Returns:
            Path of the written CSV
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / self._filename(window)

        columns = ["tweet_id", "created_at", "author_id", "text"]
        for name in (snapshot.provider_a, snapshot.provider_b):
            columns += [f"{name}_sentiment", f"{name}_score"]

        df = pd.DataFrame(build_report_rows(snapshot), columns=columns)
        df.to_csv(path, index=False)

        logger.info(f"Wrote {len(df)} mention rows to {path}")
        return str(path)
