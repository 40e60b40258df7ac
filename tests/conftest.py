"""Shared fakes for session tests."""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import List, Optional, Sequence

import pytest

from tweet_nps.mentions import Mention, MentionPage, TimeWindow
from tweet_nps.sentiment import SentimentLabel


SUBJECT_ID = "1519609900564992004"

WINDOW = TimeWindow(
    start=datetime(2022, 6, 5, 7, 0, tzinfo=timezone.utc),
    end=datetime(2022, 6, 9, 7, 0, tzinfo=timezone.utc),
)


def make_mentions(start: int, count: int) -> List[Mention]:
    return [
        Mention(tweet_id=str(i), text=f"tweet number {i}", author_id="42")
        for i in range(start, start + count)
    ]


class FakeFetcher:
    """Returns scripted pages; an Exception entry is raised instead."""

    def __init__(self, pages):
        self.pages = list(pages)
        self.calls: List[Optional[str]] = []
        self.subject_ids: List[str] = []

    def fetch_page(self, subject_id, window, page_size, pagination_token=None):
        self.subject_ids.append(subject_id)
        self.calls.append(pagination_token)
        if not self.pages:
            return MentionPage(items=[], next_token=None)
        page = self.pages.pop(0)
        if isinstance(page, Exception):
            raise page
        return page


class FakeProvider:
    """Labels every mention; fails on the configured call numbers (1-based)."""

    def __init__(self, name: str, sentiment: str = "POSITIVE", fail_on=(), short_by: int = 0):
        self.name = name
        self.sentiment = sentiment
        self.fail_on = set(fail_on)
        self.short_by = short_by
        self.calls: List[List[str]] = []

    def classify_batch(self, items: Sequence[Mention]) -> List[SentimentLabel]:
        self.calls.append([m.item_id for m in items])
        if len(self.calls) in self.fail_on:
            raise RuntimeError(f"{self.name} unavailable")
        keep = len(items) - self.short_by
        return [
            SentimentLabel(item_id=m.item_id, sentiment=self.sentiment, provider=self.name, score=0.9)
            for m in list(items)[:keep]
        ]


class HangingProvider:
    """Blocks until released, like an API call that never answers."""

    def __init__(self, name: str, release: threading.Event):
        self.name = name
        self.release = release
        self.calls = 0

    def classify_batch(self, items: Sequence[Mention]) -> List[SentimentLabel]:
        self.calls += 1
        self.release.wait(timeout=10)
        return []


class RecordingWriter:
    def __init__(self, events=None):
        self.calls = []
        self.events = events if events is not None else []

    def write(self, snapshot, window):
        self.events.append("export")
        self.calls.append(snapshot)
        return "reports/test.csv"


@pytest.fixture
def window():
    return WINDOW


@pytest.fixture
def hanging_provider():
    release = threading.Event()
    yield HangingProvider("provider_a", release)
    release.set()
