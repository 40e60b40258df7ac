"""Mention source: Twitter mentions timeline."""

from .twitter_client import (
    Mention,
    MentionFetchError,
    MentionPage,
    TimeWindow,
    TwitterMentionsClient,
)
from .rate_limiter import RateLimiter, RetryConfig

__all__ = [
    "Mention",
    "MentionFetchError",
    "MentionPage",
    "TimeWindow",
    "TwitterMentionsClient",
    "RateLimiter",
    "RetryConfig",
]
