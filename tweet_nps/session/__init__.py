"""Pagination, accumulation and scoring of one NPS session."""

from .accumulator import SessionAccumulator, SessionSnapshot
from .metrics import SessionMetrics
from .runner import NpsSession, SessionConfig, SessionResult

__all__ = [
    "SessionAccumulator",
    "SessionSnapshot",
    "SessionMetrics",
    "NpsSession",
    "SessionConfig",
    "SessionResult",
]
