"""Twitter API v2 mentions client.

Fetches one page of tweets mentioning a user inside a fixed time window.

API Endpoint: GET https://api.twitter.com/2/users/:id/mentions

Pagination is driven by the caller: every page carries the `next_token`
from `meta`, which is passed back as `pagination_token` for the next call.
Retries for rate limits and transient errors happen here, so callers only
ever see a page or a `MentionFetchError`.
"""

from __future__ import annotations

import os
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests

from .rate_limiter import RateLimiter, RetryConfig

logger = logging.getLogger(__name__)


TWITTER_TIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Twitter enforces 5..100 results per page on the mentions timeline
MIN_PAGE_SIZE = 5
MAX_PAGE_SIZE = 100


class MentionFetchError(Exception):
    """Raised when a page of mentions could not be retrieved."""


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class TimeWindow:
    """Time bounds for a session. Ordering is not validated here."""
    start: datetime
    end: datetime

    @property
    def start_param(self) -> str:
        return _as_utc(self.start).strftime(TWITTER_TIME_FORMAT)

    @property
    def end_param(self) -> str:
        return _as_utc(self.end).strftime(TWITTER_TIME_FORMAT)


@dataclass(frozen=True)
class Mention:
    """A tweet mentioning the subject account."""
    tweet_id: str
    text: str
    author_id: str = ""
    created_at: Optional[datetime] = None
    lang: str = ""

    @property
    def item_id(self) -> str:
        """Identity used when aligning sentiment labels."""
        return self.tweet_id


@dataclass
class MentionPage:
    """One page of mentions plus the cursor for the next one."""
    items: List[Mention] = field(default_factory=list)
    next_token: Optional[str] = None
    result_count: int = 0


class TwitterMentionsClient:
    """Twitter API v2 client for a user's mentions timeline."""

    BASE_URL = "https://api.twitter.com"
    DEFAULT_TIMEOUT = 15
    TWEET_FIELDS = "created_at,author_id,lang"

    def __init__(
        self,
        bearer_token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        retry_config: Optional[RetryConfig] = None,
        rate_limiter: Optional[RateLimiter] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the mentions client.

        Args:
            bearer_token: App bearer token. If not provided, reads TWITTER_BEARER_TOKEN.
            base_url: API root (default: https://api.twitter.com)
            timeout: Per-request timeout in seconds
            retry_config: Backoff policy for 429/5xx and network errors
            rate_limiter: Request budget shared by all requests of this client
            session: Optional requests session (tests inject a mock)
        """
        self.bearer_token = bearer_token or os.getenv("TWITTER_BEARER_TOKEN")
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.timeout = timeout
        self.retry_config = retry_config or RetryConfig()
        # Mentions timeline allows 180 requests per 15 minutes per app
        self.rate_limiter = rate_limiter or RateLimiter(requests_per_window=180, window_seconds=900)
        self._session = session or requests.Session()

    def mentions_url(self, subject_id: str) -> str:
        return f"{self.base_url}/2/users/{subject_id}/mentions"

    def _build_params(
        self,
        window: TimeWindow,
        page_size: int,
        pagination_token: Optional[str],
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "start_time": window.start_param,
            "end_time": window.end_param,
            "max_results": max(MIN_PAGE_SIZE, min(int(page_size), MAX_PAGE_SIZE)),
            "tweet.fields": self.TWEET_FIELDS,
        }
        if pagination_token:
            params["pagination_token"] = pagination_token
        return params

    def fetch_page(
        self,
        subject_id: str,
        window: TimeWindow,
        page_size: int = MAX_PAGE_SIZE,
        pagination_token: Optional[str] = None,
    ) -> MentionPage:
        """
        Fetch one page of mentions.

        Args:
            subject_id: Numeric id of the account whose mentions are pulled
            window: Time bounds of the session
            page_size: Requested tweets per page (clamped to 5..100)
            pagination_token: Cursor returned by the previous page, if any

        Returns:
            MentionPage with parsed mentions and the next cursor

        Raises:
            MentionFetchError: no token configured, non-retryable error,
                or retries exhausted
        """
        if not self.bearer_token:
            raise MentionFetchError("TWITTER_BEARER_TOKEN not configured")

        url = self.mentions_url(subject_id)
        params = self._build_params(window, page_size, pagination_token)
        headers = {"Authorization": f"Bearer {self.bearer_token}"}
        max_retries = self.retry_config.max_retries
        last_error = "no attempt made"

        for attempt in range(max_retries + 1):
            self.rate_limiter.wait()

            # Log without bearer token
            logger.debug(
                f"Fetching mentions for {subject_id} "
                f"(token={pagination_token!r}, attempt {attempt + 1})"
            )

            try:
                response = self._session.get(
                    url,
                    params=params,
                    headers=headers,
                    timeout=self.timeout,
                )
            except requests.exceptions.Timeout:
                last_error = "request timed out"
                logger.warning(f"Mentions API timeout, attempt {attempt + 1}")
                if attempt < max_retries:
                    time.sleep(self.retry_config.get_delay(attempt))
                    continue
                break
            except requests.exceptions.RequestException as e:
                last_error = str(e)
                logger.warning(f"Mentions API request error: {e}")
                if attempt < max_retries:
                    time.sleep(self.retry_config.get_delay(attempt))
                    continue
                break

            if self.retry_config.should_retry(response.status_code):
                last_error = f"HTTP {response.status_code}"
                if attempt < max_retries:
                    if response.status_code == 429:
                        delay = self.retry_config.rate_limit_delay(response.headers, attempt)
                        logger.warning(f"Rate limited on mentions API, sleeping {delay:.1f}s")
                    else:
                        delay = self.retry_config.get_delay(attempt)
                        logger.warning(f"Mentions API returned {response.status_code}, retrying")
                    time.sleep(delay)
                    continue
                break

            if response.status_code >= 400:
                raise MentionFetchError(
                    f"Mentions API returned HTTP {response.status_code}: {response.text[:200]}"
                )

            try:
                payload = response.json()
            except ValueError as e:
                raise MentionFetchError(f"Mentions API returned invalid JSON: {e}") from e

            return self._parse_response(payload)

        raise MentionFetchError(
            f"Mentions fetch failed after {max_retries + 1} attempts: {last_error}"
        )

    def _parse_response(self, payload: Dict[str, Any]) -> MentionPage:
        """
        Parse a mentions response into a MentionPage.

        A body with `errors` and no `data` is an API-level failure. Partial
        errors next to `data` are logged and the data is kept.
        """
        data = payload.get("data")
        errors = payload.get("errors") or []

        if data is None and errors:
            detail = errors[0].get("detail") or errors[0].get("title") or "unknown error"
            raise MentionFetchError(f"Mentions API error: {detail}")
        if errors:
            logger.warning(f"Mentions API reported {len(errors)} partial error(s)")

        items: List[Mention] = []
        for raw in data or []:
            tweet_id = raw.get("id")
            if not tweet_id:
                logger.warning("Skipping mention without id")
                continue

            created_at = None
            created_str = raw.get("created_at") or ""
            if created_str:
                try:
                    created_at = datetime.fromisoformat(created_str.replace("Z", "+00:00"))
                except ValueError:
                    logger.warning(f"Unparseable created_at on tweet {tweet_id}: {created_str}")

            items.append(
                Mention(
                    tweet_id=str(tweet_id),
                    text=raw.get("text") or "",
                    author_id=str(raw.get("author_id") or ""),
                    created_at=created_at,
                    lang=raw.get("lang") or "",
                )
            )

        meta = payload.get("meta") or {}
        return MentionPage(
            items=items,
            next_token=meta.get("next_token") or None,
            result_count=int(meta.get("result_count", len(items)) or 0),
        )
