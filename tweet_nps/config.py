"""Configuration for NPS sessions.

Loaded from config.yaml, with environment overrides. Secrets (bearer
token, API keys, AWS credentials) are read from the environment only.

Env vars:
- TWITTER_BEARER_TOKEN
- GOOGLE_NLP_API_KEY
- AWS_REGION / AWS_ACCESS_KEY_ID / AWS_SECRET_ACCESS_KEY (boto3 default chain)
- TWITTER_SUBJECT_USER_ID (optional override)
- TWITTER_PAGE_SIZE (optional override)
- NPS_REPORT_DIR (optional override)
"""

from __future__ import annotations

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)


DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config.yaml"


def _load_yaml(path: Optional[str]) -> Dict:
    """Load a YAML config file; missing file means defaults."""
    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    if not config_path.exists():
        logger.info(f"Config file {config_path} not found, using defaults")
        return {}
    with open(config_path) as f:
        return yaml.safe_load(f) or {}


def _number(section: Dict, key: str, default: Any, cast=float, env: Optional[str] = None):
    raw = os.getenv(env) if env else None
    if raw is None or raw == "":
        raw = section.get(key, default)
    try:
        return cast(raw)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid value for {key}: {raw!r}")


@dataclass
class TwitterConfig:
    subject_user_id: str = ""
    page_size: int = 100
    base_url: str = "https://api.twitter.com"
    request_timeout_seconds: float = 15.0
    requests_per_window: int = 180
    rate_window_seconds: float = 900.0
    max_retries: int = 3
    backoff_base: float = 1.0

    @classmethod
    def from_config(cls, config: Dict) -> "TwitterConfig":
        section = config.get("twitter", {}) or {}
        return cls(
            subject_user_id=str(
                os.getenv("TWITTER_SUBJECT_USER_ID") or section.get("subject_user_id", "") or ""
            ),
            page_size=_number(section, "page_size", 100, int, env="TWITTER_PAGE_SIZE"),
            base_url=section.get("base_url", "https://api.twitter.com"),
            request_timeout_seconds=_number(section, "request_timeout_seconds", 15.0),
            requests_per_window=_number(section, "requests_per_window", 180, int),
            rate_window_seconds=_number(section, "rate_window_seconds", 900.0),
            max_retries=_number(section, "max_retries", 3, int),
            backoff_base=_number(section, "backoff_base", 1.0),
        )


@dataclass
class SentimentConfig:
    provider_timeout_seconds: float = 30.0
    comprehend_region: str = "us-east-1"
    comprehend_language_code: str = "en"
    google_base_url: str = "https://language.googleapis.com"
    google_positive_threshold: float = 0.25
    google_negative_threshold: float = -0.25
    google_mixed_magnitude: float = 1.5

    @classmethod
    def from_config(cls, config: Dict) -> "SentimentConfig":
        section = config.get("sentiment", {}) or {}
        comprehend = section.get("aws_comprehend", {}) or {}
        google = section.get("google_nlp", {}) or {}
        return cls(
            provider_timeout_seconds=_number(section, "provider_timeout_seconds", 30.0),
            comprehend_region=comprehend.get("region", "us-east-1"),
            comprehend_language_code=comprehend.get("language_code", "en"),
            google_base_url=google.get("base_url", "https://language.googleapis.com"),
            google_positive_threshold=_number(google, "positive_threshold", 0.25),
            google_negative_threshold=_number(google, "negative_threshold", -0.25),
            google_mixed_magnitude=_number(google, "mixed_magnitude", 1.5),
        )


@dataclass
class NpsConfig:
    """Full configuration of the NPS tool."""
    twitter: TwitterConfig = field(default_factory=TwitterConfig)
    sentiment: SentimentConfig = field(default_factory=SentimentConfig)
    report_output_dir: str = "reports"

    @classmethod
    def from_config(cls, config: Dict) -> "NpsConfig":
        report = config.get("report", {}) or {}
        return cls(
            twitter=TwitterConfig.from_config(config),
            sentiment=SentimentConfig.from_config(config),
            report_output_dir=os.getenv("NPS_REPORT_DIR") or report.get("output_dir", "reports"),
        )


def load_config(path: Optional[str] = None) -> NpsConfig:
    """Load config.yaml (or `path`) and apply environment overrides."""
    return NpsConfig.from_config(_load_yaml(path))
