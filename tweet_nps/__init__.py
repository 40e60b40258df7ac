"""Sentiment-derived Net Promoter Score for Twitter mentions."""

__version__ = "0.1.0"
