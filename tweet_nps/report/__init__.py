"""Report writers."""

from .tweet_sentiments import TweetSentimentsReport, build_report_rows

__all__ = ["TweetSentimentsReport", "build_report_rows"]
