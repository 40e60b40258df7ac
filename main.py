"""
Tweet NPS - Main Entry Point

Computes a sentiment-derived Net Promoter Score over the mentions of an
account in a time window, using AWS Comprehend and Google Natural Language.

Usage:
    python main.py --start-time 1654413707 --end-time 1654759307 --csv-required 1
    python main.py --start-time 2022-06-05T07:00:00Z --end-time 2022-06-09T07:00:00Z
"""

import argparse
import logging
import sys
from datetime import datetime, timezone

from colorama import init, Fore, Style
from dotenv import load_dotenv

from tweet_nps.config import load_config
from tweet_nps.mentions import RateLimiter, RetryConfig, TimeWindow, TwitterMentionsClient
from tweet_nps.report import TweetSentimentsReport
from tweet_nps.sentiment import (
    BatchEnrichmentStage,
    ComprehendSentimentProvider,
    GoogleNlpSentimentProvider,
)
from tweet_nps.session import NpsSession, SessionConfig, SessionResult

# Load environment variables
load_dotenv()

# Initialize colorama for colored terminal output
init(autoreset=True)

logger = logging.getLogger(__name__)


def parse_timestamp(value: str) -> datetime:
    """Parse Unix epoch seconds or ISO 8601 into an aware UTC datetime."""
    value = (value or "").strip()
    if not value:
        raise argparse.ArgumentTypeError("timestamp must not be empty")
    if value.isdigit():
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid timestamp: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Tweet NPS - sentiment-derived Net Promoter Score for account mentions"
    )
    parser.add_argument(
        "--start-time",
        type=parse_timestamp,
        required=True,
        help="Window start (Unix seconds or ISO 8601)",
    )
    parser.add_argument(
        "--end-time",
        type=parse_timestamp,
        required=True,
        help="Window end (Unix seconds or ISO 8601)",
    )
    parser.add_argument(
        "--csv-required",
        type=int,
        default=0,
        choices=[0, 1],
        help="Write the mention sentiments CSV report (1/0, default: 0)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to configuration file (default: config.yaml)",
    )
    parser.add_argument("--subject-id", type=str, default=None, help="Override twitter.subject_user_id")
    parser.add_argument("--page-size", type=int, default=None, help="Override twitter.page_size")
    parser.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    return parser


def print_banner():
    """Print application banner."""
    print(Fore.CYAN + "=" * 70)
    print(Fore.CYAN + "  TWEET NPS")
    print(Fore.CYAN + "  Sentiment-derived Net Promoter Score for mentions")
    print(Fore.CYAN + "=" * 70)
    print()


def print_result(result: SessionResult) -> None:
    nps = result.nps
    color = Fore.GREEN if nps.nps > 0 else (Fore.RED if nps.nps < 0 else Fore.YELLOW)

    print()
    print(Fore.CYAN + "=" * 70)
    print(f"{Style.BRIGHT}NPS: {color}{nps.nps:+.2f}{Style.RESET_ALL}  (mentions: {nps.total_count})")
    print(Fore.CYAN + "-" * 70)
    print(f"{'Provider':<18} {'NPS':>8} {'Promoters':>10} {'Passives':>9} {'Detractors':>11} {'Labelled':>9}")
    for score in nps.provider_scores.values():
        print(
            f"{score.provider:<18} {score.nps:>+8.2f} {score.promoters:>10} "
            f"{score.passives:>9} {score.detractors:>11} {score.labelled:>9}"
        )

    summary = result.metrics.summary()
    print(Fore.CYAN + "-" * 70)
    print(f"Pages: {summary['pages_processed']}  Fetch calls: {summary['fetch_calls']}  "
          f"Fetch errors: {summary['fetch_errors']}")
    if result.metrics.degraded:
        print(Fore.YELLOW + "⚠️  Degraded coverage: "
              f"failures={summary['provider_failures']} timeouts={summary['provider_timeouts']} "
              f"unlabelled={summary['missing_labels']}")
    if result.report_path:
        print(f"Report: {result.report_path}")
    print(Fore.CYAN + "=" * 70)


def main() -> int:
    """Main application entry point."""
    args = build_parser().parse_args()

    logging.basicConfig(
        level=logging.INFO if not args.quiet else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = load_config(args.config)
        twitter = config.twitter
        subject_id = args.subject_id or twitter.subject_user_id
        if not subject_id:
            print(f"{Fore.RED}❌ No subject account: set twitter.subject_user_id or --subject-id")
            return 1

        print_banner()

        window = TimeWindow(start=args.start_time, end=args.end_time)
        session_config = SessionConfig(
            window=window,
            subject_id=subject_id,
            page_size=args.page_size or twitter.page_size,
            export_requested=bool(args.csv_required),
        )

        fetcher = TwitterMentionsClient(
            base_url=twitter.base_url,
            timeout=twitter.request_timeout_seconds,
            retry_config=RetryConfig(max_retries=twitter.max_retries, backoff_base=twitter.backoff_base),
            rate_limiter=RateLimiter(
                requests_per_window=twitter.requests_per_window,
                window_seconds=twitter.rate_window_seconds,
            ),
        )

        sentiment = config.sentiment
        comprehend = ComprehendSentimentProvider(
            region=sentiment.comprehend_region,
            language_code=sentiment.comprehend_language_code,
        )
        google = GoogleNlpSentimentProvider(
            base_url=sentiment.google_base_url,
            positive_threshold=sentiment.google_positive_threshold,
            negative_threshold=sentiment.google_negative_threshold,
            mixed_magnitude=sentiment.google_mixed_magnitude,
        )

        print(f"{Fore.YELLOW}📡 Fetching mentions...")
        print(f"   Account: {subject_id}")
        print(f"   Window: {window.start_param} -> {window.end_param}")
        print()

        with BatchEnrichmentStage(
            comprehend,
            google,
            timeout_seconds=sentiment.provider_timeout_seconds,
        ) as stage:
            session = NpsSession(
                session_config,
                fetcher,
                stage,
                report_writer=TweetSentimentsReport(config.report_output_dir),
            )
            result = session.run()

        print_result(result)
        return 0

    except KeyboardInterrupt:
        print(f"\n{Fore.YELLOW}⚠️  Interrupted by user")
        return 1
    except Exception as e:
        logger.exception("NPS session failed")
        print(f"\n{Fore.RED}❌ Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
