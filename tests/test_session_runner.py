"""Tests for the NPS session runner (pagination, merge, scoring, export)."""

from unittest.mock import MagicMock

import pytest

from conftest import SUBJECT_ID, WINDOW, FakeFetcher, FakeProvider, RecordingWriter, make_mentions
from tweet_nps.mentions import MentionFetchError, MentionPage
from tweet_nps.scoring import calculate_nps
from tweet_nps.sentiment import BatchEnrichmentStage
from tweet_nps.session import NpsSession, SessionConfig


def _session(pages, provider_a=None, provider_b=None, export=False, writer=None, reducer=calculate_nps,
             subject_id=SUBJECT_ID, timeout_seconds=5):
    provider_a = provider_a or FakeProvider("provider_a", "POSITIVE")
    provider_b = provider_b or FakeProvider("provider_b", "NEGATIVE")
    fetcher = FakeFetcher(pages)
    stage = BatchEnrichmentStage(provider_a, provider_b, timeout_seconds=timeout_seconds)
    config = SessionConfig(window=WINDOW, subject_id=subject_id, page_size=5, export_requested=export)
    session = NpsSession(config, fetcher, stage, reducer=reducer, report_writer=writer)
    return session, fetcher, provider_a, provider_b


class TestPagination:
    """Walking the mention source to exhaustion."""

    def test_three_pages_until_no_token(self):
        pages = [
            MentionPage(items=make_mentions(0, 3), next_token="t1"),
            MentionPage(items=make_mentions(3, 3), next_token="t2"),
            MentionPage(items=make_mentions(6, 2), next_token=None),
        ]
        session, fetcher, _, _ = _session(pages)

        result = session.run()

        assert len(fetcher.calls) == 3
        assert fetcher.calls == [None, "t1", "t2"]
        assert [m.tweet_id for m in result.snapshot.items] == [str(i) for i in range(8)]
        assert result.metrics.pages_processed == 3

    def test_two_full_pages_then_last_page(self):
        pages = [
            MentionPage(items=make_mentions(0, 3), next_token="t1"),
            MentionPage(items=make_mentions(3, 3), next_token=None),
        ]
        session, fetcher, _, _ = _session(pages)

        result = session.run()

        assert len(fetcher.calls) == 2
        assert result.snapshot.total_count == 6

    def test_empty_first_page(self):
        reducer = MagicMock(side_effect=calculate_nps)
        session, fetcher, provider_a, provider_b = _session(
            [MentionPage(items=[], next_token="ignored")], reducer=reducer
        )

        result = session.run()

        assert len(fetcher.calls) == 1
        assert result.snapshot.items == ()
        assert provider_a.calls == [] and provider_b.calls == []
        assert session.accumulator.pages_merged == 0
        reducer.assert_called_once()
        assert reducer.call_args.args[0] == 0

    def test_empty_page_stops_even_with_token(self):
        pages = [
            MentionPage(items=make_mentions(0, 3), next_token="t1"),
            MentionPage(items=[], next_token="t2"),
            MentionPage(items=make_mentions(3, 3), next_token=None),
        ]
        session, fetcher, _, _ = _session(pages)

        result = session.run()

        assert len(fetcher.calls) == 2
        assert result.snapshot.total_count == 3

    def test_fetch_calls_bounded_by_pages_plus_one(self):
        pages = [MentionPage(items=make_mentions(i * 2, 2), next_token=f"t{i}") for i in range(4)]
        session, fetcher, _, _ = _session(pages)

        session.run()

        # four scripted pages, then the fake returns an empty page
        assert len(fetcher.calls) == len(pages) + 1

    def test_fetch_error_after_first_page(self):
        reducer = MagicMock(side_effect=calculate_nps)
        pages = [
            MentionPage(items=make_mentions(0, 3), next_token="t1"),
            MentionFetchError("HTTP 503"),
            MentionPage(items=make_mentions(3, 3), next_token=None),
        ]
        session, fetcher, _, _ = _session(pages, reducer=reducer)

        result = session.run()

        assert len(fetcher.calls) == 2
        assert result.snapshot.total_count == 3
        assert result.metrics.fetch_errors == 1
        assert result.metrics.degraded
        assert reducer.call_args.args[0] == 3

    def test_page_never_refetched_after_token_advance(self):
        pages = [
            MentionPage(items=make_mentions(0, 2), next_token="t1"),
            MentionPage(items=make_mentions(2, 2), next_token="t2"),
            MentionPage(items=make_mentions(4, 2), next_token=None),
        ]
        session, fetcher, provider_a, _ = _session(pages)

        result = session.run()

        assert len(set(fetcher.calls)) == len(fetcher.calls)
        ids = [m.tweet_id for m in result.snapshot.items]
        assert len(ids) == len(set(ids))
        assert provider_a.calls == [["0", "1"], ["2", "3"], ["4", "5"]]

    def test_every_fetch_targets_session_subject(self):
        pages = [
            MentionPage(items=make_mentions(0, 2), next_token="t1"),
            MentionPage(items=make_mentions(2, 2), next_token=None),
        ]
        session, fetcher, _, _ = _session(pages, subject_id="783214")

        session.run()

        assert fetcher.subject_ids == ["783214", "783214"]

    def test_session_cannot_run_twice(self):
        session, _, _, _ = _session([MentionPage(items=make_mentions(0, 1))])
        session.run()

        with pytest.raises(RuntimeError):
            session.run()


class TestAccumulation:
    """Labels accumulate per provider, aligned with the mentions."""

    def test_alignment_without_failures(self):
        pages = [
            MentionPage(items=make_mentions(0, 3), next_token="t1"),
            MentionPage(items=make_mentions(3, 3), next_token=None),
        ]
        session, _, _, _ = _session(pages)

        snapshot = session.run().snapshot

        assert len(snapshot.labels_a) == len(snapshot.labels_b) == len(snapshot.items) == 6
        assert [l.item_id for l in snapshot.labels_a] == [m.item_id for m in snapshot.items]
        assert [l.item_id for l in snapshot.labels_b] == [m.item_id for m in snapshot.items]

    def test_labels_never_built_from_item_sequence(self):
        # Provider sequences grow only by their own labels; they must not be
        # rebuilt as "all items so far + this page's labels".
        pages = [
            MentionPage(items=make_mentions(0, 3), next_token="t1"),
            MentionPage(items=make_mentions(3, 3), next_token=None),
        ]
        session, _, _, _ = _session(pages)

        snapshot = session.run().snapshot

        assert all(l.provider == "provider_a" for l in snapshot.labels_a)
        assert all(l.provider == "provider_b" for l in snapshot.labels_b)
        assert len(snapshot.labels_a) == 6

    def test_provider_failure_on_second_page(self):
        reducer = MagicMock(side_effect=calculate_nps)
        pages = [
            MentionPage(items=make_mentions(0, 3), next_token="t1"),
            MentionPage(items=make_mentions(3, 3), next_token=None),
        ]
        provider_a = FakeProvider("provider_a", fail_on={2})
        session, _, _, _ = _session(pages, provider_a=provider_a, reducer=reducer)

        result = session.run()

        assert [l.item_id for l in result.snapshot.labels_a] == ["0", "1", "2"]
        assert len(result.snapshot.labels_b) == 6
        assert result.metrics.provider_failures == {"provider_a": 1}
        assert result.metrics.degraded
        reducer.assert_called_once()

    def test_short_provider_batch_is_padded(self):
        pages = [MentionPage(items=make_mentions(0, 4), next_token=None)]
        provider_b = FakeProvider("provider_b", short_by=1)
        session, _, _, _ = _session(pages, provider_b=provider_b)

        result = session.run()

        assert len(result.snapshot.labels_b) == 4
        assert result.snapshot.labels_b[-1].is_missing
        assert result.metrics.missing_labels == {"provider_b": 1}

    def test_hung_provider_costs_only_its_own_labels(self, hanging_provider):
        pages = [
            MentionPage(items=make_mentions(0, 2), next_token="t1"),
            MentionPage(items=make_mentions(2, 2), next_token="t2"),
            MentionPage(items=make_mentions(4, 2), next_token=None),
        ]
        session, _, _, provider_b = _session(pages, provider_a=hanging_provider, timeout_seconds=0.3)

        result = session.run()

        assert result.snapshot.labels_a == ()
        assert [l.item_id for l in result.snapshot.labels_b] == [str(i) for i in range(6)]
        assert len(provider_b.calls) == 3
        assert result.metrics.provider_timeouts == {"provider_a": 3}


class TestScoreAndExport:
    """Scoring runs once; export only when requested, after scoring."""

    def test_result_carries_nps(self):
        pages = [MentionPage(items=make_mentions(0, 4), next_token=None)]
        session, _, _, _ = _session(pages)

        result = session.run()

        assert result.nps.total_count == 4
        assert result.nps.provider_scores["provider_a"].nps == 100.0
        assert result.nps.provider_scores["provider_b"].nps == -100.0
        assert result.nps.nps == 0.0

    def test_export_not_called_when_not_requested(self):
        writer = RecordingWriter()
        pages = [MentionPage(items=make_mentions(0, 3), next_token=None)]
        session, _, _, _ = _session(pages, export=False, writer=writer)

        result = session.run()

        assert writer.calls == []
        assert result.report_path is None

    def test_export_not_called_on_fetch_failure_when_not_requested(self):
        writer = RecordingWriter()
        session, _, _, _ = _session([MentionFetchError("down")], export=False, writer=writer)

        session.run()

        assert writer.calls == []

    def test_export_once_after_scoring(self):
        events = []
        writer = RecordingWriter(events)

        def reducer(*args, **kwargs):
            events.append("score")
            return calculate_nps(*args, **kwargs)

        pages = [
            MentionPage(items=make_mentions(0, 2), next_token="t1"),
            MentionPage(items=make_mentions(2, 2), next_token=None),
        ]
        session, _, _, _ = _session(pages, export=True, writer=writer, reducer=reducer)

        result = session.run()

        assert events == ["score", "export"]
        assert len(writer.calls) == 1
        assert writer.calls[0].total_count == 4
        assert result.report_path == "reports/test.csv"

    def test_reducer_error_propagates(self):
        reducer = MagicMock(side_effect=ZeroDivisionError("boom"))
        session, _, _, _ = _session([MentionPage(items=make_mentions(0, 1))], reducer=reducer)

        with pytest.raises(ZeroDivisionError):
            session.run()

    def test_export_error_propagates(self):
        writer = MagicMock()
        writer.write.side_effect = OSError("disk full")
        session, _, _, _ = _session([MentionPage(items=make_mentions(0, 1))], export=True, writer=writer)

        with pytest.raises(OSError):
            session.run()
