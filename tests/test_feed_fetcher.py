"""
Tests for FeedFetcher.

Covers:
- Single-source error mapping
- Empty fan-out makes no requests
- Merge order across sources (newest first, stable)
- Per-source failure isolation (HTTP 500, timeouts, bad URLs)
- Fallback pool when no ThreadManager is injected
"""
import pytest

from core.errors import BadResponseError, InvalidInputError, NetworkError, RequestTimeoutError
from sources.rss.downloader import HttpResponse
from sources.rss.fetcher import FeedFetcher
from sources.rss.models import FeedSource
from sources.rss.parser import RSSParser
from tests._news_test_utils import (
    SOURCE_A,
    SOURCE_B,
    SOURCE_C,
    FakeDownloader,
    fixed_clock,
    ok,
    rss_document,
    rss_item,
)


def dated(title: str, day: int) -> str:
    return rss_item(
        title=title,
        link=f"https://news.example.com/{title}",
        pub_date=f"2024-01-{day:02d}T00:00:00Z",
    )


@pytest.fixture
def make_fetcher(thread_manager):
    def _make(responses, use_thread_manager=True):
        downloader = FakeDownloader(responses)
        fetcher = FeedFetcher(
            downloader=downloader,
            parser=RSSParser(clock=fixed_clock),
            thread_manager=thread_manager if use_thread_manager else None,
        )
        return fetcher, downloader
    return _make


class TestFetchSource:
    """Single-source fetch and error mapping."""

    def test_returns_parsed_items(self, make_fetcher):
        fetcher, downloader = make_fetcher({SOURCE_A.url: ok(rss_document(dated("one", 1)))})
        items = fetcher.fetch_source(SOURCE_A)
        assert [i.title for i in items] == ["one"]
        assert downloader.calls == [SOURCE_A.url]

    def test_invalid_url_raises_without_request(self, make_fetcher):
        fetcher, downloader = make_fetcher({})
        bad = FeedSource("bad", "Bad", "not a url")
        with pytest.raises(InvalidInputError):
            fetcher.fetch_source(bad)
        assert downloader.call_count == 0

    def test_non_2xx_raises_bad_response(self, make_fetcher):
        fetcher, _ = make_fetcher({SOURCE_A.url: HttpResponse(500, b"")})
        with pytest.raises(BadResponseError) as exc_info:
            fetcher.fetch_source(SOURCE_A)
        assert exc_info.value.status_code == 500

    def test_transport_errors_propagate(self, make_fetcher):
        fetcher, _ = make_fetcher({
            SOURCE_A.url: RequestTimeoutError(),
            SOURCE_B.url: NetworkError("refused"),
        })
        with pytest.raises(RequestTimeoutError):
            fetcher.fetch_source(SOURCE_A)
        with pytest.raises(NetworkError):
            fetcher.fetch_source(SOURCE_B)


class TestFetchAll:
    """Concurrent fan-out and merge."""

    def test_empty_sources_makes_no_requests(self, make_fetcher):
        fetcher, downloader = make_fetcher({})
        assert fetcher.fetch_all([]) == []
        assert downloader.call_count == 0

    def test_merge_sorted_newest_first(self, make_fetcher):
        fetcher, downloader = make_fetcher({
            SOURCE_A.url: ok(rss_document(dated("a5", 5))),
            SOURCE_B.url: ok(rss_document(dated("b10", 10))),
            SOURCE_C.url: ok(rss_document(dated("c8", 8))),
        })
        items = fetcher.fetch_all([SOURCE_A, SOURCE_B, SOURCE_C])
        assert [i.title for i in items] == ["b10", "c8", "a5"]
        assert downloader.call_count == 3

    def test_equal_dates_keep_source_order(self, make_fetcher):
        fetcher, _ = make_fetcher({
            SOURCE_A.url: ok(rss_document(dated("a1", 3), dated("a2", 3))),
            SOURCE_B.url: ok(rss_document(dated("b1", 3))),
        })
        items = fetcher.fetch_all([SOURCE_A, SOURCE_B])
        assert [i.title for i in items] == ["a1", "a2", "b1"]

    def test_http_500_isolated(self, make_fetcher):
        fetcher, downloader = make_fetcher({
            SOURCE_A.url: ok(rss_document(dated("good", 1))),
            SOURCE_B.url: HttpResponse(500, b"oops"),
        })
        items = fetcher.fetch_all([SOURCE_A, SOURCE_B])
        assert [i.title for i in items] == ["good"]
        assert downloader.call_count == 2

    def test_all_failures_yield_empty(self, make_fetcher):
        fetcher, _ = make_fetcher({
            SOURCE_A.url: RequestTimeoutError(),
            SOURCE_B.url: NetworkError("down"),
        })
        bad = FeedSource("bad", "Bad", "ftp://")
        assert fetcher.fetch_all([SOURCE_A, SOURCE_B, bad]) == []

    def test_unexpected_exception_isolated(self, make_fetcher):
        fetcher, _ = make_fetcher({
            SOURCE_A.url: ok(rss_document(dated("good", 1))),
            SOURCE_B.url: RuntimeError("bug"),
        })
        items = fetcher.fetch_all([SOURCE_A, SOURCE_B])
        assert [i.title for i in items] == ["good"]

    def test_local_pool_without_thread_manager(self, make_fetcher):
        fetcher, downloader = make_fetcher({
            SOURCE_A.url: ok(rss_document(dated("a", 1))),
            SOURCE_B.url: ok(rss_document(dated("b", 2))),
        }, use_thread_manager=False)
        items = fetcher.fetch_all([SOURCE_A, SOURCE_B])
        assert [i.title for i in items] == ["b", "a"]
        assert downloader.call_count == 2

    def test_requests_bypass_cache(self, thread_manager):
        seen = []

        class RecordingDownloader(FakeDownloader):
            def fetch(self, url, timeout=30, bypass_cache=True, should_continue=None):
                seen.append((url, timeout, bypass_cache))
                return super().fetch(url, timeout, bypass_cache, should_continue)

        downloader = RecordingDownloader({SOURCE_A.url: ok(rss_document())})
        FeedFetcher(downloader=downloader, thread_manager=thread_manager, timeout=12).fetch_all([SOURCE_A])
        assert seen == [(SOURCE_A.url, 12, True)]
