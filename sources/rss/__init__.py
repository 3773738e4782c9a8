"""
RSS News Source - Modular Architecture

Modules:
    constants   - Feed catalog, timeouts, image cache limits
    models      - FeedSource, NewsItem, RefreshInterval
    dates       - parse_rss_date: multi-format publication date normaliser
    parser      - RSSParser: event-driven item state machine over xml.sax
    downloader  - HttpDownloader: abortable chunked HTTP GET
    fetcher     - FeedFetcher: concurrent per-source fetch and merge
    store       - JsonItemStore: deduplicated, persistent item set
    coordinator - NewsCoordinator: state machine, refresh, auto refresh

Only the leaf modules are re-exported here; import the coordinator from
``sources.rss.coordinator`` directly.
"""
from sources.rss.models import FeedSource, NewsItem, RefreshInterval
from sources.rss.constants import DEFAULT_FEED_SOURCES, source_for

__all__ = [
    "DEFAULT_FEED_SOURCES",
    "FeedSource",
    "NewsItem",
    "RefreshInterval",
    "source_for",
]
