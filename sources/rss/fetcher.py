"""
FeedFetcher - concurrent fetch of every enabled feed.

Responsibilities:
    - Fetch one source and map transport/HTTP failures to AppError types
    - Fan out one IO pool task per source and join them all
    - Isolate failures per source (logged, contribute nothing)
    - Merge in source order, then stable sort newest first
"""
from concurrent.futures import CancelledError, ThreadPoolExecutor
from typing import List, Optional, Sequence
from urllib.parse import urlparse

from core.errors import AppError, BadResponseError, InvalidInputError, NetworkError
from core.logging.logger import get_logger
from sources.rss.constants import DEFAULT_TIMEOUT_SECONDS
from sources.rss.downloader import HttpDownloader
from sources.rss.models import FeedSource, NewsItem
from sources.rss.parser import RSSParser

logger = get_logger(__name__)

_LOCAL_POOL_MAX_WORKERS = 4


def is_valid_http_url(url: Optional[str]) -> bool:
    if not url:
        return False
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class FeedFetcher:
    """Fetches and parses feeds.

    Usage::

        fetcher = FeedFetcher(thread_manager=thread_manager)
        items = fetcher.fetch_all(settings.enabled_sources())
    """

    def __init__(
        self,
        downloader: Optional[HttpDownloader] = None,
        parser: Optional[RSSParser] = None,
        thread_manager=None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self._downloader = downloader or HttpDownloader()
        self._parser = parser or RSSParser()
        self._thread_manager = thread_manager
        self.timeout = timeout

    def fetch_source(self, source: FeedSource) -> List[NewsItem]:
        """Fetch and parse a single feed.

        Raises:
            InvalidInputError: the source URL is not an absolute http(s) URL
            RequestTimeoutError: no response within ``timeout``
            NetworkError: any other transport failure
            BadResponseError: status outside 200-299
        """
        if not is_valid_http_url(source.url):
            raise InvalidInputError(f"Invalid URL for {source.name}: {source.url!r}")

        response = self._downloader.fetch(source.url, timeout=self.timeout, bypass_cache=True)
        if response is None:
            raise NetworkError(f"Download of {source.url} was aborted")
        if not response.ok:
            raise BadResponseError(response.status)

        items = self._parser.parse(response.content, source)
        logger.debug("[RSS_FETCH] %s: %d items", source.identifier, len(items))
        return items

    def _fetch_or_empty(self, source: FeedSource) -> List[NewsItem]:
        try:
            return self.fetch_source(source)
        except AppError as e:
            logger.warning("[RSS_FETCH] Failed to fetch from %s: %s", source.name, e)
            return []

    def fetch_all(self, sources: Sequence[FeedSource]) -> List[NewsItem]:
        """Fetch every source concurrently. Never raises.

        Results are returned only after all sources finish; failed sources
        contribute no items.
        """
        sources = list(sources)
        if not sources:
            return []

        if self._thread_manager is not None and not self._thread_manager.is_shutdown:
            per_source = self._fan_out_thread_manager(sources)
        else:
            per_source = self._fan_out_local(sources)

        merged: List[NewsItem] = []
        for items in per_source:
            merged.extend(items)
        merged.sort(key=lambda item: item.published_at, reverse=True)

        logger.info("[RSS_FETCH] Fetched %d items from %d sources", len(merged), len(sources))
        return merged

    def _fan_out_thread_manager(self, sources: List[FeedSource]) -> List[List[NewsItem]]:
        futures = [
            self._thread_manager.submit_io_task(self._fetch_or_empty, source)
            for source in sources
        ]
        results = []
        for source, future in zip(sources, futures):
            try:
                task_result = future.result()
            except CancelledError:
                logger.warning("[RSS_FETCH] Fetch of %s cancelled by shutdown", source.name)
                results.append([])
                continue
            if task_result.success:
                results.append(task_result.result)
            else:
                logger.error("[RSS_FETCH] Unexpected failure for %s: %s", source.name, task_result.error)
                results.append([])
        return results

    def _fan_out_local(self, sources: List[FeedSource]) -> List[List[NewsItem]]:
        workers = min(_LOCAL_POOL_MAX_WORKERS, len(sources))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="feed_fetch") as pool:
            futures = [pool.submit(self._fetch_or_empty, source) for source in sources]
            results = []
            for source, future in zip(sources, futures):
                try:
                    results.append(future.result())
                except Exception as e:
                    logger.error("[RSS_FETCH] Unexpected failure for %s: %s", source.name, e)
                    results.append([])
        return results
