"""
HttpDownloader - abortable HTTP GET used for feeds and images.

Responsibilities:
    - Stream the response body in chunks, checking a continuation callback
      between chunks so a caller can abort mid-download
    - Map transport failures onto the application error taxonomy
    - Optional cache-bypass request headers
    - No parsing, no retries - callers decide what a status code means
"""
import threading
from typing import Callable, NamedTuple, Optional

import requests

from core.errors import NetworkError, RequestTimeoutError
from core.logging.logger import get_logger, is_verbose_logging
from sources.rss.constants import DEFAULT_TIMEOUT_SECONDS, DOWNLOAD_CHUNK_SIZE, USER_AGENT

logger = get_logger(__name__)

_NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


class HttpResponse(NamedTuple):
    status: int
    content: bytes

    @property
    def ok(self) -> bool:
        return 200 <= self.status <= 299


class HttpDownloader:
    """Thin wrapper around ``requests.get`` with chunked, abortable reads.

    Safe to share between IO pool threads; it holds no per-request state.
    """

    def __init__(self, user_agent: str = USER_AGENT, chunk_size: int = DOWNLOAD_CHUNK_SIZE):
        self.user_agent = user_agent
        self.chunk_size = chunk_size

    def fetch(
        self,
        url: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        bypass_cache: bool = True,
        should_continue: Optional[Callable[[], bool]] = None,
    ) -> Optional[HttpResponse]:
        """GET ``url`` and return its status and body.

        Returns None when ``should_continue`` reports False before or during
        the transfer. Raises RequestTimeoutError on timeouts and NetworkError
        for every other transport failure.
        """
        if should_continue is not None and not should_continue():
            return None

        headers = {"User-Agent": self.user_agent}
        if bypass_cache:
            headers.update(_NO_CACHE_HEADERS)

        try:
            resp = requests.get(url, timeout=timeout, headers=headers, stream=True)
        except requests.Timeout as e:
            logger.warning("[RSS_FETCH] Timeout after %ss: %s", timeout, url)
            raise RequestTimeoutError() from e
        except requests.RequestException as e:
            logger.warning("[RSS_FETCH] Request failed for %s: %s", url, e)
            raise NetworkError(cause=e) from e

        try:
            chunks = []
            for chunk in resp.iter_content(chunk_size=self.chunk_size):
                if should_continue is not None and not should_continue():
                    logger.info("[RSS_FETCH] Aborted download of %s", url)
                    return None
                if chunk:
                    chunks.append(chunk)
        except requests.Timeout as e:
            logger.warning("[RSS_FETCH] Timeout while reading %s", url)
            raise RequestTimeoutError() from e
        except requests.RequestException as e:
            logger.warning("[RSS_FETCH] Read failed for %s: %s", url, e)
            raise NetworkError(cause=e) from e
        finally:
            resp.close()

        content = b"".join(chunks)
        if is_verbose_logging():
            logger.debug("[RSS_FETCH] %s -> %d (%d bytes)", url, resp.status_code, len(content))
        return HttpResponse(resp.status_code, content)


def event_continuation(cancel_event: threading.Event) -> Callable[[], bool]:
    """Adapt a cancellation event to the ``should_continue`` callback shape."""
    return lambda: not cancel_event.is_set()
