"""
ImageCacheService - memory, then disk, then network image loading.

Responsibilities:
    - Resolve an image URL through the memory tier (synchronous), the disk
      tier (DISK worker) and finally the network (IO pool)
    - Populate both tiers after a successful download
    - Collapse concurrent loads of the same URL into one shared future
    - Per-URL cancellation that aborts the download between chunks

Every load resolves; failures of any kind produce ``MISSING``.
"""
import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, NamedTuple, Optional
from urllib.parse import urlparse

from PySide6.QtGui import QImage

from core.errors import AppError
from core.logging.logger import get_logger, is_verbose_logging
from core.threading.manager import TaskResult
from images.disk_cache import DiskImageCache, cache_key
from sources.rss.constants import IMAGE_TIMEOUT_SECONDS
from sources.rss.downloader import HttpDownloader, event_continuation
from utils.image_cache import MemoryImageCache

logger = get_logger(__name__)


class ImageLoadResult(NamedTuple):
    image: Optional[QImage]
    from_cache: bool

    @property
    def found(self) -> bool:
        return self.image is not None


MISSING = ImageLoadResult(None, False)


@dataclass
class _InFlight:
    url: str
    future: Future = field(default_factory=Future)
    cancel_event: threading.Event = field(default_factory=threading.Event)
    settled: bool = False


def decode_image(data: Optional[bytes]) -> Optional[QImage]:
    """Decode encoded image bytes, or None when Qt cannot read them."""
    if not data:
        return None
    image = QImage()
    if not image.loadFromData(data) or image.isNull():
        return None
    return image


def _resolved(result: ImageLoadResult) -> Future:
    future: Future = Future()
    future.set_result(result)
    return future


class ImageCacheService:
    """Two-tier image cache with in-flight de-duplication.

    Usage::

        service = ImageCacheService(thread_manager, cache_dir)
        result = service.load(url).result()
        if result.found:
            show(result.image)
    """

    def __init__(
        self,
        thread_manager,
        cache_dir: Path,
        downloader: Optional[HttpDownloader] = None,
        memory: Optional[MemoryImageCache] = None,
        timeout: float = IMAGE_TIMEOUT_SECONDS,
    ):
        if thread_manager is None:
            raise ValueError("ImageCacheService requires a ThreadManager")
        self._thread_manager = thread_manager
        self._disk = DiskImageCache(cache_dir)
        self._memory = memory or MemoryImageCache()
        self._downloader = downloader or HttpDownloader()
        self.timeout = timeout

        self._lock = threading.Lock()
        self._in_flight: Dict[str, _InFlight] = {}

    @property
    def memory(self) -> MemoryImageCache:
        return self._memory

    @property
    def disk(self) -> DiskImageCache:
        return self._disk

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def load(self, url: str) -> "Future[ImageLoadResult]":
        """Start (or join) a load for ``url``. The future never fails."""
        if not self._is_valid_url(url):
            logger.debug("[IMAGE_CACHE] Invalid image URL: %r", url)
            return _resolved(MISSING)

        key = cache_key(url)
        image = self._memory.get(key)
        if image is not None:
            return _resolved(ImageLoadResult(image, True))

        with self._lock:
            entry = self._in_flight.get(key)
            if entry is not None:
                if is_verbose_logging():
                    logger.debug("[IMAGE_CACHE] Joining in-flight load for %s", url)
                return entry.future
            entry = _InFlight(url)
            self._in_flight[key] = entry

        self._submit(key, entry, self._thread_manager.submit_disk_task, self._load_from_disk)
        return entry.future

    def load_with_callback(self, url: str, callback: Callable[[ImageLoadResult], None]) -> None:
        """Invoke ``callback`` with the result, on whichever thread settles it."""
        def _done(future: Future) -> None:
            try:
                callback(future.result())
            except Exception as e:
                logger.error("[IMAGE_CACHE] Load callback for %s failed: %s", url, e)

        self.load(url).add_done_callback(_done)

    def cancel(self, url: str) -> bool:
        """Cancel the in-flight load for ``url``.

        Every waiter receives ``MISSING``. Returns False when nothing was
        in flight.
        """
        if not self._is_valid_url(url):
            return False
        key = cache_key(url)
        with self._lock:
            entry = self._in_flight.get(key)
        if entry is None:
            return False
        entry.cancel_event.set()
        settled = self._settle(key, entry, MISSING)
        if settled:
            logger.debug("[IMAGE_CACHE] Cancelled load for %s", url)
        return settled

    def clear(self) -> Future:
        """Clear the memory tier now and the disk tier on the DISK worker.

        The returned future resolves (to a TaskResult) once disk files are gone.
        """
        self._memory.clear()
        return self._thread_manager.submit_disk_task(self._disk.clear)

    def size_on_disk(self) -> int:
        """Bytes on disk, measured after every previously queued disk operation."""
        task_result = self._thread_manager.submit_disk_task(self._disk.size_on_disk).result()
        if not task_result.success:
            logger.error("[IMAGE_CACHE] Disk size scan failed: %s", task_result.error)
            return 0
        return task_result.result

    def in_flight_count(self) -> int:
        with self._lock:
            return len(self._in_flight)

    # ------------------------------------------------------------------
    # Pipeline stages
    # ------------------------------------------------------------------

    def _load_from_disk(self, key: str, entry: _InFlight) -> None:
        """DISK worker: serve from disk or hand off to the network stage."""
        if entry.cancel_event.is_set():
            return

        try:
            data = self._disk.read(key)
        except OSError as e:
            logger.warning("[IMAGE_CACHE] Disk read failed for %s: %s", key, e)
            data = None

        if data is not None:
            image = decode_image(data)
            if image is not None:
                self._memory.put(key, image)
                self._settle(key, entry, ImageLoadResult(image, True))
                return
            logger.warning("[IMAGE_CACHE] Undecodable disk entry %s, discarding", key)
            self._disk.remove(key)

        self._submit(key, entry, self._thread_manager.submit_io_task, self._download)

    def _download(self, key: str, entry: _InFlight) -> None:
        """IO worker: fetch, decode, populate both tiers."""
        try:
            response = self._downloader.fetch(
                entry.url,
                timeout=self.timeout,
                bypass_cache=False,
                should_continue=event_continuation(entry.cancel_event),
            )
        except AppError as e:
            logger.warning("[IMAGE_CACHE] Download failed for %s: %s", entry.url, e)
            self._settle(key, entry, MISSING)
            return

        if response is None or entry.cancel_event.is_set():
            self._settle(key, entry, MISSING)
            return
        if not response.ok:
            logger.warning("[IMAGE_CACHE] HTTP %d for %s", response.status, entry.url)
            self._settle(key, entry, MISSING)
            return

        image = decode_image(response.content)
        if image is None:
            logger.warning("[IMAGE_CACHE] Undecodable payload from %s", entry.url)
            self._settle(key, entry, MISSING)
            return

        # Memory only keeps images the disk tier also holds.
        def _on_written(task_result: TaskResult) -> None:
            if not task_result.success:
                self._memory.remove(key)
                logger.warning("[IMAGE_CACHE] Disk write failed for %s: %s", key, task_result.error)

        self._memory.put(key, image)
        try:
            self._thread_manager.submit_disk_task(
                self._disk.write, key, response.content, callback=_on_written
            )
        except RuntimeError as e:
            self._memory.remove(key)
            logger.warning("[IMAGE_CACHE] Could not schedule disk write for %s: %s", key, e)
        self._settle(key, entry, ImageLoadResult(image, False))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _submit(self, key: str, entry: _InFlight, submit, stage) -> None:
        """Queue a pipeline stage; any crash or refused submission settles MISSING."""
        def _on_done(task_result: TaskResult) -> None:
            if not task_result.success:
                self._settle(key, entry, MISSING)

        try:
            future = submit(stage, key, entry, callback=_on_done)
        except RuntimeError as e:
            logger.warning("[IMAGE_CACHE] Could not schedule load for %s: %s", entry.url, e)
            self._settle(key, entry, MISSING)
            return
        # Shutdown without waiting cancels queued stages before they run.
        future.add_done_callback(
            lambda f: self._settle(key, entry, MISSING) if f.cancelled() else None
        )

    def _settle(self, key: str, entry: _InFlight, result: ImageLoadResult) -> bool:
        """Resolve ``entry`` exactly once and drop it from the in-flight table."""
        with self._lock:
            if entry.settled:
                return False
            entry.settled = True
            if self._in_flight.get(key) is entry:
                del self._in_flight[key]
        entry.future.set_result(result)
        return True

    @staticmethod
    def _is_valid_url(url: Optional[str]) -> bool:
        if not url or not isinstance(url, str):
            return False
        parsed = urlparse(url)
        return bool(parsed.scheme) and bool(parsed.netloc)
