"""
In-memory LRU tier for decoded images.

Holds QImage objects keyed by the image cache key, bounded by entry count
and by total byte cost (``QImage.sizeInBytes()``). QImage is safe to create
and share off the GUI thread, so worker threads may populate this tier.
"""
from collections import OrderedDict
import threading
from typing import Optional
from PySide6.QtGui import QImage
from core.logging.logger import get_logger, is_verbose_logging
from sources.rss.constants import IMAGE_MEMORY_MAX_ITEMS, IMAGE_MEMORY_MAX_MB

logger = get_logger(__name__)


class MemoryImageCache:
    """
    LRU cache for QImage objects.

    Features:
    - Evicts least recently used entries past ``max_items`` or ``max_memory_mb``
    - Stores references, not copies
    - All access guarded by one RLock
    - Hit/miss/eviction counters exposed through ``get_stats()``
    """

    def __init__(self, max_items: int = IMAGE_MEMORY_MAX_ITEMS,
                 max_memory_mb: int = IMAGE_MEMORY_MAX_MB):
        """
        Initialize image cache.

        Args:
            max_items: Maximum number of images to cache
            max_memory_mb: Maximum total ``sizeInBytes()`` of cached images, in MB
        """
        self.max_items = max_items
        self.max_memory_bytes = max_memory_mb * 1024 * 1024

        self._cache: "OrderedDict[str, QImage]" = OrderedDict()
        self._current_memory = 0
        self._hit_count: int = 0
        self._miss_count: int = 0
        self._evict_count: int = 0
        self._lock = threading.RLock()

        logger.info("[IMAGE_CACHE] Memory tier initialized: max_items=%d, max_memory=%dMB",
                    max_items, max_memory_mb)

    def get(self, key: str) -> Optional[QImage]:
        """Return the cached image and mark it most recently used, or None."""
        with self._lock:
            image = self._cache.get(key)
            if image is not None:
                self._cache.move_to_end(key)
                self._hit_count += 1
            else:
                self._miss_count += 1
        if is_verbose_logging():
            logger.debug("[IMAGE_CACHE] Memory %s: %s", "hit" if image is not None else "miss", key)
        return image

    def put(self, key: str, image: QImage) -> None:
        """
        Add an image to cache.

        Null images are ignored. An image larger than the whole byte budget
        is still inserted and then immediately evicted.
        """
        if image is None or image.isNull():
            return
        with self._lock:
            if key in self._cache:
                self._current_memory -= self._cost(self._cache.pop(key))

            self._cache[key] = image
            self._current_memory += self._cost(image)

            while self._should_evict_locked():
                self._evict_oldest_locked()

            count = len(self._cache)
            memory = self._current_memory
        if is_verbose_logging():
            logger.debug("[IMAGE_CACHE] Cached %s (size=%d/%d, memory=%.1fMB)",
                         key, count, self.max_items, memory / (1024 * 1024))

    def contains(self, key: str) -> bool:
        with self._lock:
            return key in self._cache

    def remove(self, key: str) -> bool:
        """
        Remove an entry from cache.

        Returns:
            True if entry was removed, False if not found
        """
        with self._lock:
            image = self._cache.pop(key, None)
            if image is None:
                return False
            self._current_memory -= self._cost(image)
            return True

    def clear(self) -> None:
        """Clear all cached images."""
        with self._lock:
            count = len(self._cache)
            self._cache.clear()
            self._current_memory = 0
        logger.info("[IMAGE_CACHE] Memory tier cleared: %d images removed", count)

    def size(self) -> int:
        """Get number of cached images."""
        with self._lock:
            return len(self._cache)

    def memory_usage(self) -> int:
        """Get total byte cost of cached images."""
        with self._lock:
            return self._current_memory

    def get_stats(self) -> dict:
        with self._lock:
            item_count = len(self._cache)
            total_accesses = self._hit_count + self._miss_count
            hit_rate = (self._hit_count / total_accesses * 100.0) if total_accesses > 0 else 0.0

            return {
                'item_count': item_count,
                'max_items': self.max_items,
                'memory_usage_mb': self._current_memory / (1024 * 1024),
                'max_memory_mb': self.max_memory_bytes / (1024 * 1024),
                'hits': self._hit_count,
                'misses': self._miss_count,
                'hit_rate_percent': hit_rate,
                'evictions': self._evict_count,
            }

    def _should_evict_locked(self) -> bool:
        """Check if eviction is needed (caller holds lock)."""
        return (len(self._cache) > self.max_items or
                self._current_memory > self.max_memory_bytes)

    def _evict_oldest_locked(self) -> None:
        """Evict the least recently used entry (caller holds lock)."""
        if not self._cache:
            return
        key, image = self._cache.popitem(last=False)
        self._current_memory -= self._cost(image)
        self._evict_count += 1
        if is_verbose_logging():
            logger.debug("[IMAGE_CACHE] Evicted from memory: %s", key)

    @staticmethod
    def _cost(image: QImage) -> int:
        return 0 if image.isNull() else int(image.sizeInBytes())

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, key: str) -> bool:
        return self.contains(key)

    def __str__(self) -> str:
        return (f"MemoryImageCache(items={self.size()}/{self.max_items}, "
                f"memory={self.memory_usage() / (1024 * 1024):.1f}MB/"
                f"{self.max_memory_bytes / (1024 * 1024):.0f}MB)")
