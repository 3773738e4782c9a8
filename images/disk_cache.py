"""
DiskImageCache - raw image bytes on disk, one file per cache key.

Not thread-safe on its own: ImageCacheService only calls it from the
single DISK worker, which serializes reads, writes, clears and size scans.
"""
import base64
import hashlib
import os
import time
from pathlib import Path
from typing import Optional

from core.logging.logger import get_logger, is_verbose_logging
from sources.rss.constants import MAX_CACHE_KEY_LENGTH

logger = get_logger(__name__)

_TEMP_PREFIX = ".tmp."


def cache_key(url: str) -> str:
    """Deterministic, filesystem-safe key for ``url``.

    URL-safe base64 of the UTF-8 URL without padding; overly long keys fall
    back to ``h_`` plus the sha256 hex digest.
    """
    encoded = url.encode("utf-8")
    key = base64.urlsafe_b64encode(encoded).decode("ascii").rstrip("=")
    if len(key) > MAX_CACHE_KEY_LENGTH:
        return "h_" + hashlib.sha256(encoded).hexdigest()
    return key


class DiskImageCache:
    """Unbounded file-per-key store; only ``clear()`` removes entries in bulk."""

    def __init__(self, cache_dir: Path):
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        logger.info("[IMAGE_CACHE] Disk tier at %s", self.cache_dir)

    def path_for(self, key: str) -> Path:
        return self.cache_dir / key

    def read(self, key: str) -> Optional[bytes]:
        """Bytes stored for ``key``, or None when absent."""
        try:
            return self.path_for(key).read_bytes()
        except FileNotFoundError:
            return None

    def write(self, key: str, data: bytes) -> None:
        """Atomic write: temp file then rename over the final name."""
        final_path = self.path_for(key)
        temp_path = self.cache_dir / f"{_TEMP_PREFIX}{key}"
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        try:
            with open(temp_path, "wb") as f:
                f.write(data)
            self._replace_with_retry(temp_path, final_path)
        except OSError:
            self._safe_unlink(temp_path)
            raise
        if is_verbose_logging():
            logger.debug("[IMAGE_CACHE] Wrote %s (%d bytes)", key, len(data))

    def remove(self, key: str) -> None:
        self._safe_unlink(self.path_for(key))

    def clear(self) -> int:
        """Remove every file in the cache directory. Returns the count removed."""
        removed = 0
        if not self.cache_dir.exists():
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            return 0
        for path in self.cache_dir.iterdir():
            if path.is_file():
                self._safe_unlink(path)
                removed += 1
        logger.info("[IMAGE_CACHE] Disk tier cleared: %d files removed", removed)
        return removed

    def size_on_disk(self) -> int:
        """Total bytes of completed entries (in-progress temp files excluded)."""
        if not self.cache_dir.exists():
            return 0
        total = 0
        for path in self.cache_dir.iterdir():
            if path.name.startswith(_TEMP_PREFIX):
                continue
            try:
                if path.is_file():
                    total += path.stat().st_size
            except FileNotFoundError:
                continue
        return total

    @staticmethod
    def _replace_with_retry(source: Path, target: Path) -> None:
        # Windows can briefly hold a handle on a just-closed file (WinError 32).
        for attempt in range(4):
            try:
                os.replace(source, target)
                return
            except PermissionError:
                if attempt == 3:
                    raise
                time.sleep(0.05 * (attempt + 1))

    @staticmethod
    def _safe_unlink(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.debug("[IMAGE_CACHE] Could not remove %s: %s", path.name, e)
