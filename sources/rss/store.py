"""
Item store - persistent, deduplicated set of news items.

Responsibilities:
    - Upsert by item id, preserving the read flag of existing items
    - Filtered, newest-first reads
    - Mark items as read
    - Persist to a JSON file with atomic writes (temp file + rename)
"""
import dataclasses
import json
import os
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Set

from core.errors import InvalidatedError, NotFoundError, StorageError
from core.logging.logger import get_logger
from sources.rss.models import NewsItem

logger = get_logger(__name__)


class ItemStore(Protocol):
    """Contract the coordinator relies on. Every method may raise AppError."""

    def upsert_all(self, items: Iterable[NewsItem]) -> None: ...

    def fetch_all(self, source_filter: Optional[Set[str]] = None) -> List[NewsItem]: ...

    def mark_read(self, item_id: str) -> None: ...

    def delete_all(self) -> None: ...

    def count(self) -> int: ...


class JsonItemStore:
    """ItemStore kept in memory and mirrored to a JSON file.

    With ``path=None`` the store is memory-only. Items handed out are
    copies; mutating them never changes stored state.
    """

    def __init__(self, path: Optional[Path] = None):
        self._path = Path(path) if path is not None else None
        self._lock = threading.RLock()
        self._items: Dict[str, NewsItem] = {}
        self._closed = False
        if self._path is not None:
            self._load()
        logger.info("[ITEM_STORE] Opened %s (%d items)", self._path or "<memory>", len(self._items))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def upsert_all(self, items: Iterable[NewsItem]) -> None:
        """Insert new items unread; overwrite everything but ``is_read`` on match."""
        with self._lock:
            self._check_open()
            staged = dict(self._items)
            inserted = updated = 0
            for item in items:
                existing = staged.get(item.id)
                if existing is None:
                    staged[item.id] = dataclasses.replace(item, is_read=False)
                    inserted += 1
                else:
                    staged[item.id] = dataclasses.replace(item, is_read=existing.is_read)
                    updated += 1
            self._commit(staged)
        logger.debug("[ITEM_STORE] Upsert: %d inserted, %d updated", inserted, updated)

    def fetch_all(self, source_filter: Optional[Set[str]] = None) -> List[NewsItem]:
        """Items newest first. ``None`` or an empty set means every source."""
        with self._lock:
            self._check_open()
            items = [
                dataclasses.replace(item)
                for item in self._items.values()
                if not source_filter or item.source_identifier in source_filter
            ]
        items.sort(key=lambda item: item.published_at, reverse=True)
        return items

    def mark_read(self, item_id: str) -> None:
        with self._lock:
            self._check_open()
            item = self._items.get(item_id)
            if item is None:
                raise NotFoundError(f"Item not found: {item_id}")
            if item.is_read:
                return
            staged = dict(self._items)
            staged[item_id] = dataclasses.replace(item, is_read=True)
            self._commit(staged)

    def delete_all(self) -> None:
        with self._lock:
            self._check_open()
            self._commit({})
        logger.info("[ITEM_STORE] All items deleted")

    def count(self) -> int:
        with self._lock:
            self._check_open()
            return len(self._items)

    def close(self) -> None:
        """Invalidate the store; every later call raises InvalidatedError."""
        with self._lock:
            self._closed = True
        logger.debug("[ITEM_STORE] Closed")

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _check_open(self) -> None:
        if self._closed:
            raise InvalidatedError()

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                payload = json.load(f)
            items = [NewsItem.from_dict(entry) for entry in payload.get("items", [])]
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error("[ITEM_STORE] Failed to load %s: %s", self._path, e)
            raise StorageError(cause=e) from e
        self._items = {item.id: item for item in items}

    def _commit(self, staged: Dict[str, NewsItem]) -> None:
        """Persist ``staged``, then make it the live item set (caller holds lock)."""
        self._save(staged)
        self._items = staged

    def _save(self, items: Dict[str, NewsItem]) -> None:
        if self._path is None:
            return
        payload = {"version": 1, "items": [item.to_dict() for item in items.values()]}
        temp_path = self._path.with_name(f".tmp.{self._path.name}")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False)
            os.replace(temp_path, self._path)
        except OSError as e:
            logger.error("[ITEM_STORE] Failed to save %s: %s", self._path, e)
            temp_path.unlink(missing_ok=True)
            raise StorageError(cause=e) from e
