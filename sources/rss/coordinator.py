"""
NewsCoordinator - State machine, refresh orchestration, auto refresh.

Responsibilities:
    - State machine: IDLE → LOADING → LOADED | ERROR
    - Fetch enabled sources, upsert into the item store, read back
    - Mark items as read
    - Periodic refresh driven by the refresh interval setting
    - React to settings changes (interval, enabled sources)
    - ThreadManager integration for async refresh
"""
import threading
from concurrent.futures import Future
from enum import Enum, auto
from typing import Callable, List, Optional

from core.errors import AppError
from core.logging.logger import get_logger
from core.settings.settings_manager import KEY_ENABLED_SOURCES, KEY_REFRESH_INTERVAL
from core.threading.manager import RecurringTask, TaskResult
from sources.rss.fetcher import FeedFetcher
from sources.rss.models import NewsItem, RefreshInterval
from sources.rss.store import ItemStore

logger = get_logger(__name__)


class NewsState(Enum):
    """News coordinator state machine."""
    IDLE = auto()
    LOADING = auto()
    LOADED = auto()
    ERROR = auto()


class NewsCoordinator:
    """Keeps the displayed news list in sync with feeds and the store.

    Usage::

        coord = NewsCoordinator(fetcher, store, settings, thread_manager=tm)
        coord.load_from_store()          # instant, no network
        coord.refresh_async(on_items=show)
        coord.start_auto_refresh()
    """

    def __init__(
        self,
        fetcher: FeedFetcher,
        store: ItemStore,
        settings,
        thread_manager=None,
    ):
        self._fetcher = fetcher
        self._store = store
        self._settings = settings
        self._thread_manager = thread_manager

        self._state_lock = threading.Lock()  # protects _state, _items, _last_error
        self._state = NewsState.IDLE
        self._items: List[NewsItem] = []
        self._last_error: Optional[AppError] = None
        self._refresh_lock = threading.Lock()  # one refresh at a time
        self._async_pending = False  # guarded by _state_lock

        self._auto_refresh: Optional[RecurringTask] = None
        self._auto_refresh_wanted = False

        settings.on_changed(KEY_REFRESH_INTERVAL, self._on_refresh_interval_changed)
        settings.on_changed(KEY_ENABLED_SOURCES, self._on_enabled_sources_changed)

        logger.info("[NEWS] Coordinator initialised")

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> NewsState:
        with self._state_lock:
            return self._state

    def _set_state(self, s: NewsState, error: Optional[AppError] = None) -> None:
        with self._state_lock:
            self._state = s
            self._last_error = error

    @property
    def items(self) -> List[NewsItem]:
        with self._state_lock:
            return list(self._items)

    @property
    def last_error(self) -> Optional[AppError]:
        with self._state_lock:
            return self._last_error

    @property
    def is_auto_refresh_running(self) -> bool:
        return self._auto_refresh is not None and self._auto_refresh.is_running

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def load_from_store(self) -> List[NewsItem]:
        """Read items of the enabled sources from the store, newest first."""
        enabled = self._settings.enabled_source_identifiers()
        try:
            items = self._store.fetch_all(enabled)
        except AppError as e:
            logger.error("[NEWS] Store read failed: %s", e)
            self._set_state(NewsState.ERROR, e)
            raise
        with self._state_lock:
            self._items = items
        return list(items)

    def refresh(self) -> List[NewsItem]:
        """Fetch enabled sources, persist, and return the stored list.

        With no enabled source this only reads the store. Store errors are
        raised; per-feed failures are already absorbed by the fetcher.
        """
        sources = self._settings.enabled_sources()
        if not sources:
            logger.info("[NEWS] No enabled sources, loading stored items only")
            return self.load_from_store()

        with self._refresh_lock:
            self._set_state(NewsState.LOADING)
            fetched = self._fetcher.fetch_all(sources)
            try:
                self._store.upsert_all(fetched)
            except AppError as e:
                logger.error("[NEWS] Saving %d items failed: %s", len(fetched), e)
                self._set_state(NewsState.ERROR, e)
                raise
            items = self.load_from_store()
            self._set_state(NewsState.LOADED)

        logger.info("[NEWS] Refresh complete: %d fetched, %d stored for %d sources",
                    len(fetched), len(items), len(sources))
        return items

    def refresh_async(
        self,
        on_items: Optional[Callable[[List[NewsItem]], None]] = None,
        on_error: Optional[Callable[[AppError], None]] = None,
    ) -> Optional[Future]:
        """Run ``refresh`` on the IO pool. Callbacks run on the worker thread.

        Returns the TaskResult future, or None when a refresh is already
        running or the refresh ran synchronously.
        """
        if self._thread_manager is None:
            logger.warning("[NEWS] No ThreadManager, falling back to sync refresh")
            self._run_and_report(on_items, on_error)
            return None

        with self._state_lock:
            if self._async_pending or self._state is NewsState.LOADING:
                logger.debug("[NEWS] Refresh already in progress, skipping")
                return None
            self._async_pending = True

        def _done(task_result: TaskResult) -> None:
            with self._state_lock:
                self._async_pending = False
            if task_result.success:
                if on_items:
                    on_items(task_result.result)
            elif on_error and isinstance(task_result.error, AppError):
                on_error(task_result.error)

        try:
            return self._thread_manager.submit_io_task(self.refresh, callback=_done)
        except RuntimeError:
            with self._state_lock:
                self._async_pending = False
            raise

    def mark_read(self, item: NewsItem) -> None:
        """Persist the read flag, then flip it on ``item``. Store errors propagate."""
        if item.is_read:
            return
        self._store.mark_read(item.id)
        item.is_read = True
        with self._state_lock:
            for held in self._items:
                if held.id == item.id:
                    held.is_read = True

    def start_auto_refresh(self) -> None:
        """(Re)start periodic refresh at the configured interval."""
        self._auto_refresh_wanted = True
        self._cancel_timer()

        interval = self._settings.refresh_interval
        if interval is RefreshInterval.MANUAL:
            logger.info("[NEWS] Auto refresh disabled (manual)")
            return
        if self._thread_manager is None:
            logger.warning("[NEWS] No ThreadManager, auto refresh unavailable")
            return

        self._auto_refresh = self._thread_manager.schedule_recurring(
            interval.value, self._auto_refresh_tick, description="news_auto_refresh"
        )
        logger.info("[NEWS] Auto refresh every %s", interval.display_name)

    def stop_auto_refresh(self) -> None:
        self._auto_refresh_wanted = False
        self._cancel_timer()

    def close(self) -> None:
        """Stop the timer and detach from settings notifications."""
        self.stop_auto_refresh()
        self._settings.remove_handler(KEY_REFRESH_INTERVAL, self._on_refresh_interval_changed)
        self._settings.remove_handler(KEY_ENABLED_SOURCES, self._on_enabled_sources_changed)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _cancel_timer(self) -> None:
        timer, self._auto_refresh = self._auto_refresh, None
        if timer is not None:
            timer.stop()

    def _auto_refresh_tick(self) -> None:
        try:
            self.refresh()
        except AppError as e:
            logger.warning("[NEWS] Auto refresh failed: %s", e)

    def _run_and_report(self, on_items, on_error) -> None:
        try:
            items = self.refresh()
        except AppError as e:
            if on_error:
                on_error(e)
            return
        if on_items:
            on_items(items)

    def _on_refresh_interval_changed(self, new_value, old_value) -> None:
        if self._auto_refresh_wanted:
            logger.debug("[NEWS] Refresh interval changed %r -> %r, restarting timer", old_value, new_value)
            self.start_auto_refresh()

    def _on_enabled_sources_changed(self, new_value, old_value) -> None:
        logger.debug("[NEWS] Enabled sources changed, reloading")
        try:
            self.load_from_store()
        except AppError:
            return
        self.refresh_async()
