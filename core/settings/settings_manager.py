"""
Settings manager implementation for the news consolidator.

Uses QSettings for persistent storage. Holds the enabled feed sources and
the auto refresh interval.
"""
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Set
import threading
from pathlib import Path
from PySide6.QtCore import QSettings, QObject, Signal
from core.logging.logger import get_logger, is_verbose_logging
from sources.rss.constants import DEFAULT_FEED_SOURCES
from sources.rss.models import FeedSource, RefreshInterval

logger = get_logger(__name__)

KEY_ENABLED_SOURCES = 'sources.enabled'
KEY_REFRESH_INTERVAL = 'sources.refresh_interval'


class SettingsManager(QObject):
    """
    Centralized settings management for the news consolidator.

    Uses QSettings for persistent storage with organization/application name,
    or an explicit INI file when ``settings_path`` is given.
    Thread-safe with change notifications.
    """

    # Signal emitted when settings change
    settings_changed = Signal(str, object)  # key, new_value

    def __init__(self, organization: str = "NewsConsolidator",
                 application: str = "News",
                 settings_path: Optional[Path] = None,
                 catalog: Sequence[FeedSource] = DEFAULT_FEED_SOURCES):
        """
        Initialize the settings manager.

        Args:
            organization: Organization name for QSettings
            application: Application name for QSettings
            settings_path: Optional INI file; overrides organization/application
            catalog: Feed sources whose identifiers form the default enabled set
        """
        super().__init__()

        if settings_path is not None:
            self._settings = QSettings(str(settings_path), QSettings.Format.IniFormat)
        else:
            self._settings = QSettings(organization, application)
        self._organization = organization
        self._application = application
        self._catalog = tuple(catalog)
        self._lock = threading.RLock()
        self._change_handlers: Dict[str, List[Callable]] = {}

        self._set_defaults()

        logger.info("SettingsManager initialized (%s)", self._settings.fileName())

    def _set_defaults(self) -> None:
        """Set default values if not already present."""
        defaults = {
            KEY_ENABLED_SOURCES: [s.identifier for s in self._catalog],
            KEY_REFRESH_INTERVAL: RefreshInterval.default().value,
        }
        with self._lock:
            for key, value in defaults.items():
                if not self._settings.contains(key):
                    self._settings.setValue(key, value)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a setting value.

        Args:
            key: Setting key in dot notation (e.g., 'sources.enabled')
            default: Default value if key not found

        Returns:
            Setting value or default
        """
        with self._lock:
            return self._settings.value(key, default)

    def set(self, key: str, value: Any) -> None:
        """
        Set a setting value.

        Args:
            key: Setting key in dot notation
            value: Value to set
        """
        with self._lock:
            old_value = self._settings.value(key)
            self._settings.setValue(key, value)
            handlers = list(self._change_handlers.get(key, ()))

        self.settings_changed.emit(key, value)

        for handler in handlers:
            try:
                handler(value, old_value)
            except Exception as e:
                logger.error("Error in change handler for %s: %s", key, e)

        if is_verbose_logging():
            logger.debug("Setting changed: %s: %r -> %r", key, old_value, value)
        else:
            logger.debug("Setting changed: %s", key)

    def save(self) -> None:
        """Force save settings to persistent storage."""
        with self._lock:
            self._settings.sync()
        logger.debug("Settings saved")

    def on_changed(self, key: str, handler: Callable[[Any, Any], None]) -> None:
        """
        Register a handler for when a specific setting changes.

        Args:
            key: Setting key to watch
            handler: Callback function(new_value, old_value)
        """
        with self._lock:
            self._change_handlers.setdefault(key, []).append(handler)
        logger.debug("Registered change handler for %s", key)

    def remove_handler(self, key: str, handler: Callable[[Any, Any], None]) -> None:
        with self._lock:
            handlers = self._change_handlers.get(key, [])
            if handler in handlers:
                handlers.remove(handler)

    def contains(self, key: str) -> bool:
        """Check if a setting key exists."""
        with self._lock:
            return self._settings.contains(key)

    def remove(self, key: str) -> None:
        """Remove a setting key."""
        with self._lock:
            self._settings.remove(key)
        logger.debug("Removed setting: %s", key)

    def clear(self) -> None:
        """Clear all settings (use with caution)."""
        with self._lock:
            self._settings.clear()
        logger.warning("All settings cleared")

    # ------------------------------------------------------------------
    # Feed sources
    # ------------------------------------------------------------------

    @property
    def catalog(self) -> Sequence[FeedSource]:
        return self._catalog

    def enabled_source_identifiers(self) -> Set[str]:
        """Identifiers of enabled sources.

        QSettings (INI backend in particular) hands back a bare string for a
        single-element list and an empty string or None for an empty list.
        """
        with self._lock:
            if not self._settings.contains(KEY_ENABLED_SOURCES):
                return {s.identifier for s in self._catalog}
            raw = self._settings.value(KEY_ENABLED_SOURCES)
        if raw is None or raw == "":
            return set()
        if isinstance(raw, str):
            return {raw}
        return {str(v) for v in raw if v}

    def set_enabled_source_identifiers(self, identifiers: Iterable[str]) -> None:
        self.set(KEY_ENABLED_SOURCES, sorted(set(identifiers)))

    def is_source_enabled(self, identifier: str) -> bool:
        return identifier in self.enabled_source_identifiers()

    def set_source_enabled(self, identifier: str, enabled: bool) -> None:
        current = self.enabled_source_identifiers()
        if enabled == (identifier in current):
            return
        if enabled:
            current.add(identifier)
        else:
            current.discard(identifier)
        self.set_enabled_source_identifiers(current)

    def enabled_sources(self, catalog: Optional[Sequence[FeedSource]] = None) -> List[FeedSource]:
        """Enabled catalog entries, in catalog order."""
        enabled = self.enabled_source_identifiers()
        return [s for s in (catalog or self._catalog) if s.identifier in enabled]

    # ------------------------------------------------------------------
    # Refresh interval
    # ------------------------------------------------------------------

    @property
    def refresh_interval(self) -> RefreshInterval:
        return RefreshInterval.from_seconds(
            self.get(KEY_REFRESH_INTERVAL, RefreshInterval.default().value)
        )

    @refresh_interval.setter
    def refresh_interval(self, interval: RefreshInterval) -> None:
        self.set(KEY_REFRESH_INTERVAL, RefreshInterval(interval).value)
