"""Canonical on-disk locations for the news consolidator.

Persistent state and disposable cache data live in separate per-profile
folders under the platform locations reported by ``QStandardPaths``::

    <data root>/NewsConsolidator/state/items.json   persisted news items
    <cache root>/NewsConsolidator/ImageCache/       downloaded image bytes

Directories are created on first access and memoised per profile.
"""
from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Dict

from PySide6.QtCore import QStandardPaths

from core.logging.logger import get_logger

logger = get_logger(__name__)

DEFAULT_PROFILE = "NewsConsolidator"
IMAGE_CACHE_DIR_NAME = "ImageCache"
ITEM_STORE_FILE_NAME = "items.json"

_app_dirs: Dict[str, Path] = {}
_cache_dirs: Dict[str, Path] = {}


def _appdata_root() -> Path:
    """Platform data root; falls back to the temp dir when Qt reports nothing."""
    location = QStandardPaths.writableLocation(QStandardPaths.StandardLocation.GenericDataLocation)
    if not location:
        logger.warning("[PATHS] No writable data location reported, using temp dir")
        return Path(tempfile.gettempdir())
    return Path(location)


def _cache_root() -> Path:
    """Platform cache root; the OS may purge it, so only rebuildable data goes here."""
    location = QStandardPaths.writableLocation(QStandardPaths.StandardLocation.CacheLocation)
    if not location:
        logger.warning("[PATHS] No writable cache location reported, using temp dir")
        return Path(tempfile.gettempdir())
    return Path(location)


def reset_module_cache() -> None:
    """Forget memoised directories (tests redirect the root functions)."""
    _app_dirs.clear()
    _cache_dirs.clear()


def _ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_app_data_dir(profile: str = DEFAULT_PROFILE) -> Path:
    cached = _app_dirs.get(profile)
    if cached is not None:
        return cached
    path = _ensure_dir(_appdata_root() / profile)
    _app_dirs[profile] = path
    logger.debug("[PATHS] App data dir for %s: %s", profile, path)
    return path


def get_cache_dir(profile: str = DEFAULT_PROFILE) -> Path:
    cached = _cache_dirs.get(profile)
    if cached is not None:
        return cached
    path = _ensure_dir(_cache_root() / profile)
    _cache_dirs[profile] = path
    logger.debug("[PATHS] Cache dir for %s: %s", profile, path)
    return path


def get_image_cache_dir(profile: str = DEFAULT_PROFILE) -> Path:
    return _ensure_dir(get_cache_dir(profile) / IMAGE_CACHE_DIR_NAME)


def get_state_dir(profile: str = DEFAULT_PROFILE) -> Path:
    return _ensure_dir(get_app_data_dir(profile) / "state")


def get_item_store_file(profile: str = DEFAULT_PROFILE) -> Path:
    """Path of the JSON item store. The file itself is not created here."""
    return get_state_dir(profile) / ITEM_STORE_FILE_NAME
