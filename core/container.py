"""
Composition root for the news consolidator.

``ServiceContainer.create_default()`` is the one place default services are
built and wired; everything else receives its collaborators explicitly.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from core.logging.logger import get_logger
from core.settings import storage_paths
from core.settings.settings_manager import SettingsManager
from core.threading.manager import ThreadManager
from images.service import ImageCacheService
from sources.rss.coordinator import NewsCoordinator
from sources.rss.fetcher import FeedFetcher
from sources.rss.store import JsonItemStore

logger = get_logger(__name__)


@dataclass
class ServiceContainer:
    thread_manager: ThreadManager
    settings: SettingsManager
    store: JsonItemStore
    fetcher: FeedFetcher
    images: ImageCacheService
    news: NewsCoordinator

    @classmethod
    def create_default(
        cls,
        profile: str = storage_paths.DEFAULT_PROFILE,
        settings_path: Optional[Path] = None,
    ) -> "ServiceContainer":
        """Build every service with default locations under ``profile``."""
        logger.info("Initializing core systems...")

        thread_manager = ThreadManager()
        try:
            settings = SettingsManager(application=profile, settings_path=settings_path)
            store = JsonItemStore(storage_paths.get_item_store_file(profile))
            fetcher = FeedFetcher(thread_manager=thread_manager)
            images = ImageCacheService(thread_manager, storage_paths.get_image_cache_dir(profile))
            news = NewsCoordinator(fetcher, store, settings, thread_manager=thread_manager)
        except Exception:
            thread_manager.shutdown(wait=False)
            raise

        logger.info("Core systems initialized successfully")
        return cls(
            thread_manager=thread_manager,
            settings=settings,
            store=store,
            fetcher=fetcher,
            images=images,
            news=news,
        )

    def shutdown(self) -> None:
        """Stop auto refresh, close the store, persist settings, stop the pools."""
        logger.info("Shutting down services...")
        self.news.close()
        self.store.close()
        self.settings.save()
        self.thread_manager.shutdown(wait=True)
        logger.info("Service shutdown complete")
