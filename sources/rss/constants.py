"""
RSS system constants - feed catalog, timeouts, image cache limits.

Centralised here so every sub-module imports from one place.
"""
from sources.rss.models import FeedSource

# ---------------------------------------------------------------------------
# Feed catalog
# ---------------------------------------------------------------------------
DEFAULT_FEED_SOURCES = (
    FeedSource(
        identifier="vedomosti",
        name="Vedomosti",
        url="https://www.vedomosti.ru/rss/news",
    ),
    FeedSource(
        identifier="rbc",
        name="RBC",
        url="https://rssexport.rbc.ru/rbcnews/news/30/full.rss",
    ),
)


def source_for(identifier: str, catalog=DEFAULT_FEED_SOURCES):
    """Return the catalog entry with ``identifier`` or None."""
    for source in catalog:
        if source.identifier == identifier:
            return source
    return None


# ---------------------------------------------------------------------------
# Network
# ---------------------------------------------------------------------------
DEFAULT_TIMEOUT_SECONDS = 30
IMAGE_TIMEOUT_SECONDS = 15
DOWNLOAD_CHUNK_SIZE = 8192
USER_AGENT = "NewsConsolidator/1.0 (+https://github.com)"

# ---------------------------------------------------------------------------
# Image cache
# ---------------------------------------------------------------------------
IMAGE_MEMORY_MAX_ITEMS = 100
IMAGE_MEMORY_MAX_MB = 50
# Base64 file names beyond this length are replaced by a sha256 digest.
MAX_CACHE_KEY_LENGTH = 200
