"""Two-tier (memory + disk) cache for remote images."""

from .disk_cache import DiskImageCache, cache_key
from .service import MISSING, ImageCacheService, ImageLoadResult

__all__ = ['DiskImageCache', 'cache_key', 'ImageCacheService', 'ImageLoadResult', 'MISSING']
