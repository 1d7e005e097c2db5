"""
Decoded tile cache.

The map only relies on get/put by key. Entries may disappear between calls;
a cache can be shared by several maps since keys include the store identity.
"""

from typing import Optional, Protocol

import cachetools
from PIL import Image

DEFAULT_CACHE_SIZE = 512


class TileCache(Protocol):
    def get(self, key: str) -> Optional[Image.Image]:
        ...

    def put(self, key: str, image: Image.Image) -> None:
        ...


class MemoryTileCache:
    """In-memory LRU cache of decoded tiles, bounded by number of tiles."""

    def __init__(self, maxsize: int = DEFAULT_CACHE_SIZE):
        self._cache: cachetools.LRUCache = cachetools.LRUCache(maxsize=maxsize)

    def get(self, key: str) -> Optional[Image.Image]:
        return self._cache.get(key)

    def put(self, key: str, image: Image.Image) -> None:
        self._cache[key] = image

    def clear(self):
        self._cache.clear()

    def __len__(self):
        return len(self._cache)

    def __contains__(self, key: str) -> bool:
        return key in self._cache

    @property
    def maxsize(self) -> int:
        return int(self._cache.maxsize)
