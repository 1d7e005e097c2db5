"""Tests for the decoded tile cache and the tile decoder."""

from PIL import Image

from mbtiles_map.cache import MemoryTileCache
from mbtiles_map.decoder import decode_tile

from conftest import RED, png_bytes


class TestMemoryTileCache:
    def test_miss(self):
        assert MemoryTileCache().get("nope") is None

    def test_put_and_get(self):
        cache = MemoryTileCache()
        img = Image.new("RGB", (4, 4))
        cache.put("a", img)
        assert cache.get("a") is img
        assert "a" in cache
        assert len(cache) == 1

    def test_put_is_idempotent(self):
        cache = MemoryTileCache()
        img = Image.new("RGB", (4, 4))
        cache.put("a", img)
        cache.put("a", img)
        assert len(cache) == 1

    def test_least_recently_used_is_evicted(self):
        cache = MemoryTileCache(maxsize=2)
        a, b, c = (Image.new("RGB", (1, 1)) for _ in range(3))
        cache.put("a", a)
        cache.put("b", b)
        cache.get("a")
        cache.put("c", c)
        assert cache.get("b") is None
        assert cache.get("a") is a
        assert cache.get("c") is c
        assert cache.maxsize == 2


class TestDecodeTile:
    def test_png(self):
        img = decode_tile(png_bytes(RED))
        assert img.size == (256, 256)
        assert img.getpixel((0, 0)) == RED

    def test_empty(self):
        assert decode_tile(None) is None
        assert decode_tile(b"") is None

    def test_garbage(self):
        assert decode_tile(b"\x00\x01 definitely not an image") is None
