"""Shared fixtures: temporary MBTiles databases and in-memory fakes."""

import io
import sqlite3
import tempfile
from pathlib import Path

import pytest
from PIL import Image

from mbtiles_map.geometry import ZoomRange
from mbtiles_map.tiles import flip_row

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)
YELLOW = (255, 255, 0, 255)


def png_bytes(color, size=256) -> bytes:
    buf = io.BytesIO()
    Image.new("RGBA", (size, size), color).save(buf, format="PNG")
    return buf.getvalue()


def create_mbtiles(path: Path, tiles: dict, metadata: dict = None) -> Path:
    """
    Write an MBTiles file.

    Args:
        path: Output file
        tiles: {(z, x, y): data} with top-origin rows
        metadata: Optional metadata table content
    """
    conn = sqlite3.connect(str(path))
    conn.execute(
        """
        CREATE TABLE tiles (
            zoom_level INTEGER,
            tile_column INTEGER,
            tile_row INTEGER,
            tile_data BLOB
        )
        """
    )
    conn.executemany(
        "INSERT INTO tiles VALUES (?, ?, ?, ?)",
        [(z, x, flip_row(z, y), data) for (z, x, y), data in tiles.items()]
    )
    if metadata is not None:
        conn.execute("CREATE TABLE metadata (name TEXT, value TEXT)")
        conn.executemany("INSERT INTO metadata VALUES (?, ?)", list(metadata.items()))
    conn.commit()
    conn.close()
    return path


@pytest.fixture
def tmpdir_path():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def world_mbtiles(tmpdir_path):
    """World map with one tile at zoom 0 and four colored tiles at zoom 1."""
    tiles = {
        (0, 0, 0): png_bytes(RED),
        (1, 0, 0): png_bytes(RED),
        (1, 1, 0): png_bytes(GREEN),
        (1, 0, 1): png_bytes(BLUE),
        (1, 1, 1): png_bytes(YELLOW),
    }
    metadata = {"name": "world", "format": "png"}
    return create_mbtiles(tmpdir_path / "world.mbtiles", tiles, metadata)


class FakeStore:
    """In-memory tile store; tiles are keyed by (z, x, store_row)."""

    def __init__(
        self,
        zooms=ZoomRange(0, 5),
        extents=(0, 0, 0, 0),
        tiles=None,
        default=None,
        schema_ok=True,
        identity="fake",
    ):
        self.zooms = zooms
        self.extents = extents
        self.tiles = tiles or {}
        self.default = default
        self.schema_ok = schema_ok
        self.identity = identity
        self.requests = []
        self.opened = False

    @property
    def name(self):
        return f"{self.identity}.mbtiles"

    def validate_schema(self):
        return self.schema_ok

    def zoom_range(self):
        return self.zooms

    def tile_extents(self, zoom):
        return self.extents

    def tile_data(self, zoom, column, row):
        self.requests.append((zoom, column, row))
        return self.tiles.get((zoom, column, row), self.default)

    def open(self):
        self.opened = True

    def close(self):
        self.opened = False


class RecordingPainter:
    """Collects draw commands as (image, (x, y), ratio)."""

    def __init__(self):
        self.commands = []

    def draw_image(self, image, point, ratio):
        self.commands.append((image, point.as_tuple(), ratio))
