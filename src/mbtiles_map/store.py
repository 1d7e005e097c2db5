"""
SQLite adapter for MBTiles tile databases.

Reads:
- The schema of the tiles table
- The zoom range and tile index extents
- Raw encoded tile data
- The key/value metadata table
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from .geometry import ZoomRange

logger = logging.getLogger(__name__)

# (name, required type affinity) of the leading columns of the tiles table
TILES_COLUMNS = (
    ("zoom_level", "INT"),
    ("tile_column", "INT"),
    ("tile_row", "INT"),
    ("tile_data", "BLOB"),
)


class TileStoreError(Exception):
    """Error reading an MBTiles database."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        super().__init__(message)

    def __str__(self):
        if self.path is not None:
            return f"{self.path}: {super().__str__()}"
        return super().__str__()


class MBTilesStore:
    """
    Read-only access to an MBTiles file.

    Rows passed to and returned from this class use the bottom-origin (TMS)
    convention of the database. Without an explicit open() every call uses
    its own short-lived connection.
    """

    def __init__(self, db_path: Path):
        """
        Initialize the store.

        Args:
            db_path: Path to the MBTiles (SQLite) file
        """
        self.db_path = Path(db_path)
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def name(self) -> str:
        return self.db_path.name

    @property
    def identity(self) -> str:
        """Stable string identifying this database in tile cache keys."""
        return str(self.db_path.resolve())

    def _connect(self) -> sqlite3.Connection:
        uri = f"{self.db_path.resolve().as_uri()}?mode=ro"
        try:
            conn = sqlite3.connect(uri, uri=True)
        except sqlite3.Error as ex:
            raise TileStoreError(f"Error opening database file: {ex}", self.db_path) from ex
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _get_connection(self):
        """Get the open connection, or a temporary one with proper cleanup."""
        temporary = self._conn is None
        conn = self._connect() if temporary else self._conn
        try:
            yield conn
        except sqlite3.Error as ex:
            raise TileStoreError(str(ex), self.db_path) from ex
        finally:
            if temporary:
                conn.close()

    def open(self):
        """Keep a connection open until close()."""
        if self._conn is None:
            self._conn = self._connect()

    def close(self):
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, *exc):
        self.close()

    # --- Schema ---

    def validate_schema(self) -> bool:
        """Check that the tiles table (or view) has the MBTiles layout."""
        with self._get_connection() as conn:
            rows = conn.execute("PRAGMA table_info(tiles)").fetchall()

        if len(rows) < len(TILES_COLUMNS):
            return False
        for row, (name, affinity) in zip(rows, TILES_COLUMNS):
            if row["name"] != name or affinity not in (row["type"] or "").upper():
                logger.debug(
                    f"column {row['cid']} of tiles is {row['name']} {row['type']}, "
                    f"expected {name} {affinity}"
                )
                return False
        return True

    # --- Tile index queries ---

    def zoom_range(self) -> Optional[ZoomRange]:
        """Get the (min, max) zoom level, or None for an empty tile set."""
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT min(zoom_level) AS min_zoom, max(zoom_level) AS max_zoom FROM tiles"
            ).fetchone()
        if row is None or row["min_zoom"] is None:
            return None
        return ZoomRange(int(row["min_zoom"]), int(row["max_zoom"]))

    def tile_extents(self, zoom: int) -> Optional[tuple[int, int, int, int]]:
        """
        Get the index extents of the tiles stored at a zoom level.

        Returns:
            (min_column, min_row, max_column, max_row) or None if the zoom
            level has no tiles
        """
        with self._get_connection() as conn:
            row = conn.execute(
                """
                SELECT min(tile_column), min(tile_row), max(tile_column), max(tile_row)
                FROM tiles WHERE zoom_level = ?
                """,
                (zoom,)
            ).fetchone()
        if row is None or row[0] is None:
            return None
        return (int(row[0]), int(row[1]), int(row[2]), int(row[3]))

    def tile_data(self, zoom: int, column: int, row: int) -> Optional[bytes]:
        """Get the encoded image of a tile, or None if it is not stored."""
        with self._get_connection() as conn:
            result = conn.execute(
                """
                SELECT tile_data FROM tiles
                WHERE zoom_level = ? AND tile_column = ? AND tile_row = ?
                """,
                (zoom, column, row)
            ).fetchone()
        if result is None or result["tile_data"] is None:
            return None
        return bytes(result["tile_data"])

    # --- Metadata ---

    def metadata(self) -> dict[str, str]:
        """Get the metadata key/value pairs (empty if there is no table)."""
        with self._get_connection() as conn:
            exists = conn.execute(
                "SELECT 1 FROM sqlite_master WHERE name = 'metadata' AND type IN ('table', 'view')"
            ).fetchone()
            if exists is None:
                return {}
            rows = conn.execute("SELECT name, value FROM metadata").fetchall()
        return {r["name"]: r["value"] for r in rows}
