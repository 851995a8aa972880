"""SQLite-backed MBTiles container access."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Tuple, TypeVar

from mbutiles.core.errors import StoreError, error_context
from mbutiles.core.models import Grid, GridDataEntry, MetadataEntry, Tile, TileAddress
from mbutiles.logging import get_logger

LOGGER = get_logger(__name__)

SCHEMA = """
    CREATE TABLE tiles (
            zoom_level INTEGER,
            tile_column INTEGER,
            tile_row INTEGER,
            tile_data BLOB);
    CREATE TABLE metadata
        (name TEXT, value TEXT);
    CREATE TABLE grids (zoom_level INTEGER, tile_column INTEGER,
        tile_row INTEGER, grid BLOB);
    CREATE TABLE grid_data (zoom_level INTEGER, tile_column
        INTEGER, tile_row INTEGER, key_name TEXT, key_json TEXT);
    CREATE UNIQUE INDEX name ON metadata (name);
    CREATE UNIQUE INDEX tile_index ON tiles
        (zoom_level, tile_column, tile_row);
"""

# Single writer, one-shot bulk load: trade durability for throughput.
WRITE_PRAGMAS = """
    PRAGMA synchronous=0;
    PRAGMA locking_mode=EXCLUSIVE;
    PRAGMA journal_mode=DELETE;
"""

_TABLES = ("tiles", "metadata", "grids", "grid_data")

RowT = TypeVar("RowT", Tile, Grid)


class ContainerStore:
    """Row-level reads and writes against an MBTiles file.

    The connection runs in autocommit mode, so every insert is committed on
    its own and ``VACUUM`` can run without closing a transaction first.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        with error_context(f"Can't connect to {self._path}"):
            self._connection = sqlite3.connect(str(self._path), isolation_level=None)

    @property
    def path(self) -> Path:
        return self._path

    def __enter__(self) -> "ContainerStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._connection.close()

    # ------------------------------------------------------------------
    # Setup and maintenance
    # ------------------------------------------------------------------
    def optimize_connection(self) -> None:
        with error_context("Cannot execute sqlite optimization query"):
            self._connection.executescript(WRITE_PRAGMAS)

    def setup_schema(self) -> None:
        with error_context("Can't create schema"):
            self._connection.executescript(SCHEMA)

    def optimize_database(self) -> None:
        LOGGER.info("SQLite analyse", extra={"path": str(self._path)})
        with error_context("Can't analyze sqlite"):
            self._connection.execute("ANALYZE;")
        LOGGER.info("SQLite vacuum", extra={"path": str(self._path)})
        with error_context("Can't vacuum sqlite"):
            self._connection.execute("VACUUM;")

    def has_table(self, table: str) -> bool:
        with error_context(f"Can't inspect schema for {table}"):
            row = self._connection.execute(
                "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?;", (table,)
            ).fetchone()
        return row is not None

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Group the statements of the block into one transaction."""

        with error_context("Can't begin transaction"):
            self._connection.execute("BEGIN;")
        try:
            yield
        except BaseException:
            with error_context("Can't roll back transaction"):
                self._connection.execute("ROLLBACK;")
            raise
        with error_context("Can't commit transaction"):
            self._connection.execute("COMMIT;")

    def count(self, table: str) -> int:
        if table not in _TABLES:
            raise StoreError(f"Unknown table {table!r}")
        with error_context(f"Can't count rows of {table}"):
            (value,) = self._connection.execute(f"SELECT count(*) FROM {table};").fetchone()
        return int(value)

    # ------------------------------------------------------------------
    # Inserts
    # ------------------------------------------------------------------
    def insert_metadata(self, entry: MetadataEntry) -> None:
        with error_context(f"Can't insert metadata {entry.name!r} in database"):
            self._connection.execute(
                "INSERT INTO metadata (name, value) VALUES (?, ?);",
                (entry.name, entry.value),
            )

    def insert_tile(self, tile: Tile) -> None:
        with error_context(f"Can't insert tile {_describe(tile.address)}"):
            self._connection.execute(
                "INSERT INTO tiles (zoom_level, tile_column, tile_row, tile_data) VALUES (?, ?, ?, ?);",
                (*tile.address.as_params(), sqlite3.Binary(tile.data)),
            )

    def insert_grid(self, grid: Grid) -> None:
        # The grids table has no unique index, so uniqueness is checked here.
        with error_context(f"Can't look up grid {_describe(grid.address)}"):
            existing = self._connection.execute(
                "SELECT 1 FROM grids WHERE zoom_level = ? AND tile_column = ? AND tile_row = ?;",
                grid.address.as_params(),
            ).fetchone()
        if existing is not None:
            raise StoreError(f"A grid is already stored for {_describe(grid.address)}")
        with error_context(f"Can't insert zipped grid {_describe(grid.address)} in database"):
            self._connection.execute(
                "INSERT INTO grids (zoom_level, tile_column, tile_row, grid) VALUES (?, ?, ?, ?);",
                (*grid.address.as_params(), sqlite3.Binary(grid.payload)),
            )

    def insert_grid_data(self, entry: GridDataEntry) -> None:
        with error_context(f"Can't insert grid data {entry.key_name!r} for {_describe(entry.address)}"):
            self._connection.execute(
                "INSERT INTO grid_data (zoom_level, tile_column, tile_row, key_name, key_json) "
                "VALUES (?, ?, ?, ?, ?);",
                (*entry.address.as_params(), entry.key_name, entry.key_json),
            )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def metadata_items(self) -> Dict[str, str]:
        with error_context("Can't read metadata"):
            rows = self._connection.execute("SELECT name, value FROM metadata;").fetchall()
        return {str(name): "" if value is None else str(value) for name, value in rows}

    def iter_tiles(self) -> Iterator[Tile]:
        yield from self._iter_rows(
            "SELECT zoom_level, tile_column, tile_row, tile_data FROM tiles;",
            Tile,
            description="tiles",
        )

    def iter_grids(self) -> Iterator[Grid]:
        yield from self._iter_rows(
            "SELECT zoom_level, tile_column, tile_row, grid FROM grids;",
            Grid,
            description="grids",
        )

    def grid_data_for(self, address: TileAddress) -> List[Tuple[str, str]]:
        """Return the ``(key_name, key_json)`` rows stored for ``address``."""

        with error_context(f"Can't read grid data for {_describe(address)}"):
            rows = self._connection.execute(
                "SELECT key_name, key_json FROM grid_data "
                "WHERE zoom_level = ? AND tile_column = ? AND tile_row = ?;",
                address.as_params(),
            ).fetchall()
        return [(str(name), str(value)) for name, value in rows]

    def _iter_rows(
        self,
        query: str,
        factory: Callable[[TileAddress, bytes], RowT],
        *,
        description: str,
    ) -> Iterator[RowT]:
        with error_context(f"Can't read {description}"):
            cursor = self._connection.execute(query)
        while True:
            with error_context(f"Can't read {description}"):
                row = cursor.fetchone()
            if row is None:
                return
            zoom, column, row_index, blob = row
            yield factory(TileAddress(int(zoom), int(column), int(row_index)), bytes(blob or b""))


def _describe(address: TileAddress) -> str:
    return f"{address.zoom}/{address.column}/{address.row}"
