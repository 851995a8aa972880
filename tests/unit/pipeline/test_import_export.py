import json
import sqlite3
import zlib
from pathlib import Path

import pytest

from mbutiles.codecs.utfgrid import unwrap_jsonp
from mbutiles.core.errors import ParseError, StoreError, StructuralError, TileIOError
from mbutiles.core.models import Tile, TileAddress
from mbutiles.pipeline import dump_metadata, export_tiles, import_tiles, walker
from mbutiles.schemes import flip_y
from mbutiles.store import ContainerStore

GRID_TEXT = 'cb({"grid":[],"keys":["","k1"],"data":{"k1":42}});'


def _write(path: Path, data: bytes | str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(data, str):
        path.write_text(data, encoding="utf-8")
    else:
        path.write_bytes(data)
    return path


def _rows(container: Path, query: str) -> list:
    with sqlite3.connect(str(container)) as conn:
        return conn.execute(query).fetchall()


@pytest.fixture()
def pyramid(tmp_path: Path) -> Path:
    root = tmp_path / "pyramid"
    _write(root / "metadata.json", json.dumps({"name": "demo", "format": "png"}))
    _write(root / "0" / "0" / "0.png", b"\x89PNG-root")
    _write(root / "1" / "0" / "0.png", b"\x89PNG-nw")
    _write(root / "1" / "1" / "1.png", b"\x89PNG-se")
    _write(root / "1" / "0" / "0.grid.json", GRID_TEXT)
    return root


def test_xyz_single_tile(tmp_path: Path) -> None:
    _write(tmp_path / "in" / "0" / "0" / "0.png", b"tile")
    container = tmp_path / "out.mbtiles"

    report = import_tiles(tmp_path / "in", container, "xyz", "png")

    assert report.tiles == 1
    assert _rows(container, "SELECT zoom_level, tile_column, tile_row, tile_data FROM tiles") == [
        (0, 0, flip_y(0, 0), b"tile")
    ]


def test_import_restores_metadata_and_flips_rows(pyramid: Path, tmp_path: Path) -> None:
    container = tmp_path / "demo.mbtiles"

    report = import_tiles(pyramid, container, "xyz", "png")

    assert report.metadata_restored is True
    assert (report.tiles, report.grids, report.skipped) == (3, 1, 0)
    assert sorted(_rows(container, "SELECT name, value FROM metadata")) == [("format", "png"), ("name", "demo")]
    tiles = dict(
        ((z, x, y), data)
        for z, x, y, data in _rows(container, "SELECT zoom_level, tile_column, tile_row, tile_data FROM tiles")
    )
    assert tiles[(1, 0, 1)] == b"\x89PNG-nw"
    assert tiles[(1, 1, 0)] == b"\x89PNG-se"


def test_grid_key_filtering(pyramid: Path, tmp_path: Path) -> None:
    container = tmp_path / "demo.mbtiles"
    import_tiles(pyramid, container, "xyz", "png")

    ((z, x, y, blob),) = _rows(container, "SELECT zoom_level, tile_column, tile_row, grid FROM grids")
    assert (z, x, y) == (1, 0, 1)
    stored = json.loads(zlib.decompress(blob).decode("utf-8"))
    assert "data" not in stored
    assert stored["keys"] == ["", "k1"]
    assert _rows(container, "SELECT zoom_level, tile_column, tile_row, key_name, key_json FROM grid_data") == [
        (1, 0, 1, "k1", "42")
    ]


def test_extension_mismatch_is_skipped(tmp_path: Path) -> None:
    source = tmp_path / "in"
    _write(source / "3" / "1" / "5.jpg", b"jpeg")
    _write(source / "3" / "1" / "4.png", b"png")
    container = tmp_path / "out.mbtiles"

    report = import_tiles(source, container, "tms", "png")

    assert report.skipped == 1
    assert _rows(container, "SELECT zoom_level, tile_column, tile_row FROM tiles") == [(3, 1, 4)]


def test_files_at_other_depths_are_ignored(tmp_path: Path) -> None:
    source = tmp_path / "in"
    _write(source / "README.txt", "hello")
    _write(source / "0" / "notes.txt", "hello")
    _write(source / "0" / "0" / "0.png", b"tile")

    report = import_tiles(source, tmp_path / "out.mbtiles", "tms", "png")

    assert (report.tiles, report.skipped) == (1, 0)


def test_malformed_metadata_aborts_import(tmp_path: Path) -> None:
    source = tmp_path / "in"
    _write(source / "metadata.json", json.dumps({"minzoom": 1}))
    with pytest.raises(StructuralError):
        import_tiles(source, tmp_path / "out.mbtiles", "xyz", "png")


def test_import_requires_directory_and_new_container(tmp_path: Path) -> None:
    with pytest.raises(TileIOError):
        import_tiles(tmp_path / "missing", tmp_path / "out.mbtiles", "xyz", "png")
    existing = _write(tmp_path / "existing.mbtiles", b"")
    (tmp_path / "in").mkdir()
    with pytest.raises(TileIOError):
        import_tiles(tmp_path / "in", existing, "xyz", "png")


def test_export_callback_wrapping(pyramid: Path, tmp_path: Path) -> None:
    container = tmp_path / "demo.mbtiles"
    import_tiles(pyramid, container, "xyz", "png")

    export_tiles(container, tmp_path / "raw", "xyz", "png", "")
    export_tiles(container, tmp_path / "wrapped", "xyz", "png", "foo")

    raw = (tmp_path / "raw" / "1" / "0" / "0.grid.json").read_text(encoding="utf-8")
    wrapped = (tmp_path / "wrapped" / "1" / "0" / "0.grid.json").read_text(encoding="utf-8")
    assert json.loads(raw) == {"grid": [], "keys": ["", "k1"], "data": {"k1": 42}}
    assert wrapped == f"foo({raw});"


@pytest.mark.parametrize("scheme", ["xyz", "tms", "wms", "ags"])
def test_round_trip(pyramid: Path, tmp_path: Path, scheme: str) -> None:
    first = tmp_path / "first.mbtiles"
    import_tiles(pyramid, first, "xyz", "png")
    exported = tmp_path / "exported"
    export_tiles(first, exported, scheme, "png", "grid")
    second = tmp_path / "second.mbtiles"
    report = import_tiles(exported, second, scheme, "png")
    assert report.skipped == 0
    again = tmp_path / "again"
    export_tiles(second, again, scheme, "png", "grid")

    left = {p.relative_to(exported): p for p in exported.rglob("*") if p.is_file()}
    right = {p.relative_to(again): p for p in again.rglob("*") if p.is_file()}
    assert left.keys() == right.keys()
    for relative, path in left.items():
        if relative.name == "metadata.json":
            assert json.loads(path.read_text()) == json.loads(right[relative].read_text())
        elif relative.name.endswith(".grid.json"):
            assert json.loads(unwrap_jsonp(path.read_text())) == json.loads(unwrap_jsonp(right[relative].read_text()))
        else:
            assert path.read_bytes() == right[relative].read_bytes()
    assert sum(1 for name in left if name.suffix == ".png") == 3


def test_grid_shares_tile_directory_for_every_scheme(pyramid: Path, tmp_path: Path) -> None:
    container = tmp_path / "demo.mbtiles"
    import_tiles(pyramid, container, "xyz", "png")

    export_tiles(container, tmp_path / "ags", "ags", "png", "")

    tile = tmp_path / "ags" / "L01" / "R00000000" / "C00000000.png"
    grid = tmp_path / "ags" / "L01" / "R00000000" / "C00000000.grid.json"
    assert tile.read_bytes() == b"\x89PNG-nw"
    assert json.loads(grid.read_text())["data"] == {"k1": 42}


def test_export_refuses_existing_directory(pyramid: Path, tmp_path: Path) -> None:
    container = tmp_path / "demo.mbtiles"
    import_tiles(pyramid, container, "xyz", "png")
    (tmp_path / "taken").mkdir()

    with pytest.raises(TileIOError):
        export_tiles(container, tmp_path / "taken", "xyz", "png", "")
    with pytest.raises(TileIOError):
        export_tiles(tmp_path / "missing.mbtiles", tmp_path / "fresh", "xyz", "png", "")


def test_export_aborts_on_bad_row(tmp_path: Path) -> None:
    container = tmp_path / "bad.mbtiles"
    with ContainerStore(container) as store:
        store.setup_schema()
        store.insert_tile(Tile(TileAddress(1, 0, 0), b"ok"))
        store.insert_tile(Tile(TileAddress(1, 0, 7), b"row outside zoom 1"))

    with pytest.raises(ParseError):
        export_tiles(container, tmp_path / "out", "xyz", "png", "")


def test_dump_metadata(pyramid: Path, tmp_path: Path) -> None:
    container = tmp_path / "demo.mbtiles"
    import_tiles(pyramid, container, "xyz", "png")

    path = dump_metadata(container, tmp_path / "meta")

    assert path == tmp_path / "meta" / "metadata.json"
    assert json.loads(path.read_text()) == {"name": "demo", "format": "png"}
    assert sorted(p.name for p in (tmp_path / "meta").iterdir()) == ["metadata.json"]


def test_oversized_segments_are_skipped(tmp_path: Path) -> None:
    source = tmp_path / "in"
    _write(source / "3" / "99999999999999999999" / "1.png", b"huge column")
    _write(source / "3" / "1" / "1.png", b"ok")

    report = import_tiles(source, tmp_path / "tms.mbtiles", "tms", "png")

    assert (report.tiles, report.skipped) == (1, 1)


def test_zoom_too_deep_to_flip_is_skipped(tmp_path: Path) -> None:
    source = tmp_path / "in"
    _write(source / "40" / "0" / "0.png", b"deep")
    _write(source / "1000000000000" / "0" / "0.png", b"deeper")
    _write(source / "1" / "0" / "0.png", b"ok")

    report = import_tiles(source, tmp_path / "xyz.mbtiles", "xyz", "png")

    assert (report.tiles, report.skipped) == (1, 2)


def test_duplicate_grid_address_is_skipped(tmp_path: Path) -> None:
    source = tmp_path / "in"
    _write(source / "1" / "0" / "0.grid.json", GRID_TEXT)
    _write(source / "1" / "0" / "00.grid.json", GRID_TEXT)
    container = tmp_path / "out.mbtiles"

    report = import_tiles(source, container, "tms", "png")

    assert (report.grids, report.skipped) == (1, 1)
    assert len(_rows(container, "SELECT * FROM grids")) == 1
    assert len(_rows(container, "SELECT * FROM grid_data")) == 1


def test_failed_grid_data_leaves_no_grid_row(
    monkeypatch: pytest.MonkeyPatch, pyramid: Path, tmp_path: Path
) -> None:
    def failing_insert(self, entry):  # type: ignore[no-untyped-def]
        raise StoreError(f"Can't insert grid data {entry.key_name!r}")

    monkeypatch.setattr(ContainerStore, "insert_grid_data", failing_insert)
    container = tmp_path / "demo.mbtiles"

    report = import_tiles(pyramid, container, "xyz", "png")

    assert (report.tiles, report.grids, report.skipped) == (3, 0, 1)
    assert _rows(container, "SELECT * FROM grids") == []


def test_walk_error_aborts_import(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    source = tmp_path / "in"
    source.mkdir()

    def unreadable_walk(top, onerror=None, followlinks=False):  # type: ignore[no-untyped-def]
        yield str(top), ["1"], []
        onerror(PermissionError(13, "Permission denied", str(Path(top) / "1")))

    monkeypatch.setattr(walker.os, "walk", unreadable_walk)

    with pytest.raises(TileIOError):
        import_tiles(source, tmp_path / "out.mbtiles", "xyz", "png")


def test_export_without_grid_tables(tmp_path: Path) -> None:
    container = tmp_path / "plain.mbtiles"
    with sqlite3.connect(str(container)) as conn:
        conn.executescript(
            """
            CREATE TABLE metadata (name TEXT, value TEXT);
            CREATE TABLE tiles (zoom_level INTEGER, tile_column INTEGER, tile_row INTEGER, tile_data BLOB);
            INSERT INTO metadata VALUES ('name', 'plain');
            INSERT INTO tiles VALUES (0, 0, 0, X'00FF');
            """
        )
    conn.close()

    report = export_tiles(container, tmp_path / "out", "xyz", "png", "")

    assert (report.tiles, report.grids) == (1, 0)
    assert (tmp_path / "out" / "0" / "0" / "0.png").read_bytes() == b"\x00\xff"
