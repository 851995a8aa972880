"""Directory tree to MBTiles conversion."""

from __future__ import annotations

from pathlib import Path

from mbutiles.codecs.metadata import read_metadata_file
from mbutiles.codecs.utfgrid import split_grid
from mbutiles.core.errors import MBTilesError, TileIOError, error_context
from mbutiles.core.models import (
    FileKind,
    Grid,
    GridDataEntry,
    ImageFormat,
    ImportReport,
    MetadataEntry,
    Scheme,
    Tile,
    TileAddress,
)
from mbutiles.logging import get_logger
from mbutiles.schemes import get_scheme
from mbutiles.store import ContainerStore

from .base import DirectoryImporter
from .walker import WalkEntry, walk_tiles

LOGGER = get_logger(__name__)


class TileImporter(DirectoryImporter):
    """Load a tile pyramid, its grids and ``metadata.json`` into a new container."""

    def __init__(self, scheme: Scheme | str | None, image_format: ImageFormat | str) -> None:
        self._scheme = get_scheme(scheme)
        self._image_format = ImageFormat.parse(image_format)

    def run(self, input_dir: Path, output_container: Path) -> ImportReport:
        input_dir = Path(input_dir)
        output_container = Path(output_container)
        LOGGER.info("Importing disk to MBTiles", extra={"input": str(input_dir), "output": str(output_container)})
        if not input_dir.is_dir():
            raise TileIOError(f"Can only import from a directory: {input_dir}")
        if output_container.exists():
            raise TileIOError(f"Importing tiles into an already-existing MBTiles is not supported: {output_container}")

        report = ImportReport()
        with ContainerStore(output_container) as store:
            store.optimize_connection()
            store.setup_schema()
            report.metadata_restored = self._restore_metadata(input_dir, store)
            for entry in walk_tiles(input_dir, max_depth=self._scheme.depth):
                if entry.depth != self._scheme.depth:
                    continue
                try:
                    kind = self._insert_entry(entry, store)
                except MBTilesError as exc:
                    report.skipped += 1
                    LOGGER.error("%s", exc, extra={"path": str(entry.path)})
                    continue
                if kind is FileKind.TILE:
                    report.tiles += 1
                else:
                    report.grids += 1
            LOGGER.debug("tiles (and grids) inserted.", extra={"tiles": report.tiles, "grids": report.grids})
            store.optimize_database()

        LOGGER.info(
            "import complete",
            extra={"tiles": report.tiles, "grids": report.grids, "skipped": report.skipped},
        )
        return report

    def _restore_metadata(self, input_dir: Path, store: ContainerStore) -> bool:
        metadata = read_metadata_file(input_dir)
        if metadata is None:
            return False
        for name, value in metadata.items():
            store.insert_metadata(MetadataEntry(name, value))
        LOGGER.info("metadata.json was restored", extra={"entries": len(metadata)})
        return True

    def _insert_entry(self, entry: WalkEntry, store: ContainerStore) -> FileKind:
        decoded = self._scheme.decode_path(entry.parts, self._image_format)
        address = decoded.address
        LOGGER.info(
            "Zoom: %s, Col: %s, Row %s",
            address.zoom,
            address.column,
            address.row,
            extra={"path": str(entry.path), "kind": decoded.kind.value},
        )
        if decoded.kind is FileKind.TILE:
            with error_context(f"Can't read file {entry.path}"):
                data = entry.path.read_bytes()
            store.insert_tile(Tile(address, data))
        else:
            self._insert_grid(entry.path, address, store)
        return decoded.kind

    def _insert_grid(self, path: Path, address: TileAddress, store: ContainerStore) -> None:
        with error_context(f"Can't read file {path}"):
            text = path.read_text(encoding="utf-8")
        encoded = split_grid(text, source=str(path))
        # A grid and its data rows are stored together or not at all.
        with store.atomic():
            store.insert_grid(Grid(address, encoded.payload))
            for key_name, key_json in encoded.entries:
                store.insert_grid_data(GridDataEntry(address, key_name, key_json))


def import_tiles(
    input_dir: Path | str,
    output_container: Path | str,
    scheme: Scheme | str | None = Scheme.XYZ,
    image_format: ImageFormat | str = ImageFormat.PNG,
) -> ImportReport:
    """Convert the tile pyramid at ``input_dir`` into a new MBTiles file."""

    importer = TileImporter(scheme, image_format)
    return importer.run(Path(input_dir), Path(output_container))
