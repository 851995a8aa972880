"""MBTiles to directory tree conversion."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from mbutiles.codecs.metadata import write_metadata_file
from mbutiles.codecs.utfgrid import join_grid
from mbutiles.core.errors import TileIOError, error_context
from mbutiles.core.models import GRID_EXTENSION, ExportReport, ImageFormat, Scheme, TileAddress
from mbutiles.logging import get_logger
from mbutiles.schemes import get_scheme
from mbutiles.store import ContainerStore

from .base import ContainerExporter

LOGGER = get_logger(__name__)

DEFAULT_GRID_CALLBACK = "grid"


class TileExporter(ContainerExporter):
    """Write every tile and grid of a container into a fresh directory.

    Unlike the importer, any failing row aborts the export.
    """

    def __init__(
        self,
        scheme: Scheme | str | None,
        image_format: ImageFormat | str,
        grid_callback: Optional[str] = DEFAULT_GRID_CALLBACK,
    ) -> None:
        self._scheme = get_scheme(scheme)
        self._image_format = ImageFormat.parse(image_format)
        self._grid_callback = grid_callback

    def run(self, input_container: Path, output_dir: Path) -> ExportReport:
        input_container = Path(input_container)
        output_dir = Path(output_dir)
        LOGGER.info("Exporting MBTiles to disk", extra={"input": str(input_container), "output": str(output_dir)})
        if not input_container.is_file():
            raise TileIOError(f"Can only export from an existing MBTiles file: {input_container}")
        if output_dir.exists():
            raise TileIOError(f"Directory already exists: {output_dir}")
        with error_context(f"Can't create the output directory {output_dir}"):
            output_dir.mkdir(parents=True)

        report = ExportReport()
        with ContainerStore(input_container) as store:
            report.metadata_path = str(write_metadata_file(store.metadata_items(), output_dir))
            LOGGER.info("exporting tiles", extra={"count": store.count("tiles")})
            for tile in store.iter_tiles():
                target = self._target(output_dir, tile.address, self._image_format.extension)
                with error_context(f"Can't write tile {target}"):
                    target.write_bytes(tile.data)
                report.tiles += 1
            if store.has_table("grids"):
                report.grids = self._export_grids(store, output_dir)
            else:
                LOGGER.info("container has no grids table", extra={"path": str(input_container)})

        LOGGER.info("export complete", extra={"tiles": report.tiles, "grids": report.grids})
        return report

    def _export_grids(self, store: ContainerStore, output_dir: Path) -> int:
        has_grid_data = store.has_table("grid_data")
        exported = 0
        LOGGER.info("exporting grids", extra={"count": store.count("grids")})
        for grid in store.iter_grids():
            target = self._target(output_dir, grid.address, GRID_EXTENSION)
            entries = store.grid_data_for(grid.address) if has_grid_data else []
            text = join_grid(grid.payload, entries, self._grid_callback)
            with error_context(f"Can't write grid {target}"):
                target.write_text(text, encoding="utf-8")
            exported += 1
        return exported

    def _target(self, output_dir: Path, address: TileAddress, extension: str) -> Path:
        with error_context(f"Can't encode tile {address.zoom}/{address.column}/{address.row}"):
            relative = self._scheme.encode_path(address.zoom, address.column, address.row, extension)
        target = output_dir.joinpath(*relative.parts)
        with error_context(f"Can't create the tile directory: {target.parent}"):
            target.parent.mkdir(parents=True, exist_ok=True)
        return target


def export_tiles(
    input_container: Path | str,
    output_dir: Path | str,
    scheme: Scheme | str | None = Scheme.XYZ,
    image_format: ImageFormat | str = ImageFormat.PNG,
    grid_callback: Optional[str] = DEFAULT_GRID_CALLBACK,
) -> ExportReport:
    """Unpack the MBTiles file at ``input_container`` into ``output_dir``."""

    exporter = TileExporter(scheme, image_format, grid_callback)
    return exporter.run(Path(input_container), Path(output_dir))


def dump_metadata(input_container: Path | str, output_dir: Path | str) -> Path:
    """Write only ``metadata.json`` of ``input_container`` into ``output_dir``."""

    input_container = Path(input_container)
    output_dir = Path(output_dir)
    if not input_container.is_file():
        raise TileIOError(f"Can only export from an existing MBTiles file: {input_container}")
    with error_context(f"Can't create the output directory {output_dir}"):
        output_dir.mkdir(parents=True, exist_ok=True)
    with ContainerStore(input_container) as store:
        metadata_path = write_metadata_file(store.metadata_items(), output_dir)
    LOGGER.info("metadata dumped", extra={"path": str(metadata_path)})
    return metadata_path
