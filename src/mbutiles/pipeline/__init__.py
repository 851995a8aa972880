"""Import and export pipelines between directories and MBTiles containers."""

from .base import ContainerExporter, DirectoryImporter
from .exporter import DEFAULT_GRID_CALLBACK, TileExporter, dump_metadata, export_tiles
from .importer import TileImporter, import_tiles
from .walker import WalkEntry, walk_tiles

__all__ = [
    "ContainerExporter",
    "DEFAULT_GRID_CALLBACK",
    "DirectoryImporter",
    "TileExporter",
    "TileImporter",
    "WalkEntry",
    "dump_metadata",
    "export_tiles",
    "import_tiles",
    "walk_tiles",
]
