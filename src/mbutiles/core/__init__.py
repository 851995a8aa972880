"""Core data models and errors for mbutiles."""

from .errors import (
    MBTilesError,
    ParseError,
    PathEncodingError,
    SchemeMismatchError,
    StoreError,
    StructuralError,
    TileIOError,
    error_context,
)
from .models import (
    GRID_EXTENSION,
    DecodedPath,
    ExportReport,
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

__all__ = [
    "GRID_EXTENSION",
    "DecodedPath",
    "ExportReport",
    "FileKind",
    "Grid",
    "GridDataEntry",
    "ImageFormat",
    "ImportReport",
    "MBTilesError",
    "MetadataEntry",
    "ParseError",
    "PathEncodingError",
    "Scheme",
    "SchemeMismatchError",
    "StoreError",
    "StructuralError",
    "Tile",
    "TileAddress",
    "TileIOError",
    "error_context",
]
