"""Conversion between MBTiles containers and tile pyramid directories."""

from __future__ import annotations

import importlib
from typing import Any

__version__ = "0.3.0"

__all__ = [
    "ContainerStore",
    "ConversionConfig",
    "ExportReport",
    "ImageFormat",
    "ImportReport",
    "MBTilesError",
    "Scheme",
    "TileAddress",
    "dump_metadata",
    "export_tiles",
    "flip_y",
    "get_scheme",
    "import_tiles",
]

_MODULE_MAP = {
    "ContainerStore": ("mbutiles.store", "ContainerStore"),
    "ConversionConfig": ("mbutiles.config", "ConversionConfig"),
    "ExportReport": ("mbutiles.core", "ExportReport"),
    "ImageFormat": ("mbutiles.core", "ImageFormat"),
    "ImportReport": ("mbutiles.core", "ImportReport"),
    "MBTilesError": ("mbutiles.core", "MBTilesError"),
    "Scheme": ("mbutiles.core", "Scheme"),
    "TileAddress": ("mbutiles.core", "TileAddress"),
    "dump_metadata": ("mbutiles.pipeline", "dump_metadata"),
    "export_tiles": ("mbutiles.pipeline", "export_tiles"),
    "flip_y": ("mbutiles.schemes", "flip_y"),
    "get_scheme": ("mbutiles.schemes", "get_scheme"),
    "import_tiles": ("mbutiles.pipeline", "import_tiles"),
}


def __getattr__(name: str) -> Any:
    if name not in _MODULE_MAP:
        raise AttributeError(f"module 'mbutiles' has no attribute '{name}'")
    module_name, attr = _MODULE_MAP[name]
    module = importlib.import_module(module_name)
    return getattr(module, attr)
