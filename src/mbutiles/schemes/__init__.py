"""Tile addressing schemes."""

from .base import TileScheme
from .codec import (
    AgsScheme,
    TmsScheme,
    WmsScheme,
    XyzScheme,
    check_segment,
    flip_y,
    get_scheme,
    parse_int,
    split_filename,
)

__all__ = [
    "AgsScheme",
    "TileScheme",
    "TmsScheme",
    "WmsScheme",
    "XyzScheme",
    "check_segment",
    "flip_y",
    "get_scheme",
    "parse_int",
    "split_filename",
]
