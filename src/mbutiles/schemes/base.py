"""Protocol definitions for tile addressing schemes."""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Protocol, Sequence, Tuple

from mbutiles.core.models import DecodedPath, FileKind, ImageFormat


class TileScheme(Protocol):
    """Map between pyramid path segments and canonical tile addresses."""

    depth: int

    def decode_zoom(self, segment: str) -> int:
        """Return the zoom level encoded by the top-level directory."""

    def decode_dir(self, segment: str) -> int:
        """Return the integer encoded by an intermediate directory."""

    def decode_filename(self, segment: str, image_format: ImageFormat) -> Tuple[int, FileKind]:
        """Return the integer encoded by a file name and whether it is a tile or grid."""

    def decode_path(self, segments: Sequence[str], image_format: ImageFormat) -> DecodedPath:
        """Return the canonical address of the file at ``segments`` below the root."""

    def encode_path(self, zoom: int, column: int, row: int, extension: str) -> PurePosixPath:
        """Return the relative path of the file for a canonical address."""
