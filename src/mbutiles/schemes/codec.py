"""Per-scheme path codecs for XYZ, TMS, WMS and ArcGIS tile caches."""

from __future__ import annotations

import os
import re
from pathlib import PurePosixPath
from typing import Dict, Sequence, Tuple

from mbutiles.core.errors import ParseError, PathEncodingError, SchemeMismatchError
from mbutiles.core.models import GRID_EXTENSION, DecodedPath, FileKind, ImageFormat, Scheme, TileAddress
from mbutiles.logging import get_logger

from .base import TileScheme

LOGGER = get_logger(__name__)

_DECIMAL = re.compile(r"[0-9]+")
_HEXADECIMAL = re.compile(r"[0-9a-fA-F]+")

MAX_ZOOM = 32
MAX_INDEX = 2**32 - 1


def flip_y(zoom: int, y: int) -> int:
    """Convert between top-origin (XYZ) and bottom-origin (TMS) row numbers."""

    if not 0 <= zoom <= MAX_ZOOM:
        raise ValueError(f"zoom level {zoom} is outside 0..{MAX_ZOOM}")
    if not 0 <= y < 2**zoom:
        raise ValueError(f"row {y} is outside zoom level {zoom}")
    return 2**zoom - 1 - y


def check_segment(segment: str) -> str:
    """Return ``segment`` if it is a plain path component."""

    if segment in ("", ".", "..") or "/" in segment or os.sep in segment:
        raise PathEncodingError(f"Can't read path component {segment!r}")
    try:
        segment.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise PathEncodingError(f"Invalid unicode path: {segment!r}", cause=exc) from exc
    return segment


def parse_int(text: str, *, radix: int = 10) -> int:
    pattern = _HEXADECIMAL if radix == 16 else _DECIMAL
    if len(text) > 64 or not pattern.fullmatch(text):
        raise ParseError(f"Can't parse component {text!r} in base {radix} integer format")
    value = int(text, radix)
    if value > MAX_INDEX:
        raise ParseError(f"Component {text!r} exceeds {MAX_INDEX}")
    return value


def _flip(zoom: int, y: int) -> int:
    try:
        return flip_y(zoom, y)
    except ValueError as exc:
        raise ParseError(f"Row {y} can't be flipped at zoom {zoom}", cause=exc) from exc


class _BaseScheme:
    """Decimal ``zoom/column/row.ext`` layout shared by the simple schemes."""

    scheme: Scheme
    depth = 3

    def decode_zoom(self, segment: str) -> int:
        return parse_int(check_segment(segment))

    def decode_dir(self, segment: str) -> int:
        return parse_int(check_segment(segment))

    def decode_filename(self, segment: str, image_format: ImageFormat) -> Tuple[int, FileKind]:
        stem, kind = split_filename(check_segment(segment), image_format)
        return self._parse_stem(stem), kind

    def decode_path(self, segments: Sequence[str], image_format: ImageFormat) -> DecodedPath:
        if len(segments) != self.depth:
            raise ParseError(
                f"Expected {self.depth} path segments for the {self.scheme.value} scheme, got {len(segments)}"
            )
        zoom = self.decode_zoom(segments[0])
        directory = self.decode_dir(segments[1])
        name, kind = self.decode_filename(segments[2], image_format)
        column, row = self._canonical(zoom, directory, name)
        return DecodedPath(TileAddress(zoom, column, row), kind)

    def encode_path(self, zoom: int, column: int, row: int, extension: str) -> PurePosixPath:
        return PurePosixPath(str(zoom), str(column), f"{row}.{extension}")

    def _parse_stem(self, stem: str) -> int:
        return parse_int(stem)

    def _canonical(self, zoom: int, directory: int, name: int) -> Tuple[int, int]:
        return directory, name


class TmsScheme(_BaseScheme):
    scheme = Scheme.TMS


class XyzScheme(_BaseScheme):
    """Slippy-map layout; rows count from the top."""

    scheme = Scheme.XYZ

    def encode_path(self, zoom: int, column: int, row: int, extension: str) -> PurePosixPath:
        return PurePosixPath(str(zoom), str(column), f"{flip_y(zoom, row)}.{extension}")

    def _canonical(self, zoom: int, directory: int, name: int) -> Tuple[int, int]:
        return directory, _flip(zoom, name)


class AgsScheme(_BaseScheme):
    """ArcGIS exploded cache: ``Lzz/Rrrrrrrrr/Ccccccccc.ext`` with hex rows and columns."""

    scheme = Scheme.AGS

    def decode_zoom(self, segment: str) -> int:
        segment = check_segment(segment)
        if segment.startswith("L"):
            segment = segment[1:]
        else:
            LOGGER.warning("You appear to be using an ags scheme on a non-ArcGIS Server cache.")
        return parse_int(segment)

    def decode_dir(self, segment: str) -> int:
        segment = check_segment(segment)
        if segment.startswith("R"):
            segment = segment[1:]
        return parse_int(segment, radix=16)

    def encode_path(self, zoom: int, column: int, row: int, extension: str) -> PurePosixPath:
        return PurePosixPath(f"L{zoom:02d}", f"R{flip_y(zoom, row):08x}", f"C{column:08x}.{extension}")

    def _parse_stem(self, stem: str) -> int:
        if stem.startswith("C"):
            stem = stem[1:]
        return parse_int(stem, radix=16)

    def _canonical(self, zoom: int, directory: int, name: int) -> Tuple[int, int]:
        # The directory holds the (top-origin) row and the file name the column.
        return name, _flip(zoom, directory)


class WmsScheme(_BaseScheme):
    """MapServer/TileCache layout splitting columns and rows into thousands groups."""

    scheme = Scheme.WMS
    depth = 8

    def decode_path(self, segments: Sequence[str], image_format: ImageFormat) -> DecodedPath:
        if len(segments) != self.depth:
            raise ParseError(f"Expected {self.depth} path segments for the wms scheme, got {len(segments)}")
        zoom = self.decode_zoom(segments[0])
        repeated = self.decode_zoom(segments[1])
        if repeated != zoom:
            raise ParseError(f"Zoom directories disagree: {segments[0]!r} and {segments[1]!r}")
        c1, c2, c3, r1, r2 = (self.decode_dir(segment) for segment in segments[2:7])
        r3, kind = self.decode_filename(segments[7], image_format)
        column = c1 * 1_000_000 + c2 * 1_000 + c3
        row = r1 * 1_000_000 + r2 * 1_000 + r3
        if column > MAX_INDEX or row > MAX_INDEX:
            raise ParseError(f"Tile {column}/{row} exceeds {MAX_INDEX}")
        return DecodedPath(TileAddress(zoom, column, row), kind)

    def encode_path(self, zoom: int, column: int, row: int, extension: str) -> PurePosixPath:
        return PurePosixPath(
            f"{zoom:02d}",
            f"{zoom:02d}",
            f"{column // 1_000_000:03d}",
            f"{(column // 1_000) % 1_000:03d}",
            f"{column % 1_000:02d}",
            f"{row // 1_000_000:02d}",
            f"{(row // 1_000) % 1_000:02d}",
            f"{row % 1_000:03d}.{extension}",
        )


def split_filename(filename: str, image_format: ImageFormat) -> Tuple[str, FileKind]:
    """Return the stem of ``filename`` and whether it names a tile or a grid."""

    parts = filename.split(".")
    if len(parts) == 2 and parts[1] == image_format.extension:
        return parts[0], FileKind.TILE
    if len(parts) == 3 and parts[1:] == GRID_EXTENSION.split("."):
        return parts[0], FileKind.GRID
    found = ".".join(parts[1:])
    raise SchemeMismatchError(
        f"The filtered extension {image_format.extension} is different than the path's extension {found!r} ({filename})"
    )


_SCHEMES: Dict[Scheme, TileScheme] = {
    Scheme.XYZ: XyzScheme(),
    Scheme.TMS: TmsScheme(),
    Scheme.WMS: WmsScheme(),
    Scheme.AGS: AgsScheme(),
}


def get_scheme(scheme: "Scheme | str | None") -> TileScheme:
    """Return the codec for ``scheme``; ``None`` selects TMS."""

    return _SCHEMES[Scheme.parse(scheme)]
