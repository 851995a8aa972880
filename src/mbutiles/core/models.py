"""Dataclasses and enums describing tiles, grids and addressing options."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Scheme(str, Enum):
    """Directory addressing convention of a tile pyramid."""

    XYZ = "xyz"
    TMS = "tms"
    WMS = "wms"
    AGS = "ags"

    @classmethod
    def parse(cls, value: "Scheme | str | None") -> "Scheme":
        """Return the scheme named by ``value``; ``None`` means TMS."""

        if value is None:
            return cls.TMS
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(member.value for member in cls)
            raise ValueError(f"Unsupported scheme: {value!r} (expected one of {choices})") from None


class ImageFormat(str, Enum):
    """Encoding of the tile files, which fixes their extension."""

    PNG = "png"
    JPG = "jpg"
    WEBP = "webp"
    PBF = "pbf"

    @property
    def extension(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: "ImageFormat | str") -> "ImageFormat":
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        if normalized == "jpeg":
            return cls.JPG
        try:
            return cls(normalized)
        except ValueError:
            choices = ", ".join(member.value for member in cls)
            raise ValueError(f"Unsupported image format: {value!r} (expected one of {choices})") from None


class FileKind(str, Enum):
    """What a file inside the pyramid holds."""

    TILE = "tile"
    GRID = "grid"


GRID_EXTENSION = "grid.json"


@dataclass(frozen=True)
class TileAddress:
    """Canonical tile address; ``row`` counts from the bottom (TMS)."""

    zoom: int
    column: int
    row: int

    def as_params(self) -> tuple[int, int, int]:
        return (self.zoom, self.column, self.row)


@dataclass
class Tile:
    """A tile image stored in the container."""

    address: TileAddress
    data: bytes


@dataclass
class MetadataEntry:
    """A single ``metadata`` table row."""

    name: str
    value: str


@dataclass
class Grid:
    """A UTFGrid stored in the container with its ``data`` field removed."""

    address: TileAddress
    payload: bytes


@dataclass
class GridDataEntry:
    """A ``grid_data`` row holding one key of a grid's ``data`` map."""

    address: TileAddress
    key_name: str
    key_json: str


@dataclass(frozen=True)
class DecodedPath:
    """Result of decoding a file path inside the pyramid."""

    address: TileAddress
    kind: FileKind


@dataclass
class ImportReport:
    """Counters collected while importing a directory."""

    tiles: int = 0
    grids: int = 0
    skipped: int = 0
    metadata_restored: bool = False


@dataclass
class ExportReport:
    """Counters collected while exporting a container."""

    tiles: int = 0
    grids: int = 0
    metadata_path: Optional[str] = None
