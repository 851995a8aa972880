"""Protocol definitions for conversion pipelines."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from mbutiles.core.models import ExportReport, ImportReport


class DirectoryImporter(Protocol):
    """Interface for loading a tile pyramid directory into a container."""

    def run(self, input_dir: Path, output_container: Path) -> ImportReport:
        """Create ``output_container`` from the tiles, grids and metadata in ``input_dir``."""


class ContainerExporter(Protocol):
    """Interface for unpacking a container into a tile pyramid directory."""

    def run(self, input_container: Path, output_dir: Path) -> ExportReport:
        """Write every tile, grid and the metadata of ``input_container`` below ``output_dir``."""
