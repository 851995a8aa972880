"""Depth-bounded traversal of a tile pyramid directory."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Tuple

from mbutiles.core.errors import TileIOError


@dataclass(frozen=True)
class WalkEntry:
    """A file found below the pyramid root."""

    path: Path
    parts: Tuple[str, ...]

    @property
    def depth(self) -> int:
        return len(self.parts)


def is_visible(name: str) -> bool:
    return not name.startswith(".")


def walk_tiles(root: Path, *, max_depth: int = 3) -> Iterator[WalkEntry]:
    """Yield visible files up to ``max_depth`` levels below ``root``.

    Symlinked directories are followed. Hidden entries are skipped and hidden
    directories are not descended into. A directory that cannot be read raises
    :class:`TileIOError`.
    """

    root = Path(root)

    def _raise(exc: OSError) -> None:
        raise TileIOError(f"Can't read directory {exc.filename}", cause=exc) from exc

    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise, followlinks=True):
        relative = Path(dirpath).relative_to(root).parts
        if len(relative) + 1 >= max_depth:
            # Files here already sit at the maximum depth.
            dirnames[:] = []
        else:
            dirnames[:] = sorted(name for name in dirnames if is_visible(name))
        for name in sorted(filenames):
            if not is_visible(name):
                continue
            yield WalkEntry(path=Path(dirpath) / name, parts=(*relative, name))
