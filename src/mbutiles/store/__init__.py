"""MBTiles container storage."""

from .container import SCHEMA, WRITE_PRAGMAS, ContainerStore

__all__ = ["ContainerStore", "SCHEMA", "WRITE_PRAGMAS"]
