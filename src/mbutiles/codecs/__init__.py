"""Codecs for metadata and UTFGrid payloads."""

from .metadata import METADATA_FILENAME, parse_metadata, read_metadata_file, write_metadata_file
from .utfgrid import EncodedGrid, join_grid, split_grid, unwrap_jsonp, wrap_jsonp

__all__ = [
    "METADATA_FILENAME",
    "EncodedGrid",
    "join_grid",
    "parse_metadata",
    "read_metadata_file",
    "split_grid",
    "unwrap_jsonp",
    "wrap_jsonp",
    "write_metadata_file",
]
