"""Round trip between ``metadata.json`` and the ``metadata`` table."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Mapping, Optional

from mbutiles.core.errors import StructuralError, error_context
from mbutiles.logging import get_logger

LOGGER = get_logger(__name__)

METADATA_FILENAME = "metadata.json"


def read_metadata_file(directory: Path) -> Optional[Dict[str, str]]:
    """Return the flat string mapping stored in ``directory/metadata.json``.

    A missing file is not an error and yields ``None``. A file that is present
    but not a JSON object of strings fails the whole import.
    """

    metadata_path = Path(directory) / METADATA_FILENAME
    if not metadata_path.is_file():
        LOGGER.info("metadata.json was not found", extra={"path": str(metadata_path)})
        return None

    with error_context(f"metadata.json wasn't readable: {metadata_path}"):
        text = metadata_path.read_text(encoding="utf-8")
    with error_context(f"Can't parse {metadata_path}"):
        payload = json.loads(text)
    return parse_metadata(payload)


def parse_metadata(payload: object) -> Dict[str, str]:
    if not isinstance(payload, dict):
        raise StructuralError(f"metadata is not an object: {type(payload).__name__}")
    metadata: Dict[str, str] = {}
    for key, value in payload.items():
        if not isinstance(value, str):
            raise StructuralError(f"metadata object has a non string value for {key!r}: {value!r}")
        metadata[key] = value
    return metadata


def write_metadata_file(metadata: Mapping[str, str], directory: Path) -> Path:
    """Write ``metadata`` as a single JSON object into ``directory``."""

    metadata_path = Path(directory) / METADATA_FILENAME
    with error_context(f"Can't write metadata file {metadata_path}"):
        metadata_path.write_text(json.dumps(dict(metadata), ensure_ascii=False), encoding="utf-8")
    return metadata_path
