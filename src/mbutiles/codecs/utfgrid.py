"""UTFGrid codec.

Grids are stored split in two: the ``grids`` table keeps the zlib-compressed
JSON object without its ``data`` member, and ``grid_data`` keeps one row per
key referenced from ``keys`` with the matching ``data`` value as JSON text.
On disk a grid may be wrapped in a JSONP callback, ``cb({...});``.
"""

from __future__ import annotations

import json
import re
import zlib
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from mbutiles.core.errors import StructuralError, error_context
from mbutiles.logging import get_logger

LOGGER = get_logger(__name__)

JSONP_PATTERN = re.compile(r"\s*[A-Za-z_$][\w$.]*\s*\((\{.*\})\)\s*;?\s*", re.DOTALL)

NO_CALLBACK = frozenset({"", "false", "null"})


@dataclass
class EncodedGrid:
    """A grid ready for the container."""

    payload: bytes
    entries: List[Tuple[str, str]] = field(default_factory=list)


def unwrap_jsonp(text: str) -> str:
    """Return the JSON object inside a JSONP wrapper, or ``text`` unchanged."""

    match = JSONP_PATTERN.fullmatch(text)
    if match is None:
        return text
    return match.group(1)


def wrap_jsonp(json_text: str, callback: Optional[str]) -> str:
    if callback is None or callback in NO_CALLBACK:
        return json_text
    return f"{callback}({json_text});"


def dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def compress(document: Dict[str, Any]) -> bytes:
    return zlib.compress(dumps(document).encode("utf-8"))


def decompress(payload: bytes) -> Dict[str, Any]:
    with error_context("Can't inflate grid"):
        text = zlib.decompress(payload).decode("utf-8")
    with error_context(f"Grid json: {text[:80]}"):
        document = json.loads(text)
    if not isinstance(document, dict):
        raise StructuralError("grid is not an object")
    return document


def split_grid(text: str, *, source: str = "<grid>") -> EncodedGrid:
    """Separate the ``data`` member of a grid file from the compressed remainder."""

    with error_context(f"Can't parse grid {source}"):
        document = json.loads(unwrap_jsonp(text))
    if not isinstance(document, dict):
        raise StructuralError(f"grid json not an object: {source}")

    data = document.pop("data", None)
    encoded = EncodedGrid(payload=compress(document))

    keys = document.get("keys")
    if not isinstance(keys, list):
        LOGGER.warning("grid has no keys array", extra={"source": source, "keys": repr(keys)})
        return encoded
    if not isinstance(data, dict):
        if any(isinstance(key, str) and key for key in keys):
            LOGGER.warning("grid has no data object", extra={"source": source})
        return encoded

    for key in keys:
        if not isinstance(key, str):
            LOGGER.warning("skipping non string grid key", extra={"source": source, "key": repr(key)})
            continue
        if not key:
            continue
        if key not in data:
            LOGGER.warning("grid key missing from data", extra={"source": source, "key": key})
            continue
        encoded.entries.append((key, dumps(data[key])))
    return encoded


def join_grid(payload: bytes, entries: Iterable[Tuple[str, str]], callback: Optional[str]) -> str:
    """Rebuild the on-disk grid text from its stored parts."""

    document = decompress(payload)
    data: Dict[str, Any] = {}
    for key_name, key_json in entries:
        with error_context(f"Can't parse json: {key_json!r}"):
            data[key_name] = json.loads(key_json)
    document["data"] = data
    return wrap_jsonp(dumps(document), callback)
