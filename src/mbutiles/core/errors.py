"""Exception family raised by mbutiles conversions."""

from __future__ import annotations

import json
import sqlite3
import zlib
from contextlib import contextmanager
from typing import Iterator, Optional


class MBTilesError(RuntimeError):
    """Base error carrying a human readable message and the underlying cause."""

    def __init__(self, message: str = "", *, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        if cause is not None:
            self.__cause__ = cause

    @property
    def cause(self) -> Optional[BaseException]:
        return self.__cause__

    def __str__(self) -> str:
        if self.__cause__ is not None and self.message:
            return f"{self.message}: {self.__cause__}"
        if self.__cause__ is not None:
            return str(self.__cause__)
        return self.message


class TileIOError(MBTilesError):
    """Raised when a file or directory cannot be opened, read or written."""


class StoreError(MBTilesError):
    """Raised when a container query, insert or schema statement fails."""


class ParseError(MBTilesError):
    """Raised when an integer, JSON document or compressed payload is invalid."""


class PathEncodingError(MBTilesError):
    """Raised when a path segment is not a usable, valid UTF-8 name."""


class SchemeMismatchError(MBTilesError):
    """Raised when a file extension does not match the configured format."""


class StructuralError(MBTilesError):
    """Raised when JSON parses but has the wrong shape."""


@contextmanager
def error_context(message: str) -> Iterator[None]:
    """Convert library errors raised in the block into the matching ``MBTilesError``."""

    try:
        yield
    except MBTilesError:
        raise
    except sqlite3.Error as exc:
        raise StoreError(message, cause=exc) from exc
    except OSError as exc:
        raise TileIOError(message, cause=exc) from exc
    except (json.JSONDecodeError, zlib.error, UnicodeDecodeError, ValueError, OverflowError) as exc:
        raise ParseError(message, cause=exc) from exc
