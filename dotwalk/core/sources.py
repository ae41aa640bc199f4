"""Open DOT sources as chunk iterators."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import BinaryIO, Union

from dotwalk.core.exceptions import SourceReadError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

Source = Union[str, bytes, Path, Iterable[Union[str, bytes]]]


def _read_chunks(path: Path, handle: BinaryIO, chunk_size: int) -> Iterator[bytes]:
    with handle:
        while True:
            try:
                chunk = handle.read(chunk_size)
            except OSError as e:
                raise SourceReadError(f"Failed to read {path}: {e}") from e
            if not chunk:
                return
            yield chunk


def open_source(source: Source, chunk_size: int = CHUNK_SIZE) -> Iterator[str | bytes]:
    """Return an iterator of text or byte chunks for a source.

    A ``str`` is DOT text, not a file name; pass a ``Path`` to read a file.
    Files are opened eagerly so that a missing file fails here, during the
    fetch phase, rather than halfway through parsing.

    Raises:
        SourceReadError: if a file cannot be opened.
    """
    if isinstance(source, (str, bytes)):
        return iter([source])
    if isinstance(source, Path):
        try:
            handle = source.open("rb")
        except OSError as e:
            raise SourceReadError(f"Failed to load {source}: {e.strerror or e}") from e
        logger.debug("Reading %s", source)
        return _read_chunks(source, handle, chunk_size)
    return iter(source)
