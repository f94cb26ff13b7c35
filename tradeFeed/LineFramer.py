"""Line framing for the trade stream.

Splits a byte stream into newline-terminated records and classifies each one
as a sentinel, a trade record, or passthrough text.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Iterator

logger = logging.getLogger("tradeFeed.framer")

BEGIN = b"BEGIN\n"
END = b"END\n"

_NEWLINE = b"\n"
_DATA_PREFIX = b"{"


class StreamReadError(OSError):
    """The underlying stream failed for a reason other than end-of-stream."""


class LineKind(Enum):
    DATA = "data"
    BEGIN = "begin"
    END = "end"
    PASSTHROUGH = "passthrough"


@dataclass(frozen=True)
class FramedLine:
    kind: LineKind
    raw: bytes


def classify(line: bytes) -> LineKind:
    """Return the kind of a single newline-terminated line."""
    if line.startswith(_DATA_PREFIX):
        return LineKind.DATA
    if line == BEGIN:
        return LineKind.BEGIN
    if line == END:
        return LineKind.END
    return LineKind.PASSTHROUGH


def iter_lines(source: BinaryIO) -> Iterator[bytes]:
    """Yield each newline-terminated line of ``source``, terminator included.

    Stops cleanly at end-of-stream. A trailing fragment with no newline is
    not a complete record and is dropped.

    Raises:
        StreamReadError: If reading from ``source`` fails.
    """
    while True:
        try:
            line = source.readline()
        except OSError as exc:
            raise StreamReadError(f"error reading input stream: {exc}") from exc

        if not line:
            return
        if not line.endswith(_NEWLINE):
            logger.warning("Dropping %d trailing bytes without newline", len(line))
            return
        yield line


def frame(source: BinaryIO) -> Iterator[FramedLine]:
    """Yield every line of ``source`` together with its classification."""
    for line in iter_lines(source):
        yield FramedLine(kind=classify(line), raw=line)
