from __future__ import annotations

import json
import threading
from typing import TextIO

from .Publisher import Publisher


class StreamPublisher(Publisher):
    """Writes newline-delimited JSON to a text stream such as stdout.

    The key is not part of the output; a stream has no addressing.
    """

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream
        self._lock = threading.Lock()

    def publish(self, key: str, data: bytes) -> None:
        with self._lock:
            self._stream.write(data.decode("utf-8"))
            self._stream.flush()

    def publish_json(self, key: str, obj) -> None:
        """Write one JSON line per record, or a single line for a non-list."""
        records = obj if isinstance(obj, list) else [obj]
        lines = "".join(json.dumps(record) + "\n" for record in records)
        with self._lock:
            self._stream.write(lines)
            self._stream.flush()
