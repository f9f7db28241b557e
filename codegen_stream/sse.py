"""StreamFramer – split SSE text into records and pull out their data payloads."""

from __future__ import annotations

import codecs
from collections import deque

RECORD_DELIMITER = "\n\n"
DATA_PREFIX = "data:"


class StreamFramer:
    """Buffer incoming SSE chunks and emit one payload string per complete record.

    Chunks may split a record anywhere. Complete records are cut off the front
    of the buffer left-to-right; whatever follows the last delimiter stays
    buffered until the next feed. A record is emitted only when it starts with
    ``data:``; everything after the prefix (and one optional space) is the
    payload, verbatim.
    """

    def __init__(self):
        self._buf = ""
        # trailing "\r" held back until we know whether "\n" follows
        self._cr = ""
        self._ready: deque[str] = deque()
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def feed(self, chunk: str) -> None:
        chunk = self._cr + chunk
        self._cr = ""
        if chunk.endswith("\r"):
            chunk, self._cr = chunk[:-1], "\r"

        # A delimiter can only straddle the old tail and the new text
        start = max(len(self._buf) - 1, 0)
        self._buf += chunk.replace("\r\n", "\n")
        while True:
            idx = self._buf.find(RECORD_DELIMITER, start)
            if idx < 0:
                break
            record = self._buf[:idx]
            self._buf = self._buf[idx + len(RECORD_DELIMITER) :]
            start = 0
            payload = self._extract_payload(record)
            if payload is not None:
                self._ready.append(payload)

    def feed_bytes(self, chunk: bytes) -> None:
        # Incremental decode keeps multi-byte characters intact across chunk edges
        self.feed(self._decoder.decode(chunk))

    def drain(self):
        """Yield the payloads framed so far, oldest first."""
        while self._ready:
            yield self._ready.popleft()

    @property
    def pending(self) -> str:
        return self._buf + self._cr

    def reset(self) -> None:
        self._buf = ""
        self._cr = ""
        self._ready.clear()
        self._decoder.reset()

    @staticmethod
    def _extract_payload(record: str) -> str | None:
        if not record.startswith(DATA_PREFIX):
            return None
        payload = record[len(DATA_PREFIX) :]
        if payload.startswith(" "):
            payload = payload[1:]
        return payload
