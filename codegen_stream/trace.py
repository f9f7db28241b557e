"""EnvelopeTraceWriter – JSONL recorder for applied envelopes with statistics."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from codegen_stream.accumulator import AccumulatedMessage
    from codegen_stream.envelope import Envelope


class EnvelopeTraceWriter:
    """Writes one JSON line per applied envelope and keeps counts."""

    def __init__(self, path: Path):
        self.path = path
        self.count = 0
        self.creations = 0
        self.updates = 0
        self.data_types: dict[str, int] = {}
        path.parent.mkdir(parents=True, exist_ok=True)
        # Keep file handle open for real-time append + flush
        self._file = open(path, "a", encoding="utf-8")

    def write(self, envelope: "Envelope", message: "AccumulatedMessage | None" = None) -> None:
        record: dict = {
            "messageId": envelope.message_id,
            "type": envelope.type.value,
            "isFinal": envelope.is_final,
            "applied": message is not None,
            "envelope": envelope.model_dump(mode="json", by_alias=True, exclude_none=True),
        }
        if message is not None and message.data_type is not None:
            record["dataType"] = getattr(message.data_type, "value", message.data_type)
        self._file.write(json.dumps(record, ensure_ascii=False, separators=(",", ":")) + "\n")
        self._file.flush()
        self.count += 1
        self._update_stats(record)

    def close(self) -> None:
        """Flush and close the JSONL file."""
        if self._file and not self._file.closed:
            self._file.flush()
            self._file.close()

    def _update_stats(self, record: dict) -> None:
        if record["type"] == "creation":
            self.creations += 1
            data_type = record.get("dataType", "unknown")
            self.data_types[data_type] = self.data_types.get(data_type, 0) + 1
        else:
            self.updates += 1

    def get_summary(self) -> dict:
        """Return a summary of the trace statistics."""
        return {
            "envelopes": self.count,
            "creations": self.creations,
            "updates": self.updates,
            "data_types": self.data_types,
        }
