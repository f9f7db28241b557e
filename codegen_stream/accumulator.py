"""MessageAccumulator – fold creation/update envelopes into per-message state."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from codegen_stream.envelope import Envelope, EnvelopeType

log = logging.getLogger("codegen-stream")


@dataclass
class AccumulatedMessage:
    message_id: str
    data_type: str | None
    result: str = ""
    error: str = ""
    is_final: bool = False

    def to_dict(self) -> dict:
        return {
            "messageId": self.message_id,
            "dataType": getattr(self.data_type, "value", self.data_type),
            "result": self.result,
            "error": self.error,
            "isFinal": self.is_final,
        }


class MessageAccumulator:
    """Owns the messageId -> AccumulatedMessage mapping for one stream."""

    def __init__(self):
        self._messages: dict[str, AccumulatedMessage] = {}
        # ids in the order they first became final
        self._final_order: list[str] = []

    def apply(self, envelope: Envelope) -> AccumulatedMessage | None:
        """Apply one envelope. Returns the affected message, or None for a no-op."""
        mid = envelope.message_id
        if envelope.type is EnvelopeType.CREATION:
            if mid in self._messages:
                log.warning(f"[{mid}] duplicate creation, replacing accumulated state")
                if mid in self._final_order:
                    self._final_order.remove(mid)
            msg = AccumulatedMessage(
                message_id=mid,
                data_type=envelope.data_type,
                result=envelope.data.result or "",
                error=envelope.data.error or "",
                is_final=envelope.is_final,
            )
            self._messages[mid] = msg
            if msg.is_final:
                self._final_order.append(mid)
            return msg

        msg = self._messages.get(mid)
        if msg is None:
            log.debug(f"[{mid}] update for unknown message ignored")
            return None
        if msg.is_final:
            log.warning(f"[{mid}] update after final ignored")
            return None
        msg.result += envelope.delta.result or ""
        msg.error += envelope.delta.error or ""
        if envelope.is_final:
            msg.is_final = True
            self._final_order.append(mid)
        return msg

    def get(self, message_id: str) -> AccumulatedMessage | None:
        return self._messages.get(message_id)

    def terminal_messages(self):
        """Yield every final message in the order each became final."""
        for mid in list(self._final_order):
            yield self._messages[mid]

    def snapshot(self) -> dict:
        return {mid: msg.to_dict() for mid, msg in self._messages.items()}

    def __len__(self) -> int:
        return len(self._messages)

    def __contains__(self, message_id) -> bool:
        return message_id in self._messages
