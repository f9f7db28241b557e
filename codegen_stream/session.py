"""StreamSession – drive framer, accumulator and extractor over one response body."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, AsyncIterable, Iterable

from codegen_stream.accumulator import MessageAccumulator
from codegen_stream.artifact import Artifact, CorruptArtifactError, extract_artifact
from codegen_stream.envelope import Envelope, MalformedEnvelopeError, parse_envelope
from codegen_stream.sse import StreamFramer

if TYPE_CHECKING:
    from codegen_stream.trace import EnvelopeTraceWriter

log = logging.getLogger("codegen-stream")


class StreamIncompleteError(Exception):
    """The stream ended without producing an artifact."""


class StreamSession:
    """One accumulation session: raw chunks in, artifact out.

    Envelopes are applied strictly in the order their records were framed.
    With ``stop_on_artifact`` set, input fed after the artifact is ignored.
    """

    def __init__(self, *, stop_on_artifact: bool = True, trace: "EnvelopeTraceWriter | None" = None):
        self.framer = StreamFramer()
        self.accumulator = MessageAccumulator()
        self.stop_on_artifact = stop_on_artifact
        self.skipped = 0
        self._trace = trace
        self._artifact: Artifact | None = None

    @property
    def done(self) -> bool:
        return self.stop_on_artifact and self._artifact is not None

    def feed(self, chunk: str) -> list[Envelope]:
        """Feed text and apply every record it completes.

        Returns the envelopes that changed accumulated state; no-op updates
        are left out. If a corrupt artifact is found, CorruptArtifactError is
        raised and any input still buffered behind it is discarded.
        """
        if self.done:
            return []
        self.framer.feed(chunk)
        return self._process()

    def feed_bytes(self, chunk: bytes) -> list[Envelope]:
        if self.done:
            return []
        self.framer.feed_bytes(chunk)
        return self._process()

    def _process(self) -> list[Envelope]:
        applied: list[Envelope] = []
        for payload in self.framer.drain():
            try:
                envelope = parse_envelope(payload)
            except MalformedEnvelopeError as exc:
                self.skipped += 1
                log.debug(f"skipping record: {exc}")
                continue

            message = self.accumulator.apply(envelope)
            if self._trace:
                self._trace.write(envelope, message)
            if message is None:
                continue
            applied.append(envelope)

            try:
                artifact = extract_artifact(message)
            except CorruptArtifactError:
                self.framer.reset()
                raise
            if artifact is not None and self._artifact is None:
                self._artifact = artifact
                log.info(f"[{envelope.message_id}] artifact ready: app={artifact.app_id} v{artifact.version}")
                if self.stop_on_artifact:
                    self.framer.reset()
                    break
        return applied

    def current_artifact(self) -> Artifact | None:
        return self._artifact

    def finish(self) -> Artifact:
        """Call once the transport has closed. Raises if no artifact was seen."""
        if self._artifact is None:
            pending = len(self.accumulator) - len(list(self.accumulator.terminal_messages()))
            raise StreamIncompleteError(
                f"stream ended without an artifact ({len(self.accumulator)} messages, {pending} unfinished)"
            )
        return self._artifact


def consume(chunks: Iterable[str | bytes], **kwargs) -> Artifact:
    """Run a whole chunk sequence through a fresh session and return the artifact."""
    session = StreamSession(**kwargs)
    for chunk in chunks:
        if isinstance(chunk, bytes):
            session.feed_bytes(chunk)
        else:
            session.feed(chunk)
        if session.done:
            break
    return session.finish()


async def aconsume(chunks: AsyncIterable[str | bytes], **kwargs) -> Artifact:
    session = StreamSession(**kwargs)
    async for chunk in chunks:
        if isinstance(chunk, bytes):
            session.feed_bytes(chunk)
        else:
            session.feed(chunk)
        if session.done:
            break
    return session.finish()
