"""codegen-stream – reassemble a code generation SSE stream into its final artifact."""

__version__ = "0.1.0"

from codegen_stream.accumulator import AccumulatedMessage, MessageAccumulator  # noqa: E402
from codegen_stream.artifact import Artifact, CorruptArtifactError, extract_artifact  # noqa: E402
from codegen_stream.envelope import (  # noqa: E402
    CreationData,
    DataType,
    Delta,
    Envelope,
    EnvelopeType,
    MalformedEnvelopeError,
    parse_envelope,
)
from codegen_stream.session import StreamIncompleteError, StreamSession, aconsume, consume  # noqa: E402
from codegen_stream.sse import StreamFramer  # noqa: E402

__all__ = [
    "AccumulatedMessage",
    "Artifact",
    "CorruptArtifactError",
    "CreationData",
    "DataType",
    "Delta",
    "Envelope",
    "EnvelopeType",
    "MalformedEnvelopeError",
    "MessageAccumulator",
    "StreamFramer",
    "StreamIncompleteError",
    "StreamSession",
    "aconsume",
    "consume",
    "extract_artifact",
    "parse_envelope",
]
