"""Envelope – one decoded JSON object from the generation stream."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class EnvelopeType(str, Enum):
    CREATION = "creation"
    UPDATE = "update"


class DataType(str, Enum):
    TEXT = "text"
    TOOL_CALL = "tool_call"
    TOOL_RESULT = "tool_result"
    ARTIFACT_OUTPUT = "artifact_output"


class MalformedEnvelopeError(ValueError):
    """Payload could not be turned into an Envelope."""


class CreationData(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Optional[str] = None
    result: Optional[str] = None
    error: Optional[str] = None


class Delta(BaseModel):
    model_config = ConfigDict(frozen=True)

    result: Optional[str] = None
    error: Optional[str] = None


class Envelope(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    message_id: str = Field(alias="messageId")
    type: EnvelopeType
    is_final: bool = Field(default=False, alias="isFinal")
    data: CreationData = Field(default_factory=CreationData)
    delta: Delta = Field(default_factory=Delta)

    @property
    def data_type(self) -> DataType | str | None:
        if self.type is not EnvelopeType.CREATION or self.data.type is None:
            return None
        try:
            return DataType(self.data.type)
        except ValueError:
            # Unknown data types are carried through as plain strings
            return self.data.type


def parse_envelope(payload: str) -> Envelope:
    """Decode a framed payload string into an Envelope.

    Only ``messageId`` and ``type`` are required; extra keys are ignored.
    """
    try:
        return Envelope.model_validate_json(payload)
    except ValidationError as exc:
        first = exc.errors()[0]["msg"]
        raise MalformedEnvelopeError(f"invalid envelope ({exc.error_count()} errors, first: {first})") from exc
