"""Artifact extraction from a finished ``artifact_output`` message."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from codegen_stream.accumulator import AccumulatedMessage
from codegen_stream.envelope import DataType


class CorruptArtifactError(Exception):
    """A final artifact_output message whose result is not a valid artifact."""

    def __init__(self, message: str, message_id: str, result: str) -> None:
        super().__init__(message)
        self.message_id = message_id
        self.result = result


class Artifact(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    published_app_link: str = Field(alias="publishedAppLink")
    source_code_archive_link: str = Field(alias="sourceCodeArchiveLink")
    app_id: str = Field(alias="appId")
    version: str

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)


def extract_artifact(message: AccumulatedMessage | None) -> Artifact | None:
    """Return the Artifact carried by *message*, or None if it is not one yet.

    Raises CorruptArtifactError when the message is a final artifact_output
    but its result does not decode to the four expected string fields.
    """
    if message is None or message.data_type != DataType.ARTIFACT_OUTPUT or not message.is_final:
        return None

    try:
        return Artifact.model_validate_json(message.result)
    except ValidationError as exc:
        fields = ", ".join(sorted({".".join(str(p) for p in err["loc"]) or "<root>" for err in exc.errors()}))
        raise CorruptArtifactError(
            f"[{message.message_id}] artifact result is invalid ({fields})",
            message.message_id,
            message.result,
        ) from exc
