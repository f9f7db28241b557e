"""Pytest configuration and shared fixtures."""

import json
import logging
import shutil
import tempfile
from pathlib import Path

import pytest

ARTIFACT = {
    "publishedAppLink": "https://x",
    "sourceCodeArchiveLink": "https://y",
    "appId": "a1",
    "version": "0.0.1",
}


def sse(obj) -> str:
    """Frame one envelope as an SSE record."""
    return f"data: {json.dumps(obj)}\n\n"


@pytest.fixture
def temp_dir():
    """Create a temporary directory for traces and captures."""
    d = tempfile.mkdtemp(prefix="codegen_stream_test_")
    yield Path(d)
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def generation_stream() -> str:
    """A full successful run: text, a tool call, then the artifact in two deltas."""
    artifact_json = json.dumps(ARTIFACT)
    half = len(artifact_json) // 2
    return "".join(
        [
            sse({"messageId": "m1", "type": "creation", "data": {"type": "text", "result": "Plan"}, "isFinal": False}),
            sse({"messageId": "m1", "type": "update", "delta": {"result": "ning"}, "isFinal": True}),
            ": keep-alive\n\n",
            sse({"messageId": "t1", "type": "creation", "data": {"type": "tool_call", "result": "ls"}, "isFinal": True}),
            sse({"messageId": "a1", "type": "creation", "data": {"type": "artifact_output"}, "isFinal": False}),
            sse({"messageId": "a1", "type": "update", "delta": {"result": artifact_json[:half]}, "isFinal": False}),
            sse({"messageId": "a1", "type": "update", "delta": {"result": artifact_json[half:]}, "isFinal": True}),
        ]
    )


@pytest.fixture(autouse=True)
def reset_cli_logging():
    """Drop handlers the CLI attached so they never outlive a captured stream."""
    yield
    log = logging.getLogger("codegen-stream")
    for handler in list(log.handlers):
        log.removeHandler(handler)
        handler.close()
    log.setLevel(logging.NOTSET)
