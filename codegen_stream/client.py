"""Transport – POST a generation request and stream the SSE response body."""

from __future__ import annotations

import logging
import time

import aiohttp

from codegen_stream.artifact import Artifact
from codegen_stream.session import StreamSession

log = logging.getLogger("codegen-stream")

DEFAULT_TIMEOUT = 900.0


class GenerationRequestError(Exception):
    """The endpoint answered with a non-200 status."""

    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"generation request failed with HTTP {status}: {body[:200]}")
        self.status = status
        self.body = body


def build_headers(api_key: str | None) -> dict[str, str]:
    headers = {"Accept": "text/event-stream", "Content-Type": "application/json"}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    return headers


async def stream_generation(
    session: aiohttp.ClientSession,
    url: str,
    payload: dict,
    *,
    api_key: str | None = None,
    timeout: float = DEFAULT_TIMEOUT,
):
    """Yield raw body chunks from the streaming endpoint in arrival order.

    The response is released when the generator finishes or is closed early.
    """
    async with session.post(
        url,
        json=payload,
        headers=build_headers(api_key),
        timeout=aiohttp.ClientTimeout(total=timeout, sock_read=300),
    ) as resp:
        if resp.status != 200:
            body = await resp.text(errors="replace")
            raise GenerationRequestError(resp.status, body)
        async for chunk in resp.content.iter_any():
            yield chunk


async def generate(
    url: str,
    prompt: str,
    *,
    api_key: str | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    session: StreamSession | None = None,
    extra: dict | None = None,
) -> Artifact:
    """Run one generation to completion and return its artifact.

    Stops reading as soon as the artifact arrives unless the given session
    was created with ``stop_on_artifact=False``.
    """
    stream_session = session or StreamSession()
    payload = {"prompt": prompt, **(extra or {})}
    t0 = time.monotonic()
    log.info(f"→ POST {url} (prompt={len(prompt)} chars)")

    async with aiohttp.ClientSession() as http:
        chunks = stream_generation(http, url, payload, api_key=api_key, timeout=timeout)
        try:
            async for chunk in chunks:
                stream_session.feed_bytes(chunk)
                if stream_session.done:
                    break
        finally:
            await chunks.aclose()

    duration_ms = int((time.monotonic() - t0) * 1000)
    log.info(
        f"← stream done ({duration_ms}ms, messages={len(stream_session.accumulator)}, "
        f"skipped={stream_session.skipped})"
    )
    return stream_session.finish()
