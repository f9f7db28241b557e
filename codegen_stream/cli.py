"""CLI entry points for codegen-stream."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path

import aiohttp

from codegen_stream import __version__
from codegen_stream.artifact import Artifact, CorruptArtifactError
from codegen_stream.client import DEFAULT_TIMEOUT, GenerationRequestError, generate
from codegen_stream.session import StreamIncompleteError, StreamSession
from codegen_stream.trace import EnvelopeTraceWriter

log = logging.getLogger("codegen-stream")

REPLAY_CHUNK_SIZE = 4096

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def setup_logging(verbose: bool = False, log_file: str | None = None) -> None:
    if log_file:
        handler: logging.Handler = logging.FileHandler(log_file, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s %(message)s", datefmt="%H:%M:%S"))
    for old in list(log.handlers):
        log.removeHandler(old)
    log.addHandler(handler)
    log.setLevel(logging.DEBUG if verbose else logging.INFO)
    # Keep aiohttp's own loggers quiet
    logging.getLogger("aiohttp").setLevel(logging.WARNING)


def print_artifact(artifact: Artifact, as_json: bool = False) -> None:
    if as_json:
        print(json.dumps(artifact.to_dict(), indent=2, ensure_ascii=False))
        return
    print("\n✅ Generation complete")
    print(f"   App ID:  {artifact.app_id}")
    print(f"   Version: {artifact.version}")
    print(f"   App:     {artifact.published_app_link}")
    print(f"   Source:  {artifact.source_code_archive_link}")


def _print_trace_summary(writer: EnvelopeTraceWriter) -> None:
    stats = writer.get_summary()
    print(
        f"\n📊 Envelopes: {stats['envelopes']} ({stats['creations']} creations / {stats['updates']} updates)",
        file=sys.stderr,
    )
    for data_type, count in sorted(stats["data_types"].items()):
        print(f"   {data_type}: {count}", file=sys.stderr)
    print(f"   Trace: {writer.path}", file=sys.stderr)


def replay_main(args: argparse.Namespace) -> int:
    """Feed a saved SSE capture through a session."""
    path = Path(args.capture)
    if not path.exists():
        print(f"Error: capture file not found: {path}", file=sys.stderr)
        return EXIT_USAGE

    writer = EnvelopeTraceWriter(Path(args.trace)) if args.trace else None
    session = StreamSession(trace=writer)
    try:
        with open(path, "rb") as f:
            while not session.done:
                chunk = f.read(REPLAY_CHUNK_SIZE)
                if not chunk:
                    break
                session.feed_bytes(chunk)
        artifact = session.finish()
    except (CorruptArtifactError, StreamIncompleteError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_FAILED
    finally:
        if writer:
            writer.close()
            _print_trace_summary(writer)

    print_artifact(artifact, as_json=args.json)
    return EXIT_OK


async def run_main(args: argparse.Namespace) -> int:
    """Call the generation endpoint and print the artifact."""
    if not args.url:
        print("Error: no endpoint URL (use --url or set CODEGEN_API_URL)", file=sys.stderr)
        return EXIT_USAGE
    if not args.api_key:
        print("Error: no API key (use --api-key or set CODEGEN_API_KEY)", file=sys.stderr)
        return EXIT_USAGE

    writer = EnvelopeTraceWriter(Path(args.trace)) if args.trace else None
    try:
        artifact = await generate(
            args.url,
            args.prompt,
            api_key=args.api_key,
            timeout=args.timeout,
            session=StreamSession(trace=writer),
        )
    except (GenerationRequestError, CorruptArtifactError, StreamIncompleteError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_FAILED
    except asyncio.TimeoutError:
        print(f"Error: no artifact within {args.timeout:.0f}s", file=sys.stderr)
        return EXIT_FAILED
    except aiohttp.ClientError as exc:
        print(f"Error: request to {args.url} failed: {exc}", file=sys.stderr)
        return EXIT_FAILED
    finally:
        if writer:
            writer.close()
            _print_trace_summary(writer)

    print_artifact(artifact, as_json=args.json)
    return EXIT_OK


def _env_timeout() -> float:
    raw = os.environ.get("CODEGEN_TIMEOUT")
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        return DEFAULT_TIMEOUT


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    if argv is None:
        argv = sys.argv[1:]

    parser = argparse.ArgumentParser(
        prog="codegen-stream",
        description="Stream a remote code generation run and print the resulting artifact.",
    )
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--log-file", default=None, help="Write logs to this file instead of stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Start a generation and wait for its artifact")
    run.add_argument("--prompt", required=True, help="What to build")
    run.add_argument(
        "--url",
        default=os.environ.get("CODEGEN_API_URL"),
        help="Streaming endpoint URL (default: $CODEGEN_API_URL)",
    )
    run.add_argument(
        "--api-key",
        default=os.environ.get("CODEGEN_API_KEY"),
        dest="api_key",
        help="API key (default: $CODEGEN_API_KEY)",
    )
    run.add_argument(
        "--timeout",
        type=float,
        default=_env_timeout(),
        help=f"Total request timeout in seconds (default: $CODEGEN_TIMEOUT or {DEFAULT_TIMEOUT:.0f})",
    )

    replay = sub.add_parser("replay", help="Replay a saved SSE capture")
    replay.add_argument("capture", help="File holding the raw SSE response body")

    for p in (run, replay):
        p.add_argument("--trace", default=None, help="Record applied envelopes to this JSONL file")
        p.add_argument("--json", action="store_true", help="Print the artifact as JSON")

    return parser.parse_args(argv)


def main_entry(argv: list[str] | None = None) -> int:
    """Entry point for the codegen-stream CLI."""
    args = parse_args(argv)
    setup_logging(args.verbose, args.log_file)
    if args.command == "replay":
        return replay_main(args)
    try:
        return asyncio.run(run_main(args))
    except KeyboardInterrupt:
        return EXIT_FAILED


def main() -> None:
    sys.exit(main_entry())
