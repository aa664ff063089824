"""Command line entry point.

Usage:
    python -m shorts_compose request.json [--output out.mp4] [--log-level DEBUG]
    python -m shorts_compose --check-renderer

``request.json`` holds a CompositionRequest (snake_case or camelCase keys).
The result is printed as JSON on stdout; failures print the error as JSON
on stderr and exit with status 1.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from shorts_compose.config import get_settings
from shorts_compose.render.composer import VideoComposer
from shorts_compose.render.executor import StageExecutor
from shorts_compose.schemas.composition import CompositionRequest


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shorts_compose",
        description="Compose a short video from rendered scene assets",
    )
    parser.add_argument("request", nargs="?", type=Path, help="Path to a request JSON file")
    parser.add_argument("--output", help="Override the request's output_path")
    parser.add_argument("--log-level", default=None, help="Logging level (default from settings)")
    parser.add_argument(
        "--check-renderer",
        action="store_true",
        help="Report whether ffmpeg is available and which video encoders it has",
    )
    return parser


async def _check_renderer() -> int:
    executor = StageExecutor()
    available = await executor.is_available()
    codecs = await executor.get_supported_codecs() if available else []
    print(json.dumps({"available": available, "video_codecs": codecs}, indent=2))
    return 0 if available else 1


async def _compose(request: CompositionRequest) -> int:
    outcome = await VideoComposer().compose(request)
    if outcome.error is not None:
        print(json.dumps(outcome.error.to_dict(), indent=2, ensure_ascii=False), file=sys.stderr)
        return 1
    print(outcome.unwrap().model_dump_json(indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=(args.log_level or get_settings().log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.check_renderer:
        return asyncio.run(_check_renderer())

    if args.request is None:
        parser.error("a request file is required unless --check-renderer is given")

    try:
        request = CompositionRequest.model_validate_json(args.request.read_text(encoding="utf-8"))
    except OSError as e:
        parser.error(f"cannot read {args.request}: {e}")
    except ValidationError as e:
        print(e, file=sys.stderr)
        return 2

    if args.output:
        request = request.model_copy(update={"output_path": args.output})

    return asyncio.run(_compose(request))
