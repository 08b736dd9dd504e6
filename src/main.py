"""CLI entry point for running a single tool call against the real providers.

Handy for checking calendar credentials or SMS delivery without standing up
the server.  For production, use the FastAPI server (src/server.py).

Usage:
    uv run python -m src.main checkServiceArea '{"zip": "23220"}'
    uv run python -m src.main bookVirtualEstimate @booking.json --debug
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import uuid
from pathlib import Path

from dotenv import load_dotenv

from src.api.schemas import ToolName
from src.config import load_settings
from src.tools.dispatcher import create_tool_dispatcher

logger = logging.getLogger(__name__)


def _configure_logging(debug: bool = False) -> None:
    """Set up logging: WARNING by default, DEBUG when --debug is passed."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
    )

    if not debug:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("googleapiclient").setLevel(logging.WARNING)

    logging.getLogger("src").setLevel(logging.DEBUG if debug else logging.INFO)


def _load_arguments(raw: str) -> object:
    """Parse the arguments JSON, reading it from a file when prefixed with ``@``."""
    if raw.startswith("@"):
        raw = Path(raw[1:]).read_text(encoding="utf-8")
    return json.loads(raw)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run one Refresh Painting tool call")
    parser.add_argument("tool", help=f"one of: {', '.join(t.value for t in ToolName)}")
    parser.add_argument(
        "arguments", nargs="?", default="{}",
        help="JSON object of tool arguments, or @path/to/file.json",
    )
    parser.add_argument(
        "--debug", action="store_true",
        help="Show all log messages including HTTP requests",
    )
    args = parser.parse_args(argv)

    load_dotenv()
    _configure_logging(debug=args.debug)

    try:
        arguments = _load_arguments(args.arguments)
    except (OSError, json.JSONDecodeError) as e:
        print(f"Could not read arguments: {e}", file=sys.stderr)
        return 2

    dispatcher = create_tool_dispatcher(load_settings())
    result = dispatcher.dispatch(args.tool, arguments, request_id=f"cli-{uuid.uuid4().hex[:8]}")

    print(f"HTTP {result.status_code}")
    print(json.dumps(result.payload, indent=2, ensure_ascii=False))
    return 0 if result.status_code == 200 else 1


if __name__ == "__main__":
    sys.exit(main())
