"""
livebridge replay - command-line entry point.

Replays recorded tool-call batches through the tool bridge without a live
session.  Each input line is one session ``toolcall`` payload::

    {"functionCalls": [{"id": "call-1", "name": "open_youtube", "args": {"query": "lofi beats"}}]}

Every correlated response is printed to stdout as one JSON line in the
session's ``functionResponses`` format.  Charts sent through
``render_altair`` are written to the configured HTML surface.

Usage::

    livebridge-replay calls.jsonl
    cat calls.jsonl | livebridge-replay --no-browser --unknown-tools error
    livebridge-replay --print-config
"""

import argparse
import asyncio
import json
import logging
import sys
import webbrowser
from pathlib import Path
from typing import Iterable, TextIO

from livebridge.binding import SessionBinding
from livebridge.config import Settings, get_settings
from livebridge.dispatcher import ToolCallDispatcher, UnknownToolPolicy
from livebridge.render_sink import HtmlChartRenderer, RenderSink
from livebridge.session.local import LocalSession
from livebridge.session.types import SessionProtocolError, ToolCallBatch, ToolResponseMessage
from livebridge.tools import SYSTEM_INSTRUCTION, build_default_registry
from livebridge.tools.render import GraphStore
from livebridge.tools.search import Navigator

logger = logging.getLogger(__name__)


def _log_only_navigator(url: str) -> None:
    logger.info("Browser disabled; would open %s", url)


def build_binding(
    settings: Settings,
    out: TextIO,
    navigator: Navigator | None = None,
) -> tuple[SessionBinding, LocalSession]:
    """Wire a ``LocalSession`` to the default tools, printing responses to *out*."""

    def _print_response(message: ToolResponseMessage) -> None:
        out.write(json.dumps(message.to_wire()) + "\n")
        out.flush()

    if navigator is None:
        navigator = webbrowser.open_new_tab if settings.open_browser else _log_only_navigator

    store = GraphStore()
    registry = build_default_registry(store, navigator=navigator, fetch_timeout=settings.fetch_timeout)
    session = LocalSession(on_response=_print_response)
    dispatcher = ToolCallDispatcher(
        session,
        registry,
        unknown_tool_policy=UnknownToolPolicy(settings.unknown_tool_policy),
    )
    sink = RenderSink(store, HtmlChartRenderer(), Path(settings.chart_surface))
    config = registry.build_session_config(settings, SYSTEM_INSTRUCTION)
    return SessionBinding(session, config, dispatcher, render_sink=sink), session


async def replay(
    lines: Iterable[str],
    settings: Settings,
    out: TextIO,
    navigator: Navigator | None = None,
) -> int:
    """Dispatch each JSON line in *lines* as one tool-call batch.

    Returns:
        The number of input lines that could not be parsed.
    """
    binding, session = build_binding(settings, out, navigator=navigator)
    bad_lines = 0

    async with binding:
        for lineno, line in enumerate(lines, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                batch = ToolCallBatch.from_wire(json.loads(line))
            except (json.JSONDecodeError, SessionProtocolError) as e:
                logger.error(f"Skipping line {lineno}: {e}")
                bad_lines += 1
                continue
            await session.emit_tool_call(batch)

    logger.info(f"Replay complete: {len(session.sent)} response(s), {bad_lines} bad line(s)")
    return bad_lines


def cli_main() -> None:
    """Entry point for the livebridge-replay console script."""
    settings = get_settings()

    parser = argparse.ArgumentParser(
        description="Replay live-session tool calls through the livebridge tools"
    )
    parser.add_argument(
        "input",
        nargs="?",
        default="-",
        help="JSON-lines file of toolcall payloads (default: stdin)",
    )
    parser.add_argument(
        "--print-config",
        action="store_true",
        help="Print the session configuration as JSON and exit",
    )
    parser.add_argument(
        "--unknown-tools",
        choices=[p.value for p in UnknownToolPolicy],
        default=settings.unknown_tool_policy,
        help=f"Handling of unregistered tool names (default: {settings.unknown_tool_policy})",
    )
    parser.add_argument(
        "--surface",
        type=str,
        default=settings.chart_surface,
        help=f"HTML file charts are rendered to (default: {settings.chart_surface})",
    )
    parser.add_argument(
        "--no-browser",
        action="store_true",
        help="Log navigation targets instead of opening a browser",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    args = parser.parse_args()

    # Override settings with CLI arguments if provided
    settings.unknown_tool_policy = args.unknown_tools
    settings.chart_surface = args.surface
    if args.no_browser:
        settings.open_browser = False

    logging.basicConfig(
        level="DEBUG" if args.debug else settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.print_config:
        registry = build_default_registry(GraphStore())
        config = registry.build_session_config(settings, SYSTEM_INSTRUCTION)
        print(json.dumps(config.to_wire(), indent=2))
        return

    if args.input == "-":
        bad_lines = asyncio.run(replay(sys.stdin, settings, sys.stdout))
    else:
        with open(args.input, encoding="utf-8") as fh:
            bad_lines = asyncio.run(replay(fh, settings, sys.stdout))

    sys.exit(1 if bad_lines else 0)


if __name__ == "__main__":
    cli_main()
