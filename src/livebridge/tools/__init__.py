"""
Built-in tools for the livebridge dispatcher.

Each tool module exposes:
- A tool class with an async implementation.
- A ``TOOL_DECLARATION`` (or ``declaration``) for the session configuration.
- An ``as_dispatcher_entry()`` method returning a handler for ``ToolRegistry``.

``build_default_registry()`` registers the four built-in tools in declaration
order; ``SYSTEM_INSTRUCTION`` is the instruction text naming them.

Quick-start example::

    from livebridge.tools import build_default_registry
    from livebridge.tools.render import GraphStore

    store = GraphStore()
    registry = build_default_registry(store)
    config = registry.build_session_config(settings, SYSTEM_INSTRUCTION)
"""

from __future__ import annotations

import webbrowser

from livebridge.tools.fetch import FetchDataTool
from livebridge.tools.registry import (
    AsyncToolHandler,
    HandlerKind,
    RegisteredTool,
    ToolRegistry,
)
from livebridge.tools.render import GraphStore, RenderAltairTool
from livebridge.tools.search import Navigator, SearchAndOpenTool, pinterest_tool, youtube_tool

SYSTEM_INSTRUCTION = (
    "You are my helpful assistant, cut short the response and answer to the point. Use:\n"
    '- "render_altair" to generate graphs.\n'
    '- "fetch_data" to fetch external data.\n'
    '- "open_youtube" to open a YouTube video when asked.\n'
    '- "open_pinterest" to open a Pinterest search page when asked.'
)


def build_default_registry(
    store: GraphStore,
    navigator: Navigator = webbrowser.open_new_tab,
    fetch_timeout: float = 10.0,
) -> ToolRegistry:
    """Register ``render_altair``, ``open_youtube``, ``open_pinterest`` and ``fetch_data``.

    Args:
        store: Slot written by ``render_altair``.
        navigator: Callable used by the search-and-open tools.
        fetch_timeout: HTTP timeout for ``fetch_data`` in seconds.
    """
    registry = ToolRegistry()

    render = RenderAltairTool(store)
    registry.register(
        RenderAltairTool.TOOL_DECLARATION,
        render.as_dispatcher_entry(),
        kind=HandlerKind.NOTIFY,
    )

    for tool in (youtube_tool(navigator), pinterest_tool(navigator)):
        registry.register(tool.declaration, tool.as_dispatcher_entry())

    fetch = FetchDataTool(timeout=fetch_timeout)
    registry.register(FetchDataTool.TOOL_DECLARATION, fetch.as_dispatcher_entry())

    return registry


__all__ = [
    "SYSTEM_INSTRUCTION",
    "AsyncToolHandler",
    "FetchDataTool",
    "GraphStore",
    "HandlerKind",
    "RegisteredTool",
    "RenderAltairTool",
    "SearchAndOpenTool",
    "ToolRegistry",
    "build_default_registry",
]
