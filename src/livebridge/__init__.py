"""
livebridge - tool-call bridge between a live AI session and local side effects.

This library answers the function calls a live multimodal session emits:

- Tool registry with declarations sent to the session on configuration
- Dispatcher guaranteeing one correlated response per call
- Built-in tools: chart rendering, JSON fetching, YouTube/Pinterest search
- Render sink redrawing the chart whenever a new specification arrives

Quick Start:
    >>> from livebridge import LocalSession, SessionBinding, ToolCallDispatcher
    >>> from livebridge.tools import SYSTEM_INSTRUCTION, GraphStore, build_default_registry
    >>> session = LocalSession()
    >>> registry = build_default_registry(GraphStore())
    >>> dispatcher = ToolCallDispatcher(session, registry)
    >>> config = registry.build_session_config(get_settings(), SYSTEM_INSTRUCTION)
    >>> async with SessionBinding(session, config, dispatcher):
    ...     await session.emit_tool_call(batch)
"""

from livebridge.binding import SessionBinding
from livebridge.config import Settings, get_settings
from livebridge.dispatcher import ToolCallDispatcher, UnknownToolPolicy
from livebridge.render_sink import RenderSink
from livebridge.session import LiveSession, LocalSession

__version__ = "0.1.0"
__all__ = [
    "LiveSession",
    "LocalSession",
    "RenderSink",
    "SessionBinding",
    "Settings",
    "ToolCallDispatcher",
    "UnknownToolPolicy",
    "get_settings",
]
