"""
Chart tool for the livebridge dispatcher.

``render_altair`` hands the bridge a serialized chart specification (an
Altair / Vega-Lite JSON string).  The handler stores the raw string in a
``GraphStore`` and returns nothing: parsing and drawing happen in the
``RenderSink`` that observes the store.

The ``RenderAltairTool`` class exposes:

- ``RenderAltairTool.TOOL_DECLARATION``: the declaration sent to the session.
- ``RenderAltairTool.as_dispatcher_entry()``: a notify-category handler for
  ``ToolRegistry``.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from livebridge.session.types import SchemaType, ToolDeclaration, object_schema

logger = logging.getLogger(__name__)

GraphListener = Callable[[str], None]


class GraphStore:
    """Single most-recent-wins slot holding the current graph specification.

    Listeners are called synchronously with the new value, and only when the
    value actually changes.  The store is a plain attribute: safe for
    single-threaded asyncio use without locking.
    """

    def __init__(self, value: str = "") -> None:
        self._value = value
        self._listeners: list[GraphListener] = []

    @property
    def value(self) -> str:
        return self._value

    def set(self, value: str) -> bool:
        """Replace the stored specification.

        Returns:
            ``True`` if the value changed and listeners were notified.
        """
        if value == self._value:
            logger.debug("Graph spec unchanged; skipping notify")
            return False
        self._value = value
        for listener in list(self._listeners):
            listener(value)
        return True

    def subscribe(self, listener: GraphListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: GraphListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)


class RenderAltairTool:
    """Stores chart specifications for the render sink.

    Attributes:
        TOOL_DECLARATION: Ready-to-use ``ToolDeclaration``.
        store: The ``GraphStore`` written by this tool.
    """

    TOOL_DECLARATION: ToolDeclaration = ToolDeclaration(
        name="render_altair",
        description="Displays an Altair graph in JSON format.",
        parameters=object_schema(
            {
                "json_graph": (
                    SchemaType.STRING,
                    "JSON STRING representation of the graph to render. "
                    "Must be a string, not a JSON object.",
                ),
            },
            required=["json_graph"],
        ),
    )

    def __init__(self, store: GraphStore) -> None:
        self.store = store

    def as_dispatcher_entry(self):
        """Return an async notify handler for use with ``ToolRegistry``.

        Usage::

            render = RenderAltairTool(store)
            registry.register(
                RenderAltairTool.TOOL_DECLARATION,
                render.as_dispatcher_entry(),
                kind=HandlerKind.NOTIFY,
            )
        """

        async def _call(args: dict[str, Any]) -> None:
            json_graph = args.get("json_graph")
            if json_graph is None:
                logger.warning("render_altair called without json_graph; keeping current graph")
                return None
            if not isinstance(json_graph, str):
                # Models occasionally ignore the "must be a string" hint.
                logger.warning(
                    "render_altair received %s instead of a string; ignoring",
                    type(json_graph).__name__,
                )
                return None
            changed = self.store.set(json_graph)
            logger.debug("render_altair stored %d chars (changed=%s)", len(json_graph), changed)
            return None

        return _call
