"""
Tool registry for the livebridge dispatcher.

Provides ``ToolRegistry``, a container mapping tool names to their
declarations, async handlers and handler category, plus the factory for the
``SessionConfig`` that declares those tools to the session.

Handlers come in two categories (``HandlerKind``):

- ``RESPOND``: the handler returns an output dict and the dispatcher sends
  exactly one correlated response for the call.
- ``NOTIFY``: the handler only updates local state; no response is sent.

Typical usage::

    from livebridge.tools.registry import HandlerKind, ToolRegistry
    from livebridge.tools.fetch import FetchDataTool
    from livebridge.tools.render import GraphStore, RenderAltairTool

    registry = ToolRegistry()

    fetch = FetchDataTool()
    registry.register(FetchDataTool.TOOL_DECLARATION, fetch.as_dispatcher_entry())

    render = RenderAltairTool(GraphStore())
    registry.register(
        RenderAltairTool.TOOL_DECLARATION,
        render.as_dispatcher_entry(),
        kind=HandlerKind.NOTIFY,
    )

    dispatcher = ToolCallDispatcher(session, registry)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Mapping

from livebridge.config import Settings
from livebridge.session.types import SessionConfig, ToolDeclaration

logger = logging.getLogger(__name__)

# Type alias for a single tool handler: async (args_dict) -> output dict, or
# None for notify-only handlers.
AsyncToolHandler = Callable[[dict[str, Any]], Awaitable[dict[str, Any] | None]]


class HandlerKind(str, Enum):
    """Whether the dispatcher owes the session a response for a tool."""

    RESPOND = "respond"
    NOTIFY = "notify"


@dataclass(frozen=True)
class RegisteredTool:
    """One registry entry: declaration, handler and category."""

    declaration: ToolDeclaration
    handler: AsyncToolHandler
    kind: HandlerKind = HandlerKind.RESPOND

    @property
    def name(self) -> str:
        return self.declaration.name


class ToolRegistry:
    """Registry mapping tool names to ``RegisteredTool`` entries.

    Use ``get_declarations()`` to obtain the declarations for the session
    configuration, and ``snapshot()`` to freeze the name → tool table a
    ``ToolCallDispatcher`` resolves against.
    """

    def __init__(self) -> None:
        self._tools: dict[str, RegisteredTool] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(
        self,
        declaration: ToolDeclaration,
        handler: AsyncToolHandler,
        kind: HandlerKind = HandlerKind.RESPOND,
    ) -> None:
        """Register a tool with its async handler.

        Args:
            declaration: The tool's ``ToolDeclaration``.
            handler: Async callable ``(args: dict) -> dict | None``.
            kind: ``HandlerKind.RESPOND`` (default) or ``HandlerKind.NOTIFY``.

        Raises:
            ValueError: If a tool with the same name is already registered.
        """
        if declaration.name in self._tools:
            raise ValueError(
                f"Tool {declaration.name!r} is already registered. "
                "Deregister it first before re-registering."
            )
        self._tools[declaration.name] = RegisteredTool(declaration, handler, kind)
        logger.debug("Registered tool: %r (%s)", declaration.name, kind.value)

    def deregister(self, name: str) -> None:
        """Remove a registered tool by name.

        Raises:
            KeyError: If the tool is not registered.
        """
        if name not in self._tools:
            raise KeyError(f"Tool {name!r} is not registered.")
        del self._tools[name]
        logger.debug("Deregistered tool: %r", name)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def get_declarations(self) -> list[ToolDeclaration]:
        """Return all registered ``ToolDeclaration`` objects (insertion order)."""
        return [tool.declaration for tool in self._tools.values()]

    def resolve(self, name: str) -> RegisteredTool | None:
        """Return the entry registered under *name* (case-sensitive), if any."""
        return self._tools.get(name)

    def snapshot(self) -> Mapping[str, RegisteredTool]:
        """Return a read-only copy of the current name → tool table.

        Later registrations are not reflected in the returned mapping.
        """
        return MappingProxyType(dict(self._tools))

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    # ------------------------------------------------------------------
    # Session configuration
    # ------------------------------------------------------------------

    def build_session_config(
        self,
        settings: Settings,
        system_instruction: str,
    ) -> SessionConfig:
        """Build the ``SessionConfig`` declaring every registered tool.

        Args:
            settings: Supplies model, modality, voice and search flag.
            system_instruction: Instruction text sent to the model.
        """
        return SessionConfig(
            model=settings.model,
            response_modalities=settings.response_modality,
            voice_name=settings.voice_name,
            system_instruction=system_instruction,
            declarations=tuple(self.get_declarations()),
            google_search=settings.google_search,
        )
