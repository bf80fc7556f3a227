"""
In-process ``LiveSession`` implementation.

``LocalSession`` is a minimal event emitter plus response sink.  It stands in
for a real session transport when replaying recorded tool calls from the
command line, and is the session double used throughout the test suite.

Typical usage::

    session = LocalSession()
    dispatcher = ToolCallDispatcher(session, registry)
    dispatcher.acquire()

    await session.emit_tool_call(ToolCallBatch.from_wire(payload))
    for message in session.sent:
        print(message.to_wire())
"""

from __future__ import annotations

import logging
from typing import Callable

from livebridge.session.types import (
    TOOLCALL_EVENT,
    SessionConfig,
    ToolCallBatch,
    ToolCallListener,
    ToolResponseMessage,
)

logger = logging.getLogger(__name__)


class LocalSession:
    """Event source/sink living in the current process.

    Attributes:
        config: The most recent ``SessionConfig`` passed to ``configure``.
        sent: Every ``ToolResponseMessage`` sent so far, in send order.
    """

    def __init__(
        self,
        on_response: Callable[[ToolResponseMessage], None] | None = None,
    ) -> None:
        """
        Args:
            on_response: Optional callback invoked for each outbound message
                (after it has been recorded in ``sent``).
        """
        self.config: SessionConfig | None = None
        self.sent: list[ToolResponseMessage] = []
        self._on_response = on_response
        self._listeners: dict[str, list[ToolCallListener]] = {}

    # ------------------------------------------------------------------
    # LiveSession protocol
    # ------------------------------------------------------------------

    def configure(self, config: SessionConfig) -> None:
        self.config = config
        logger.debug(
            "Session configured: model=%s, tools=%d",
            config.model,
            len(config.declarations),
        )

    def on(self, event: str, listener: ToolCallListener) -> None:
        self._listeners.setdefault(event, []).append(listener)

    def off(self, event: str, listener: ToolCallListener) -> None:
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)

    def send_tool_response(self, message: ToolResponseMessage) -> None:
        self.sent.append(message)
        if self._on_response is not None:
            self._on_response(message)

    # ------------------------------------------------------------------
    # Event source
    # ------------------------------------------------------------------

    def listener_count(self, event: str = TOOLCALL_EVENT) -> int:
        """Return the number of listeners subscribed to *event*."""
        return len(self._listeners.get(event, []))

    async def emit_tool_call(self, batch: ToolCallBatch) -> None:
        """Deliver *batch* to every ``toolcall`` listener, one after another."""
        # Copy so listeners may unsubscribe while being notified.
        for listener in list(self._listeners.get(TOOLCALL_EVENT, [])):
            await listener(batch)
