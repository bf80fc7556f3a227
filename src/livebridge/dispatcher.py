"""
ToolCallDispatcher: routes session tool calls to handlers and correlates
their responses.

For every ``ToolCallBatch`` the session delivers, each call is resolved by
exact name against a snapshot of the ``ToolRegistry`` taken at construction
time and all calls are run concurrently.  Calls to ``RESPOND`` tools always
produce exactly one ``ToolResponse`` carrying the call's id, whether the
handler succeeds or raises.  Calls to ``NOTIFY`` tools never produce one.

Typical usage::

    dispatcher = ToolCallDispatcher(session, registry)
    dispatcher.acquire()      # subscribe to "toolcall"
    ...
    dispatcher.release()      # unsubscribe on teardown
"""

from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from typing import Any

from livebridge.session.types import (
    TOOLCALL_EVENT,
    LiveSession,
    ToolCall,
    ToolCallBatch,
    ToolResponse,
    ToolResponseMessage,
)
from livebridge.tools.registry import HandlerKind, ToolRegistry

logger = logging.getLogger(__name__)


class UnknownToolPolicy(str, Enum):
    """What to do with a call naming a tool that is not registered."""

    IGNORE = "ignore"  # log and drop; the session gets no response
    ERROR = "error"  # answer with an "Unsupported tool" error response


class ToolCallDispatcher:
    """Dispatches tool-call batches from a ``LiveSession`` to registered handlers.

    Attributes:
        session: The session the dispatcher listens to and answers.
        unknown_tool_policy: Handling for calls naming unregistered tools.
    """

    def __init__(
        self,
        session: LiveSession,
        registry: ToolRegistry,
        unknown_tool_policy: UnknownToolPolicy = UnknownToolPolicy.IGNORE,
    ) -> None:
        self.session = session
        self.unknown_tool_policy = UnknownToolPolicy(unknown_tool_policy)
        self._routes = registry.snapshot()
        self._active = False

    # ------------------------------------------------------------------
    # Subscription lifecycle
    # ------------------------------------------------------------------

    @property
    def active(self) -> bool:
        """``True`` while subscribed to the session's ``toolcall`` event."""
        return self._active

    def acquire(self) -> None:
        """Subscribe to the session's ``toolcall`` event (once)."""
        if self._active:
            logger.debug("Dispatcher already subscribed; ignoring acquire()")
            return
        self.session.on(TOOLCALL_EVENT, self.handle_tool_call)
        self._active = True
        logger.debug("Dispatcher subscribed (%d tools)", len(self._routes))

    def release(self) -> None:
        """Unsubscribe from the session.  Safe to call more than once."""
        if not self._active:
            return
        self.session.off(TOOLCALL_EVENT, self.handle_tool_call)
        self._active = False
        logger.debug("Dispatcher unsubscribed")

    async def __aenter__(self) -> ToolCallDispatcher:
        self.acquire()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.release()

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def handle_tool_call(self, batch: ToolCallBatch) -> list[ToolResponse]:
        """Run every call in *batch* and send the correlated responses.

        All calls are launched simultaneously via ``asyncio.gather``; each
        response is sent as soon as its handler finishes, so arrival order
        at the session is not guaranteed.

        Returns:
            The responses that were produced, in the order of the calls that
            produced them (notify and ignored calls are omitted).
        """
        if not self._active:
            logger.debug("Dispatcher released; dropping batch of %d call(s)", len(batch))
            return []

        logger.info(
            "Received tool call batch: %s",
            ", ".join(f"{fc.name}({fc.id})" for fc in batch.function_calls),
        )
        t0 = time.monotonic()
        results = await asyncio.gather(*[self._run_one(fc) for fc in batch.function_calls])
        logger.debug(
            "Dispatched %d tool call(s) in %.3fs",
            len(batch),
            time.monotonic() - t0,
        )
        return [r for r in results if r is not None]

    async def _run_one(self, call: ToolCall) -> ToolResponse | None:
        route = self._routes.get(call.name)
        if route is None:
            return self._unknown_tool(call)

        logger.debug("Dispatching tool: %s(%s)", call.name, call.args)

        if route.kind is HandlerKind.NOTIFY:
            try:
                await route.handler(call.args)
            except Exception as exc:
                logger.error("Notify tool %r failed: %s", call.name, exc, exc_info=True)
            return None

        try:
            output = await route.handler(call.args)
        except Exception as exc:
            logger.error("Tool %r failed: %s", call.name, exc, exc_info=True)
            output = {"error": str(exc) or type(exc).__name__}
        if output is None:
            output = {}

        response = ToolResponse(id=call.id, output=output)
        self._send(response)
        return response

    def _unknown_tool(self, call: ToolCall) -> ToolResponse | None:
        if self.unknown_tool_policy is UnknownToolPolicy.IGNORE:
            logger.warning("Unknown tool requested: %r (id=%s); no response sent", call.name, call.id)
            return None
        logger.warning("Unknown tool requested: %r (id=%s); answering with error", call.name, call.id)
        response = ToolResponse(id=call.id, output={"error": f"Unsupported tool: {call.name!r}"})
        self._send(response)
        return response

    def _send(self, response: ToolResponse) -> None:
        try:
            self.session.send_tool_response(ToolResponseMessage(function_responses=(response,)))
        except Exception as exc:
            logger.error(
                "Failed to send response for call %s: %s", response.id, exc, exc_info=True
            )
