"""
SessionBinding: mounts the tool bridge onto a live session.

Mounting configures the session (model options, system instruction, tool
declarations) and subscribes the dispatcher and render sink; unmounting
releases both.  The binding owns no ambient state: everything it needs is
passed to its constructor.
"""

from __future__ import annotations

import logging
from typing import Any

from livebridge.dispatcher import ToolCallDispatcher
from livebridge.render_sink import RenderSink
from livebridge.session.types import LiveSession, SessionConfig

logger = logging.getLogger(__name__)


class SessionBinding:
    """Explicit acquire/release lifecycle around a ``ToolCallDispatcher``.

    Attributes:
        session: The live session being configured.
        config: Configuration declared to the session on mount.
        dispatcher: Dispatcher subscribed while mounted.
        render_sink: Optional sink attached while mounted.
    """

    def __init__(
        self,
        session: LiveSession,
        config: SessionConfig,
        dispatcher: ToolCallDispatcher,
        render_sink: RenderSink | None = None,
    ) -> None:
        if dispatcher.session is not session:
            raise ValueError("dispatcher is bound to a different session")
        self.session = session
        self.config = config
        self.dispatcher = dispatcher
        self.render_sink = render_sink
        self._mounted = False

    @property
    def mounted(self) -> bool:
        return self._mounted

    def mount(self) -> None:
        """Configure the session and start handling tool calls."""
        if self._mounted:
            logger.debug("Binding already mounted")
            return
        self.session.configure(self.config)
        if self.render_sink is not None:
            self.render_sink.attach()
        self.dispatcher.acquire()
        self._mounted = True
        logger.info(
            "Mounted tool bridge: model=%s, tools=%s",
            self.config.model,
            [d.name for d in self.config.declarations],
        )

    def unmount(self) -> None:
        """Stop handling tool calls.  Safe to call more than once."""
        if not self._mounted:
            return
        self.dispatcher.release()
        if self.render_sink is not None:
            self.render_sink.detach()
        self._mounted = False
        logger.info("Unmounted tool bridge")

    async def __aenter__(self) -> SessionBinding:
        self.mount()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.unmount()
