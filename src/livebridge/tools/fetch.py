"""
Data-fetch tool for the livebridge dispatcher.

``fetch_data`` lets the model pull external JSON (for example a dataset to
chart with ``render_altair``).  A single GET is made per call; the body is
parsed as JSON and returned as ``{"data": ...}``.  Any network failure or
non-JSON body is reported to the session with a generic message and logged,
never retried.

The ``FetchDataTool`` class exposes:

- ``FetchDataTool.TOOL_DECLARATION``: the declaration sent to the session.
- ``FetchDataTool.fetch(url)``: async method performing the request.
- ``FetchDataTool.as_dispatcher_entry()``: a respond-category handler for
  ``ToolRegistry``.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from livebridge.session.types import SchemaType, ToolDeclaration, object_schema

logger = logging.getLogger(__name__)

FETCH_ERROR_MESSAGE = "Failed to fetch data."


class FetchDataTool:
    """Fetches a URL and returns its JSON body.

    Attributes:
        TOOL_DECLARATION: Ready-to-use ``ToolDeclaration``.
        timeout: HTTP request timeout in seconds (default 10).
    """

    TOOL_DECLARATION: ToolDeclaration = ToolDeclaration(
        name="fetch_data",
        description=(
            "Fetches JSON data from an external URL. "
            "Returns the parsed response body."
        ),
        parameters=object_schema(
            {
                "url": (
                    SchemaType.STRING,
                    "The absolute http(s) URL of a JSON resource to fetch.",
                ),
            },
            required=["url"],
        ),
    )

    def __init__(self, timeout: float = 10.0) -> None:
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def fetch(self, url: str) -> Any:
        """GET *url* and return the parsed JSON body.

        The status code is not checked: an error page with a JSON body is
        returned as data.

        Raises:
            httpx.HTTPError: On transport failures (connection, timeout,
                invalid URL).
            ValueError: If the body is not valid JSON.
        """
        logger.debug("Fetching data from %s", url)
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            response = await client.get(url)
            return response.json()

    def as_dispatcher_entry(self):
        """Return an async callable for use with ``ToolRegistry``."""

        async def _call(args: dict[str, Any]) -> dict[str, Any]:
            url = args.get("url")
            if not url or not isinstance(url, str):
                logger.error("fetch_data called without a url: %r", args)
                return {"error": FETCH_ERROR_MESSAGE}
            try:
                data = await self.fetch(url)
            except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
                logger.error("Error fetching data from %s: %s", url, exc)
                return {"error": FETCH_ERROR_MESSAGE}
            logger.info("Fetched data from %s", url)
            return {"data": data}

        return _call
