"""
Search-and-open tools for the livebridge dispatcher.

A ``SearchAndOpenTool`` turns an optional query into a search URL and hands
it to a navigation callable (``webbrowser.open_new_tab`` by default).  With
no query it opens the site's homepage instead.  Navigation is best effort:
the tool always answers ``{"success": True}``.

Two instances are provided by factory functions:

- ``youtube_tool()``: ``open_youtube``
- ``pinterest_tool()``: ``open_pinterest``
"""

from __future__ import annotations

import asyncio
import logging
import webbrowser
from typing import Any, Callable
from urllib.parse import quote

from livebridge.session.types import SchemaType, ToolDeclaration, object_schema

logger = logging.getLogger(__name__)

Navigator = Callable[[str], Any]

YOUTUBE_SEARCH_URL = "https://www.youtube.com/results?search_query={query}"
YOUTUBE_HOME_URL = "https://youtube.com/"
PINTEREST_SEARCH_URL = "https://www.pinterest.com/search/pins/?q={query}"
PINTEREST_HOME_URL = "https://pinterest.com/"


def encode_query(query: str) -> str:
    """Percent-encode *query* for use inside a URL query string.

    Matches ``encodeURIComponent``: spaces become ``%20`` and reserved
    characters such as ``&``, ``=``, ``/`` and ``?`` are escaped.
    """
    return quote(query, safe="-_.!~*'()")


class SearchAndOpenTool:
    """Opens a site's search page (or homepage) in a browser.

    Attributes:
        declaration: The ``ToolDeclaration`` for this instance.
        search_url_template: Template with a ``{query}`` placeholder.
        homepage_url: URL opened when no query is supplied.
        navigator: Callable opening a URL in a new browsing context.
    """

    def __init__(
        self,
        declaration: ToolDeclaration,
        search_url_template: str,
        homepage_url: str,
        navigator: Navigator = webbrowser.open_new_tab,
    ) -> None:
        self.declaration = declaration
        self.search_url_template = search_url_template
        self.homepage_url = homepage_url
        self.navigator = navigator

    def build_url(self, query: str | None) -> str:
        """Return the search URL for *query*, or the homepage if it is empty."""
        if query:
            return self.search_url_template.format(query=encode_query(query))
        return self.homepage_url

    async def open(self, query: str | None) -> str:
        """Navigate to the URL for *query* and return it.

        The navigator runs in the default executor: console browsers make
        ``webbrowser`` wait on the browser process.
        """
        url = self.build_url(query)
        logger.info("%s opening %s", self.declaration.name, url)
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self.navigator, url)
        except Exception as exc:
            logger.warning("Navigation to %s failed: %s", url, exc)
        return url

    def as_dispatcher_entry(self):
        """Return an async callable for use with ``ToolRegistry``."""

        async def _call(args: dict[str, Any]) -> dict[str, Any]:
            query = args.get("query")
            await self.open(query if isinstance(query, str) else None)
            return {"success": True}

        return _call


def _declaration(name: str, site: str) -> ToolDeclaration:
    return ToolDeclaration(
        name=name,
        description=f"Searches for a query on {site} and opens the results page.",
        parameters=object_schema(
            {
                "query": (
                    SchemaType.STRING,
                    f"A search query for {site}. Opens the {site} search page with this query.",
                ),
            },
            required=["query"],
        ),
    )


YOUTUBE_DECLARATION = _declaration("open_youtube", "YouTube")
PINTEREST_DECLARATION = _declaration("open_pinterest", "Pinterest")


def youtube_tool(navigator: Navigator = webbrowser.open_new_tab) -> SearchAndOpenTool:
    return SearchAndOpenTool(YOUTUBE_DECLARATION, YOUTUBE_SEARCH_URL, YOUTUBE_HOME_URL, navigator)


def pinterest_tool(navigator: Navigator = webbrowser.open_new_tab) -> SearchAndOpenTool:
    return SearchAndOpenTool(PINTEREST_DECLARATION, PINTEREST_SEARCH_URL, PINTEREST_HOME_URL, navigator)
