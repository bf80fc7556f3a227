"""
Render sink: redraws the chart whenever the stored graph specification changes.

The sink subscribes to a ``GraphStore``.  Each time the store receives a new
non-empty value it is parsed with ``parse_graph_spec`` and, if it is a valid
chart specification, handed to a ``ChartRenderer`` together with the target
surface.

Malformed specifications do not raise.  The sink skips the draw, records the
problem in ``last_error`` and, when the renderer offers a ``render_error``
method, asks it to show the message.  Renderers without one keep showing the
previous chart.

``HtmlChartRenderer`` is the bundled renderer: it writes a standalone
vega-embed page to a file path.
"""

from __future__ import annotations

import html
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from livebridge.tools.render import GraphStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GraphParseResult:
    """Outcome of parsing a graph specification string.

    Exactly one of ``spec`` and ``error`` is set.
    """

    spec: dict[str, Any] | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_graph_spec(text: str) -> GraphParseResult:
    """Parse *text* as a JSON chart specification.

    A specification must decode to a JSON object; anything else is reported
    as an error result.
    """
    try:
        spec = json.loads(text)
    except json.JSONDecodeError as exc:
        return GraphParseResult(error=f"Invalid graph JSON: {exc}")
    if not isinstance(spec, dict):
        return GraphParseResult(
            error=f"Graph specification must be a JSON object, got {type(spec).__name__}"
        )
    return GraphParseResult(spec=spec)


@runtime_checkable
class ChartRenderer(Protocol):
    """Protocol for the charting capability.

    Renderers may additionally define ``render_error(message, surface)`` to
    show a degraded state when a specification cannot be drawn.
    """

    def render(self, spec: dict[str, Any], surface: Any) -> None:
        """Draw *spec* into *surface*."""
        ...


_PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>{title}</title>
  <script src="https://cdn.jsdelivr.net/npm/vega@5"></script>
  <script src="https://cdn.jsdelivr.net/npm/vega-lite@5"></script>
  <script src="https://cdn.jsdelivr.net/npm/vega-embed@6"></script>
</head>
<body>
  <div class="vega-embed" id="vis"></div>
  <script type="text/javascript">
    vegaEmbed("#vis", {spec});
  </script>
</body>
</html>
"""

_ERROR_TEMPLATE = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{title}</title></head>
<body>
  <div class="vega-embed render-error"><pre>{message}</pre></div>
</body>
</html>
"""


class HtmlChartRenderer:
    """Writes each chart as a standalone vega-embed HTML page.

    The surface is a filesystem path; the file is overwritten on each render.
    """

    def __init__(self, title: str = "livebridge chart") -> None:
        self.title = title

    def render(self, spec: dict[str, Any], surface: Path | str) -> None:
        # "</" would close the script element early.
        payload = json.dumps(spec).replace("</", "<\\/")
        self._write(surface, _PAGE_TEMPLATE.format(title=html.escape(self.title), spec=payload))

    def render_error(self, message: str, surface: Path | str) -> None:
        self._write(
            surface,
            _ERROR_TEMPLATE.format(title=html.escape(self.title), message=html.escape(message)),
        )

    def _write(self, surface: Path | str, page: str) -> None:
        path = Path(surface)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(page, encoding="utf-8")
        logger.debug("Wrote chart page to %s", path)


class RenderSink:
    """Observes a ``GraphStore`` and re-renders on every new specification.

    Attributes:
        store: The observed graph slot.
        renderer: The charting capability.
        surface: Target handed to the renderer on every draw.
        render_count: Number of successful renders.
        last_error: Message for the most recent failed render, or ``None``
            after a successful one.
    """

    def __init__(self, store: GraphStore, renderer: ChartRenderer, surface: Any) -> None:
        self.store = store
        self.renderer = renderer
        self.surface = surface
        self.render_count = 0
        self.last_error: str | None = None
        self._attached = False

    def attach(self) -> None:
        """Start observing the store, drawing its current value if any."""
        if self._attached:
            return
        self.store.subscribe(self._on_change)
        self._attached = True
        if self.store.value:
            self._on_change(self.store.value)

    def detach(self) -> None:
        """Stop observing the store.  Safe to call more than once."""
        if not self._attached:
            return
        self.store.unsubscribe(self._on_change)
        self._attached = False

    def _on_change(self, value: str) -> None:
        if not value:
            return
        result = parse_graph_spec(value)
        if not result.ok:
            self._degrade(result.error or "Invalid graph specification")
            return
        try:
            self.renderer.render(result.spec, self.surface)
        except Exception as exc:
            logger.error("Chart renderer failed: %s", exc, exc_info=True)
            self._degrade(f"Render failed: {exc}")
            return
        self.render_count += 1
        self.last_error = None
        logger.info("Rendered chart #%d", self.render_count)

    def _degrade(self, message: str) -> None:
        self.last_error = message
        logger.warning("Graph not rendered: %s", message)
        render_error = getattr(self.renderer, "render_error", None)
        if render_error is None:
            return
        try:
            render_error(message, self.surface)
        except Exception as exc:
            logger.error("Chart renderer failed to show error: %s", exc, exc_info=True)
