"""
Renderer factory.

Maps a backend name to its MapRenderer class. "echarts" is accepted as an
alias of the Plotly chart backend.
"""

import logging
from typing import Any, Dict, Optional, Type

from drillmap.config_types import AppConfig
from drillmap.deckgl.renderer import DeckGLRenderer
from drillmap.errors import MissingContainerError, UnsupportedRendererError
from drillmap.navigation.state import NavigationState
from drillmap.plotly_map.renderer import PlotlyMapRenderer
from drillmap.renderers.base import MapEvents, MapRenderer

logger = logging.getLogger(__name__)

RENDERERS: Dict[str, Type[MapRenderer]] = {
    "plotly": PlotlyMapRenderer,
    "echarts": PlotlyMapRenderer,
    "deckgl": DeckGLRenderer,
}


def create_renderer(
    kind: str,
    container: Optional[str],
    state: NavigationState,
    config: Optional[AppConfig] = None,
    events: Optional[MapEvents] = None,
    **options: Any,
) -> MapRenderer:
    """
    Build the renderer registered under `kind`.

    Args:
        kind: "plotly", "echarts" or "deckgl"
        container: Page element id; None raises MissingContainerError
        state: Shared NavigationState
        config: Application configuration
        events: UI callbacks
        **options: Backend-specific keyword arguments (mode, resolver, ...)

    Returns:
        New renderer instance

    Raises:
        UnsupportedRendererError: `kind` is not registered
        MissingContainerError: `container` is missing
    """
    renderer_cls = RENDERERS.get((kind or "").lower())
    if renderer_cls is None:
        raise UnsupportedRendererError(kind)
    if not container:
        raise MissingContainerError(f"Renderer '{kind}' needs a container id")

    logger.info(f"🧩 Creating {kind} renderer in '{container}'")
    return renderer_cls(container, state, config, events, **options)
