"""deck.gl backend: layer records, layer slots, icon atlas, instances and renderer."""

from .icon_atlas import (
    DEFAULT_SVG_ICONS,
    IconAtlas,
    IconRect,
    IconRegistry,
    build_icon_atlas,
    rasterize_svg,
)
from .instances import DeckInstance, DeckInstanceRegistry
from .layer_manager import LayerManager
from .layers import (
    CANONICAL_ORDER,
    LayerSlot,
    RenderLayer,
    build_arc_layer,
    build_geojson_layer,
    build_icon_layer,
    build_path_layer,
    build_trail_layer,
    icon_layer_data,
)
from .renderer import DeckGLRenderer

__all__ = [
    "DEFAULT_SVG_ICONS",
    "IconAtlas",
    "IconRect",
    "IconRegistry",
    "build_icon_atlas",
    "rasterize_svg",
    "DeckInstance",
    "DeckInstanceRegistry",
    "LayerManager",
    "CANONICAL_ORDER",
    "LayerSlot",
    "RenderLayer",
    "build_arc_layer",
    "build_geojson_layer",
    "build_icon_layer",
    "build_path_layer",
    "build_trail_layer",
    "icon_layer_data",
    "DeckGLRenderer",
]
