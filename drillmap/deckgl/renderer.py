#!/usr/bin/env python3
"""
deck.gl Map Renderer

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Drive a deck.gl scene from navigation state and overlays.
Keeps four layer slots (boundary, points, lines, line-trails) in a
LayerManager and pushes them into a registered DeckInstance on every change
and every animation tick. The scene exports to deck.gl JSON / standalone
HTML through pydeck.

Key Interactions:
- set_geo_data()  -> GeoJsonLayer in the boundary slot, clears loading flag
- apply_series()  -> IconLayer from points + flow lines for the current time
- on_tick()       -> 2D: PathLayer + ScatterplotLayer trailing dots
                     3D: ArcLayer filtered to the visible time window
- handle_pick()   -> point selection (empty space / other layers deselect)
- handle_hover()  -> hovered region is filled in the hover color

Coordinates are plain lng/lat; the deck.gl map view projects them itself, so
overlays are never reprojected here.

Dependencies:
- pydeck (scene export)
- Pillow / cairosvg via IconRegistry (icon atlas)

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between sections
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from drillmap.animation.clock import AnimationClock
from drillmap.config_types import AppConfig
from drillmap.deckgl.icon_atlas import IconRegistry, Rasterizer
from drillmap.deckgl.instances import DeckInstance, DeckInstanceRegistry
from drillmap.deckgl.layer_manager import LayerManager
from drillmap.deckgl.layers import (
    LayerSlot,
    build_arc_layer,
    build_geojson_layer,
    build_icon_layer,
    build_path_layer,
    build_trail_layer,
)
from drillmap.flowlines.curvature import CurvatureCalculator
from drillmap.flowlines.line2d import CurvePath, FlowLineRenderer2D
from drillmap.flowlines.line3d import FlowLineRenderer3D
from drillmap.geo.geo_helpers import min_zoom_for_width
from drillmap.models import GeoCollection, NavigationLevel
from drillmap.navigation.state import NavigationState
from drillmap.renderers.base import MapEvents, MapRenderer

logger = logging.getLogger(__name__)

RENDER_MODES = ("2d", "3d")

DEFAULT_WIDTH = 1280
DEFAULT_HEIGHT = 720


class DeckGLRenderer(MapRenderer):
    """
    GPU map backend in "2d" (curves + trailing dots) or "3d" (arcs) mode.

    Usage:
        renderer = DeckGLRenderer("map-container", state, app_config, mode="3d")
        renderer.set_geo_data(state.geography)
        renderer.set_points(points)
        html = renderer.to_html("Output/map.html")
    """

    renderer_type = "deckgl"

    def __init__(
        self,
        container: Optional[str],
        state: NavigationState,
        config: Optional[AppConfig] = None,
        events: Optional[MapEvents] = None,
        clock: Optional[AnimationClock] = None,
        mode: Optional[str] = None,
        registry: Optional[DeckInstanceRegistry] = None,
        icon_registry: Optional[IconRegistry] = None,
        rasterizer: Optional[Rasterizer] = None,
        instance_id: Optional[str] = None,
        width: int = DEFAULT_WIDTH,
        height: int = DEFAULT_HEIGHT,
    ):
        super().__init__(container, state, config, events, clock)
        self.mode = (mode or self.config.deck.mode).lower()
        if self.mode not in RENDER_MODES:
            raise ValueError(f"Unknown deck.gl mode '{self.mode}' (use 2d or 3d)")

        styles = self.config.styles
        self.width = width
        self.height = height
        self.level = state.level
        self.geography = GeoCollection.empty()
        self.hovered_name: Optional[str] = None

        # === LAYERS AND ICONS ===
        self.layers = LayerManager()
        self.icons = icon_registry or IconRegistry(rasterizer=rasterizer)

        # === FLOW LINES ===
        self.curvature = CurvatureCalculator()
        self.flow_2d = FlowLineRenderer2D(
            self.curvature, self.config.trail, styles.line_color, styles.dot_rgb
        )
        self.flow_3d = FlowLineRenderer3D(
            self.config.animation,
            styles.arc_rgb,
            elevation=styles.arc_elevation,
            height=styles.arc_height,
        )
        self._curves: List[CurvePath] = []

        # === DECK INSTANCE ===
        self.registry = registry or DeckInstanceRegistry()
        self.instance_id = instance_id or f"deckgl-{container}"
        min_zoom = min_zoom_for_width(width)
        self.deck: DeckInstance = self.registry.create(
            self.instance_id,
            self.config.deck,
            mode=self.mode,
            initial_view_state={
                "zoom": min_zoom,
                "min_zoom": min_zoom,
                "max_zoom": 20.0,
            },
            on_click=self.handle_pick,
        )
        logger.info(f"🗺️ deck.gl renderer ready ({self.mode}, {width}x{height})")

    # ═══════════════════════════════════════════════════════════════════════
    # 🗺️ BOUNDARY
    # ═══════════════════════════════════════════════════════════════════════

    def set_geo_data(self, geography: GeoCollection) -> None:
        self._check_alive()
        self.geography = geography
        self.hovered_name = None
        self.layers.add(LayerSlot.BOUNDARY, self._boundary_layer())
        self.boundary_loading = False
        self.redraw()
        logger.debug(f"🗺️ Boundary layer: {len(geography)} features")

    def _boundary_layer(self):
        layer = build_geojson_layer(self.geography, self.config.styles, self.hovered_name)
        if self.level == NavigationLevel.WORLD:
            layer = layer.with_props({"line_width_min_pixels": 0})
        return layer

    def update_level(self, level: NavigationLevel) -> None:
        self._check_alive()
        self.level = level
        self.layers.update(
            LayerSlot.BOUNDARY,
            {"line_width_min_pixels": 0 if level == NavigationLevel.WORLD else 1},
        )
        self.redraw()

    def handle_hover(self, pick_info: Optional[Dict[str, Any]]) -> None:
        """Boundary hover: fill the region under the cursor."""
        self._check_alive()
        obj = (pick_info or {}).get("object") or {}
        name = (obj.get("properties") or {}).get("name")
        if name == self.hovered_name:
            return
        self.hovered_name = name
        if LayerSlot.BOUNDARY in self.layers:
            self.layers.update(LayerSlot.BOUNDARY, self._boundary_layer())
            self.redraw()

    # ═══════════════════════════════════════════════════════════════════════
    # 📍 POINTS AND SELECTION
    # ═══════════════════════════════════════════════════════════════════════

    def _refresh_points(self) -> None:
        atlas = self.icons.atlas if self.points else None
        self.layers.update(
            LayerSlot.POINTS,
            build_icon_layer(
                self.points, atlas, self.config.styles, self.selected_point_id
            ),
        )

    def handle_pick(self, pick_info: Optional[Dict[str, Any]]) -> None:
        """
        Click dispatch from the deck instance.

        A pick on the points layer selects that point and fires the
        point-click callback; anything else clears the selection.
        """
        self._check_alive()
        pick = pick_info or {}
        obj = pick.get("object")
        layer_id = (pick.get("layer") or {}).get("id")

        if not obj or layer_id != LayerSlot.POINTS.value:
            if self.selected_point_id is not None:
                self.selected_point_id = None
                self._refresh_points()
                self.redraw()
            return

        self.selected_point_id = obj.get("id")
        self._refresh_points()
        self.redraw()
        point = self.find_point(self.selected_point_id)
        if point is not None and self.events.on_point_click:
            self.events.on_point_click(point)

    def register_icons(self, icons: Mapping[str, str]) -> None:
        self._check_alive()
        self.icons.register_icons(icons)
        if self.points:
            self._refresh_points()
            self.redraw()

    # ═══════════════════════════════════════════════════════════════════════
    # ☄️ SERIES AND ANIMATION
    # ═══════════════════════════════════════════════════════════════════════

    def apply_series(self) -> None:
        self._check_alive()
        self._refresh_points()
        self._curves = self.flow_2d.build_curves(self.lines)
        self._refresh_lines(self.clock)
        self.redraw()
        logger.debug(
            f"📍 Series applied: {len(self.points)} points, {len(self.lines)} lines"
        )

    def _refresh_lines(self, clock: AnimationClock) -> None:
        if not self.lines:
            self.layers.remove(LayerSlot.LINES)
            self.layers.remove(LayerSlot.LINE_TRAILS)
            return

        if self.mode == "3d":
            time_range = clock.time_range
            arcs = self.flow_3d.visible_arcs(self.lines, time_range)
            self.layers.update(
                LayerSlot.LINES,
                build_arc_layer(arcs, time_range, self.flow_3d.height),
            )
            return

        dots = self.flow_2d.build_trailing_dots(self.lines, clock.progress)
        self.layers.update(LayerSlot.LINES, build_path_layer(self._curves))
        self.layers.update(
            LayerSlot.LINE_TRAILS, build_trail_layer(dots, self.config.trail)
        )

    def on_tick(self, clock: AnimationClock) -> None:
        if not self.lines:
            return
        self._refresh_lines(clock)
        self.redraw()

    def redraw(self) -> None:
        self.deck.set_layers(self.layers.get_all())

    # ═══════════════════════════════════════════════════════════════════════
    # 📐 VIEW
    # ═══════════════════════════════════════════════════════════════════════

    def resize(self, width: Optional[int] = None, height: Optional[int] = None) -> None:
        self._check_alive()
        self.width = width or self.width
        self.height = height or self.height
        min_zoom = min_zoom_for_width(self.width)
        view = dict(self.deck.view_state)
        view["min_zoom"] = min_zoom
        view["zoom"] = max(min_zoom, float(view.get("zoom", min_zoom)))
        self.deck.on_view_state_change(view)

    def on_view_state_change(self, view_state: Dict[str, float]) -> Dict[str, float]:
        """Controller callback; clamps latitude and reports the zoom."""
        self._check_alive()
        constrained = self.deck.on_view_state_change(view_state)
        self.emit_zoom(float(constrained.get("zoom", 0.0)))
        return constrained

    # ═══════════════════════════════════════════════════════════════════════
    # 📤 EXPORT
    # ═══════════════════════════════════════════════════════════════════════

    def to_deck_json(self) -> str:
        """Current scene in deck.gl's JSON (`@@type`) format."""
        self._check_alive()
        return self.deck.to_pydeck(tooltip={"text": "{name}"}).to_json()

    def to_html(self, path: Optional[str] = None) -> str:
        self._check_alive()
        html = self.deck.to_pydeck(tooltip={"text": "{name}"}).to_html(
            as_string=True, notebook_display=False
        )
        if path:
            out = Path(path)
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_text(html, encoding="utf-8")
            logger.info(f"💾 deck.gl scene written to {out}")
        return html

    # ═══════════════════════════════════════════════════════════════════════
    # 🧹 TEARDOWN
    # ═══════════════════════════════════════════════════════════════════════

    def destroy(self) -> None:
        self._check_alive()
        self.registry.remove(self.instance_id)
        self.layers.clear()
        super().destroy()
