#!/usr/bin/env python3
"""
Plotly Map Renderer

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: The 2D chart backend. Keeps a plotly Figure with one filled
trace per region, then curves, point markers and trailing dots on top.

Key Interactions:
- set_geo_data()  -> rebuild boundary traces and frame the view
- apply_series()  -> reproject overlays when the loaded map is planar, then
                     rebuild curve / point / dot traces
- on_tick()       -> restyle only the trailing-dot trace
- to_html()       -> standalone HTML export of the figure

Framing rules:
- World: frame the configured central country if there is one, otherwise
  show the whole map at the World zoom
- Country: whole map
- Province and below: center on all features
- Border width 0 on the World map, 1 elsewhere

Dependencies:
- plotly.graph_objects
- geopandas (collection bounds, through GeoCollection.bounds)

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between sections
"""

import logging
from pathlib import Path
from typing import List, Mapping, Optional, Tuple

import plotly.graph_objects as go

from drillmap.animation.clock import AnimationClock
from drillmap.config_types import AppConfig
from drillmap.flowlines.curvature import CurvatureCalculator
from drillmap.flowlines.line2d import FlowLineRenderer2D
from drillmap.geo.geo_helpers import center_and_zoom, feature_coordinates
from drillmap.geo.projection import project_edges, project_points
from drillmap.models import GeoCollection, MapEdge, MapPoint, NavigationLevel
from drillmap.navigation.resolver import RegionResolver
from drillmap.navigation.state import NavigationState
from drillmap.plotly_map.traces import (
    BOUNDARY_GROUP,
    DOTS_TRACE,
    build_boundary_traces,
    build_curves_trace,
    build_dots_trace,
    build_map_layout,
    build_points_trace,
    dots_trace_props,
)
from drillmap.renderers.base import MapEvents, MapRenderer

logger = logging.getLogger(__name__)

Range = Tuple[float, float]


class PlotlyMapRenderer(MapRenderer):
    """
    Declarative 2D chart backend built on a plotly Figure.

    Usage:
        renderer = PlotlyMapRenderer("map-container", state, app_config,
                                     resolver=resolver)
        renderer.set_geo_data(state.geography)
        renderer.set_lines(edges)
        renderer.to_html("Output/map.html")
    """

    renderer_type = "plotly"

    def __init__(
        self,
        container: Optional[str],
        state: NavigationState,
        config: Optional[AppConfig] = None,
        events: Optional[MapEvents] = None,
        clock: Optional[AnimationClock] = None,
        resolver: Optional[RegionResolver] = None,
        central_country: Optional[str] = None,
        width: int = 1200,
        height: int = 800,
    ):
        super().__init__(container, state, config, events, clock)
        self.resolver = resolver
        self.central_country = central_country
        self.width = width
        self.height = height
        self.geography = GeoCollection.empty()
        self.level = state.level
        self.flow_2d = FlowLineRenderer2D(
            CurvatureCalculator(),
            self.config.trail,
            self.config.styles.line_color,
            self.config.styles.dot_rgb,
        )
        self.display_points: List[MapPoint] = []
        self.display_lines: List[MapEdge] = []
        self.x_range: Optional[Range] = None
        self.y_range: Optional[Range] = None
        self.figure = go.Figure()
        self._compose()

    # ═══════════════════════════════════════════════════════════════════════
    # 🗺️ BOUNDARY
    # ═══════════════════════════════════════════════════════════════════════

    @property
    def border_width(self) -> float:
        return 0.0 if self.level == NavigationLevel.WORLD else 1.0

    def set_geo_data(self, geography: GeoCollection) -> None:
        self._check_alive()
        self.geography = geography
        self.level = self.state.level
        if geography.is_empty:
            logger.warning("⚠️ Empty geography; clearing regions, keeping the current view")
        else:
            self.x_range, self.y_range = self.frame(geography, self.level)
        self._compose()
        self.boundary_loading = False
        logger.debug(f"🗺️ Boundary traces: {len(geography)} regions")

    def frame(
        self, geography: GeoCollection, level: NavigationLevel
    ) -> Tuple[Optional[Range], Optional[Range]]:
        """
        Axis ranges for `geography` at `level`.

        The zoom is relative to the fitted extent of the whole collection, so
        zoom 1 shows every feature and zoom 2 half of it around the center.
        """
        bounds = geography.bounds()
        if bounds is None:
            return None, None
        min_x, min_y, max_x, max_y = bounds

        center = None
        zoom = 0.0
        if level == NavigationLevel.WORLD:
            if self.central_country:
                feature = next(
                    (f for f in geography.features if f.get("id") == self.central_country),
                    None,
                )
                if feature is not None:
                    center, zoom = center_and_zoom(
                        feature_coordinates([feature]),
                        self.config.deck.min_zoom,
                        self.config.deck.max_zoom,
                    )
        elif level != NavigationLevel.COUNTRY:
            center, _ = center_and_zoom(feature_coordinates(geography.features))

        if not zoom:
            zoom = self.config.deck.world_zoom if level == NavigationLevel.WORLD else 1.0
        if center is None:
            center = ((min_x + max_x) / 2, (min_y + max_y) / 2)

        half_w = (max_x - min_x) / 2 / zoom
        half_h = (max_y - min_y) / 2 / zoom
        cx, cy = center
        return (cx - half_w, cx + half_w), (cy - half_h, cy + half_h)

    def update_level(self, level: NavigationLevel) -> None:
        self._check_alive()
        self.level = level
        self.figure.update_traces(
            selector=dict(legendgroup=BOUNDARY_GROUP), line_width=self.border_width
        )

    # ═══════════════════════════════════════════════════════════════════════
    # 📍 SERIES
    # ═══════════════════════════════════════════════════════════════════════

    def needs_reprojection(self) -> bool:
        return (
            self.resolver is not None
            and self.geography.hc_transform is not None
            and self.resolver.needs_reprojection()
        )

    def apply_series(self) -> None:
        self._check_alive()
        if self.needs_reprojection():
            transform = self.geography.hc_transform
            self.display_points = project_points(transform, self.points)
            self.display_lines = project_edges(transform, self.lines)
        else:
            self.display_points = list(self.points)
            self.display_lines = list(self.lines)
        self._compose()
        logger.debug(
            f"📍 Series applied: {len(self.display_points)} points, "
            f"{len(self.display_lines)} lines"
        )

    def points_in_map_space(self) -> List[MapPoint]:
        return list(self.display_points)

    def on_tick(self, clock: AnimationClock) -> None:
        if not self.display_lines:
            return
        dots = self.flow_2d.build_trailing_dots(self.display_lines, clock.progress)
        self.figure.update_traces(selector=dict(name=DOTS_TRACE), **dots_trace_props(dots))

    def select_point(self, point_id: Optional[str]) -> None:
        """Highlight `point_id` (None clears the selection)."""
        self._check_alive()
        self.selected_point_id = point_id
        self._compose()

    def register_icons(self, icons: Mapping[str, str]) -> None:
        self._check_alive()
        logger.warning(
            f"⚠️ Plotly backend draws marker symbols; ignoring {len(icons)} SVG icons"
        )

    # ═══════════════════════════════════════════════════════════════════════
    # 🧩 FIGURE
    # ═══════════════════════════════════════════════════════════════════════

    def _compose(self) -> None:
        """Rebuild the figure: regions, then curves, points and dots."""
        styles = self.config.styles
        data = build_boundary_traces(self.geography, styles, self.border_width)
        data.append(build_curves_trace(self.flow_2d.build_curves(self.display_lines), styles))
        data.append(build_points_trace(self.display_points, styles, self.selected_point_id))
        data.append(
            build_dots_trace(
                self.flow_2d.build_trailing_dots(self.display_lines, self.clock.progress)
            )
        )
        self.figure = go.Figure(
            data=data,
            layout=build_map_layout(
                styles, self.x_range, self.y_range, self.width, self.height
            ),
        )

    def resize(self, width: Optional[int] = None, height: Optional[int] = None) -> None:
        self._check_alive()
        self.width = width or self.width
        self.height = height or self.height
        self.figure.update_layout(width=self.width, height=self.height)

    def on_relayout(self, x_range: Range) -> float:
        """Report the zoom implied by a new x-axis range (pan / scroll)."""
        self._check_alive()
        if self.x_range is None:
            return 1.0
        base = self.x_range[1] - self.x_range[0]
        span = x_range[1] - x_range[0]
        zoom = base / span if span else 1.0
        self.emit_zoom(zoom)
        return zoom

    def to_html(self, path: Optional[str] = None) -> str:
        self._check_alive()
        html = self.figure.to_html(
            include_plotlyjs=True,
            full_html=True,
            div_id=self.container,
            config={"displayModeBar": True, "scrollZoom": True},
        )
        if path:
            out = Path(path)
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_text(html, encoding="utf-8")
            logger.info(f"💾 Plotly map written to {out}")
        return html
