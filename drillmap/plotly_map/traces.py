#!/usr/bin/env python3
"""
Plotly Trace Builder Functions

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Build Plotly trace objects for the 2D chart backend.
Each function creates a single trace or a list of traces.

Key Patterns:
- Functions return go.Scatter trace objects
- Multi-part geometry is drawn as one trace with None separators
- Region traces carry the region name in customdata so click / hover
  handlers can map a pick back to a region
- Trace names double as selectors for update_traces()

Dependencies:
- plotly.graph_objects

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between functions
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

import plotly.graph_objects as go

from drillmap.config_types import StyleConfig
from drillmap.flowlines.line2d import CurvePath, TrailDot
from drillmap.geo.geo_helpers import rgba_to_css
from drillmap.models import GeoCollection, MapPoint

BOUNDARY_GROUP = "boundary"
CURVES_TRACE = "lines"
POINTS_TRACE = "points"
DOTS_TRACE = "line-trails"

# Icon keys with a matching Plotly marker symbol
ICON_SYMBOLS = {
    "circle": "circle",
    "star": "star",
    "diamond": "diamond",
    "square": "square",
    "triangle": "triangle-up",
}


# ===========================================================================
# GEOMETRY HELPERS
# ===========================================================================


def _rings_of(geometry: Optional[Dict[str, Any]]) -> List[Sequence]:
    """All rings (outer and holes) of a Polygon / MultiPolygon geometry."""
    if not geometry:
        return []
    kind = geometry.get("type")
    coords = geometry.get("coordinates") or []
    if kind == "Polygon":
        return list(coords)
    if kind == "MultiPolygon":
        return [ring for polygon in coords for ring in polygon]
    return []


def _ring_xy(rings: Sequence[Sequence]) -> Tuple[List[Optional[float]], List[Optional[float]]]:
    """Flatten rings into x / y lists with None separators."""
    xs: List[Optional[float]] = []
    ys: List[Optional[float]] = []
    for ring in rings:
        if not ring:
            continue
        for coord in ring:
            xs.append(coord[0])
            ys.append(coord[1])
        # Close the ring
        xs.append(ring[0][0])
        ys.append(ring[0][1])
        xs.append(None)
        ys.append(None)
    return xs, ys


# ===========================================================================
# BOUNDARY TRACES
# ===========================================================================


def build_boundary_traces(
    geography: GeoCollection,
    styles: Optional[StyleConfig] = None,
    border_width: float = 1.0,
) -> List[go.Scatter]:
    """
    Build one filled trace per region.

    Args:
        geography: Regions to draw
        styles: Area / border colors
        border_width: Region outline width (0 on the World map)

    Returns:
        List of go.Scatter traces, one per feature with polygon geometry
    """
    styles = styles or StyleConfig()
    traces = []
    for feature in geography.features:
        name = (feature.get("properties") or {}).get("name") or ""
        xs, ys = _ring_xy(_rings_of(feature.get("geometry")))
        if not xs:
            continue
        traces.append(
            go.Scatter(
                x=xs,
                y=ys,
                mode="lines",
                fill="toself",
                fillcolor=styles.area_color,
                line=dict(color=styles.border_color, width=border_width),
                customdata=[name] * len(xs),
                hoveron="fills",
                hovertemplate=f"<b>{name}</b><extra></extra>",
                name=name,
                legendgroup=BOUNDARY_GROUP,
                showlegend=False,
            )
        )
    return traces


# ===========================================================================
# OVERLAY TRACES
# ===========================================================================


def build_points_trace(
    points: Sequence[MapPoint],
    styles: Optional[StyleConfig] = None,
    selected_id: Optional[str] = None,
) -> go.Scatter:
    """Point markers; point ids go into customdata."""
    styles = styles or StyleConfig()
    sizes = []
    for p in points:
        # Plotly sizes are diameters; deck.gl icon sizes are roughly twice that
        size = (p.size if p.size is not None else styles.point_size) / 2
        if selected_id is not None and p.id == selected_id:
            size *= styles.selected_scale
        sizes.append(size)

    return go.Scatter(
        x=[p.lng for p in points],
        y=[p.lat for p in points],
        mode="markers",
        marker=dict(
            size=sizes,
            color=[rgba_to_css(p.color or styles.point_color) for p in points],
            symbol=[ICON_SYMBOLS.get(p.icon or styles.point_icon, "circle") for p in points],
        ),
        customdata=[p.id for p in points],
        text=[p.name or p.id for p in points],
        hovertemplate="%{text}<extra></extra>",
        name=POINTS_TRACE,
        showlegend=False,
    )


def build_curves_trace(
    curves: Sequence[CurvePath], styles: Optional[StyleConfig] = None
) -> go.Scatter:
    """All static curves in one line trace."""
    styles = styles or StyleConfig()
    xs: List[Optional[float]] = []
    ys: List[Optional[float]] = []
    for curve in curves:
        for x, y in curve.path:
            xs.append(x)
            ys.append(y)
        xs.append(None)
        ys.append(None)

    width = curves[0].width if curves else 1.0
    return go.Scatter(
        x=xs,
        y=ys,
        mode="lines",
        line=dict(color=rgba_to_css(styles.line_color), width=max(width, 0.5)),
        hoverinfo="skip",
        name=CURVES_TRACE,
        showlegend=False,
    )


def dots_trace_props(dots: Sequence[TrailDot]) -> Dict[str, Any]:
    """Trace properties of the trailing dots (used for per-tick restyle)."""
    return dict(
        x=[d.position[0] for d in dots],
        y=[d.position[1] for d in dots],
        marker=dict(
            size=[max(1, 2 * d.radius) for d in dots],
            color=[rgba_to_css(d.color) for d in dots],
        ),
    )


def build_dots_trace(dots: Sequence[TrailDot]) -> go.Scatter:
    return go.Scatter(
        mode="markers",
        hoverinfo="skip",
        name=DOTS_TRACE,
        showlegend=False,
        **dots_trace_props(dots),
    )


# ===========================================================================
# MAP LAYOUT
# ===========================================================================


def build_map_layout(
    styles: Optional[StyleConfig] = None,
    x_range: Optional[Tuple[float, float]] = None,
    y_range: Optional[Tuple[float, float]] = None,
    width: int = 1200,
    height: int = 800,
) -> Dict[str, Any]:
    """
    Build Plotly layout for the map chart.

    Equal aspect ratio, hidden axes and pan as the default drag mode. Without
    explicit ranges the axes autorange to the data.
    """
    styles = styles or StyleConfig()
    xaxis = dict(visible=False, scaleanchor="y", scaleratio=1, showgrid=False)
    yaxis = dict(visible=False, showgrid=False)
    if x_range is not None and y_range is not None:
        xaxis["range"] = list(x_range)
        yaxis["range"] = list(y_range)
    else:
        xaxis["autorange"] = True
        yaxis["autorange"] = True

    return dict(
        xaxis=xaxis,
        yaxis=yaxis,
        hovermode="closest",
        dragmode="pan",
        showlegend=False,
        width=width,
        height=height,
        plot_bgcolor=styles.background_color,
        paper_bgcolor=styles.background_color,
        margin=dict(t=0, l=0, r=0, b=0),
    )
