"""Plotly backend: trace builders and the 2D chart renderer."""

from .renderer import PlotlyMapRenderer
from .traces import (
    build_boundary_traces,
    build_curves_trace,
    build_dots_trace,
    build_map_layout,
    build_points_trace,
)

__all__ = [
    "PlotlyMapRenderer",
    "build_boundary_traces",
    "build_curves_trace",
    "build_dots_trace",
    "build_map_layout",
    "build_points_trace",
]
