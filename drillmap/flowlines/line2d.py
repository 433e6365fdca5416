#!/usr/bin/env python3
"""
2D Flow Lines - Bezier Curves and Trailing Dots

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Turn directed edges into renderer-neutral 2D geometry.

1. A static curve per edge: quadratic Bezier sampled at a fixed segment
   count. The control point sits on the perpendicular through the edge
   midpoint, offset by curvature * control_factor * edge_length.
2. Trailing dots per edge for clock progress p in [0, 1): dot j sits at
   t = (p - j * step) mod 1. Radius interpolates linearly and alpha with a
   power-law ease from the head (j = 0) to the tail (j = k - 1).

Both renderers consume the CurvePath / TrailDot records produced here.

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between sections
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from drillmap.config_types import TrailConfig
from drillmap.flowlines.curvature import CurvatureCalculator
from drillmap.models import Coordinate, MapEdge

logger = logging.getLogger(__name__)

DEFAULT_LINE_RGBA: Tuple[int, int, int, int] = (170, 170, 170, 90)
DEFAULT_DOT_RGB: Tuple[int, int, int] = (255, 255, 255)


def js_round(value: float) -> int:
    """Round half up (0.5 -> 1), unlike Python's round-half-even."""
    return int(math.floor(value + 0.5))


# ═══════════════════════════════════════════════════════════════════════════
# 📐 BEZIER GEOMETRY
# ═══════════════════════════════════════════════════════════════════════════


def control_point(
    start: Coordinate, end: Coordinate, curvature: float, control_factor: float = 0.3
) -> Coordinate:
    """Control point of the quadratic Bezier between `start` and `end`."""
    sx, sy = start
    ex, ey = end
    dx, dy = ex - sx, ey - sy
    length = math.hypot(dx, dy) or 1.0
    nx, ny = -dy / length, dx / length
    offset = curvature * control_factor * length
    return ((sx + ex) / 2 + nx * offset, (sy + ey) / 2 + ny * offset)


def bezier_points(
    start: Coordinate, control: Coordinate, end: Coordinate, t: np.ndarray
) -> np.ndarray:
    """Evaluate the quadratic Bezier at parameters `t` -> array (n, 2)."""
    t = np.asarray(t, dtype=float)[:, None]
    one_minus_t = 1.0 - t
    p0 = np.asarray(start, dtype=float)
    p1 = np.asarray(control, dtype=float)
    p2 = np.asarray(end, dtype=float)
    return one_minus_t ** 2 * p0 + 2 * one_minus_t * t * p1 + t ** 2 * p2


def build_quadratic_bezier_path(
    start: Coordinate,
    end: Coordinate,
    curvature: float,
    segments: int = 64,
    control_factor: float = 0.3,
) -> List[Coordinate]:
    """
    Sample the edge's Bezier curve at `segments + 1` evenly spaced parameters.

    Args:
        start: (x, y) of the edge start
        end: (x, y) of the edge end
        curvature: Curvature in [0, 1]
        segments: Number of straight segments in the sampled path
        control_factor: Scales the control-point offset

    Returns:
        List of (x, y); first equals `start`, last equals `end`
    """
    control = control_point(start, end, curvature, control_factor)
    t = np.linspace(0.0, 1.0, segments + 1)
    return [tuple(p) for p in bezier_points(start, control, end, t).tolist()]


# ═══════════════════════════════════════════════════════════════════════════
# 📦 OUTPUT RECORDS
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class CurvePath:
    """Static curve of one edge."""

    edge_id: str
    path: Tuple[Coordinate, ...]
    color: Tuple[int, ...]
    width: float


@dataclass(frozen=True)
class TrailDot:
    """One dot of an edge's comet trail for the current frame."""

    edge_id: str
    index: int
    position: Coordinate
    color: Tuple[int, int, int, int]
    radius: int


# ═══════════════════════════════════════════════════════════════════════════
# ☄️ 2D RENDERER
# ═══════════════════════════════════════════════════════════════════════════


class FlowLineRenderer2D:
    """
    Builds curves and per-frame trailing dots for a set of edges.

    Usage:
        renderer = FlowLineRenderer2D(CurvatureCalculator(), app_config.trail)
        curves = renderer.build_curves(edges)
        dots = renderer.build_trailing_dots(edges, clock.progress)
    """

    def __init__(
        self,
        curvature: Optional[CurvatureCalculator] = None,
        config: Optional[TrailConfig] = None,
        line_color: Sequence[int] = DEFAULT_LINE_RGBA,
        dot_rgb: Sequence[int] = DEFAULT_DOT_RGB,
    ):
        self.curvature = curvature or CurvatureCalculator()
        self.config = config or TrailConfig()
        self.line_color = tuple(line_color)
        self.dot_rgb = tuple(dot_rgb[:3])

    def _control(self, edge: MapEdge) -> Coordinate:
        c = self.curvature.curvature_for_edge(edge)
        return control_point(edge.start, edge.end, c, self.config.control_factor)

    def build_curves(self, edges: Sequence[MapEdge]) -> List[CurvePath]:
        curves = []
        for edge in edges:
            c = self.curvature.curvature_for_edge(edge)
            path = build_quadratic_bezier_path(
                edge.start,
                edge.end,
                c,
                self.config.curve_segments,
                self.config.control_factor,
            )
            color = tuple(edge.color) if edge.color else self.line_color
            curves.append(
                CurvePath(
                    edge_id=edge.id,
                    path=tuple(path),
                    color=color,
                    width=self.config.curve_width,
                )
            )
        return curves

    def dot_weights(self) -> np.ndarray:
        """Head-to-tail weights w_j = 1 - j / max(1, k - 1)."""
        k = self.config.dots_per_line
        return 1.0 - np.arange(k) / max(1, k - 1)

    def dot_parameters(self, progress: float) -> np.ndarray:
        """Bezier parameters t_j = (progress - j * step) mod 1."""
        j = np.arange(self.config.dots_per_line)
        return np.mod(progress - j * self.config.step, 1.0)

    def dot_styles(self) -> List[Tuple[int, int]]:
        """(radius, alpha) per dot index, head first."""
        cfg = self.config
        styles = []
        for w in self.dot_weights().tolist():
            radius = js_round(cfg.tail_radius + (cfg.head_radius - cfg.tail_radius) * w)
            alpha = js_round(
                cfg.tail_alpha
                + (cfg.head_alpha - cfg.tail_alpha) * math.pow(w, cfg.alpha_exponent)
            )
            styles.append((radius, alpha))
        return styles

    def build_trailing_dots(
        self, edges: Sequence[MapEdge], progress: float
    ) -> List[TrailDot]:
        """
        Trailing dots of every edge at clock `progress`.

        Args:
            edges: Edges in the renderer's coordinate space
            progress: Normalized clock progress in [0, 1)

        Returns:
            `dots_per_line` dots per edge, head first
        """
        if not edges:
            return []

        t = self.dot_parameters(progress)
        styles = self.dot_styles()
        dots = []
        for edge in edges:
            rgb = tuple(edge.color[:3]) if edge.color else self.dot_rgb
            positions = bezier_points(edge.start, self._control(edge), edge.end, t)
            for j, ((px, py), (radius, alpha)) in enumerate(
                zip(positions.tolist(), styles)
            ):
                dots.append(
                    TrailDot(
                        edge_id=edge.id,
                        index=j,
                        position=(px, py),
                        color=(rgb[0], rgb[1], rgb[2], alpha),
                        radius=radius,
                    )
                )
        return dots
