"""
Unit tests for 2D Bezier flow lines and 3D time-windowed arcs.

Run with: python -m pytest drillmap/_tests/test_flowlines.py -v
"""

import pytest

from drillmap.config_types import AnimationConfig, TrailConfig
from drillmap.flowlines.line2d import (
    FlowLineRenderer2D,
    build_quadratic_bezier_path,
    control_point,
    js_round,
)
from drillmap.flowlines.line3d import FlowLineRenderer3D
from drillmap.models import MapEdge


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def edges():
    return [
        MapEdge(id="a-b", start=(0.0, 0.0), end=(10.0, 0.0)),
        MapEdge(id="b-c", start=(10.0, 0.0), end=(10.0, 10.0), color=(255, 0, 0, 128)),
        MapEdge(id="c-a", start=(10.0, 10.0), end=(0.0, 0.0)),
    ]


# ============================================================================
# BEZIER
# ============================================================================


class TestBezierPath:
    """Quadratic Bezier sampling."""

    def test_js_round_rounds_half_up(self):
        """0.5 rounds to 1 and 1.5 to 2."""
        assert js_round(0.5) == 1
        assert js_round(1.5) == 2
        assert js_round(2.5) == 3
        assert js_round(0.49) == 0

    def test_endpoints_and_sample_count(self):
        """segments + 1 points from start to end."""
        path = build_quadratic_bezier_path((1.0, 2.0), (5.0, 7.0), 0.4, segments=16)
        assert len(path) == 17
        assert path[0] == pytest.approx((1.0, 2.0))
        assert path[-1] == pytest.approx((5.0, 7.0))

    def test_zero_curvature_is_straight(self):
        """Control point at the midpoint gives points on the segment."""
        path = build_quadratic_bezier_path((0.0, 0.0), (10.0, 0.0), 0.0, segments=4)
        assert all(y == pytest.approx(0.0) for _, y in path)

    def test_control_point_offset(self):
        """Offset along the left normal by curvature * factor * length."""
        assert control_point((0.0, 0.0), (10.0, 0.0), 1.0, 0.3) == pytest.approx((5.0, 3.0))

    def test_midpoint_of_curve(self):
        """At t = 0.5 the curve sits halfway to the control point."""
        path = build_quadratic_bezier_path((0.0, 0.0), (10.0, 0.0), 1.0, segments=2)
        assert path[1] == pytest.approx((5.0, 1.5))

    def test_degenerate_edge_does_not_divide_by_zero(self):
        path = build_quadratic_bezier_path((3.0, 3.0), (3.0, 3.0), 0.2, segments=4)
        assert all(p == pytest.approx((3.0, 3.0)) for p in path)


# ============================================================================
# 2D RENDERER
# ============================================================================


class TestFlowLineRenderer2D:
    """Curves and trailing dots."""

    def test_curves_use_edge_color_or_default(self, edges):
        """Edges without a color fall back to the line color."""
        renderer = FlowLineRenderer2D(line_color=(1, 2, 3, 4))
        curves = renderer.build_curves(edges)
        assert [c.edge_id for c in curves] == ["a-b", "b-c", "c-a"]
        assert curves[0].color == (1, 2, 3, 4)
        assert curves[1].color == (255, 0, 0, 128)
        assert len(curves[0].path) == TrailConfig().curve_segments + 1

    def test_curves_are_deterministic(self, edges):
        """Two renderers produce identical geometry for the same ids."""
        first = FlowLineRenderer2D().build_curves(edges)
        second = FlowLineRenderer2D().build_curves(edges)
        assert [c.path for c in first] == [c.path for c in second]

    def test_dot_count_per_edge(self, edges):
        """dots_per_line dots per edge, head first."""
        renderer = FlowLineRenderer2D(config=TrailConfig(dots_per_line=5))
        dots = renderer.build_trailing_dots(edges, 0.3)
        assert len(dots) == 15
        assert [d.index for d in dots[:5]] == [0, 1, 2, 3, 4]

    def test_no_edges_no_dots(self):
        assert FlowLineRenderer2D().build_trailing_dots([], 0.5) == []

    def test_head_and_tail_styles(self):
        """Head has full radius and alpha, tail the minimum values."""
        styles = FlowLineRenderer2D().dot_styles()
        assert styles[0] == (1, 255)
        assert styles[-1] == (1, 60)
        alphas = [alpha for _, alpha in styles]
        assert alphas == sorted(alphas, reverse=True)

    def test_bigger_head_radius(self):
        """Radius interpolates linearly with rounding half up."""
        cfg = TrailConfig(dots_per_line=3, head_radius=4.0, tail_radius=1.0)
        radii = [r for r, _ in FlowLineRenderer2D(config=cfg).dot_styles()]
        assert radii == [4, 3, 1]

    def test_dot_parameters_wrap(self):
        """Parameters trail behind the head and wrap into [0, 1)."""
        renderer = FlowLineRenderer2D()
        t = renderer.dot_parameters(0.0)
        assert t[0] == 0.0
        assert all(0.0 <= v < 1.0 for v in t.tolist())
        assert t[1] == pytest.approx(1.0 - renderer.config.step)

    def test_dot_colors(self, edges):
        """Edge rgb with per-dot alpha, default rgb otherwise."""
        renderer = FlowLineRenderer2D(dot_rgb=(9, 9, 9))
        dots = renderer.build_trailing_dots(edges, 0.5)
        k = renderer.config.dots_per_line
        assert dots[0].color == (9, 9, 9, 255)
        assert dots[k].color == (255, 0, 0, 255)
        assert dots[k + k - 1].color[3] == 60

    def test_head_dot_lies_on_curve(self):
        """At progress 0 the head is at the edge start."""
        edge = MapEdge(id="x", start=(2.0, 3.0), end=(8.0, 9.0))
        dots = FlowLineRenderer2D().build_trailing_dots([edge], 0.0)
        assert dots[0].position == pytest.approx((2.0, 3.0))


# ============================================================================
# 3D RENDERER
# ============================================================================


class TestFlowLineRenderer3D:
    """Staggered arcs."""

    def test_arc_windows(self, edges):
        """Edge i travels during [i * offset, i * offset + duration]."""
        arcs = FlowLineRenderer3D(AnimationConfig()).build_arcs(edges)
        assert [(a.source_timestamp, a.target_timestamp) for a in arcs] == [
            (0.0, 1000.0),
            (300.0, 1300.0),
            (600.0, 1600.0),
        ]

    def test_arc_elevation_and_color(self, edges):
        renderer = FlowLineRenderer3D(arc_rgb=(1, 1, 1), elevation=42.0)
        arcs = renderer.build_arcs(edges)
        assert arcs[0].source == (0.0, 0.0, 42.0)
        assert arcs[0].color == (1, 1, 1)
        assert arcs[1].color == (255, 0, 0)

    def test_visible_arcs_early_window(self, edges):
        """Only arcs that started before the window end are drawn."""
        visible = FlowLineRenderer3D().visible_arcs(edges, (0.0, 500.0))
        assert [a.edge_id for a in visible] == ["a-b", "b-c"]

    def test_visible_arcs_late_window(self, edges):
        """Arcs that finished before the window start are hidden."""
        visible = FlowLineRenderer3D().visible_arcs(edges, (1200.0, 1500.0))
        assert [a.edge_id for a in visible] == ["b-c", "c-a"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
