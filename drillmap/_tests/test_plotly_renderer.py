"""
Unit tests for the Plotly chart backend and the renderer factory.

Run with: python -m pytest drillmap/_tests/test_plotly_renderer.py -v
"""

import logging

import pytest

from conftest import fake_rasterizer, polygon_feature, square
from drillmap.deckgl import DeckGLRenderer
from drillmap.errors import (
    MissingContainerError,
    RendererDestroyedError,
    UnsupportedRendererError,
)
from drillmap.models import GeoCollection, MapPoint, NavigationLevel
from drillmap.plotly_map import PlotlyMapRenderer, build_boundary_traces, build_points_trace
from drillmap.plotly_map.traces import DOTS_TRACE, POINTS_TRACE
from drillmap.renderers import MapEvents
from drillmap.renderers.factory import create_renderer


def _trace(figure, name):
    return next(t for t in figure.data if t.name == name)


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def renderer(state, app_config, resolver):
    return PlotlyMapRenderer("map", state, app_config, resolver=resolver)


@pytest.fixture
def projected_geography():
    """A planar country map with a linear hc-transform."""
    return GeoCollection(
        features=(polygon_feature("Île-de-France", [square(0, 80, 20, 110)], **{"hc-key": "fr-idf"}),),
        hc_transform={"scale": [2, 2], "translate": [0, 0]},
    )


# ============================================================================
# TRACE BUILDERS
# ============================================================================


class TestTraces:
    """Plotly trace construction."""

    def test_one_trace_per_region(self, china_geography):
        traces = build_boundary_traces(china_geography, border_width=0)
        assert [t.name for t in traces] == ["北京市", "广东省", "南海诸岛"]
        assert traces[0].customdata[0] == "北京市"
        assert traces[0].line.width == 0
        assert traces[0].fill == "toself"

    def test_rings_separated_by_none(self):
        geo = GeoCollection(
            features=(polygon_feature("donut", [square(0, 0, 10, 10), square(4, 4, 6, 6)]),)
        )
        trace = build_boundary_traces(geo)[0]
        assert list(trace.x).count(None) == 2

    def test_points_trace(self, sample_points):
        """Marker sizes are half the icon size; selected points are scaled."""
        trace = build_points_trace(sample_points, selected_id="gz")
        assert list(trace.customdata) == ["gz", "bj", "paris"]
        assert trace.marker.size[0] == pytest.approx(12 * 1.6)
        assert trace.marker.size[1] == pytest.approx(12)
        assert list(trace.marker.symbol) == ["star", "circle", "star"]


# ============================================================================
# RENDERER
# ============================================================================


class TestPlotlyMapRenderer:
    """Plotly renderer without an event loop."""

    def test_initial_figure(self, renderer):
        """Only the overlay traces exist before geography arrives."""
        assert [t.name for t in renderer.figure.data] == ["lines", "points", "line-trails"]

    def test_set_geo_data(self, renderer, world_geography):
        renderer.mark_boundary_loading()
        renderer.set_geo_data(world_geography)
        assert not renderer.boundary_loading
        assert len(renderer.figure.data) == 6
        assert renderer.figure.data[0].line.width == 0

    def test_world_framing(self, renderer, world_geography):
        """World map centered on the collection at the World zoom."""
        renderer.set_geo_data(world_geography)
        x0, x1 = renderer.x_range
        assert (x0 + x1) / 2 == pytest.approx(0.0)
        assert x1 - x0 == pytest.approx(360 / 1.3)
        assert list(renderer.figure.layout.xaxis.range) == pytest.approx([x0, x1])

    def test_central_country_framing(self, state, app_config, resolver, world_geography):
        renderer = PlotlyMapRenderer(
            "map", state, app_config, resolver=resolver, central_country="FR"
        )
        renderer.set_geo_data(world_geography)
        x0, x1 = renderer.x_range
        y0, y1 = renderer.y_range
        assert (x0 + x1) / 2 == pytest.approx(1.5)
        assert (y0 + y1) / 2 == pytest.approx(46.5)
        assert x1 - x0 < 360 / 1.3

    def test_province_framing(self, renderer, state, guangdong_geography):
        state.transition(NavigationLevel.PROVINCE, "440000")
        renderer.set_geo_data(guangdong_geography)
        x0, x1 = renderer.x_range
        assert (x0 + x1) / 2 == pytest.approx(113.3)
        assert x1 - x0 == pytest.approx(2.6)
        assert renderer.figure.data[0].line.width == 1

    def test_empty_geography_clears_regions(self, renderer, state):
        """A level without geography drops the previous regions but keeps the view."""
        us_states = GeoCollection(
            features=(polygon_feature("Texas", [square(-106, 26, -94, 36)], **{"hc-key": "us-tx"}),)
        )
        state.transition(NavigationLevel.COUNTRY, "us", "us")
        renderer.set_geo_data(us_states)
        ranges = (renderer.x_range, renderer.y_range)

        state.transition(NavigationLevel.PROVINCE, "us-tx", "us")
        renderer.mark_boundary_loading()
        renderer.set_geo_data(GeoCollection.empty())
        assert renderer.level == NavigationLevel.PROVINCE
        assert [t.name for t in renderer.figure.data] == ["lines", "points", "line-trails"]
        assert (renderer.x_range, renderer.y_range) == ranges
        assert list(renderer.figure.layout.xaxis.range) == pytest.approx(list(ranges[0]))
        assert not renderer.boundary_loading

    def test_update_level_border(self, renderer, world_geography):
        renderer.set_geo_data(world_geography)
        renderer.update_level(NavigationLevel.COUNTRY)
        assert all(t.line.width == 1 for t in renderer.figure.data[:3])

    def test_series_in_lnglat(self, renderer, world_geography, sample_points, sample_edges):
        """China keeps lng/lat coordinates."""
        renderer.set_geo_data(world_geography)
        renderer.set_points(sample_points)
        renderer.set_lines(sample_edges)
        assert renderer.points_in_map_space() == sample_points
        assert list(_trace(renderer.figure, POINTS_TRACE).x) == [113.3, 116.4, 2.35]
        dots = _trace(renderer.figure, DOTS_TRACE)
        assert len(dots.x) == 2 * renderer.config.trail.dots_per_line

    def test_series_reprojected(self, renderer, state, projected_geography):
        """Planar country maps get their overlays through the hc-transform."""
        state.transition(NavigationLevel.COUNTRY, "fr", "fr")
        renderer.set_geo_data(projected_geography)
        renderer.set_points([MapPoint(id="paris", coordinate=(2.35, 48.85))])
        assert renderer.points_in_map_space()[0].coordinate == pytest.approx((4.7, 97.7))
        assert renderer.points[0].coordinate == (2.35, 48.85)

    def test_no_resolver_no_reprojection(self, state, app_config, projected_geography):
        renderer = PlotlyMapRenderer("map", state, app_config)
        state.transition(NavigationLevel.COUNTRY, "fr", "fr")
        renderer.set_geo_data(projected_geography)
        renderer.set_points([MapPoint(id="paris", coordinate=(2.35, 48.85))])
        assert renderer.points_in_map_space()[0].coordinate == (2.35, 48.85)

    def test_tick_restyles_dots(self, renderer, world_geography, sample_edges):
        renderer.set_geo_data(world_geography)
        renderer.set_lines(sample_edges)
        before = list(_trace(renderer.figure, DOTS_TRACE).x)
        renderer.clock.tick()
        assert list(_trace(renderer.figure, DOTS_TRACE).x) != before

    def test_select_point(self, renderer, sample_points):
        renderer.set_points(sample_points)
        renderer.select_point("paris")
        assert _trace(renderer.figure, POINTS_TRACE).marker.size[2] == pytest.approx(12 * 1.6)

    def test_register_icons_is_noop(self, renderer, caplog):
        with caplog.at_level(logging.WARNING):
            renderer.register_icons({"plane": "<svg/>"})
        assert "ignoring 1 SVG icons" in caplog.text

    def test_relayout_reports_zoom(self, state, app_config, world_geography):
        zooms = []
        renderer = PlotlyMapRenderer("map", state, app_config, events=MapEvents(on_zoom=zooms.append))
        renderer.set_geo_data(world_geography)
        x0, x1 = renderer.x_range
        renderer.on_relayout((x0 / 2, x1 / 2))
        assert zooms == [pytest.approx(2.0)]

    def test_resize(self, renderer):
        renderer.resize(640)
        assert (renderer.figure.layout.width, renderer.figure.layout.height) == (640, 800)

    def test_to_html(self, renderer, world_geography, tmp_path):
        renderer.set_geo_data(world_geography)
        out = tmp_path / "plotly" / "map.html"
        html = renderer.to_html(str(out))
        assert out.exists()
        assert 'id="map"' in html

    def test_destroyed(self, renderer, world_geography):
        renderer.destroy()
        with pytest.raises(RendererDestroyedError):
            renderer.set_geo_data(world_geography)


# ============================================================================
# FACTORY
# ============================================================================


class TestCreateRenderer:
    """Backend lookup by name."""

    def test_plotly_and_alias(self, state, app_config):
        assert isinstance(create_renderer("plotly", "map", state, app_config), PlotlyMapRenderer)
        assert isinstance(create_renderer("echarts", "map", state, app_config), PlotlyMapRenderer)

    def test_deckgl_with_options(self, state, app_config):
        renderer = create_renderer(
            "deckgl", "map", state, app_config, mode="3d", rasterizer=fake_rasterizer
        )
        assert isinstance(renderer, DeckGLRenderer)
        assert renderer.mode == "3d"

    def test_unknown_backend(self, state):
        with pytest.raises(UnsupportedRendererError) as exc_info:
            create_renderer("leaflet", "map", state)
        assert exc_info.value.kind == "leaflet"

    @pytest.mark.parametrize("container", [None, ""])
    def test_missing_container(self, state, container):
        with pytest.raises(MissingContainerError):
            create_renderer("plotly", container, state)

    def test_renderer_needs_container(self, state):
        with pytest.raises(MissingContainerError):
            PlotlyMapRenderer(None, state)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
