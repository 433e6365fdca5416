"""
Tests for configuration parsing, overlay records and the main entry point.

The end-to-end runs read a small geography directory written to tmp_path and
export HTML, exactly as `python -m drillmap.main` would.

Run with: python -m pytest drillmap/_tests/test_config_and_main.py -v
"""

import asyncio
import json
import logging

import geopandas as gpd
import pytest
from shapely.geometry import LineString, Point

from conftest import polygon_feature, square
from drillmap.config import CONFIG
from drillmap.config_types import (
    AppConfig,
    DebounceConfig,
    GeoDataConfig,
    NavigationConfig,
    TrailConfig,
)
from drillmap.main import _run, load_overlays, setup_logging
from drillmap.models import (
    MapEdge,
    MapPoint,
    NavigationLevel,
    edges_from_dicts,
    points_from_geodataframe,
)

logger = logging.getLogger("drillmap.tests")


# ============================================================================
# FIXTURES
# ============================================================================


def _write_json(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")


@pytest.fixture
def map_data(tmp_path):
    """World, China and Guangdong geography files."""
    root = tmp_path / "mapData"

    def fc(*features):
        return {"type": "FeatureCollection", "features": list(features)}

    _write_json(root / "world" / "wgs84_world.geo.json", fc(
        polygon_feature("中国", [square(75, 20, 135, 50)], **{"hc-key": "cn"}),
        polygon_feature("France", [square(-5, 42, 8, 51)], **{"hc-key": "fr"}),
    ))
    _write_json(root / "china" / "100000-2.json", fc(
        polygon_feature("北京市", [square(115, 39, 118, 42)], adcode=110000),
        polygon_feature("广东省", [square(109, 20, 117, 25)], adcode=440000),
        polygon_feature(None, [square(120, 10, 121, 11)]),
    ))
    _write_json(root / "china" / "440000_full.json", fc(
        polygon_feature("广州市", [square(112, 22, 114, 24)], adcode=440100),
    ))
    return root


@pytest.fixture
def overlay_file(tmp_path):
    path = tmp_path / "overlays.json"
    _write_json(path, {
        "points": [
            {"id": "gz", "coordinate": [113.3, 23.1], "name": "Guangzhou"},
            {"id": "sz", "lng": 114.06, "lat": 22.54},
        ],
        "lines": [{"id": "gz-sz", "from": [113.3, 23.1], "to": [114.06, 22.54]}],
    })
    return path


def _app_config(map_data, tmp_path, **run):
    return AppConfig(
        geo_data=GeoDataConfig(data_dir=str(map_data)),
        debounce=DebounceConfig(
            area_hover_s=0.01, series_update_s=0.01, boundary_timeout_s=1.0, boundary_poll_s=0.01
        ),
        run={"container": "map-container", "output_html": str(tmp_path / "out" / "map.html"), **run},
    )


# ============================================================================
# CONFIGURATION
# ============================================================================


class TestConfig:
    """CONFIG dict -> typed configuration."""

    def test_default_config_parses(self):
        app = AppConfig.from_dict(CONFIG)
        assert app.navigation.municipality_codes == frozenset({"110000", "120000", "310000", "500000"})
        assert app.navigation.excluded_country_regions == frozenset({"南海诸岛"})
        assert app.animation.time_loop == 21600.0
        assert app.trail.dots_per_line == 12
        assert app.styles.geo_fill_color == (9, 71, 119, 255)
        assert app.geo_data.primary_landmass_regions == ("海南省",)

    def test_empty_dict_gives_defaults(self):
        assert AppConfig.from_dict({}) == AppConfig()

    def test_overrides(self):
        app = AppConfig.from_dict({
            "navigation": {"municipality_codes": [110000]},
            "debounce": {"area_hover_s": 0.2},
            "geo_data": {"data_dir": None, "base_url": "http://maps"},
            "logging": {"level": "debug", "log_file": "logs/run.log"},
        })
        assert app.navigation.municipality_codes == frozenset({"110000"})
        assert app.debounce.area_hover_s == 0.2
        assert app.geo_data.data_path is None
        assert app.geo_data.base_url == "http://maps"
        assert app.log_level == "DEBUG"
        assert app.log_file == "logs/run.log"

    def test_trail_step(self):
        assert TrailConfig(dots_per_line=11, trail_span=0.01).step == pytest.approx(0.001)
        assert TrailConfig(dots_per_line=1, trail_span=0.01).step == pytest.approx(0.01)

    def test_us_code(self):
        assert NavigationConfig().us_code == "us"
        assert NavigationConfig(world_special_regions={"United States": "usa"}).us_code == "usa"


# ============================================================================
# MODELS
# ============================================================================


class TestModels:
    """Overlay records and navigation levels."""

    def test_level_order(self):
        assert NavigationLevel.WORLD.next_level() == NavigationLevel.COUNTRY
        assert NavigationLevel.CITY.next_level() == NavigationLevel.COUNTY
        assert NavigationLevel.COUNTY.next_level() is None
        assert NavigationLevel.PROVINCE.depth == 2

    def test_level_from_string(self):
        assert NavigationLevel.from_string("Province") == NavigationLevel.PROVINCE
        with pytest.raises(ValueError, match="galaxy"):
            NavigationLevel.from_string("galaxy")

    @pytest.mark.parametrize(
        "payload",
        [
            {"id": "a", "coordinate": [1, 2]},
            {"id": "a", "coordinate": {"lng": 1, "lat": 2}},
            {"id": "a", "lng": "1", "lat": "2"},
        ],
        ids=["list", "dict", "separate-keys"],
    )
    def test_point_from_dict(self, payload):
        assert MapPoint.from_dict(payload).coordinate == (1.0, 2.0)

    def test_point_as_dict_skips_unset(self):
        point = MapPoint.from_dict({"id": 7, "coordinate": [1, 2], "color": [1, 2, 3]})
        assert point.id == "7"
        assert point.as_dict() == {"id": "7", "coordinate": [1.0, 2.0], "color": [1, 2, 3]}

    def test_edge_key_variants(self):
        edges = edges_from_dicts([
            {"id": "a", "startCoordinate": [0, 0], "endCoordinate": [1, 1]},
            {"id": "b", "from": [0, 0], "to": [2, 2]},
            {"id": "c", "start": {"lng": 0, "lat": 0}, "end": [3, 3]},
        ])
        assert [e.end for e in edges] == [(1.0, 1.0), (2.0, 2.0), (3.0, 3.0)]

    def test_edge_without_coordinates(self):
        with pytest.raises(ValueError, match="nope"):
            MapEdge.from_dict({"id": "nope", "from": [0, 0]})

    def test_degenerate_edge(self):
        assert MapEdge(id="x", start=(1, 1), end=(1, 1)).is_degenerate

    def test_points_from_geodataframe(self):
        """Rows are reprojected to WGS84; non-point rows are skipped."""
        gdf = gpd.GeoDataFrame(
            {"id": ["a", "b"], "name": ["Alpha", "Beta"]},
            geometry=[Point(111319.49079327357, 0.0), LineString([(0, 0), (1, 1)])],
            crs="EPSG:3857",
        )
        points = points_from_geodataframe(gdf, "id", name_field="name")
        assert len(points) == 1
        assert points[0].name == "Alpha"
        assert points[0].coordinate == pytest.approx((1.0, 0.0), abs=1e-6)

    def test_points_from_empty_geodataframe(self):
        assert points_from_geodataframe(gpd.GeoDataFrame(), "id") == []


# ============================================================================
# ENTRY POINT
# ============================================================================


class TestMain:
    """Overlay loading, logging setup and full runs."""

    def test_load_json_overlays(self, overlay_file):
        points, lines = load_overlays(str(overlay_file), logger)
        assert [p.id for p in points] == ["gz", "sz"]
        assert lines[0].start == (113.3, 23.1)

    def test_load_geojson_overlays(self, tmp_path):
        path = tmp_path / "stations.geojson"
        _write_json(path, {
            "type": "FeatureCollection",
            "features": [{
                "type": "Feature",
                "properties": {"id": "s1", "name": "Station 1"},
                "geometry": {"type": "Point", "coordinates": [113.3, 23.1]},
            }],
        })
        points, lines = load_overlays(str(path), logger)
        assert [(p.id, p.name) for p in points] == [("s1", "Station 1")]
        assert lines == []

    def test_setup_logging(self, tmp_path):
        log_file = tmp_path / "logs" / "drillmap.log"
        configured = setup_logging(AppConfig(log_level="DEBUG", log_file=str(log_file)))
        try:
            assert configured.name == "drillmap"
            assert configured.level == logging.DEBUG
            assert len(configured.handlers) == 2
            assert log_file.exists()
        finally:
            for handler in configured.handlers:
                handler.close()
            configured.handlers.clear()

    def test_plotly_run_with_overlays(self, map_data, tmp_path, overlay_file):
        """Drill to Guangdong, draw overlays and export the chart."""
        config = _app_config(
            map_data, tmp_path,
            renderer="plotly", drill_path=["中国", "广东省"], overlay_file=str(overlay_file),
        )
        summary = asyncio.run(_run(config, logger))
        assert summary["level"] == "province"
        assert summary["adcode"] == "440000"
        assert summary["regions"] == 1
        assert (summary["points"], summary["lines"]) == (2, 1)
        assert (summary["type"], summary["container"]) == ("plotly", "map-container")
        assert summary["boundary_loading"] is False
        assert (tmp_path / "out" / "map.html").exists()

    def test_deckgl_run_stops_at_rejected_region(self, map_data, tmp_path):
        """A rejected descent ends the drill path early."""
        config = _app_config(
            map_data, tmp_path, renderer="deckgl", drill_path=["France", "Paris", "中国"]
        )
        summary = asyncio.run(_run(config, logger))
        assert (summary["level"], summary["country"]) == ("country", "fr")
        assert summary["regions"] == 0
        html = (tmp_path / "out" / "map.html").read_text(encoding="utf-8")
        assert "GeoJsonLayer" in html

    def test_run_without_export(self, map_data, tmp_path):
        config = _app_config(map_data, tmp_path, renderer="plotly", drill_path=[], write_html=False)
        summary = asyncio.run(_run(config, logger))
        assert summary["output_html"] is None
        assert summary["level"] == "world"
        assert summary["regions"] == 2


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
