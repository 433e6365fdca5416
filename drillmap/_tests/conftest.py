"""
Shared fixtures for drillmap tests.

Geography fixtures are small hand-made collections with square regions so
expected hit tests and framing can be checked by eye.
"""

import re
from typing import Dict, List, Optional, Tuple

import pytest
from PIL import Image

from drillmap.config_types import AppConfig, DebounceConfig
from drillmap.models import GeoCollection, MapEdge, MapPoint, NavigationLevel
from drillmap.navigation.resolver import RegionResolver
from drillmap.navigation.state import NavigationState


# ============================================================================
# GEOMETRY HELPERS
# ============================================================================


def square(x0: float, y0: float, x1: float, y1: float) -> List[List[float]]:
    """Closed ring of an axis-aligned rectangle."""
    return [[x0, y0], [x1, y0], [x1, y1], [x0, y1], [x0, y0]]


def polygon_feature(name: Optional[str], rings, **props) -> Dict:
    properties = dict(props)
    if name is not None:
        properties["name"] = name
    return {
        "type": "Feature",
        "properties": properties,
        "geometry": {"type": "Polygon", "coordinates": rings},
    }


def multipolygon_feature(name: str, polygons, **props) -> Dict:
    return {
        "type": "Feature",
        "properties": {"name": name, **props},
        "geometry": {"type": "MultiPolygon", "coordinates": polygons},
    }


# ============================================================================
# FAKES
# ============================================================================


class FakeProvider:
    """GeographyProvider returning canned collections keyed by (level, region)."""

    def __init__(self, responses: Optional[Dict[Tuple[NavigationLevel, str], GeoCollection]] = None):
        self.responses = dict(responses or {})
        self.calls: List[Tuple[NavigationLevel, str, str]] = []

    def fetch(self, level: NavigationLevel, country: str, region: str) -> GeoCollection:
        self.calls.append((level, country, region))
        return self.responses.get((level, region), GeoCollection.empty())


_SIZE_RE = re.compile(r'width="(\d+)"\s+height="(\d+)"')


def fake_rasterizer(svg: str) -> Image.Image:
    """Solid image sized from the svg width/height attributes."""
    match = _SIZE_RE.search(svg)
    width, height = (int(match.group(1)), int(match.group(2))) if match else (8, 8)
    return Image.new("RGBA", (width, height), (255, 255, 255, 255))


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def world_geography() -> GeoCollection:
    """World map: China and France with hc-keys, Antarctica without one."""
    china = polygon_feature("中国", [square(75, 20, 135, 50)], **{"hc-key": "cn"})
    china["id"] = "CN"
    france = polygon_feature("France", [square(-5, 42, 8, 51)], **{"hc-key": "fr"})
    france["id"] = "FR"
    antarctica = polygon_feature("Antarctica", [square(-180, -90, 180, -60)])
    return GeoCollection(features=(china, france, antarctica))


@pytest.fixture
def china_geography() -> GeoCollection:
    """China country map with a municipality, a province and an excluded region."""
    return GeoCollection(
        features=(
            polygon_feature("北京市", [square(115, 39, 118, 42)], adcode=110000),
            polygon_feature("广东省", [square(109, 20, 117, 25)], adcode=440000),
            polygon_feature("南海诸岛", [square(110, 5, 118, 15)], adcode="100000_JD"),
        )
    )


@pytest.fixture
def guangdong_geography() -> GeoCollection:
    return GeoCollection(
        features=(
            polygon_feature("广州市", [square(112, 22, 114, 24)], adcode=440100),
            polygon_feature("深圳市", [square(113.7, 22.4, 114.6, 22.9)], adcode=440300),
        )
    )


@pytest.fixture
def sample_points() -> List[MapPoint]:
    return [
        MapPoint(id="gz", coordinate=(113.3, 23.1), name="Guangzhou"),
        MapPoint(id="bj", coordinate=(116.4, 39.9), icon="circle"),
        MapPoint(id="paris", coordinate=(2.35, 48.85)),
    ]


@pytest.fixture
def sample_edges() -> List[MapEdge]:
    return [
        MapEdge(id="bj-gz", start=(116.4, 39.9), end=(113.3, 23.1)),
        MapEdge(id="gz-paris", start=(113.3, 23.1), end=(2.35, 48.85), color=(255, 0, 0, 200)),
    ]


@pytest.fixture
def app_config() -> AppConfig:
    """Default configuration with millisecond debounce timings."""
    return AppConfig(
        debounce=DebounceConfig(
            area_hover_s=0.01,
            series_update_s=0.01,
            boundary_timeout_s=0.2,
            boundary_poll_s=0.01,
        )
    )


@pytest.fixture
def state(app_config) -> NavigationState:
    return NavigationState(app_config.navigation)


@pytest.fixture
def provider(world_geography, china_geography, guangdong_geography) -> FakeProvider:
    return FakeProvider(
        {
            (NavigationLevel.WORLD, "100000"): world_geography,
            (NavigationLevel.COUNTRY, "100000"): china_geography,
            (NavigationLevel.PROVINCE, "440000"): guangdong_geography,
        }
    )


@pytest.fixture
def resolver(state, app_config, provider) -> RegionResolver:
    return RegionResolver(state, app_config.navigation, provider)
