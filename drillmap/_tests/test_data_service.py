"""
Unit tests for GeoDataService path resolution, loading, cleaning and caching.

Local files are written to pytest's tmp_path; the HTTP source uses a fake
requests session so no network access is needed.

Run with: python -m pytest drillmap/_tests/test_data_service.py -v
"""

import json

import pytest
import requests

from conftest import multipolygon_feature, polygon_feature, square
from drillmap.config_types import GeoDataConfig
from drillmap.geo.data_service import GeoDataService, clean_china_map
from drillmap.models import GeoCollection, NavigationLevel

W = NavigationLevel.WORLD
C = NavigationLevel.COUNTRY
P = NavigationLevel.PROVINCE
CI = NavigationLevel.CITY
CO = NavigationLevel.COUNTY


# ============================================================================
# FIXTURES
# ============================================================================


def _write_json(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")


def _collection(*features):
    return {"type": "FeatureCollection", "features": list(features)}


@pytest.fixture
def raw_china():
    """China map with a boundary artifact and a two-island Hainan."""
    return _collection(
        polygon_feature("广东省", [square(109, 20, 117, 25)], adcode=440000),
        multipolygon_feature(
            "海南省",
            [[square(108, 18, 111, 20)], [square(112, 16, 113, 17)]],
            adcode=460000,
        ),
        polygon_feature(None, [square(120, 10, 121, 11)]),
    )


@pytest.fixture
def data_dir(tmp_path, raw_china):
    root = tmp_path / "mapData"
    _write_json(root / "world" / "wgs84_world.geo.json", _collection(
        polygon_feature("France", [square(-5, 42, 8, 51)], **{"hc-key": "fr"})
    ))
    _write_json(root / "china" / "100000-2.json", raw_china)
    _write_json(root / "china" / "440000_full.json", _collection(
        polygon_feature("广州市", [square(112, 22, 114, 24)], adcode=440100)
    ))
    return root


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        return self.payload


class FakeSession:
    """Records requested URLs and replays canned payloads."""

    def __init__(self, payloads=None, error=None):
        self.payloads = payloads or {}
        self.error = error
        self.urls = []

    def get(self, url, timeout=None):
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        if url not in self.payloads:
            return FakeResponse(None, status=404)
        return FakeResponse(self.payloads[url])


# ============================================================================
# PATHS
# ============================================================================


class TestResolvePath:
    """Relative file paths per target."""

    @pytest.mark.parametrize(
        "level,country,region,expected",
        [
            (W, "100000", "100000", "world/wgs84_world.geo.json"),
            (C, "100000", "100000", "china/100000-2.json"),
            (C, "fr", "fr", "world/countries/fr-all.geo.json"),
            (P, "100000", "440000", "china/440000_full.json"),
            (CI, "100000", "440100", "china/440100.json"),
            (CO, "100000", "440106", "china/440106.json"),
            (P, "us", "us-tx", ""),
            (CI, "fr", "fr-75", ""),
        ],
    )
    def test_paths(self, level, country, region, expected):
        assert GeoDataService().resolve_path(level, country, region) == expected

    def test_standard_world_variant(self):
        """map_version='standard' selects the World map for the US variant."""
        service = GeoDataService(GeoDataConfig(map_version="standard"))
        assert service.resolve_path(W, "100000", "100000") == "world/wgs84_world_for_US.geo.json"


# ============================================================================
# CLEANING
# ============================================================================


class TestCleanChinaMap:
    """China country map cleanup."""

    def test_unnamed_features_removed(self, raw_china):
        cleaned = clean_china_map(GeoCollection.from_geojson(raw_china))
        assert cleaned.feature_names() == ["广东省", "海南省"]

    def test_hainan_keeps_first_polygon(self, raw_china):
        cleaned = clean_china_map(GeoCollection.from_geojson(raw_china))
        hainan = cleaned.find_feature("海南省")
        assert len(hainan["geometry"]["coordinates"]) == 1
        assert hainan["geometry"]["coordinates"][0] == [square(108, 18, 111, 20)]

    def test_input_not_modified(self, raw_china):
        """Cleaning builds a new collection."""
        original = GeoCollection.from_geojson(raw_china)
        clean_china_map(original)
        assert len(original) == 3
        assert len(original.find_feature("海南省")["geometry"]["coordinates"]) == 2


# ============================================================================
# LOCAL SOURCE
# ============================================================================


class TestLocalFetch:
    """Reading from a data directory."""

    def test_world(self, data_dir):
        service = GeoDataService(GeoDataConfig(data_dir=str(data_dir)))
        world = service.fetch(W, "100000", "100000")
        assert world.feature_names() == ["France"]

    def test_china_country_is_cleaned(self, data_dir):
        service = GeoDataService(GeoDataConfig(data_dir=str(data_dir)))
        china = service.fetch(C, "100000", "100000")
        assert china.feature_names() == ["广东省", "海南省"]

    def test_province(self, data_dir):
        service = GeoDataService(GeoDataConfig(data_dir=str(data_dir)))
        assert service.fetch(P, "100000", "440000").feature_names() == ["广州市"]

    def test_missing_file_is_empty(self, data_dir):
        """No file for the target gives an empty collection."""
        service = GeoDataService(GeoDataConfig(data_dir=str(data_dir)))
        assert service.fetch(CI, "100000", "999999").is_empty

    def test_no_path_is_empty(self, data_dir):
        service = GeoDataService(GeoDataConfig(data_dir=str(data_dir)))
        assert service.fetch(P, "fr", "fr-idf").is_empty

    def test_bad_json_is_empty(self, tmp_path):
        (tmp_path / "world").mkdir()
        (tmp_path / "world" / "wgs84_world.geo.json").write_text("{not json", encoding="utf-8")
        service = GeoDataService(GeoDataConfig(data_dir=str(tmp_path)))
        assert service.fetch(W, "100000", "100000").is_empty

    @pytest.mark.parametrize(
        "payload",
        [[1, 2], "FeatureCollection", 42, None],
        ids=["list", "string", "number", "null"],
    )
    def test_non_object_json_is_empty(self, data_dir, payload):
        """Valid JSON that is not a GeoJSON object gives an empty collection."""
        _write_json(data_dir / "world" / "countries" / "fr-all.geo.json", payload)
        service = GeoDataService(GeoDataConfig(data_dir=str(data_dir)))
        assert service.fetch(C, "fr", "fr").is_empty

    def test_non_object_features_dropped(self, data_dir):
        _write_json(data_dir / "world" / "countries" / "fr-all.geo.json", {
            "type": "FeatureCollection",
            "features": [1, "x", polygon_feature("Bretagne", [square(-5, 47, -1, 49)])],
        })
        service = GeoDataService(GeoDataConfig(data_dir=str(data_dir)))
        assert service.fetch(C, "fr", "fr").feature_names() == ["Bretagne"]

    def test_memory_cache(self, data_dir):
        """A second fetch reuses the parsed collection."""
        service = GeoDataService(GeoDataConfig(data_dir=str(data_dir)))
        first = service.fetch(W, "100000", "100000")
        (data_dir / "world" / "wgs84_world.geo.json").unlink()
        assert service.fetch(W, "100000", "100000") is first

        service.clear_cache()
        assert service.fetch(W, "100000", "100000").is_empty

    def test_no_source_configured(self):
        service = GeoDataService(GeoDataConfig(data_dir="", base_url=""))
        assert service.fetch(W, "100000", "100000").is_empty


# ============================================================================
# REMOTE SOURCE
# ============================================================================


class TestRemoteFetch:
    """HTTP source with disk cache."""

    def test_download(self):
        url = "http://maps.example/data/world/wgs84_world.geo.json"
        session = FakeSession({url: _collection(polygon_feature("France", [square(0, 0, 1, 1)]))})
        service = GeoDataService(
            GeoDataConfig(data_dir="", base_url="http://maps.example/data/"), session=session
        )
        assert service.fetch(W, "100000", "100000").feature_names() == ["France"]
        assert session.urls == [url]

    def test_download_written_to_disk_cache(self, tmp_path):
        """A later service reads the cached file without any request."""
        url = "http://maps.example/china/440000_full.json"
        payload = _collection(polygon_feature("广州市", [square(0, 0, 1, 1)], adcode=440100))
        config = GeoDataConfig(
            data_dir="", base_url="http://maps.example", cache_dir=str(tmp_path / "cache")
        )

        GeoDataService(config, session=FakeSession({url: payload})).fetch(P, "100000", "440000")
        assert (tmp_path / "cache" / "china" / "440000_full.json").exists()

        offline = FakeSession(error=requests.ConnectionError("offline"))
        cached = GeoDataService(config, session=offline).fetch(P, "100000", "440000")
        assert cached.feature_names() == ["广州市"]
        assert offline.urls == []

    def test_http_error_is_empty(self):
        service = GeoDataService(
            GeoDataConfig(data_dir="", base_url="http://maps.example"), session=FakeSession()
        )
        assert service.fetch(C, "fr", "fr").is_empty

    def test_connection_error_is_empty(self):
        session = FakeSession(error=requests.ConnectionError("offline"))
        service = GeoDataService(
            GeoDataConfig(data_dir="", base_url="http://maps.example"), session=session
        )
        assert service.fetch(W, "100000", "100000").is_empty

    def test_default_session_has_retries(self):
        service = GeoDataService(GeoDataConfig(data_dir="", base_url="http://maps.example"))
        adapter = service.session.get_adapter("https://maps.example")
        assert adapter.max_retries.total == 3


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
