#!/usr/bin/env python3
"""
Geography Data Service

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Fetch the GeoJSON feature collection for a
(level, country, region) tuple from a local directory or an HTTP base URL.

File layout (relative to the data root):
    World            world/wgs84_world.geo.json
                     world/wgs84_world_for_US.geo.json  (map_version="standard")
    Country (China)  china/100000-2.json
    Country (other)  world/countries/{region}-all.geo.json
    Province         china/{region}_full.json           (China only)
    City / County    china/{region}.json                (China only)

Key Patterns:
- Missing paths, HTTP errors and bad JSON yield an empty GeoCollection
- Raw collections are cached in memory per path; downloads are also cached on
  disk under cache_dir, one filelock per file so parallel processes download
  each file once
- The China country map is cleaned on every fetch into a NEW collection;
  cached data is never modified

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between sections
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence

import filelock
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from drillmap.config_types import GeoDataConfig
from drillmap.models import GeoCollection, NavigationLevel

logger = logging.getLogger(__name__)

CHINA_CODE = "100000"

WORLD_PATH = "world/wgs84_world.geo.json"
WORLD_FOR_US_PATH = "world/wgs84_world_for_US.geo.json"
CHINA_COUNTRY_PATH = "china/100000-2.json"


class GeographyProvider(Protocol):
    """Anything that can return geography for a navigation target."""

    def fetch(
        self, level: NavigationLevel, country: str, region: str
    ) -> GeoCollection:
        ...


# ═══════════════════════════════════════════════════════════════════════════
# 🧹 CHINA MAP CLEANING
# ═══════════════════════════════════════════════════════════════════════════


def clean_china_map(
    collection: GeoCollection, primary_landmass_regions: Sequence[str] = ("海南省",)
) -> GeoCollection:
    """
    Remove unnamed features and trim island provinces to their main polygon.

    Unnamed features are the disputed-boundary line artifacts of the China
    map. For each region in `primary_landmass_regions` a MultiPolygon keeps
    only its first polygon (the main island).

    Args:
        collection: Raw China country collection
        primary_landmass_regions: Region names to trim

    Returns:
        New GeoCollection; `collection` is left untouched
    """
    cleaned: List[Dict[str, Any]] = []
    for feature in collection.features:
        name = (feature.get("properties") or {}).get("name")
        if not name:
            continue

        geometry = feature.get("geometry") or {}
        if (
            name in primary_landmass_regions
            and geometry.get("type") == "MultiPolygon"
            and isinstance(geometry.get("coordinates"), list)
        ):
            feature = {
                **feature,
                "geometry": {**geometry, "coordinates": geometry["coordinates"][:1]},
            }
        cleaned.append(feature)

    removed = len(collection.features) - len(cleaned)
    if removed:
        logger.debug(f"🧹 Removed {removed} unnamed features from China map")
    return collection.with_features(cleaned)


# ═══════════════════════════════════════════════════════════════════════════
# 🌍 DATA SERVICE
# ═══════════════════════════════════════════════════════════════════════════


class GeoDataService:
    """
    Geography provider backed by a directory or an HTTP server.

    Usage:
        service = GeoDataService(app_config.geo_data)
        geography = service.fetch(NavigationLevel.COUNTRY, "100000", "100000")
    """

    def __init__(
        self,
        config: Optional[GeoDataConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        self.config = config or GeoDataConfig()
        self._session = session
        self._cache: Dict[str, GeoCollection] = {}

    # ═══════════════════════════════════════════════════════════════════════
    # PATH RESOLUTION
    # ═══════════════════════════════════════════════════════════════════════

    def resolve_path(self, level: NavigationLevel, country: str, region: str) -> str:
        """Relative data path for a target, "" when none exists."""
        if level == NavigationLevel.WORLD:
            if self.config.map_version == "standard":
                return WORLD_FOR_US_PATH
            return WORLD_PATH
        if level == NavigationLevel.COUNTRY:
            if region == CHINA_CODE:
                return CHINA_COUNTRY_PATH
            return f"world/countries/{region}-all.geo.json"
        if country != CHINA_CODE:
            return ""
        if level == NavigationLevel.PROVINCE:
            return f"china/{region}_full.json"
        if level in (NavigationLevel.CITY, NavigationLevel.COUNTY):
            return f"china/{region}.json"
        return ""

    # ═══════════════════════════════════════════════════════════════════════
    # FETCH
    # ═══════════════════════════════════════════════════════════════════════

    def fetch(self, level: NavigationLevel, country: str, region: str) -> GeoCollection:
        """
        Geography for (level, country, region); empty when unavailable.

        Args:
            level: Target navigation level
            country: Active country code
            region: Target region code

        Returns:
            GeoCollection (possibly empty)
        """
        path = self.resolve_path(level, country, region)
        if not path:
            logger.warning(
                f"⚠️ No geography path for {level.value}/{country}/{region}"
            )
            return GeoCollection.empty()

        collection = self._load(path)
        if level == NavigationLevel.COUNTRY and region == CHINA_CODE:
            collection = clean_china_map(
                collection, self.config.primary_landmass_regions
            )
        return collection

    def clear_cache(self) -> None:
        self._cache.clear()

    def _load(self, path: str) -> GeoCollection:
        if path in self._cache:
            return self._cache[path]

        data = self._read(path)
        if data is None:
            return GeoCollection.empty()
        if not isinstance(data, dict):
            logger.warning(
                f"⚠️ Map data at {path} is not a GeoJSON object ({type(data).__name__})"
            )
            return GeoCollection.empty()

        collection = GeoCollection.from_geojson(data)
        self._cache[path] = collection
        logger.info(f"🗺️ Loaded {len(collection)} features from {path}")
        return collection

    def _read(self, path: str) -> Optional[Dict[str, Any]]:
        """Parsed JSON for `path`, or None after logging the failure."""
        try:
            if self.config.data_path is not None:
                return self._read_local(self.config.data_path / path)
            if self.config.base_url:
                return self._read_remote(path)
        except (OSError, ValueError, requests.RequestException) as e:
            logger.warning(f"⚠️ Failed to load map data from {path}: {e}")
            return None

        logger.warning("⚠️ No geography source configured (data_dir or base_url)")
        return None

    @staticmethod
    def _read_local(file_path: Path) -> Dict[str, Any]:
        with open(file_path, "r", encoding="utf-8") as f:
            return json.load(f)

    # ═══════════════════════════════════════════════════════════════════════
    # REMOTE SOURCE + DISK CACHE
    # ═══════════════════════════════════════════════════════════════════════

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            session = requests.Session()
            retry = Retry(total=3, backoff_factor=0.5, status_forcelist=(502, 503, 504))
            session.mount("http://", HTTPAdapter(max_retries=retry))
            session.mount("https://", HTTPAdapter(max_retries=retry))
            self._session = session
        return self._session

    def _download(self, path: str) -> Dict[str, Any]:
        url = f"{self.config.base_url.rstrip('/')}/{path}"
        response = self.session.get(url, timeout=self.config.request_timeout_s)
        response.raise_for_status()
        return response.json()

    def _read_remote(self, path: str) -> Dict[str, Any]:
        cache_root = self.config.cache_path
        if cache_root is None:
            return self._download(path)

        cache_file = cache_root / path
        cache_file.parent.mkdir(parents=True, exist_ok=True)
        lock = filelock.FileLock(
            str(cache_file) + ".lock", timeout=self.config.lock_timeout_s
        )

        try:
            with lock:
                if cache_file.exists():
                    try:
                        return self._read_local(cache_file)
                    except ValueError as e:
                        logger.warning(f"⚠️ Corrupted cached map file {path}: {e}")
                        cache_file.unlink(missing_ok=True)

                data = self._download(path)
                try:
                    with open(cache_file, "w", encoding="utf-8") as f:
                        json.dump(data, f, ensure_ascii=False)
                    logger.debug(f"💾 Cached {path}")
                except OSError as e:
                    logger.warning(f"⚠️ Failed to cache {path}: {e}")
                return data

        except filelock.Timeout:
            logger.warning(
                f"⏱️ Cache lock timeout for {path} after "
                f"{self.config.lock_timeout_s}s, downloading without cache"
            )
            return self._download(path)
