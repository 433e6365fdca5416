"""
Typed data models for drill-down navigation and map overlays.

Architectural Overview:
=======================
Immutable dataclasses shared by navigation, flow lines and both renderers.
Overlay inputs arrive as loosely structured dicts (JSON payloads) or point
GeoDataFrames; the adapters here normalize them once at the boundary so the
rest of the code works with typed records only.

Key Interactions:
-----------------
- Input: GeoJSON feature collections from GeoDataService, overlay dicts
- Output: GeoCollection, MapPoint, MapEdge consumed by renderers
- Navigation: Use VS Code outline (Ctrl+Shift+O) for quick navigation

Data Flow:
----------
1. GeoDataService returns a GeoCollection per (level, country, region)
2. NavigationState replaces its GeoCollection wholesale on every transition
3. Renderers read features; nothing mutates a GeoCollection in place

MODIFICATION POINT: Add new NavigationLevel members here (keep order)
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Any, List, Tuple

import geopandas as gpd

logger = logging.getLogger(__name__)

Coordinate = Tuple[float, float]
Color = Tuple[int, ...]


# ═══════════════════════════════════════════════════════════════════════════
# 🏷️ ENUMS SECTION
# ═══════════════════════════════════════════════════════════════════════════


class NavigationLevel(str, Enum):
    """Drill level of the map, ordered from World down to County.

    Descent moves one level at a time; County is terminal.
    """

    WORLD = "world"
    COUNTRY = "country"
    PROVINCE = "province"
    CITY = "city"
    COUNTY = "county"

    @property
    def depth(self) -> int:
        """Position in the drill order (World = 0)."""
        return _LEVEL_ORDER.index(self)

    def next_level(self) -> Optional["NavigationLevel"]:
        """Level directly below this one, or None at County."""
        idx = self.depth + 1
        return _LEVEL_ORDER[idx] if idx < len(_LEVEL_ORDER) else None

    @classmethod
    def from_string(cls, s: str) -> "NavigationLevel":
        """Convert string to NavigationLevel (case-insensitive).

        Args:
            s: String like "world", "Country", "PROVINCE"

        Returns:
            Matching NavigationLevel member

        Raises:
            ValueError: If the string names no level
        """
        try:
            return cls(s.lower())
        except ValueError:
            raise ValueError(f"Unknown navigation level: {s!r}") from None


_LEVEL_ORDER: Tuple[NavigationLevel, ...] = tuple(NavigationLevel)


# ═══════════════════════════════════════════════════════════════════════════
# 📍 OVERLAY RECORDS SECTION
# ═══════════════════════════════════════════════════════════════════════════


def _coerce_coordinate(value: Any) -> Coordinate:
    """Turn [lng, lat] or {"lng", "lat"} into a float tuple."""
    if isinstance(value, dict):
        return (float(value["lng"]), float(value["lat"]))
    lng, lat = value[0], value[1]
    return (float(lng), float(lat))


def _coerce_color(value: Any) -> Optional[Color]:
    if value is None:
        return None
    return tuple(int(c) for c in value)


@dataclass(frozen=True)
class MapPoint:
    """Overlay point (node) drawn as an icon.

    Usage Examples:
    ---------------
    ```python
    p = MapPoint.from_dict({"id": "bj", "coordinate": [116.4, 39.9]})
    p.as_dict()
    ```
    """

    id: str
    coordinate: Coordinate
    icon: Optional[str] = None
    color: Optional[Color] = None
    size: Optional[float] = None
    name: Optional[str] = None

    @property
    def lng(self) -> float:
        return self.coordinate[0]

    @property
    def lat(self) -> float:
        return self.coordinate[1]

    def with_coordinate(self, coordinate: Coordinate) -> "MapPoint":
        """Copy of this point at another coordinate (used by reprojection)."""
        return MapPoint(
            id=self.id,
            coordinate=coordinate,
            icon=self.icon,
            color=self.color,
            size=self.size,
            name=self.name,
        )

    def as_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"id": self.id, "coordinate": list(self.coordinate)}
        if self.icon is not None:
            d["icon"] = self.icon
        if self.color is not None:
            d["color"] = list(self.color)
        if self.size is not None:
            d["size"] = self.size
        if self.name is not None:
            d["name"] = self.name
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "MapPoint":
        """Create MapPoint from a payload dict.

        Accepts `coordinate` as [lng, lat] or {"lng", "lat"}, or separate
        `lng`/`lat` keys.
        """
        if "coordinate" in d:
            coord = _coerce_coordinate(d["coordinate"])
        else:
            coord = (float(d["lng"]), float(d["lat"]))
        size = d.get("size")
        return cls(
            id=str(d["id"]),
            coordinate=coord,
            icon=d.get("icon"),
            color=_coerce_color(d.get("color")),
            size=float(size) if size is not None else None,
            name=d.get("name"),
        )


@dataclass(frozen=True)
class MapEdge:
    """Directed overlay edge. `id` keys the edge's curvature."""

    id: str
    start: Coordinate
    end: Coordinate
    color: Optional[Color] = None
    width: Optional[float] = None

    @property
    def is_degenerate(self) -> bool:
        """True when start and end coincide."""
        return self.start == self.end

    def with_coordinates(self, start: Coordinate, end: Coordinate) -> "MapEdge":
        return MapEdge(
            id=self.id, start=start, end=end, color=self.color, width=self.width
        )

    def as_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "id": self.id,
            "startCoordinate": list(self.start),
            "endCoordinate": list(self.end),
        }
        if self.color is not None:
            d["color"] = list(self.color)
        if self.width is not None:
            d["width"] = self.width
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "MapEdge":
        """Create MapEdge from a payload dict.

        Coordinates may be given as `startCoordinate`/`endCoordinate`,
        `from`/`to` or `start`/`end`.
        """
        for start_key, end_key in (
            ("startCoordinate", "endCoordinate"),
            ("from", "to"),
            ("start", "end"),
        ):
            if start_key in d and end_key in d:
                start = _coerce_coordinate(d[start_key])
                end = _coerce_coordinate(d[end_key])
                break
        else:
            raise ValueError(f"Edge {d.get('id')!r} has no start/end coordinates")
        width = d.get("width")
        return cls(
            id=str(d["id"]),
            start=start,
            end=end,
            color=_coerce_color(d.get("color")),
            width=float(width) if width is not None else None,
        )


def points_from_dicts(items: List[Dict[str, Any]]) -> List[MapPoint]:
    return [MapPoint.from_dict(d) for d in items]


def edges_from_dicts(items: List[Dict[str, Any]]) -> List[MapEdge]:
    return [MapEdge.from_dict(d) for d in items]


# ═══════════════════════════════════════════════════════════════════════════
# 🗺️ GEOGRAPHY COLLECTION SECTION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class GeoCollection:
    """Immutable GeoJSON FeatureCollection.

    Attributes:
        features: GeoJSON feature dicts (treated as read-only)
        hc_transform: Optional Highcharts-style `hc-transform` block used to
            project lng/lat into the collection's planar coordinates
    """

    features: Tuple[Dict[str, Any], ...] = ()
    hc_transform: Optional[Dict[str, Any]] = field(default=None, compare=False)

    @classmethod
    def empty(cls) -> "GeoCollection":
        return cls()

    @classmethod
    def from_geojson(cls, data: Optional[Dict[str, Any]]) -> "GeoCollection":
        """Build a collection from a parsed GeoJSON dict.

        Anything other than a dict gives an empty collection, and feature
        entries that are not objects are dropped.
        """
        if not isinstance(data, dict):
            return cls()
        hc = data.get("hc-transform")
        transform = hc.get("default", hc) if isinstance(hc, dict) else None
        features = data.get("features")
        if not isinstance(features, list):
            features = []
        return cls(
            features=tuple(f for f in features if isinstance(f, dict)),
            hc_transform=transform,
        )

    def to_geojson(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "type": "FeatureCollection",
            "features": list(self.features),
        }
        if self.hc_transform is not None:
            out["hc-transform"] = {"default": self.hc_transform}
        return out

    def with_features(self, features: List[Dict[str, Any]]) -> "GeoCollection":
        """New collection with other features and the same transform."""
        return GeoCollection(features=tuple(features), hc_transform=self.hc_transform)

    @property
    def is_empty(self) -> bool:
        return len(self.features) == 0

    def __len__(self) -> int:
        return len(self.features)

    def feature_names(self) -> List[str]:
        return [_feature_name(f) for f in self.features if _feature_name(f)]

    def find_feature(self, name: str) -> Optional[Dict[str, Any]]:
        """First feature whose `name` property equals `name`, else None."""
        for feature in self.features:
            if _feature_name(feature) == name:
                return feature
        return None

    def bounds(self) -> Optional[Tuple[float, float, float, float]]:
        """(minx, miny, maxx, maxy) of all geometries, or None when empty."""
        # Properties are irrelevant here and may hold non-scalar values
        with_geometry = [
            {"type": "Feature", "geometry": f["geometry"], "properties": {}}
            for f in self.features
            if f.get("geometry")
        ]
        if not with_geometry:
            return None
        gdf = gpd.GeoDataFrame.from_features(with_geometry)
        minx, miny, maxx, maxy = gdf.total_bounds
        return (float(minx), float(miny), float(maxx), float(maxy))


def _feature_name(feature: Dict[str, Any]) -> Optional[str]:
    return (feature.get("properties") or {}).get("name")


# ═══════════════════════════════════════════════════════════════════════════
# 🖱️ RAW EVENT SECTION
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class RawMapEvent:
    """Backend event before normalization.

    Attributes:
        component: "geo" for region shapes, "series" for overlay points/lines
        name: Region name (geo) or point id (series)
        data: Backend payload, e.g. the point dict or zoom value
    """

    component: str
    name: str = ""
    data: Optional[Dict[str, Any]] = None

    @property
    def is_geo(self) -> bool:
        return self.component == "geo"

    @property
    def is_series(self) -> bool:
        return self.component == "series"


# ═══════════════════════════════════════════════════════════════════════════
# 🔄 GEODATAFRAME ADAPTERS SECTION
# ═══════════════════════════════════════════════════════════════════════════


def _ensure_wgs84(gdf: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
    """Ensure GeoDataFrame is in WGS84 (EPSG:4326) for web mapping.

    Args:
        gdf: Input GeoDataFrame in any CRS

    Returns:
        GeoDataFrame reprojected to WGS84
    """
    if gdf.crs is None:
        logger.warning("⚠️ GeoDataFrame has no CRS, assuming EPSG:4326 (WGS84)")
        return gdf.set_crs("EPSG:4326")

    if gdf.crs.to_epsg() != 4326:
        logger.info(f"🔄 Reprojecting from {gdf.crs} to WGS84 (EPSG:4326)")
        gdf = gdf.to_crs("EPSG:4326")

    return gdf


def points_from_geodataframe(
    gdf: gpd.GeoDataFrame,
    id_field: str,
    name_field: Optional[str] = None,
    icon_field: Optional[str] = None,
) -> List[MapPoint]:
    """
    Build overlay points from a point GeoDataFrame.

    Args:
        gdf: GeoDataFrame with Point geometries in any CRS
        id_field: Column used as point id
        name_field: Optional column used as display name
        icon_field: Optional column holding icon keys

    Returns:
        List of MapPoint in WGS84 lng/lat; non-point rows are skipped
    """
    if gdf is None or gdf.empty:
        return []

    wgs84 = _ensure_wgs84(gdf.copy())
    points = []
    skipped = 0
    for _, row in wgs84.iterrows():
        geom = row.geometry
        if geom is None or geom.geom_type != "Point":
            skipped += 1
            continue
        points.append(
            MapPoint(
                id=str(row[id_field]),
                coordinate=(float(geom.x), float(geom.y)),
                icon=row[icon_field] if icon_field else None,
                name=str(row[name_field]) if name_field else None,
            )
        )

    if skipped:
        logger.warning(f"⚠️ Skipped {skipped} non-point rows")
    logger.info(f"📍 Loaded {len(points)} overlay points")
    return points
