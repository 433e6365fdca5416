"""
Point-in-region hit testing for hover highlighting.

Ray casting runs vectorized over the edges of each ring with numpy. Rings of
one polygon are XOR-folded in order: the outer ring sets containment and each
following ring (a hole) inverts it. A MultiPolygon contains a point when any
of its polygons does. A shapely envelope per region rejects far-away points
before any ring is tested.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
from shapely.errors import GEOSException
from shapely.geometry import shape

from drillmap.models import GeoCollection, MapPoint

logger = logging.getLogger(__name__)

Rings = List[np.ndarray]
Bounds = Tuple[float, float, float, float]


def point_in_ring(point: Sequence[float], ring: Union[np.ndarray, Sequence]) -> bool:
    """
    Even-odd ray casting test of `point` against one closed or open ring.

    Args:
        point: (x, y)
        ring: Sequence of (x, y[, z]) vertices

    Returns:
        True if the horizontal ray from `point` crosses the ring an odd
        number of times
    """
    arr = np.asarray(ring, dtype=float)
    if arr.ndim != 2 or len(arr) < 3:
        return False

    x, y = float(point[0]), float(point[1])
    xi, yi = arr[:, 0], arr[:, 1]
    xj, yj = np.roll(xi, 1), np.roll(yi, 1)

    straddles = (yi > y) != (yj > y)
    with np.errstate(divide="ignore", invalid="ignore"):
        x_cross = (xj - xi) * (y - yi) / (yj - yi) + xi
    crossings = straddles & (x < x_cross)
    return bool(np.count_nonzero(crossings) % 2)


def point_in_polygon(point: Sequence[float], rings: Iterable) -> bool:
    """XOR-fold of ring tests: inside the outer ring and outside every hole."""
    inside = False
    for ring in rings:
        inside ^= point_in_ring(point, ring)
    return inside


def _polygons_of(geometry: Optional[Dict[str, Any]]) -> List[Rings]:
    """Polygons of a GeoJSON geometry as lists of ring arrays."""
    if not geometry:
        return []
    gtype = geometry.get("type")
    coords = geometry.get("coordinates") or []
    if gtype == "Polygon":
        polygons = [coords]
    elif gtype == "MultiPolygon":
        polygons = coords
    else:
        return []
    return [[np.asarray(ring, dtype=float) for ring in polygon] for polygon in polygons]


def point_in_geometry(point: Sequence[float], geometry: Optional[Dict[str, Any]]) -> bool:
    """Containment test for a GeoJSON Polygon or MultiPolygon geometry."""
    return any(point_in_polygon(point, rings) for rings in _polygons_of(geometry))


def _envelope(geometry: Optional[Dict[str, Any]]) -> Optional[Bounds]:
    """Bounding box of a GeoJSON geometry, or None when shapely rejects it."""
    if not geometry:
        return None
    try:
        geom = shape(geometry)
    except (GEOSException, ValueError, TypeError) as e:
        logger.debug(f"⚠️ No envelope for {geometry.get('type')} geometry: {e}")
        return None
    if geom.is_empty:
        return None
    return geom.bounds


def _in_envelope(point: Sequence[float], bounds: Optional[Bounds]) -> bool:
    if bounds is None:
        return True
    minx, miny, maxx, maxy = bounds
    return minx <= point[0] <= maxx and miny <= point[1] <= maxy


class _RegionShape:
    """Ring arrays and envelope of one region."""

    __slots__ = ("polygons", "bounds")

    def __init__(self, geometry: Optional[Dict[str, Any]]):
        self.polygons: List[Rings] = _polygons_of(geometry)
        self.bounds: Optional[Bounds] = _envelope(geometry)

    def contains(self, point: Sequence[float]) -> bool:
        if not _in_envelope(point, self.bounds):
            return False
        return any(point_in_polygon(point, rings) for rings in self.polygons)


class SpatialIndex:
    """
    Finds overlay points inside a named region of the loaded geography.

    The index reads geography lazily so it always tests against the
    collection currently installed in NavigationState. Region shapes are
    cached per name and dropped whenever the collection is replaced.

    Usage:
        index = SpatialIndex(lambda: state.geography)
        ids = index.points_in_region("广东省", points)
    """

    def __init__(self, geography: Union[GeoCollection, Callable[[], GeoCollection]]):
        if isinstance(geography, GeoCollection):
            self._get_geography = lambda: geography
        else:
            self._get_geography = geography
        self._cached_for: Optional[GeoCollection] = None
        self._shape_cache: Dict[str, _RegionShape] = {}

    def _region_shape(self, region_name: str) -> Optional[_RegionShape]:
        geography = self._get_geography()
        if geography is not self._cached_for:
            self._cached_for = geography
            self._shape_cache = {}

        if region_name not in self._shape_cache:
            feature = geography.find_feature(region_name)
            if feature is None:
                return None
            self._shape_cache[region_name] = _RegionShape(feature.get("geometry"))
        return self._shape_cache[region_name]

    def contains(self, region_name: str, point: Sequence[float]) -> bool:
        region = self._region_shape(region_name)
        return region is not None and region.contains(point)

    def points_in_region(self, region_name: str, points: Iterable[MapPoint]) -> List[str]:
        """
        Ids of `points` that lie inside `region_name`.

        Args:
            region_name: `name` property of the hovered feature
            points: Candidate points in the geography's coordinate space

        Returns:
            Matching point ids in input order; [] if the region is unknown
        """
        region = self._region_shape(region_name)
        if region is None:
            logger.debug(f"🔍 Region '{region_name}' not in loaded geography")
            return []

        return [p.id for p in points if region.contains(p.coordinate)]
