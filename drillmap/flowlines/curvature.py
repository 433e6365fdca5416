"""
Deterministic per-edge curvature.

Each edge id hashes to a stable value in [0, 1) which is rescaled into the
requested curvature band, so an edge bends the same way on every rebuild.
The band depends on the edge's shape: squarer edges get 0.5-1.0, long thin
edges 0.2-0.5, and an edge whose ends coincide gets 0.1-0.3.
"""

import logging
from typing import Dict, Optional, Tuple

from drillmap.errors import InvalidCurvatureRangeError
from drillmap.models import Coordinate, MapEdge

logger = logging.getLogger(__name__)

HASH_MODULUS = 2147483647  # 2**31 - 1

DEGENERATE_RANGE = (0.1, 0.3)
THIN_RANGE = (0.2, 0.5)
SQUARE_RANGE = (0.5, 1.0)
SQUARE_RATIO_THRESHOLD = 0.5


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def hash_string(key: str) -> float:
    """
    Polynomial rolling hash of `key` mapped to [0, 1).

    hash = hash * 31 + unit over the UTF-16 code units of `key`, wrapped to a
    signed 32-bit integer after every step.
    """
    h = 0
    units = key.encode("utf-16-le")
    for i in range(0, len(units), 2):
        unit = units[i] | (units[i + 1] << 8)
        h = _to_int32((h << 5) - h + unit)
    return (abs(h) % HASH_MODULUS) / HASH_MODULUS


def validate_range(min_value: float, max_value: float) -> None:
    if min_value < 0 or max_value > 1 or min_value > max_value:
        raise InvalidCurvatureRangeError(min_value, max_value)


class CurvatureCalculator:
    """
    Memoized edge-id -> curvature mapping.

    The unit hash is cached per edge id for the calculator's lifetime and
    rescaled into whatever band the caller asks for.

    Usage:
        calc = CurvatureCalculator()
        c = calc.curvature_for_edge(edge)
    """

    def __init__(self):
        self._cache: Dict[str, float] = {}

    def unit_value(self, key: str) -> float:
        if key not in self._cache:
            self._cache[key] = hash_string(key)
        return self._cache[key]

    def curvature(self, key: str, min_value: float = 0.0, max_value: float = 1.0) -> float:
        """
        Curvature for `key` within [min_value, max_value].

        Raises:
            InvalidCurvatureRangeError: bounds outside [0, 1] or min > max
        """
        validate_range(min_value, max_value)
        return self.unit_value(key) * (max_value - min_value) + min_value

    @staticmethod
    def curvature_range(start: Coordinate, end: Coordinate) -> Tuple[float, float]:
        """Curvature band for an edge from `start` to `end`."""
        if start[0] == end[0] and start[1] == end[1]:
            return DEGENERATE_RANGE

        delta_lng = abs(end[0] - start[0])
        delta_lat = abs(end[1] - start[1])
        # An axis-aligned edge has ratio 0 (one of the deltas is zero)
        if delta_lng == 0 or delta_lat == 0:
            ratio = 0.0
        else:
            ratio = min(delta_lng / delta_lat, delta_lat / delta_lng)
        return SQUARE_RANGE if ratio > SQUARE_RATIO_THRESHOLD else THIN_RANGE

    def curvature_for_coordinates(
        self,
        key: str,
        start: Coordinate,
        end: Coordinate,
        custom_range: Optional[Tuple[float, float]] = None,
    ) -> float:
        min_value, max_value = custom_range or self.curvature_range(start, end)
        return self.curvature(key, min_value, max_value)

    def curvature_for_edge(
        self, edge: MapEdge, custom_range: Optional[Tuple[float, float]] = None
    ) -> float:
        return self.curvature_for_coordinates(edge.id, edge.start, edge.end, custom_range)

    def clear_cache(self) -> None:
        self._cache.clear()

    def cache_snapshot(self) -> Dict[str, float]:
        return dict(self._cache)
