#!/usr/bin/env python3
"""
Geometry Helper Functions

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Pure framing and color computations shared by the renderers.
No dependencies on Plotly or deck.gl.

Key Functions:
1. Coordinate flattening for arbitrarily nested GeoJSON coordinates
2. Center/zoom estimation for framing a region
3. Minimum zoom for a container width
4. RGBA tuple -> CSS color conversion

Dependencies:
- numpy

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between functions
"""

import math
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from drillmap.models import Coordinate

MIN_FRAME_DELTA = 1e-4


# ===========================================================================
# COORDINATE UTILITIES
# ===========================================================================


def flatten_coordinates(coords: Any) -> List[Coordinate]:
    """
    Collect every [x, y] pair from nested GeoJSON coordinates.

    Polygon, MultiPolygon and lists of geometries nest to different depths;
    recursion stops at the first list whose leading items are numbers.
    """
    flat: List[Coordinate] = []

    def collect(item: Any) -> None:
        if not isinstance(item, (list, tuple)) or not item:
            return
        if isinstance(item[0], (int, float)) and len(item) >= 2:
            flat.append((float(item[0]), float(item[1])))
            return
        for sub in item:
            collect(sub)

    collect(coords)
    return flat


def feature_coordinates(features: Iterable[dict]) -> List[Any]:
    """Raw `coordinates` of each feature's geometry (missing -> [])."""
    return [((f.get("geometry") or {}).get("coordinates") or []) for f in features]


def center_and_zoom(
    coords: Any, min_zoom: float = 0.5, max_zoom: float = 6.0
) -> Tuple[Optional[Coordinate], float]:
    """
    Bounding-box center and a zoom that fits the box.

    zoom = min(log2(360 / dLng), log2(180 / dLat)), each delta floored at
    1e-4, clamped to [min_zoom, max_zoom].

    Args:
        coords: Nested coordinates (any GeoJSON depth)
        min_zoom: Lower zoom clamp
        max_zoom: Upper zoom clamp

    Returns:
        (center or None when there are no coordinates, zoom)
    """
    flat = flatten_coordinates(coords)
    if not flat:
        return None, 1.0

    arr = np.asarray(flat, dtype=float)
    min_lng, min_lat = arr.min(axis=0)
    max_lng, max_lat = arr.max(axis=0)
    center = (float((min_lng + max_lng) / 2), float((min_lat + max_lat) / 2))

    lng_diff = max(MIN_FRAME_DELTA, abs(max_lng - min_lng))
    lat_diff = max(MIN_FRAME_DELTA, abs(max_lat - min_lat))
    zoom = min(math.log2(360 / lng_diff), math.log2(180 / lat_diff))
    return center, float(max(min_zoom, min(zoom, max_zoom)))

def min_zoom_for_width(container_width: float) -> float:
    """Smallest zoom at which a world of 256px tiles still fills the width."""
    if container_width <= 0:
        return 0.0
    zoom = math.log2(container_width / 256) - 1
    return max(0.0, min(20.0, zoom))


# ===========================================================================
# COLOR UTILITIES
# ===========================================================================


def rgba_to_css(color: Sequence[int]) -> str:
    """
    Convert an RGB(A) 0-255 tuple to a CSS rgba() string.

    Args:
        color: (r, g, b) or (r, g, b, a) with alpha in 0-255

    Returns:
        String like "rgba(9, 71, 119, 1.00)"
    """
    r, g, b = (int(c) for c in color[:3])
    alpha = color[3] / 255 if len(color) > 3 else 1.0
    return f"rgba({r}, {g}, {b}, {alpha:.2f})"
