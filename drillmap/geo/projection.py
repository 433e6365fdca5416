"""
Projection of lng/lat overlays into a geography's planar coordinates.

Country maps outside China and the United States are stored in projected
units and carry an `hc-transform` block. Two forms are supported:

- Highcharts style: `crs` (proj4 string) plus scale, jsonres, margins,
  offsets, pans and optional rotation. The lng/lat is projected with pyproj
  first, then mapped into the file's coordinate space.
- Linear style: `scale` and `translate` pairs applied to lng/lat directly.

A missing transform leaves coordinates unchanged.
"""

import logging
import math
from functools import lru_cache
from typing import Any, Dict, List, Optional

from pyproj import CRS, Transformer

from drillmap.models import Coordinate, MapEdge, MapPoint

logger = logging.getLogger(__name__)


@lru_cache(maxsize=32)
def _transformer_for(crs: str) -> Transformer:
    """WGS84 -> `crs` transformer (cached; building one parses the CRS)."""
    return Transformer.from_crs(CRS.from_epsg(4326), CRS.from_user_input(crs), always_xy=True)


def project_lnglat(
    transform: Optional[Dict[str, Any]], coordinate: Coordinate
) -> Coordinate:
    """
    Project one lng/lat coordinate through an hc-transform.

    Args:
        transform: hc-transform block (the "default" entry) or None
        coordinate: (lng, lat)

    Returns:
        (x, y) in the geography's coordinate space
    """
    if not transform:
        return coordinate

    lng, lat = coordinate
    scale = transform.get("scale", 1)

    # === LINEAR TRANSFORM ===
    if isinstance(scale, (list, tuple)):
        translate = transform.get("translate", (0, 0))
        return (lng * scale[0] + translate[0], lat * scale[1] + translate[1])

    # === HIGHCHARTS TRANSFORM ===
    crs = transform.get("crs")
    if crs:
        x, y = _transformer_for(crs).transform(lng, lat)
    else:
        x, y = lng, lat

    rotation = transform.get("rotation")
    if rotation:
        cos_a = transform.get("cosAngle", math.cos(rotation))
        sin_a = transform.get("sinAngle", math.sin(rotation))
        x, y = x * cos_a + y * sin_a, -x * sin_a + y * cos_a

    jsonres = transform.get("jsonres", 1)
    px = ((x - transform.get("xoffset", 0)) * scale + transform.get("xpan", 0)) * jsonres
    py = ((transform.get("yoffset", 0) - y) * scale + transform.get("ypan", 0)) * jsonres
    return (
        px + transform.get("jsonmarginX", 0),
        -(py - transform.get("jsonmarginY", 0)),
    )


def project_points(
    transform: Optional[Dict[str, Any]], points: List[MapPoint]
) -> List[MapPoint]:
    if not transform:
        return list(points)
    return [p.with_coordinate(project_lnglat(transform, p.coordinate)) for p in points]


def project_edges(
    transform: Optional[Dict[str, Any]], edges: List[MapEdge]
) -> List[MapEdge]:
    if not transform:
        return list(edges)
    return [
        e.with_coordinates(
            project_lnglat(transform, e.start), project_lnglat(transform, e.end)
        )
        for e in edges
    ]
