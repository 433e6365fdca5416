"""Geography package: data loading, hit testing, projection and framing."""

from .data_service import GeoDataService, GeographyProvider, clean_china_map
from .geo_helpers import center_and_zoom, flatten_coordinates
from .projection import project_edges, project_lnglat, project_points
from .spatial_index import SpatialIndex, point_in_geometry, point_in_polygon, point_in_ring

__all__ = [
    "GeoDataService",
    "GeographyProvider",
    "clean_china_map",
    "center_and_zoom",
    "flatten_coordinates",
    "project_edges",
    "project_lnglat",
    "project_points",
    "SpatialIndex",
    "point_in_geometry",
    "point_in_polygon",
    "point_in_ring",
]
