"""Data models package for typed navigation, geography and overlay records."""

from .map_models import (
    Coordinate,
    GeoCollection,
    MapEdge,
    MapPoint,
    NavigationLevel,
    RawMapEvent,
    # Batch conversion utilities
    edges_from_dicts,
    points_from_dicts,
    points_from_geodataframe,
)

__all__ = [
    "Coordinate",
    "GeoCollection",
    "MapEdge",
    "MapPoint",
    "NavigationLevel",
    "RawMapEvent",
    # Batch conversion utilities
    "edges_from_dicts",
    "points_from_dicts",
    "points_from_geodataframe",
]
