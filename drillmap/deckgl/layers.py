#!/usr/bin/env python3
"""
deck.gl Layer Records and Builders

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Describe deck.gl layers as immutable records and build the
four layers the map uses (boundary, points, lines, line-trails).

Key Patterns:
- RenderLayer is a value object: "updating" a layer means building a new
  record, never mutating props
- Props use pydeck's keyword names (get_fill_color, width_min_pixels, ...)
  and string accessors ("position") so records convert 1:1 to pdk.Layer
- Builders take renderer-neutral inputs (GeoCollection, MapPoint, CurvePath,
  TrailDot, ArcSpec) and styling from StyleConfig

Dependencies:
- pydeck (pdk.Layer conversion)

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between sections
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import pydeck as pdk

from drillmap.config_types import StyleConfig, TrailConfig
from drillmap.deckgl.icon_atlas import IconAtlas
from drillmap.flowlines.line2d import CurvePath, TrailDot
from drillmap.flowlines.line3d import ArcSpec
from drillmap.models import GeoCollection, MapPoint


# ═══════════════════════════════════════════════════════════════════════════
# 🏷️ SLOTS
# ═══════════════════════════════════════════════════════════════════════════


class LayerSlot(str, Enum):
    """Named positions in the layer stack, listed back to front."""

    BOUNDARY = "boundary"
    POINTS = "points"
    LINES = "lines"
    LINE_TRAILS = "line-trails"


CANONICAL_ORDER: Tuple[LayerSlot, ...] = tuple(LayerSlot)


# ═══════════════════════════════════════════════════════════════════════════
# 📦 RENDER LAYER RECORD
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class RenderLayer:
    """
    Immutable deck.gl layer description.

    Attributes:
        layer_type: deck.gl class name, e.g. "GeoJsonLayer"
        id: Layer id; deck.gl diffs layers by this value
        props: Layer props including `data` (read-only view)
    """

    layer_type: str
    id: str
    props: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        # Freeze props so previous and current frames never share a mutable dict
        props = dict(self.props)
        props.pop("id", None)
        object.__setattr__(self, "props", MappingProxyType(props))

    @property
    def data(self) -> Any:
        return self.props.get("data", [])

    def with_id(self, layer_id: str) -> "RenderLayer":
        if layer_id == self.id:
            return self
        return RenderLayer(self.layer_type, layer_id, self.props)

    def with_props(self, patch: Mapping[str, Any]) -> "RenderLayer":
        """New layer with `patch` merged over the current props."""
        merged = {**self.props, **patch}
        layer_id = merged.pop("id", self.id)
        return RenderLayer(self.layer_type, layer_id, merged)

    def to_pydeck(self) -> pdk.Layer:
        props = dict(self.props)
        data = props.pop("data", [])
        return pdk.Layer(self.layer_type, data, id=self.id, **props)


# ═══════════════════════════════════════════════════════════════════════════
# 🗺️ BOUNDARY LAYER
# ═══════════════════════════════════════════════════════════════════════════


def build_geojson_layer(
    geography: GeoCollection,
    styles: Optional[StyleConfig] = None,
    hovered_name: Optional[str] = None,
    layer_id: str = LayerSlot.BOUNDARY.value,
) -> RenderLayer:
    """
    Boundary layer with the hovered region filled in the hover color.

    The fill color is baked into each feature copy under
    `properties.fillColor`; the input collection is not modified.
    """
    styles = styles or StyleConfig()
    features = []
    for feature in geography.features:
        props = feature.get("properties") or {}
        hovered = hovered_name is not None and props.get("name") == hovered_name
        fill = styles.geo_hover_fill_color if hovered else styles.geo_fill_color
        features.append({**feature, "properties": {**props, "fillColor": list(fill)}})

    return RenderLayer(
        "GeoJsonLayer",
        layer_id,
        {
            "data": {"type": "FeatureCollection", "features": features},
            "pickable": True,
            "stroked": True,
            "filled": True,
            "line_width_scale": 1,
            "line_width_min_pixels": 1,
            "wrap_longitude": True,
            "auto_highlight": True,
            "highlight_color": list(styles.geo_highlight_color),
            "get_fill_color": "properties.fillColor",
            "get_line_color": list(styles.geo_line_color),
            "get_line_width": 1,
            "get_point_radius": 100,
            "get_text_size": 12,
            "get_text_color": [255, 255, 255, 255],
        },
    )


# ═══════════════════════════════════════════════════════════════════════════
# 📍 POINT (ICON) LAYER
# ═══════════════════════════════════════════════════════════════════════════


def icon_layer_data(
    points: Sequence[MapPoint],
    styles: Optional[StyleConfig] = None,
    selected_id: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Rows for the IconLayer; the selected point is scaled up."""
    styles = styles or StyleConfig()
    rows = []
    for p in points:
        size = p.size if p.size is not None else styles.point_size
        if selected_id is not None and p.id == selected_id:
            size *= styles.selected_scale
        rows.append(
            {
                "id": p.id,
                "name": p.name or p.id,
                "position": [p.lng, p.lat, styles.point_elevation],
                "icon": p.icon or styles.point_icon,
                "size": size,
                "color": list(p.color) if p.color else list(styles.point_color),
            }
        )
    return rows


def build_icon_layer(
    points: Sequence[MapPoint],
    atlas: Optional[IconAtlas],
    styles: Optional[StyleConfig] = None,
    selected_id: Optional[str] = None,
    layer_id: str = LayerSlot.POINTS.value,
) -> RenderLayer:
    props: Dict[str, Any] = {
        "data": icon_layer_data(points, styles, selected_id),
        "get_position": "position",
        "get_icon": "icon",
        "get_size": "size",
        "get_color": "color",
        "pickable": True,
        "update_triggers": {"getSize": selected_id},
    }
    if atlas is not None:
        props["icon_atlas"] = atlas.data_url
        props["icon_mapping"] = atlas.mapping_dict()
    return RenderLayer("IconLayer", layer_id, props)


# ═══════════════════════════════════════════════════════════════════════════
# ☄️ LINE LAYERS
# ═══════════════════════════════════════════════════════════════════════════


def build_path_layer(
    curves: Sequence[CurvePath], layer_id: str = LayerSlot.LINES.value
) -> RenderLayer:
    """2D curves as a PathLayer."""
    data = [
        {
            "id": c.edge_id,
            "path": [list(p) for p in c.path],
            "color": list(c.color),
            "width": c.width,
        }
        for c in curves
    ]
    return RenderLayer(
        "PathLayer",
        layer_id,
        {
            "data": data,
            "pickable": False,
            "width_scale": 1,
            "width_min_pixels": 0.3,
            "get_path": "path",
            "get_color": "color",
            "get_width": "width",
            "parameters": {"cullMode": "none"},
        },
    )


def build_trail_layer(
    dots: Sequence[TrailDot],
    trail: Optional[TrailConfig] = None,
    layer_id: str = LayerSlot.LINE_TRAILS.value,
) -> RenderLayer:
    """2D trailing dots as a ScatterplotLayer with pixel radii."""
    trail = trail or TrailConfig()
    data = [
        {"position": list(d.position), "color": list(d.color), "radius": d.radius}
        for d in dots
    ]
    return RenderLayer(
        "ScatterplotLayer",
        layer_id,
        {
            "data": data,
            "pickable": False,
            "radius_units": "pixels",
            "radius_min_pixels": trail.tail_radius,
            "radius_max_pixels": trail.head_radius + 2,
            "get_position": "position",
            "get_fill_color": "color",
            "get_radius": "radius",
            "parameters": {"cullMode": "none"},
        },
    )


def build_arc_layer(
    arcs: Sequence[ArcSpec],
    time_range: Tuple[float, float],
    height: float = 0.6,
    layer_id: str = LayerSlot.LINES.value,
) -> RenderLayer:
    """3D arcs with their travel window; `arcs` are already time-filtered."""
    data = [
        {
            "id": a.edge_id,
            "source": list(a.source),
            "target": list(a.target),
            "source_timestamp": a.source_timestamp,
            "target_timestamp": a.target_timestamp,
            "color": list(a.color),
        }
        for a in arcs
    ]
    return RenderLayer(
        "ArcLayer",
        layer_id,
        {
            "data": data,
            "pickable": True,
            "get_source_position": "source",
            "get_target_position": "target",
            "get_source_color": "color",
            "get_target_color": "color",
            "get_height": height,
            "time_range": list(time_range),
            "parameters": {"cullMode": "none"},
        },
    )
