#!/usr/bin/env python3
"""
Drill-Down Map - Configuration

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Centralized configuration for drill-down navigation, flow-line
animation, geography loading and renderer styling.
Single source of truth for navigation codes, timings, data paths and colors.

Configuration Sections (ordered by how often they are tuned):
1. navigation: Region codes, municipality set, supported countries
2. animation: Logical clock (tick, increment, trail, loop)
3. trail: 2D trailing-dot appearance
4. debounce: Hover and series-update quiet periods, boundary guard
5. geo_data: Geography source (directory or URL) and disk cache
6. styles: deck.gl and Plotly colors
7. deck: Initial view state and view constraints
8. logging: Log level and optional log file
9. run: Entry-point settings for main.py (bottom - rarely changed)

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between sections
"""

import os
from typing import Dict, Any, TypeVar, Callable, Optional

T = TypeVar("T")


def _env_or_default(
    key: str, default: T, type_fn: Optional[Callable[[str], T]] = None
) -> T:
    """
    Get value from environment variable or use default.

    Args:
        key: Environment variable name (e.g., "DRILLMAP_GEO_DATA_DIR")
        default: Default value if env var not set
        type_fn: Optional type conversion function (e.g., float, int)

    Returns:
        Value from environment (converted) or default
    """
    val = os.getenv(key)
    if val is not None:
        if type_fn is not None:
            return type_fn(val)
        return val  # type: ignore
    return default


def _env_bool(key: str, default: bool) -> bool:
    """
    Get boolean value from environment variable.

    Treats "true", "1", "yes" as True (case-insensitive).
    Any other value or unset returns default.
    """
    val = os.getenv(key)
    if val is None:
        return default
    return val.lower() in ("true", "1", "yes")


# ═══════════════════════════════════════════════════════════════════════════
# 🔧 ENVIRONMENT VARIABLE OVERRIDES
# ═══════════════════════════════════════════════════════════════════════════
# DRILLMAP_GEO_DATA_DIR   - local directory holding the geography files
# DRILLMAP_GEO_BASE_URL   - HTTP base URL used when no data dir is set
# DRILLMAP_GEO_CACHE_DIR  - disk cache for downloaded geography files
# DRILLMAP_MAP_VERSION    - "default" or "standard" World map variant
# DRILLMAP_LOG_LEVEL      - "DEBUG", "INFO", ... (default: "INFO")
# DRILLMAP_RENDER_MODE    - "2d" or "3d" for the deck.gl backend
# DRILLMAP_RENDERER       - "plotly" or "deckgl" for main.py
# ═══════════════════════════════════════════════════════════════════════════

CONFIG: Dict[str, Any] = {
    # ═══════════════════════════════════════════════════════════════════════
    # 🧭 1. NAVIGATION
    # ═══════════════════════════════════════════════════════════════════════
    "navigation": {
        # Default active country and region (China)
        "default_country": "100000",
        "default_adcode": "100000",
        # Region names on the World map that bypass the property lookup
        "world_special_regions": {
            "中国": "100000",
            "China": "100000",
            "美国": "us",
            "United States": "us",
        },
        # Country-level region that never descends (South China Sea Islands)
        "excluded_country_regions": ["南海诸岛"],
        # Beijing, Tianjin, Shanghai, Chongqing: no county subdivision
        "municipality_codes": ["110000", "120000", "310000", "500000"],
        # Countries with sub-national geography
        "supported_subnational_countries": ["100000", "us"],
        # Feature property holding the code
        "china_code_property": "adcode",
        "generic_code_property": "hc-key",
    },
    # ═══════════════════════════════════════════════════════════════════════
    # ⏱️ 2. ANIMATION CLOCK (logical seconds)
    # ═══════════════════════════════════════════════════════════════════════
    "animation": {
        "tick_ms": 10,
        "increment": 60,  # logical seconds per tick
        "trail_length": 60 * 60,  # 1 logical hour
        "time_loop": 6 * 60 * 60,  # 6 logical hours
        "arc_offset": 300,  # per-edge stagger in 3D
        "arc_duration": 1000,  # visible span of one arc in 3D
    },
    # ═══════════════════════════════════════════════════════════════════════
    # ☄️ 3. 2D TRAILING DOTS
    # ═══════════════════════════════════════════════════════════════════════
    "trail": {
        "dots_per_line": 12,
        "head_radius": 1.0,
        "tail_radius": 0.5,
        "head_alpha": 255,
        "tail_alpha": 60,
        "trail_span": 0.01,
        "alpha_exponent": 1.5,
        "curve_segments": 64,
        "control_factor": 0.3,
        "curve_width": 0.3,
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🕰️ 4. DEBOUNCE AND BOUNDARY GUARD (seconds)
    # ═══════════════════════════════════════════════════════════════════════
    "debounce": {
        "area_hover_s": 0.6,
        "series_update_s": 0.3,
        "boundary_timeout_s": 5.0,
        "boundary_poll_s": 0.1,
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🗺️ 5. GEOGRAPHY SOURCE
    # ═══════════════════════════════════════════════════════════════════════
    "geo_data": {
        "data_dir": _env_or_default("DRILLMAP_GEO_DATA_DIR", "mapData"),
        "base_url": _env_or_default("DRILLMAP_GEO_BASE_URL", ""),
        "cache_dir": _env_or_default("DRILLMAP_GEO_CACHE_DIR", ""),
        "request_timeout_s": 15.0,
        "lock_timeout_s": 60.0,
        # "standard" selects the World map variant drawn for the United States
        "map_version": _env_or_default("DRILLMAP_MAP_VERSION", "default"),
        # Island province trimmed to its main landmass on the China map
        "primary_landmass_regions": ["海南省"],
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🎨 6. STYLES
    # ═══════════════════════════════════════════════════════════════════════
    "styles": {
        "geo_fill_color": [9, 71, 119, 255],
        "geo_line_color": [20, 128, 197, 255],
        "geo_highlight_color": [48, 121, 200, 255],
        "geo_hover_fill_color": [255, 255, 255, 255],
        "line_color": [170, 170, 170, 90],
        "dot_rgb": [255, 255, 255],
        "arc_rgb": [200, 200, 200],
        "point_color": [255, 255, 255, 255],
        "point_icon": "star",
        "point_size": 24,
        "selected_scale": 1.6,
        "point_elevation": 50,
        "arc_elevation": 100,
        "arc_height": 0.6,
        # Plotly (2D chart) styling
        "area_color": "#094777",
        "border_color": "#1480C5",
        "emphasis_area_color": "#3079c8",
        "background_color": "#02152b",
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🎥 7. DECK VIEW
    # ═══════════════════════════════════════════════════════════════════════
    "deck": {
        "mode": _env_or_default("DRILLMAP_RENDER_MODE", "2d"),
        "longitude": 0.0,
        "latitude": 30.0,
        "zoom": 1.0,
        "pitch": 0.0,
        "pitch_3d": 45.0,
        "latitude_limit": 30.0,
        "min_zoom": 0.5,
        "max_zoom": 6.0,
        "world_zoom": 1.3,
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 📋 8. LOGGING
    # ═══════════════════════════════════════════════════════════════════════
    "logging": {
        "level": _env_or_default("DRILLMAP_LOG_LEVEL", "INFO"),
        "log_file": "",
    },
    # ═══════════════════════════════════════════════════════════════════════
    # ▶️ 9. ENTRY POINT
    # ═══════════════════════════════════════════════════════════════════════
    "run": {
        "renderer": _env_or_default("DRILLMAP_RENDERER", "deckgl"),
        "container": "map-container",
        # Region names to double-click in order, starting from the World map
        "drill_path": ["中国"],
        "overlay_file": "",
        "output_html": "Output/drillmap.html",
        "write_html": _env_bool("DRILLMAP_WRITE_HTML", True),
    },
}
