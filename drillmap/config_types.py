"""
═══════════════════════════════════════════════════════════════════════════════
📋 UNIFIED CONFIGURATION TYPES
═══════════════════════════════════════════════════════════════════════════════

ARCHITECTURAL OVERVIEW
----------------------
Responsibility: Define typed configuration dataclasses for the drill-down map.
Wraps the CONFIG dictionary in frozen, typed config objects.

Usage:
    from drillmap.config import CONFIG
    from drillmap.config_types import AppConfig

    # Create once at application startup
    app_config = AppConfig.from_dict(CONFIG)

    # Pass sections to the components that need them
    resolver = RegionResolver(app_config.navigation)

For Navigation: Use VS Code outline (Ctrl+Shift+O)

NAVIGATION GUIDE
----------------
# ═════ 1. NAVIGATION CONFIGURATION
# ═════ 2. ANIMATION CONFIGURATION
# ═════ 3. TRAIL CONFIGURATION
# ═════ 4. DEBOUNCE CONFIGURATION
# ═════ 5. GEO DATA CONFIGURATION
# ═════ 6. STYLE CONFIGURATION
# ═════ 7. DECK VIEW CONFIGURATION
# ═════ 8. APP CONFIG (MASTER FACADE)

═══════════════════════════════════════════════════════════════════════════════
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, FrozenSet, Optional, Tuple


# ═══════════════════════════════════════════════════════════════════════════════
# 🧭 1. NAVIGATION CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class NavigationConfig:
    """
    Region codes and drill-down rules.

    Attributes:
        default_country: Country code the map starts with.
        default_adcode: Region code the map starts with.
        world_special_regions: World-level names resolved without a lookup.
        excluded_country_regions: Country-level names that never descend.
        municipality_codes: City-level codes without county subdivision.
        supported_subnational_countries: Countries with province geography.
        china_code_property: Feature property holding China region codes.
        generic_code_property: Feature property holding other region codes.
    """

    default_country: str = "100000"
    default_adcode: str = "100000"
    world_special_regions: Dict[str, str] = field(
        default_factory=lambda: {
            "中国": "100000",
            "China": "100000",
            "美国": "us",
            "United States": "us",
        }
    )
    excluded_country_regions: FrozenSet[str] = frozenset({"南海诸岛"})
    municipality_codes: FrozenSet[str] = frozenset(
        {"110000", "120000", "310000", "500000"}
    )
    supported_subnational_countries: FrozenSet[str] = frozenset({"100000", "us"})
    china_code_property: str = "adcode"
    generic_code_property: str = "hc-key"

    @property
    def china_code(self) -> str:
        """Code of the country whose features carry `china_code_property`."""
        return self.default_country

    @property
    def us_code(self) -> str:
        """Code the World map assigns to the United States."""
        for name in ("United States", "美国"):
            if name in self.world_special_regions:
                return self.world_special_regions[name]
        return "us"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "NavigationConfig":
        """Create NavigationConfig from CONFIG['navigation'] dictionary."""
        default = cls()
        return cls(
            default_country=str(d.get("default_country", default.default_country)),
            default_adcode=str(d.get("default_adcode", default.default_adcode)),
            world_special_regions=dict(
                d.get("world_special_regions", default.world_special_regions)
            ),
            excluded_country_regions=frozenset(
                d.get("excluded_country_regions", default.excluded_country_regions)
            ),
            municipality_codes=frozenset(
                str(c) for c in d.get("municipality_codes", default.municipality_codes)
            ),
            supported_subnational_countries=frozenset(
                str(c)
                for c in d.get(
                    "supported_subnational_countries",
                    default.supported_subnational_countries,
                )
            ),
            china_code_property=d.get("china_code_property", "adcode"),
            generic_code_property=d.get("generic_code_property", "hc-key"),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# ⏱️ 2. ANIMATION CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class AnimationConfig:
    """
    Logical animation clock settings.

    Attributes:
        tick_ms: Wall-clock period of one tick in milliseconds.
        increment: Logical seconds added per tick.
        trail_length: Visible trail in logical seconds.
        time_loop: Period after which logical time wraps.
        arc_offset: Per-edge stagger of 3D arcs in logical seconds.
        arc_duration: Travel time of one 3D arc in logical seconds.
    """

    tick_ms: float = 10.0
    increment: float = 60.0
    trail_length: float = 3600.0
    time_loop: float = 21600.0
    arc_offset: float = 300.0
    arc_duration: float = 1000.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AnimationConfig":
        """Create AnimationConfig from CONFIG['animation'] dictionary."""
        return cls(
            tick_ms=float(d.get("tick_ms", 10.0)),
            increment=float(d.get("increment", 60.0)),
            trail_length=float(d.get("trail_length", 3600.0)),
            time_loop=float(d.get("time_loop", 21600.0)),
            arc_offset=float(d.get("arc_offset", 300.0)),
            arc_duration=float(d.get("arc_duration", 1000.0)),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# ☄️ 3. TRAIL CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class TrailConfig:
    """Appearance of the 2D curves and their trailing dots."""

    dots_per_line: int = 12
    head_radius: float = 1.0
    tail_radius: float = 0.5
    head_alpha: int = 255
    tail_alpha: int = 60
    trail_span: float = 0.01
    alpha_exponent: float = 1.5
    curve_segments: int = 64
    control_factor: float = 0.3
    curve_width: float = 0.3

    @property
    def step(self) -> float:
        """Parametric distance between two neighbouring dots."""
        return self.trail_span / max(1, self.dots_per_line - 1)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TrailConfig":
        """Create TrailConfig from CONFIG['trail'] dictionary."""
        return cls(
            dots_per_line=int(d.get("dots_per_line", 12)),
            head_radius=float(d.get("head_radius", 1.0)),
            tail_radius=float(d.get("tail_radius", 0.5)),
            head_alpha=int(d.get("head_alpha", 255)),
            tail_alpha=int(d.get("tail_alpha", 60)),
            trail_span=float(d.get("trail_span", 0.01)),
            alpha_exponent=float(d.get("alpha_exponent", 1.5)),
            curve_segments=int(d.get("curve_segments", 64)),
            control_factor=float(d.get("control_factor", 0.3)),
            curve_width=float(d.get("curve_width", 0.3)),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# 🕰️ 4. DEBOUNCE CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class DebounceConfig:
    """Quiet periods and the boundary-loading guard, in seconds."""

    area_hover_s: float = 0.6
    series_update_s: float = 0.3
    boundary_timeout_s: float = 5.0
    boundary_poll_s: float = 0.1

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DebounceConfig":
        """Create DebounceConfig from CONFIG['debounce'] dictionary."""
        return cls(
            area_hover_s=float(d.get("area_hover_s", 0.6)),
            series_update_s=float(d.get("series_update_s", 0.3)),
            boundary_timeout_s=float(d.get("boundary_timeout_s", 5.0)),
            boundary_poll_s=float(d.get("boundary_poll_s", 0.1)),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# 🗺️ 5. GEO DATA CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class GeoDataConfig:
    """
    Where geography files come from.

    Attributes:
        data_dir: Local directory with the geography files ("" disables).
        base_url: HTTP base URL used when data_dir is empty.
        cache_dir: Disk cache for downloads ("" disables).
        request_timeout_s: HTTP timeout per request.
        lock_timeout_s: Maximum wait for the per-file cache lock.
        map_version: "standard" selects the World map variant for the US.
        primary_landmass_regions: Regions trimmed to their first polygon.
    """

    data_dir: str = "mapData"
    base_url: str = ""
    cache_dir: str = ""
    request_timeout_s: float = 15.0
    lock_timeout_s: float = 60.0
    map_version: str = "default"
    primary_landmass_regions: Tuple[str, ...] = ("海南省",)

    @property
    def data_path(self) -> Optional[Path]:
        """Get data directory as Path, or None when unset."""
        return Path(self.data_dir) if self.data_dir else None

    @property
    def cache_path(self) -> Optional[Path]:
        """Get cache directory as Path, or None when unset."""
        return Path(self.cache_dir) if self.cache_dir else None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "GeoDataConfig":
        """Create GeoDataConfig from CONFIG['geo_data'] dictionary."""
        return cls(
            data_dir=d.get("data_dir", "mapData") or "",
            base_url=d.get("base_url", "") or "",
            cache_dir=d.get("cache_dir", "") or "",
            request_timeout_s=float(d.get("request_timeout_s", 15.0)),
            lock_timeout_s=float(d.get("lock_timeout_s", 60.0)),
            map_version=d.get("map_version", "default") or "default",
            primary_landmass_regions=tuple(
                d.get("primary_landmass_regions", ("海南省",))
            ),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# 🎨 6. STYLE CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════

RGBA = Tuple[int, int, int, int]
RGB = Tuple[int, int, int]


@dataclass(frozen=True)
class StyleConfig:
    """Colors and sizes shared by both renderers."""

    geo_fill_color: RGBA = (9, 71, 119, 255)
    geo_line_color: RGBA = (20, 128, 197, 255)
    geo_highlight_color: RGBA = (48, 121, 200, 255)
    geo_hover_fill_color: RGBA = (255, 255, 255, 255)
    line_color: RGBA = (170, 170, 170, 90)
    dot_rgb: RGB = (255, 255, 255)
    arc_rgb: RGB = (200, 200, 200)
    point_color: RGBA = (255, 255, 255, 255)
    point_icon: str = "star"
    point_size: float = 24.0
    selected_scale: float = 1.6
    point_elevation: float = 50.0
    arc_elevation: float = 100.0
    arc_height: float = 0.6
    area_color: str = "#094777"
    border_color: str = "#1480C5"
    emphasis_area_color: str = "#3079c8"
    background_color: str = "#02152b"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "StyleConfig":
        """Create StyleConfig from CONFIG['styles'] dictionary."""
        default = cls()
        return cls(
            geo_fill_color=tuple(d.get("geo_fill_color", default.geo_fill_color)),
            geo_line_color=tuple(d.get("geo_line_color", default.geo_line_color)),
            geo_highlight_color=tuple(
                d.get("geo_highlight_color", default.geo_highlight_color)
            ),
            geo_hover_fill_color=tuple(
                d.get("geo_hover_fill_color", default.geo_hover_fill_color)
            ),
            line_color=tuple(d.get("line_color", default.line_color)),
            dot_rgb=tuple(d.get("dot_rgb", default.dot_rgb)),
            arc_rgb=tuple(d.get("arc_rgb", default.arc_rgb)),
            point_color=tuple(d.get("point_color", default.point_color)),
            point_icon=d.get("point_icon", default.point_icon),
            point_size=float(d.get("point_size", default.point_size)),
            selected_scale=float(d.get("selected_scale", default.selected_scale)),
            point_elevation=float(d.get("point_elevation", default.point_elevation)),
            arc_elevation=float(d.get("arc_elevation", default.arc_elevation)),
            arc_height=float(d.get("arc_height", default.arc_height)),
            area_color=d.get("area_color", default.area_color),
            border_color=d.get("border_color", default.border_color),
            emphasis_area_color=d.get(
                "emphasis_area_color", default.emphasis_area_color
            ),
            background_color=d.get("background_color", default.background_color),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# 🎥 7. DECK VIEW CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class DeckViewConfig:
    """Initial view state and view constraints."""

    mode: str = "2d"
    longitude: float = 0.0
    latitude: float = 30.0
    zoom: float = 1.0
    pitch: float = 0.0
    pitch_3d: float = 45.0
    latitude_limit: float = 30.0
    min_zoom: float = 0.5
    max_zoom: float = 6.0
    world_zoom: float = 1.3

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DeckViewConfig":
        """Create DeckViewConfig from CONFIG['deck'] dictionary."""
        return cls(
            mode=d.get("mode", "2d"),
            longitude=float(d.get("longitude", 0.0)),
            latitude=float(d.get("latitude", 30.0)),
            zoom=float(d.get("zoom", 1.0)),
            pitch=float(d.get("pitch", 0.0)),
            pitch_3d=float(d.get("pitch_3d", 45.0)),
            latitude_limit=float(d.get("latitude_limit", 30.0)),
            min_zoom=float(d.get("min_zoom", 0.5)),
            max_zoom=float(d.get("max_zoom", 6.0)),
            world_zoom=float(d.get("world_zoom", 1.3)),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# 🏛️ 8. APP CONFIG (MASTER FACADE)
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class AppConfig:
    """
    Master configuration facade.

    Attributes:
        navigation: Drill-down rules and codes.
        animation: Logical clock settings.
        trail: 2D trailing-dot appearance.
        debounce: Quiet periods and boundary guard.
        geo_data: Geography source settings.
        styles: Renderer colors.
        deck: deck.gl view settings.
        log_level: Logging level name.
        log_file: Optional log file path ("" disables).
        run: Raw entry-point settings for main.py.
    """

    navigation: NavigationConfig = field(default_factory=NavigationConfig)
    animation: AnimationConfig = field(default_factory=AnimationConfig)
    trail: TrailConfig = field(default_factory=TrailConfig)
    debounce: DebounceConfig = field(default_factory=DebounceConfig)
    geo_data: GeoDataConfig = field(default_factory=GeoDataConfig)
    styles: StyleConfig = field(default_factory=StyleConfig)
    deck: DeckViewConfig = field(default_factory=DeckViewConfig)
    log_level: str = "INFO"
    log_file: str = ""
    run: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AppConfig":
        """Create AppConfig from the full CONFIG dictionary."""
        log_cfg = d.get("logging", {})
        return cls(
            navigation=NavigationConfig.from_dict(d.get("navigation", {})),
            animation=AnimationConfig.from_dict(d.get("animation", {})),
            trail=TrailConfig.from_dict(d.get("trail", {})),
            debounce=DebounceConfig.from_dict(d.get("debounce", {})),
            geo_data=GeoDataConfig.from_dict(d.get("geo_data", {})),
            styles=StyleConfig.from_dict(d.get("styles", {})),
            deck=DeckViewConfig.from_dict(d.get("deck", {})),
            log_level=str(log_cfg.get("level", "INFO")).upper(),
            log_file=log_cfg.get("log_file", "") or "",
            run=dict(d.get("run", {})),
        )
