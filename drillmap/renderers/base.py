#!/usr/bin/env python3
"""
Renderer Contract

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: The interface both rendering backends implement, plus the
behaviour they share: the destroyed guard, the boundary-loading flag, the
debounced series update and the animation clock hookup.

Key Interactions:
- NavigationOrchestrator calls set_geo_data / update_level on state changes
- Callers push overlays with set_points / set_lines
- Series updates are debounced, then wait for boundary loading to finish;
  a timeout rejects the update (logged, never raised into the backend)
- The AnimationClock calls on_tick() every tick while the renderer lives

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between sections
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from drillmap.animation.clock import AnimationClock
from drillmap.animation.debounce import Debouncer, wait_until_clear
from drillmap.config_types import AppConfig
from drillmap.errors import MissingContainerError, RendererDestroyedError
from drillmap.models import GeoCollection, MapEdge, MapPoint, NavigationLevel
from drillmap.navigation.state import NavigationState

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# 🖱️ EVENT SURFACE
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class AreaEvent:
    """Normalized region event.

    Attributes:
        name: Region name as shown on the map
        adcode: Resolved administrative code, if any
        next_level: Level a double-click descends to
        point_ids: Overlay points inside the region (area hover)
    """

    name: str
    adcode: Optional[str] = None
    next_level: Optional[NavigationLevel] = None
    point_ids: Tuple[str, ...] = ()


@dataclass
class MapEvents:
    """Optional UI callbacks; every callback runs on the event loop thread."""

    on_point_click: Optional[Callable[[MapPoint], None]] = None
    on_point_hover: Optional[Callable[[Optional[MapPoint]], None]] = None
    on_area_click: Optional[Callable[[AreaEvent], None]] = None
    on_area_double_click: Optional[Callable[[AreaEvent], None]] = None
    on_area_hover: Optional[Callable[[Optional[AreaEvent]], None]] = None
    on_zoom: Optional[Callable[[float], None]] = None


# ═══════════════════════════════════════════════════════════════════════════
# 🧱 BASE RENDERER
# ═══════════════════════════════════════════════════════════════════════════


class MapRenderer(ABC):
    """
    Common base of the Plotly and deck.gl adapters.

    Args:
        container: Id of the page element the map renders into
        state: Shared NavigationState
        config: Application configuration
        events: UI callbacks
        clock: Animation clock (a private one is created when omitted)
    """

    renderer_type = ""

    def __init__(
        self,
        container: Optional[str],
        state: NavigationState,
        config: Optional[AppConfig] = None,
        events: Optional[MapEvents] = None,
        clock: Optional[AnimationClock] = None,
    ):
        if not container:
            raise MissingContainerError(
                f"{type(self).__name__} needs a container id"
            )
        self.container = container
        self.state = state
        self.config = config or AppConfig()
        self.events = events or MapEvents()
        self.clock = clock or AnimationClock(self.config.animation)
        self.points: List[MapPoint] = []
        self.lines: List[MapEdge] = []
        self.boundary_loading = False
        self.selected_point_id: Optional[str] = None
        self._destroyed = False
        self._series_debouncer = Debouncer(
            self._apply_series_when_ready,
            self.config.debounce.series_update_s,
            name="series-update",
        )
        self._remove_tick_listener = self.clock.add_listener(self._on_clock_tick)

    # ═══════════════════════════════════════════════════════════════════════
    # LIFECYCLE GUARD
    # ═══════════════════════════════════════════════════════════════════════

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def _check_alive(self) -> None:
        if self._destroyed:
            raise RendererDestroyedError(
                f"{type(self).__name__} for '{self.container}' was destroyed"
            )

    def destroy(self) -> None:
        """Release timers and listeners; later calls raise RendererDestroyedError."""
        self._check_alive()
        self._series_debouncer.cancel()
        self._remove_tick_listener()
        self.clock.cancel()
        self._destroyed = True
        logger.info(f"🧹 {type(self).__name__} destroyed")

    # ═══════════════════════════════════════════════════════════════════════
    # BACKEND CONTRACT
    # ═══════════════════════════════════════════════════════════════════════

    @abstractmethod
    def set_geo_data(self, geography: GeoCollection) -> None:
        """Show `geography` as the boundary and clear the loading flag."""

    @abstractmethod
    def update_level(self, level: NavigationLevel) -> None:
        """Adjust level-dependent styling."""

    @abstractmethod
    def register_icons(self, icons: Mapping[str, str]) -> None:
        """Add SVG icons (icon key -> markup)."""

    @abstractmethod
    def resize(self, width: Optional[int] = None, height: Optional[int] = None) -> None:
        """Resize the drawing surface."""

    @abstractmethod
    def apply_series(self) -> None:
        """Push the current points and lines into the backend."""

    @abstractmethod
    def on_tick(self, clock: AnimationClock) -> None:
        """Redraw animated layers for the clock's current time."""

    @abstractmethod
    def to_html(self, path: Optional[str] = None) -> str:
        """Standalone HTML of the current scene (also written to `path`)."""

    # ═══════════════════════════════════════════════════════════════════════
    # OVERLAYS
    # ═══════════════════════════════════════════════════════════════════════

    def set_points(self, points: Sequence[MapPoint]) -> Optional[asyncio.Future]:
        self._check_alive()
        self.points = list(points)
        return self.update_series()

    def set_lines(self, edges: Sequence[MapEdge]) -> Optional[asyncio.Future]:
        self._check_alive()
        self.lines = list(edges)
        return self.update_series()

    def points_in_map_space(self) -> List[MapPoint]:
        """Points in the coordinate space of the loaded geography."""
        return list(self.points)

    def find_point(self, point_id: str) -> Optional[MapPoint]:
        for p in self.points:
            if p.id == point_id:
                return p
        return None

    def mark_boundary_loading(self) -> None:
        self.boundary_loading = True

    def update_series(self) -> Optional[asyncio.Future]:
        """
        Schedule a debounced series update.

        Without a running event loop nothing can be loading concurrently, so
        the update is applied immediately and None is returned. Otherwise the
        returned future resolves once the update ran, or fails with
        BoundaryLoadingTimeoutError.
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            self.apply_series()
            return None

        future = self._series_debouncer()
        future.add_done_callback(self._log_series_failure)
        return future

    async def _apply_series_when_ready(self) -> None:
        debounce = self.config.debounce
        await wait_until_clear(
            lambda: self.boundary_loading,
            debounce.boundary_timeout_s,
            debounce.boundary_poll_s,
        )
        if self._destroyed:
            return
        self.apply_series()

    @staticmethod
    def _log_series_failure(future: asyncio.Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.warning(f"⚠️ Series update dropped: {error}")

    def _on_clock_tick(self, clock: AnimationClock) -> None:
        if not self._destroyed:
            self.on_tick(clock)

    def start_animation(self) -> None:
        """Start the clock (requires a running event loop)."""
        self._check_alive()
        self.clock.start()

    # ═══════════════════════════════════════════════════════════════════════
    # EVENT HELPERS
    # ═══════════════════════════════════════════════════════════════════════

    def emit_zoom(self, zoom: float) -> None:
        if self.events.on_zoom:
            self.events.on_zoom(zoom)

    def describe(self) -> Dict[str, object]:
        return {
            "type": self.renderer_type,
            "container": self.container,
            "points": len(self.points),
            "lines": len(self.lines),
            "boundary_loading": self.boundary_loading,
            "destroyed": self._destroyed,
        }
