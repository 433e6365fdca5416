#!/usr/bin/env python3
"""
Navigation Orchestrator

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Turn raw backend events into navigation and UI callbacks,
and keep the renderer in sync with NavigationState.

Key Interactions:
- handle_click()        -> area-click (geo) / point-click (series)
- handle_double_click() -> RegionResolver.plan_descent, atomic transition,
                           boundary-loading flag, threaded geography fetch
- handle_hover()        -> 600 ms debounce, SpatialIndex hit test,
                           area-hover with the point ids inside the region
- handle_mouseout()     -> area-hover(None)
- state "level"/"geography" listeners -> renderer.update_level / set_geo_data

Key Patterns:
- One orchestrator owns one state, one resolver and one renderer
- Geography arriving for a target the state has already left is dropped
  (RegionResolver.load_geography)
- destroy() is the only teardown path: debouncers, subscriptions, clock,
  renderer and state are released in that order

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between sections
"""

import asyncio
import logging
from typing import Any, Callable, List, Mapping, Optional, Sequence

from drillmap.animation.debounce import Debouncer
from drillmap.config_types import AppConfig
from drillmap.geo.data_service import GeographyProvider
from drillmap.geo.spatial_index import SpatialIndex
from drillmap.models import GeoCollection, MapEdge, MapPoint, NavigationLevel, RawMapEvent
from drillmap.navigation.resolver import DescentPlan, RegionResolver
from drillmap.navigation.state import GEOGRAPHY, LEVEL, NavigationState, NavigationTarget
from drillmap.renderers.base import AreaEvent, MapEvents, MapRenderer
from drillmap.renderers.factory import create_renderer

logger = logging.getLogger(__name__)


class NavigationOrchestrator:
    """
    Wires state, resolver, renderer and UI callbacks together.

    Usage:
        state = NavigationState(app_config.navigation)
        resolver = RegionResolver(state, app_config.navigation, GeoDataService(app_config.geo_data))
        renderer = create_renderer("deckgl", "map-container", state, app_config)
        orchestrator = NavigationOrchestrator(state, resolver, renderer, config=app_config)
        await orchestrator.initialize()
        await orchestrator.handle_double_click(RawMapEvent("geo", "中国"))
    """

    def __init__(
        self,
        state: NavigationState,
        resolver: RegionResolver,
        renderer: MapRenderer,
        provider: Optional[GeographyProvider] = None,
        events: Optional[MapEvents] = None,
        config: Optional[AppConfig] = None,
    ):
        self.state = state
        self.resolver = resolver
        if provider is not None:
            self.resolver.provider = provider
        self.config = config or AppConfig()
        self.events = events or renderer.events
        self.renderer = renderer
        self.renderer.events = self.events
        self.spatial_index = SpatialIndex(lambda: self.state.geography)
        self._hover_debouncer = Debouncer(
            self._emit_area_hover, self.config.debounce.area_hover_s, name="area-hover"
        )
        self._unsubscribes: List[Callable[[], None]] = [
            state.subscribe(LEVEL, self._on_level_change),
            state.subscribe(GEOGRAPHY, self._on_geography_change),
        ]
        self._destroyed = False

    # ═══════════════════════════════════════════════════════════════════════
    # 🚀 LIFECYCLE
    # ═══════════════════════════════════════════════════════════════════════

    async def initialize(self) -> bool:
        """Load geography for the state's current target (World at startup)."""
        target = self.state.target()
        logger.info(
            f"🌍 Initializing map at {target.level.value} "
            f"(country={target.country}, adcode={target.adcode})"
        )
        return await self._load(target)

    def destroy(self) -> None:
        if self._destroyed:
            return
        self._hover_debouncer.cancel()
        for unsubscribe in self._unsubscribes:
            unsubscribe()
        self._unsubscribes = []
        self.renderer.clock.cancel()
        if not self.renderer.destroyed:
            self.renderer.destroy()
        self.state.reset()
        self._destroyed = True
        logger.info("🧹 Orchestrator destroyed")

    async def _load(self, target: NavigationTarget) -> bool:
        self.renderer.mark_boundary_loading()
        try:
            return await self.resolver.load_geography(target)
        finally:
            # A newer navigation owns the flag once the state has moved on
            if self.state.matches(target) and not self.renderer.destroyed:
                self.renderer.boundary_loading = False

    # ═══════════════════════════════════════════════════════════════════════
    # 🔔 STATE LISTENERS
    # ═══════════════════════════════════════════════════════════════════════

    def _on_level_change(self, new: NavigationLevel, old: NavigationLevel) -> None:
        if not self.renderer.destroyed:
            self.renderer.update_level(new)

    def _on_geography_change(self, new: GeoCollection, old: GeoCollection) -> None:
        if self.renderer.destroyed:
            return
        self.renderer.set_geo_data(new)
        # Overlay coordinates may need the new geography's projection
        if self.renderer.points or self.renderer.lines:
            self.renderer.update_series()

    # ═══════════════════════════════════════════════════════════════════════
    # 🖱️ RAW EVENTS
    # ═══════════════════════════════════════════════════════════════════════

    def _event_point(self, event: RawMapEvent) -> Optional[MapPoint]:
        point_id = event.name or (event.data or {}).get("id")
        return self.renderer.find_point(point_id) if point_id else None

    def handle_click(self, event: RawMapEvent) -> None:
        if event.is_geo:
            adcode = self.resolver.resolve_next_adcode(self.state.level, event.name)
            if self.events.on_area_click:
                self.events.on_area_click(AreaEvent(event.name, adcode or None))
        elif event.is_series:
            point = self._event_point(event)
            if point is not None and self.events.on_point_click:
                self.events.on_point_click(point)

    async def handle_double_click(self, event: RawMapEvent) -> Optional[DescentPlan]:
        """
        Descend into the double-clicked region.

        Returns:
            The applied DescentPlan, or None when the descent was rejected
        """
        if not event.is_geo:
            return None

        plan = self.resolver.plan_descent(event.name)
        if plan is None:
            return None

        if self.events.on_area_double_click:
            self.events.on_area_double_click(
                AreaEvent(event.name, plan.adcode, plan.next_level)
            )
        self.renderer.mark_boundary_loading()
        self.resolver.apply_descent(plan)
        logger.info(
            f"🪜 {plan.from_level.value} -> {plan.next_level.value}: "
            f"{plan.region_name} ({plan.adcode})"
        )
        await self._load(plan.target())
        return plan

    def handle_hover(self, event: RawMapEvent) -> Optional[asyncio.Future]:
        if event.is_geo:
            try:
                asyncio.get_running_loop()
            except RuntimeError:
                self._emit_area_hover(event.name)
                return None
            return self._hover_debouncer(event.name)

        if event.is_series:
            if self.events.on_point_hover:
                self.events.on_point_hover(self._event_point(event))
            return None

        self.handle_mouseout()
        return None

    def _emit_area_hover(self, region_name: str) -> Optional[AreaEvent]:
        """Hit-test the points against the hovered region and report them."""
        if self.state.geography.find_feature(region_name) is None:
            return None
        point_ids = self.spatial_index.points_in_region(
            region_name, self.renderer.points_in_map_space()
        )
        adcode = self.resolver.resolve_next_adcode(self.state.level, region_name)
        area = AreaEvent(region_name, adcode or None, point_ids=tuple(point_ids))
        if self.events.on_area_hover:
            self.events.on_area_hover(area)
        return area

    def handle_mouseout(self) -> None:
        self._hover_debouncer.cancel()
        if self.events.on_area_hover:
            self.events.on_area_hover(None)

    def handle_zoom(self, zoom: float) -> None:
        self.renderer.emit_zoom(zoom)

    # ═══════════════════════════════════════════════════════════════════════
    # 📍 OVERLAYS AND BACKEND
    # ═══════════════════════════════════════════════════════════════════════

    def set_points(self, points: Sequence[MapPoint]) -> Optional[asyncio.Future]:
        return self.renderer.set_points(points)

    def set_lines(self, edges: Sequence[MapEdge]) -> Optional[asyncio.Future]:
        return self.renderer.set_lines(edges)

    def register_icons(self, icons: Mapping[str, str]) -> None:
        self.renderer.register_icons(icons)

    def switch_renderer(self, kind: str, **options: Any) -> MapRenderer:
        """
        Replace the renderer with another backend, carrying over the
        geography, points and lines.
        """
        old = self.renderer
        kind = "plotly" if kind == "echarts" else kind
        if old.renderer_type == kind:
            return old
        points, lines = list(old.points), list(old.lines)
        container = old.container
        was_animating = old.clock.is_running
        current_time = old.clock.current_time
        old.destroy()

        if kind == "plotly":
            options.setdefault("resolver", self.resolver)
        self.renderer = create_renderer(
            kind, container, self.state, self.config, self.events, **options
        )
        self.renderer.update_level(self.state.level)
        if not self.state.geography.is_empty:
            self.renderer.set_geo_data(self.state.geography)
        self.renderer.points = points
        self.renderer.lines = lines
        if points or lines:
            self.renderer.update_series()
        self.renderer.clock.current_time = current_time
        if was_animating:
            self.renderer.start_animation()
        logger.info(f"🔀 Switched renderer {old.renderer_type} -> {kind}")
        return self.renderer
