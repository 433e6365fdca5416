#!/usr/bin/env python3
"""
Navigation State

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Hold the current drill level, the active country and region
codes, and the currently loaded geography. One NavigationState is created per
map and passed explicitly to the resolver, orchestrator and renderers.

Key Patterns:
- Mutation only through setters; every setter notifies synchronously
- transition() updates level, adcode and country before any listener fires
- Geography is replaced wholesale, never mutated in place
- Listener failures are logged and do not stop other listeners

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between sections
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from drillmap.config_types import NavigationConfig
from drillmap.models import GeoCollection, NavigationLevel

logger = logging.getLogger(__name__)

PropertyListener = Callable[[Any, Any], None]

# Properties that may be subscribed to
LEVEL = "level"
COUNTRY = "country"
ADCODE = "adcode"
GEOGRAPHY = "geography"
PROPERTIES: Tuple[str, ...] = (LEVEL, COUNTRY, ADCODE, GEOGRAPHY)


@dataclass(frozen=True)
class NavigationTarget:
    """Snapshot of (level, country, adcode) used to detect stale results."""

    level: NavigationLevel
    country: str
    adcode: str


class NavigationState:
    """
    Single source of truth for where the map currently is.

    Usage:
        state = NavigationState(app_config.navigation)
        unsubscribe = state.subscribe("level", lambda new, old: ...)
        state.transition(NavigationLevel.COUNTRY, "100000", "100000")
        unsubscribe()
    """

    def __init__(self, config: Optional[NavigationConfig] = None):
        self._config = config or NavigationConfig()
        self._level = NavigationLevel.WORLD
        self._country = self._config.default_country
        self._adcode = self._config.default_adcode
        self._geography = GeoCollection.empty()
        self._listeners: Dict[str, List[PropertyListener]] = {}

    # ═══════════════════════════════════════════════════════════════════════
    # 📖 READ ACCESS
    # ═══════════════════════════════════════════════════════════════════════

    @property
    def level(self) -> NavigationLevel:
        return self._level

    @property
    def country(self) -> str:
        return self._country

    @property
    def adcode(self) -> str:
        return self._adcode

    @property
    def geography(self) -> GeoCollection:
        return self._geography

    def target(self) -> NavigationTarget:
        return NavigationTarget(self._level, self._country, self._adcode)

    def matches(self, target: NavigationTarget) -> bool:
        """True while the state still points at `target`."""
        return self.target() == target

    # ═══════════════════════════════════════════════════════════════════════
    # ✏️ SETTERS
    # ═══════════════════════════════════════════════════════════════════════

    def set_level(self, level: NavigationLevel) -> None:
        old, self._level = self._level, level
        self._notify(LEVEL, level, old)

    def set_country(self, country: str) -> None:
        old, self._country = self._country, country
        self._notify(COUNTRY, country, old)

    def set_adcode(self, adcode: str) -> None:
        old, self._adcode = self._adcode, adcode
        self._notify(ADCODE, adcode, old)

    def set_geography(self, geography: Optional[GeoCollection]) -> None:
        """Replace the loaded geography (None clears it)."""
        old = self._geography
        self._geography = geography if geography is not None else GeoCollection.empty()
        self._notify(GEOGRAPHY, self._geography, old)

    def transition(
        self, level: NavigationLevel, adcode: str, country: Optional[str] = None
    ) -> None:
        """
        Move to a new (level, adcode, country) in one step.

        All three fields are written before the first listener runs, so a
        listener never observes a level paired with the previous adcode.

        Args:
            level: New drill level
            adcode: New region code
            country: New country code (None keeps the current country)
        """
        old_level, old_adcode, old_country = self._level, self._adcode, self._country
        self._level = level
        self._adcode = adcode
        if country is not None:
            self._country = country

        logger.info(
            f"🧭 Navigation: {old_level.value}/{old_adcode} -> "
            f"{self._level.value}/{self._adcode} (country {self._country})"
        )
        self._notify(LEVEL, self._level, old_level)
        self._notify(ADCODE, self._adcode, old_adcode)
        if country is not None:
            self._notify(COUNTRY, self._country, old_country)

    # ═══════════════════════════════════════════════════════════════════════
    # 🔔 SUBSCRIPTIONS
    # ═══════════════════════════════════════════════════════════════════════

    def subscribe(self, prop: str, listener: PropertyListener) -> Callable[[], None]:
        """
        Register `listener(new_value, old_value)` for one property.

        Args:
            prop: One of "level", "country", "adcode", "geography"
            listener: Called synchronously after each write

        Returns:
            Callable that removes the listener (safe to call twice)
        """
        if prop not in PROPERTIES:
            raise ValueError(f"Unknown navigation property: {prop!r}")
        self._listeners.setdefault(prop, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(prop)
            if listeners and listener in listeners:
                listeners.remove(listener)
                if not listeners:
                    del self._listeners[prop]

        return unsubscribe

    def listener_count(self, prop: Optional[str] = None) -> int:
        if prop is not None:
            return len(self._listeners.get(prop, ()))
        return sum(len(v) for v in self._listeners.values())

    def _notify(self, prop: str, new: Any, old: Any) -> None:
        # Copy so listeners may unsubscribe while being notified
        for listener in list(self._listeners.get(prop, ())):
            try:
                listener(new, old)
            except Exception:
                logger.exception(f"❌ Listener for '{prop}' failed")

    # ═══════════════════════════════════════════════════════════════════════
    # 🔄 LIFECYCLE
    # ═══════════════════════════════════════════════════════════════════════

    def reset(self) -> None:
        """Return to World with the default country, without notifying."""
        self._level = NavigationLevel.WORLD
        self._country = self._config.default_country
        self._adcode = self._config.default_adcode
        self._geography = GeoCollection.empty()

    def destroy(self) -> None:
        """Clear all listeners and reset to defaults."""
        self._listeners.clear()
        self.reset()
        logger.debug("🧹 Navigation state destroyed")
