#!/usr/bin/env python3
"""
Region Resolver - Drill-Down State Machine

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Decide whether a double-clicked region can be entered, which
level and administrative code it leads to, and whether overlay coordinates
must be reprojected into the loaded geography's planar space.

Transition table:
    World    -> Country
    Country  -> Province   (not for the excluded region, only for supported countries)
    Province -> City
    City     -> County     (not for municipalities)
    County   -> none

Key Patterns:
- plan_descent() is pure: it reads NavigationState and returns a DescentPlan
- apply_descent() performs the atomic level/adcode/country transition
- load_geography() fetches off the event loop and installs the result only
  if the state still points at the same target

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between sections
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from drillmap.config_types import NavigationConfig
from drillmap.geo.data_service import GeographyProvider
from drillmap.models import GeoCollection, NavigationLevel
from drillmap.navigation.adcode import GenericAdCodeLookup, lookup_for_country
from drillmap.navigation.state import NavigationState, NavigationTarget

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DescentPlan:
    """A legal descent computed from one double-click."""

    region_name: str
    from_level: NavigationLevel
    next_level: NavigationLevel
    adcode: str
    country: str

    def target(self) -> NavigationTarget:
        return NavigationTarget(self.next_level, self.country, self.adcode)


class RegionResolver:
    """
    Drill-down rules bound to one NavigationState.

    Usage:
        resolver = RegionResolver(state, app_config.navigation, provider)
        plan = await resolver.descend("中国")
    """

    def __init__(
        self,
        state: NavigationState,
        config: Optional[NavigationConfig] = None,
        provider: Optional[GeographyProvider] = None,
    ):
        self.state = state
        self.config = config or NavigationConfig()
        self.provider = provider

    # ═══════════════════════════════════════════════════════════════════════
    # 🧭 LEVEL TRANSITIONS
    # ═══════════════════════════════════════════════════════════════════════

    def is_municipality(self, adcode: str) -> bool:
        return adcode in self.config.municipality_codes

    def can_descend(
        self,
        current_level: NavigationLevel,
        region_name: str = "",
        adcode: Optional[str] = None,
    ) -> Optional[NavigationLevel]:
        """
        Next level below `current_level`, or None when descent is not allowed.

        Args:
            current_level: Level the click happened on
            region_name: Clicked region name (checked at Country level)
            adcode: Current region code (defaults to the state's adcode),
                checked at City level against the municipality codes

        Returns:
            The next NavigationLevel or None
        """
        if current_level == NavigationLevel.COUNTRY:
            if region_name in self.config.excluded_country_regions:
                return None
        elif current_level == NavigationLevel.CITY:
            current_adcode = self.state.adcode if adcode is None else adcode
            if self.is_municipality(current_adcode):
                return None
        return current_level.next_level()

    def supports_subnational(self, country_code: str) -> bool:
        return country_code in self.config.supported_subnational_countries

    # ═══════════════════════════════════════════════════════════════════════
    # 🏷️ ADMINISTRATIVE CODES
    # ═══════════════════════════════════════════════════════════════════════

    def resolve_next_adcode(
        self,
        level: NavigationLevel,
        region_name: str,
        geography: Optional[GeoCollection] = None,
    ) -> str:
        """
        Administrative code of the clicked region ("" when unresolved).

        At World level the special names map straight to their country codes;
        every other name is looked up in the loaded geography.
        """
        if level == NavigationLevel.WORLD:
            special = self.config.world_special_regions.get(region_name)
            if special:
                return special
            # The World map carries the generic key whatever the active country
            lookup = GenericAdCodeLookup(self.config.generic_code_property)
        else:
            lookup = lookup_for_country(self.state.country, self.config)

        geography = geography if geography is not None else self.state.geography
        feature = geography.find_feature(region_name)
        return lookup.get_adcode(feature) or ""

    # ═══════════════════════════════════════════════════════════════════════
    # 🪜 DESCENT
    # ═══════════════════════════════════════════════════════════════════════

    def plan_descent(self, region_name: str) -> Optional[DescentPlan]:
        """
        Compute the descent for a double-click on `region_name`.

        Returns None (and leaves the state untouched) when the level is
        terminal, the region is excluded or a municipality, the country has no
        sub-national geography, or the region's code cannot be resolved.
        """
        level = self.state.level
        next_level = self.can_descend(level, region_name)
        if next_level is None:
            logger.debug(f"⛔ No descent from {level.value} into '{region_name}'")
            return None

        # === SUPPORTED COUNTRY GUARD ===
        if (
            level == NavigationLevel.COUNTRY
            and next_level == NavigationLevel.PROVINCE
            and not self.supports_subnational(self.state.adcode)
        ):
            logger.debug(
                f"⛔ Country {self.state.adcode} has no sub-national geography"
            )
            return None

        adcode = self.resolve_next_adcode(level, region_name)
        if not adcode:
            logger.debug(f"⛔ No administrative code for '{region_name}'")
            return None

        country = adcode if level == NavigationLevel.WORLD else self.state.country
        return DescentPlan(
            region_name=region_name,
            from_level=level,
            next_level=next_level,
            adcode=adcode,
            country=country,
        )

    def apply_descent(self, plan: DescentPlan) -> None:
        """Write the plan into the state in one atomic transition."""
        self.state.transition(plan.next_level, plan.adcode, plan.country)

    async def load_geography(self, target: NavigationTarget) -> bool:
        """
        Fetch geography for `target` and install it if still current.

        The fetch runs in a worker thread. A result that arrives after the
        state has moved on is dropped.

        Returns:
            True if the geography was installed
        """
        if self.provider is None:
            logger.warning("⚠️ No geography provider configured")
            return False

        geography = await asyncio.to_thread(
            self.provider.fetch, target.level, target.country, target.adcode
        )
        if not self.state.matches(target):
            logger.info(
                f"⏭️ Ignoring late geography for {target.level.value}/{target.adcode}"
            )
            return False
        if geography.is_empty:
            logger.warning(
                f"⚠️ No geography available for {target.level.value}/{target.adcode}"
            )
        self.state.set_geography(geography)
        return True

    async def descend(self, region_name: str) -> Optional[DescentPlan]:
        """Plan, apply and load a descent; None if it was rejected."""
        plan = self.plan_descent(region_name)
        if plan is None:
            return None
        self.apply_descent(plan)
        await self.load_geography(plan.target())
        return plan

    # ═══════════════════════════════════════════════════════════════════════
    # 🌐 REPROJECTION
    # ═══════════════════════════════════════════════════════════════════════

    def needs_reprojection(self) -> bool:
        """
        Whether lng/lat overlays must go through the geography's hc-transform.

        China's maps and the United States country map are in lng/lat; the
        other country maps are in projected planar units.
        """
        if self.state.country == self.config.china_code:
            return False
        if (
            self.state.level == NavigationLevel.COUNTRY
            and self.state.adcode == self.config.us_code
        ):
            return False
        return True
