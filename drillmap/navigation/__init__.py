"""Navigation package: drill-down state, region resolution and code lookup."""

from .adcode import (
    AdCodeLookup,
    ChinaAdCodeLookup,
    GenericAdCodeLookup,
    correct_adcode_by_level,
    lookup_for_country,
    remove_region_suffix,
)
from .resolver import DescentPlan, RegionResolver
from .state import NavigationState, NavigationTarget

__all__ = [
    "AdCodeLookup",
    "ChinaAdCodeLookup",
    "GenericAdCodeLookup",
    "correct_adcode_by_level",
    "lookup_for_country",
    "remove_region_suffix",
    "DescentPlan",
    "RegionResolver",
    "NavigationState",
    "NavigationTarget",
]
