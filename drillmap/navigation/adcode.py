"""
Administrative-code lookup strategies.

Region features carry their code under a country-specific property: China's
maps use `adcode`, the generic world and country maps use `hc-key`. The
resolver asks `lookup_for_country()` for the strategy that matches the active
country instead of branching on property names itself.
"""

import re
from typing import Any, Dict, List, Optional, Protocol

from drillmap.config_types import NavigationConfig
from drillmap.models import NavigationLevel

Feature = Dict[str, Any]

# Administrative suffixes stripped before matching names from other sources
_REGION_SUFFIX_RE = re.compile(r"市|省|自治区|特别行政区|地区|盟|州|县|区")

# Number of significant adcode digits per level (6-digit China codes)
_ADCODE_DIGITS = {
    NavigationLevel.PROVINCE: 2,
    NavigationLevel.CITY: 4,
    NavigationLevel.COUNTY: 6,
}
_ADCODE_WIDTH = 6


class AdCodeLookup(Protocol):
    """Reads the administrative code of a feature."""

    def get_adcode(self, feature: Optional[Feature]) -> Optional[str]:
        ...


class ChinaAdCodeLookup:
    """Code stored in the `adcode` property (numeric or string)."""

    def __init__(self, prop: str = "adcode"):
        self.prop = prop

    def get_adcode(self, feature: Optional[Feature]) -> Optional[str]:
        if not feature:
            return None
        value = (feature.get("properties") or {}).get(self.prop)
        if value is None or value == "":
            return None
        return str(value)


class GenericAdCodeLookup:
    """Code stored in the cross-country `hc-key` property (strings only)."""

    def __init__(self, prop: str = "hc-key"):
        self.prop = prop

    def get_adcode(self, feature: Optional[Feature]) -> Optional[str]:
        if not feature:
            return None
        value = (feature.get("properties") or {}).get(self.prop)
        return value if isinstance(value, str) and value else None


def lookup_for_country(
    country: str, config: Optional[NavigationConfig] = None
) -> AdCodeLookup:
    """Pick the lookup strategy for the active country code."""
    config = config or NavigationConfig()
    if country == config.china_code:
        return ChinaAdCodeLookup(config.china_code_property)
    return GenericAdCodeLookup(config.generic_code_property)


def remove_region_suffix(region: str) -> str:
    """
    Strip Chinese administrative suffixes (市, 省, 自治区, ...) from a name.

    Overlay data often names regions without the suffix the map uses, so
    both sides are normalized before comparing.
    """
    return _REGION_SUFFIX_RE.sub("", region)


def correct_adcode_by_level(
    start: str, end: str, level: NavigationLevel, default_code: str = "100000"
) -> List[str]:
    """
    Truncate two China adcodes to the precision of `level`.

    A county code such as "110105" becomes "110000" at Province level and
    "110100" at City level. At World and Country level the pair collapses to
    [default_code, ""].

    Args:
        start: First 6-digit adcode ("" allowed)
        end: Second 6-digit adcode ("" allowed)
        level: Level whose precision is wanted
        default_code: Country code returned above Province level

    Returns:
        [corrected_start, corrected_end]
    """
    digits = _ADCODE_DIGITS.get(level, 0)
    if not digits:
        return [default_code, ""]
    suffix = "0" * (_ADCODE_WIDTH - digits)
    return [
        start[:digits] + suffix if start else "",
        end[:digits] + suffix if end else "",
    ]
