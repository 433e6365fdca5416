"""Renderer contract shared by the Plotly and deck.gl backends.

The factory lives in `drillmap.renderers.factory`; it imports both backends,
which themselves import this package.
"""

from .base import AreaEvent, MapEvents, MapRenderer

__all__ = [
    "AreaEvent",
    "MapEvents",
    "MapRenderer",
]
