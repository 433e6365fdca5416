"""
Drill-Down Map

Multi-level geographic drill-down (World -> Country -> Province -> City ->
County) with point overlays and animated flow lines, rendered through a
Plotly chart or a deck.gl scene.
"""

from drillmap.config import CONFIG
from drillmap.main import run_drillmap

__all__ = ["run_drillmap", "CONFIG"]
