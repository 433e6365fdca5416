"""
3D flow lines as time-windowed arcs.

Edge i travels during [i * arc_offset, i * arc_offset + arc_duration] in
logical time, so arcs are staggered instead of animating in phase. The
renderer draws an arc only while its window overlaps the clock's current
[current_time - trail_length, current_time] range.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from drillmap.config_types import AnimationConfig
from drillmap.models import MapEdge

DEFAULT_ARC_RGB: Tuple[int, int, int] = (200, 200, 200)

Position3D = Tuple[float, float, float]
TimeRange = Tuple[float, float]


@dataclass(frozen=True)
class ArcSpec:
    """One edge drawn as an elevated arc."""

    edge_id: str
    index: int
    source: Position3D
    target: Position3D
    source_timestamp: float
    target_timestamp: float
    color: Tuple[int, int, int]

    def is_visible(self, time_range: TimeRange) -> bool:
        start, end = time_range
        return self.target_timestamp >= start and self.source_timestamp <= end


class FlowLineRenderer3D:
    """Builds staggered arcs for the 3D mode."""

    def __init__(
        self,
        config: Optional[AnimationConfig] = None,
        arc_rgb: Sequence[int] = DEFAULT_ARC_RGB,
        elevation: float = 100.0,
        height: float = 0.6,
    ):
        self.config = config or AnimationConfig()
        self.arc_rgb = tuple(arc_rgb[:3])
        self.elevation = elevation
        self.height = height

    def build_arcs(self, edges: Sequence[MapEdge]) -> List[ArcSpec]:
        offset = self.config.arc_offset
        duration = self.config.arc_duration
        arcs = []
        for i, edge in enumerate(edges):
            color = tuple(edge.color[:3]) if edge.color else self.arc_rgb
            arcs.append(
                ArcSpec(
                    edge_id=edge.id,
                    index=i,
                    source=(edge.start[0], edge.start[1], self.elevation),
                    target=(edge.end[0], edge.end[1], self.elevation),
                    source_timestamp=i * offset,
                    target_timestamp=i * offset + duration,
                    color=color,
                )
            )
        return arcs

    def visible_arcs(
        self, edges: Sequence[MapEdge], time_range: TimeRange
    ) -> List[ArcSpec]:
        """Arcs whose travel window overlaps `time_range`."""
        return [arc for arc in self.build_arcs(edges) if arc.is_visible(time_range)]
