"""Flow-line package: curvature, 2D curves with trailing dots, 3D arcs."""

from .curvature import CurvatureCalculator, hash_string
from .line2d import (
    CurvePath,
    FlowLineRenderer2D,
    TrailDot,
    build_quadratic_bezier_path,
)
from .line3d import ArcSpec, FlowLineRenderer3D

__all__ = [
    "CurvatureCalculator",
    "hash_string",
    "CurvePath",
    "FlowLineRenderer2D",
    "TrailDot",
    "build_quadratic_bezier_path",
    "ArcSpec",
    "FlowLineRenderer3D",
]
