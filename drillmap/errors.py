"""
Exception types for the drill-down map.

Only programmer errors and timing conditions raise. Missing geography, an
unresolved region code or a feature that is not in the loaded geometry are
expected at the edges of the data and are returned as empty values instead.
"""


class DrillMapError(Exception):
    """Base class for every error raised by drillmap."""


class InvalidCurvatureRangeError(DrillMapError, ValueError):
    """Curvature bounds outside [0, 1] or min greater than max."""

    def __init__(self, min_value: float, max_value: float):
        self.min_value = min_value
        self.max_value = max_value
        super().__init__(
            f"Invalid curvature range [{min_value}, {max_value}]: "
            "bounds must lie in [0, 1] with min <= max"
        )


class MissingContainerError(DrillMapError, ValueError):
    """A renderer was created without a container id."""


class UnsupportedRendererError(DrillMapError, ValueError):
    """The renderer factory was asked for an unknown backend."""

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"Unsupported renderer type: {kind!r}")


class RendererDestroyedError(DrillMapError, RuntimeError):
    """A renderer method was called after destroy()."""


class BoundaryLoadingTimeoutError(DrillMapError, TimeoutError):
    """Boundary geography was still loading when the wait timed out."""

    def __init__(self, timeout_s: float):
        self.timeout_s = timeout_s
        super().__init__(f"Boundary loading did not finish within {timeout_s}s")


class InstanceNotFoundError(DrillMapError, KeyError):
    """A render instance id was never created or was already removed."""

    def __init__(self, instance_id: str):
        self.instance_id = instance_id
        super().__init__(f"Render instance not found: {instance_id!r}")

    def __str__(self) -> str:
        return str(self.args[0])


class DuplicateInstanceError(DrillMapError, ValueError):
    """A render instance id is already registered."""

    def __init__(self, instance_id: str):
        self.instance_id = instance_id
        super().__init__(f"Render instance already exists: {instance_id!r}")
