"""Animation package: logical clock and debounced handlers."""

from .clock import AnimationClock
from .debounce import Debouncer, wait_until_clear

__all__ = ["AnimationClock", "Debouncer", "wait_until_clear"]
