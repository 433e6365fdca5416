"""
Looping logical clock that drives flow-line animation.

Every tick adds `increment` logical seconds and wraps at `time_loop`. Readers
use `time_range` (3D arcs) or `progress` (2D trailing dots). The clock runs
as an asyncio task that must be stopped on teardown.
"""

import asyncio
import logging
from typing import Callable, List, Optional, Tuple

from drillmap.config_types import AnimationConfig

logger = logging.getLogger(__name__)

TickListener = Callable[["AnimationClock"], None]


class AnimationClock:
    """
    Repeating timer over wrapping logical time.

    Usage:
        clock = AnimationClock(app_config.animation)
        remove = clock.add_listener(lambda c: renderer.on_tick(c))
        clock.start()        # inside a running event loop
        ...
        await clock.stop()
    """

    def __init__(self, config: Optional[AnimationConfig] = None):
        self.config = config or AnimationConfig()
        self.current_time = 0.0
        self._listeners: List[TickListener] = []
        self._task: Optional[asyncio.Task] = None

    # ═══════════════════════════════════════════════════════════════════════
    # LOGICAL TIME
    # ═══════════════════════════════════════════════════════════════════════

    @property
    def time_range(self) -> Tuple[float, float]:
        """[max(0, t - trail_length), t] for the current time t."""
        start = max(0.0, self.current_time - self.config.trail_length)
        return (start, self.current_time)

    @property
    def progress(self) -> float:
        """Current time as a fraction of the loop, in [0, 1)."""
        return self.current_time / self.config.time_loop

    def tick(self) -> float:
        """Advance one step, notify listeners and return the new time."""
        self.current_time = (
            self.current_time + self.config.increment
        ) % self.config.time_loop
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("❌ Animation tick listener failed")
        return self.current_time

    def reset(self) -> None:
        self.current_time = 0.0

    def add_listener(self, listener: TickListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    # ═══════════════════════════════════════════════════════════════════════
    # TIMER
    # ═══════════════════════════════════════════════════════════════════════

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start ticking on the running event loop (restarts if running)."""
        if self._task is not None:
            self._task.cancel()
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(f"▶️ Animation clock started ({self.config.tick_ms:g} ms tick)")

    async def _run(self) -> None:
        period = self.config.tick_ms / 1000.0
        while True:
            await asyncio.sleep(period)
            self.tick()

    def cancel(self) -> None:
        """Request the timer to stop without waiting for it."""
        if self._task is not None:
            self._task.cancel()
            self._task = None
            logger.info("⏹️ Animation clock stopped")

    async def stop(self) -> None:
        """Stop the timer and wait until its task has finished."""
        task = self._task
        self.cancel()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass
