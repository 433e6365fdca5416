"""
Debounced handlers and the boundary-loading guard.

A Debouncer is a timer-armed queue: each call cancels the pending timer, keeps
the latest arguments and arms a new timer. When the quiet period elapses the
wrapped function runs once with those latest arguments, and every caller
since the previous run receives the same outcome through its future.
"""

import asyncio
import inspect
import logging
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from drillmap.errors import BoundaryLoadingTimeoutError

logger = logging.getLogger(__name__)


class Debouncer:
    """
    Collapse bursts of calls into one deferred call.

    Usage:
        on_hover = Debouncer(self._handle_hover, 0.6, name="area-hover")
        on_hover(event)          # returns an asyncio.Future
        on_hover.cancel()        # on teardown
    """

    def __init__(self, fn: Callable[..., Any], wait_s: float, name: str = ""):
        self.fn = fn
        self.wait_s = wait_s
        self.name = name or getattr(fn, "__name__", "debounced")
        self._handle: Optional[asyncio.TimerHandle] = None
        self._latest: Tuple[Tuple[Any, ...], Dict[str, Any]] = ((), {})
        self._waiters: List[asyncio.Future] = []
        self._tasks: Set[asyncio.Future] = set()

    @property
    def pending(self) -> bool:
        return self._handle is not None

    @property
    def running(self) -> bool:
        """True while an awaitable result of a fired call is still running."""
        return any(not t.done() for t in self._tasks)

    def __call__(self, *args: Any, **kwargs: Any) -> asyncio.Future:
        loop = asyncio.get_running_loop()
        self._latest = (args, kwargs)
        if self._handle is not None:
            self._handle.cancel()
        future = loop.create_future()
        self._waiters.append(future)
        self._handle = loop.call_later(self.wait_s, self._fire)
        return future

    def flush(self) -> None:
        """Run a pending call now instead of waiting for the timer."""
        if self._handle is not None:
            self._handle.cancel()
            self._fire()

    def cancel(self) -> None:
        """Drop the pending call and stop a running one; waiters are cancelled."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        tasks, self._tasks = self._tasks, set()
        for task in tasks:
            if not task.done():
                task.cancel()
        waiters, self._waiters = self._waiters, []
        for future in waiters:
            if not future.done():
                future.cancel()

    def _fire(self) -> None:
        self._handle = None
        args, kwargs = self._latest
        waiters, self._waiters = self._waiters, []

        try:
            result = self.fn(*args, **kwargs)
        except Exception as e:
            _settle(waiters, error=e)
            return

        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(lambda t: self._finish(waiters, t))
        else:
            _settle(waiters, result=result)

    def _finish(self, waiters: List[asyncio.Future], task: asyncio.Future) -> None:
        self._tasks.discard(task)
        _settle_from_task(waiters, task)


def _settle(
    waiters: List[asyncio.Future],
    result: Any = None,
    error: Optional[BaseException] = None,
) -> None:
    for future in waiters:
        if future.done():
            continue
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(result)


def _settle_from_task(waiters: List[asyncio.Future], task: asyncio.Future) -> None:
    if task.cancelled():
        for future in waiters:
            if not future.done():
                future.cancel()
        return
    error = task.exception()
    if error is not None:
        _settle(waiters, error=error)
    else:
        _settle(waiters, result=task.result())


async def wait_until_clear(
    is_busy: Callable[[], bool], timeout_s: float = 5.0, poll_s: float = 0.1
) -> None:
    """
    Poll `is_busy()` until it returns False.

    Args:
        is_busy: Predicate, e.g. "boundary is loading"
        timeout_s: Give up after this many seconds
        poll_s: Delay between checks

    Raises:
        BoundaryLoadingTimeoutError: still busy after `timeout_s`
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout_s
    while is_busy():
        if loop.time() >= deadline:
            raise BoundaryLoadingTimeoutError(timeout_s)
        await asyncio.sleep(poll_s)
