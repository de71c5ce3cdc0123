"""Stable async binding: at most one fetch per distinct dependency snapshot.

Reactive consumers re-evaluate on every cycle and usually rebuild their
dependency list each time (``[user_id]`` is a new list on every render).
Comparing snapshots by identity would refetch on every cycle, so the
binding compares them by deep value equality instead.

Per binding instance:

    IDLE ──update(deps)──▶ LOADING ──▶ SUCCESS | FAILED
                              ▲                 │
                              └─ deps changed ──┘

    any state ──update(missing)──▶ IDLE

Only the most recently *started* request may publish.  Earlier requests
still in flight become stale and their results are dropped when they
arrive, whatever the completion order.  ``dispose()`` stales the pending
request as well, and so does a missing dependency value, which also
returns the binding to IDLE without data.  Cancellation is advisory:
stale tasks are not aborted, only ignored.

Usage::

    binding = StableAsyncBinding("activity", gateway.get_activity)
    binding.subscribe(render)
    binding.update([18])        # starts a fetch
    binding.update([18])        # same value, new list: no-op
    await binding.wait()
"""

from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger("sportsee.metrics.binding")


class BindingStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class BindingState:
    """Published ``{data, loading, error}`` state of a binding.

    Attributes:
        status: Position in the IDLE → LOADING → SUCCESS/FAILED cycle.
        data:   Last successful result.  Kept while a newer request loads,
                cleared on failure.
        error:  Exception of the last failed request, else None.
    """

    status: BindingStatus = BindingStatus.IDLE
    data: Any = None
    error: Exception | None = None

    @property
    def loading(self) -> bool:
        return self.status is BindingStatus.LOADING

    @property
    def error_message(self) -> str | None:
        return str(self.error) if self.error is not None else None


Listener = Callable[[BindingState], None]


# ---------------------------------------------------------------------------
# Snapshot comparison
# ---------------------------------------------------------------------------


def _is_sequence(value: object) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def dependencies_equal(left: object, right: object) -> bool:
    """Deep value equality for dependency snapshots.

    Lists and tuples compare element-wise (``[18] == (18,)``), mappings by
    keys and values, anything else with ``==``.  Object identity never
    matters.
    """
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        return left.keys() == right.keys() and all(
            dependencies_equal(left[key], right[key]) for key in left
        )
    if _is_sequence(left) and _is_sequence(right):
        return len(left) == len(right) and all(
            dependencies_equal(a, b) for a, b in zip(left, right)
        )
    if isinstance(left, Mapping) or isinstance(right, Mapping):
        return False
    if _is_sequence(left) or _is_sequence(right):
        return False
    return left == right


def _as_dependency_tuple(dependencies: object) -> tuple | None:
    """Return the dependencies as a tuple, or None when a value is missing."""
    if dependencies is None:
        return None
    deps = tuple(dependencies) if _is_sequence(dependencies) else (dependencies,)
    if any(dep is None for dep in deps):
        return None
    return deps


# ---------------------------------------------------------------------------
# Binding
# ---------------------------------------------------------------------------


class StableAsyncBinding:
    """Run ``fetcher(*deps)`` once per distinct dependency snapshot.

    Args:
        resource_key: Identifies what is fetched (used in logs and task names).
        fetcher:      Async callable taking the dependency values as
                      positional arguments.
    """

    def __init__(self, resource_key: str, fetcher: Callable[..., Awaitable[Any]]) -> None:
        self.resource_key = resource_key
        self._fetcher = fetcher
        self._state = BindingState()
        self._snapshot: tuple | None = None
        self._generation = 0
        self._current: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()
        self._listeners: list[Listener] = []
        self._disposed = False
        self.fetch_count = 0

    @property
    def state(self) -> BindingState:
        return self._state

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def snapshot(self) -> tuple | None:
        return self._snapshot

    def update(self, dependencies: object) -> asyncio.Task | None:
        """Feed the current dependency values.

        Must be called from a running event loop.  Returns the task of the
        request started by this call, or None when nothing was started
        (disposed binding, missing dependency, or unchanged snapshot).
        """
        if self._disposed:
            logger.debug("%s: update after dispose ignored", self.resource_key)
            return None

        deps = _as_dependency_tuple(dependencies)
        if deps is None:
            logger.debug("%s: dependency missing, nothing to fetch", self.resource_key)
            if self._snapshot is not None:
                # The consumer no longer asks for the previous value.
                self._snapshot = None
                self._generation += 1
                self._current = None
                self._publish(BindingState())
            return None
        if self._snapshot is not None and dependencies_equal(self._snapshot, deps):
            return None

        self._snapshot = copy.deepcopy(deps)
        self._generation += 1
        generation = self._generation
        self._publish(BindingState(status=BindingStatus.LOADING, data=self._state.data))

        self.fetch_count += 1
        logger.debug("%s: request #%d for %r", self.resource_key, generation, deps)
        task = asyncio.get_running_loop().create_task(
            self._run(generation, deps), name=f"binding:{self.resource_key}:{generation}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self._current = task
        return task

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener(state)`` on every published change.

        Returns:
            A callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def wait(self) -> BindingState:
        """Wait until the most recent request has settled and return the state."""
        while self._current is not None and not self._current.done():
            await asyncio.wait({self._current})
        return self._state

    def dispose(self) -> None:
        """Detach the consumer.  Pending results are dropped from now on."""
        if self._disposed:
            return
        self._disposed = True
        self._generation += 1
        self._listeners.clear()
        logger.debug(
            "%s: disposed with %d request(s) in flight", self.resource_key, len(self._tasks)
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _is_current(self, generation: int) -> bool:
        return not self._disposed and generation == self._generation

    async def _run(self, generation: int, deps: tuple) -> None:
        try:
            data = await self._fetcher(*deps)
        except Exception as exc:
            if not self._is_current(generation):
                logger.debug(
                    "%s: dropping stale failure of request #%d: %s",
                    self.resource_key, generation, exc,
                )
                return
            logger.warning("%s: request #%d failed: %s", self.resource_key, generation, exc)
            self._publish(BindingState(status=BindingStatus.FAILED, error=exc))
            return

        if not self._is_current(generation):
            logger.debug("%s: dropping stale result of request #%d", self.resource_key, generation)
            return
        self._publish(BindingState(status=BindingStatus.SUCCESS, data=data))

    def _publish(self, state: BindingState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("%s: listener raised", self.resource_key)
