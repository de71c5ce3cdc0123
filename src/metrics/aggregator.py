"""Fold several chart bindings into one dashboard-level view.

The bindings fetch independently; the aggregator only combines their
published states:

    loading   — True while any binding is loading
    has_error — True when any binding failed
    errors    — per-binding error message (None when that binding is fine)
    per_chart — per-binding data

A failing chart never hides the data of the others.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from src.metrics.binding import BindingState, BindingStatus, StableAsyncBinding

logger = logging.getLogger("sportsee.metrics.aggregator")


@dataclass(frozen=True)
class AggregateState:
    per_chart: dict[str, Any] = field(default_factory=dict)
    loading: bool = False
    has_error: bool = False
    errors: dict[str, str | None] = field(default_factory=dict)
    statuses: dict[str, BindingStatus] = field(default_factory=dict)

    @property
    def ready(self) -> bool:
        """True once every binding has settled successfully."""
        return bool(self.statuses) and all(
            status is BindingStatus.SUCCESS for status in self.statuses.values()
        )


def aggregate(states: Mapping[str, BindingState]) -> AggregateState:
    """Combine binding states; pure, no coordination between bindings."""
    return AggregateState(
        per_chart={name: state.data for name, state in states.items()},
        loading=any(state.loading for state in states.values()),
        has_error=any(state.error is not None for state in states.values()),
        errors={name: state.error_message for name, state in states.items()},
        statuses={name: state.status for name, state in states.items()},
    )


class DashboardAggregator:
    """Drive a named set of bindings with one dependency snapshot.

    Args:
        bindings: name → binding, e.g. {"activity": ..., "score": ...}.
    """

    def __init__(self, bindings: Mapping[str, StableAsyncBinding]) -> None:
        self._bindings = dict(bindings)

    @property
    def bindings(self) -> dict[str, StableAsyncBinding]:
        return dict(self._bindings)

    @property
    def state(self) -> AggregateState:
        return aggregate({name: b.state for name, b in self._bindings.items()})

    def update(self, dependencies: object) -> list[asyncio.Task]:
        """Forward the dependency snapshot to every binding.

        Returns:
            Tasks of the requests actually started.
        """
        tasks = []
        for binding in self._bindings.values():
            task = binding.update(dependencies)
            if task is not None:
                tasks.append(task)
        return tasks

    def subscribe(self, listener: Callable[[AggregateState], None]) -> Callable[[], None]:
        """Call ``listener(aggregate_state)`` whenever any binding publishes."""
        unsubscribers = [
            binding.subscribe(lambda _state: listener(self.state))
            for binding in self._bindings.values()
        ]

        def unsubscribe() -> None:
            for unsub in unsubscribers:
                unsub()

        return unsubscribe

    async def wait(self) -> AggregateState:
        """Wait for every binding's latest request to settle."""
        await asyncio.gather(*(b.wait() for b in self._bindings.values()))
        return self.state

    def dispose(self) -> None:
        for binding in self._bindings.values():
            binding.dispose()
        logger.debug("Disposed aggregator over %s", ", ".join(self._bindings))
