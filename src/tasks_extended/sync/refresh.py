"""
Stale-while-revalidate refresh of the task tree.

The controller is the only writer of ``RefreshState``. A refresh never clears
the tree that is already published: while it runs only the ``refreshing``
flag is raised, on success the new tree replaces the old one in a single
publish, and on failure the old tree stays exactly as it was and only the
error is set. At most one fetch is outstanding; triggers arriving while a
fetch is in flight join it instead of starting another.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional, Set, Tuple
import asyncio
import logging
import time

from ..exceptions import RemoteError
from ..tasks.source import RemoteTaskSource
from ..tasks.tree import build_tree, count_nodes
from ..tasks.types import TaskNode
from ..utils.observable import Observable, Signal, Unsubscribe

logger = logging.getLogger(__name__)


class Trigger(Enum):
    BOOT = "boot"
    MANUAL = "manual"
    FOCUS = "focus"


@dataclass(frozen=True)
class RefreshState:
    """
    Published refresh result.
    Args:
        tree: Root task nodes, or None while no refresh has ever succeeded.
        last_updated: Completion time of the last successful refresh.
        error: User-readable message of the last failed refresh.
        refreshing: True while a fetch is in flight.
    """
    tree: Optional[Tuple[TaskNode, ...]] = None
    last_updated: Optional[datetime] = None
    error: Optional[str] = None
    refreshing: bool = False

    @property
    def has_data(self) -> bool:
        return self.tree is not None

    @property
    def is_initial_load(self) -> bool:
        """No data yet and the first fetch is pending."""
        return self.tree is None and self.refreshing

    @property
    def is_empty(self) -> bool:
        return self.tree is not None and len(self.tree) == 0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RefreshController:
    """
    Drives "list remote tasks, build tree, publish".

    Args:
        source: Where task records come from.
        credentials: Provides ``access_token`` (read when the fetch starts) and,
            optionally, an async ``ensure_fresh()`` awaited just before it.
        clock: Returns the completion time recorded as ``last_updated``.
        focus_debounce: Ignore focus triggers this many seconds after the previous one.
    """

    def __init__(
            self,
            source: RemoteTaskSource,
            credentials: Any,
            clock: Optional[Callable[[], datetime]] = None,
            focus_debounce: float = 0.0,
            monotonic: Callable[[], float] = time.monotonic
    ):
        self._source = source
        self._credentials = credentials
        self._clock = clock or _utcnow
        self._focus_debounce = focus_debounce
        self._monotonic = monotonic
        self._state = Observable(RefreshState(), name="refresh")
        self._inflight: Optional[asyncio.Future] = None
        # Fetch dropped by reset() that may still be running
        self._discarded: Optional[asyncio.Future] = None
        self._scheduled: Set[asyncio.Future] = set()
        self._detach_focus: Optional[Unsubscribe] = None
        self._last_focus: Optional[float] = None
        # Bumped by reset() so fetches started before it never publish
        self._generation = 0

    @property
    def state(self) -> RefreshState:
        return self._state.value

    @property
    def in_flight(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    def subscribe(self, callback: Callable[[RefreshState], None]) -> Unsubscribe:
        return self._state.subscribe(callback)

    async def refresh(self, trigger: Trigger = Trigger.MANUAL) -> RefreshState:
        """
        Refresh the task tree, or join the refresh already in flight.

        Never raises for remote failures; they end up in ``state.error``.

        Returns:
            The state published when the (joined) refresh finished
        """
        if self.in_flight:
            logger.info("Refresh already in flight, coalescing %s trigger", trigger.value)
            return await asyncio.shield(self._inflight)

        logger.info("Refreshing tasks (trigger=%s)", trigger.value)
        self._state.publish(replace(self.state, refreshing=True, error=None))
        self._inflight = asyncio.ensure_future(self._run(self._generation, self._discarded))
        self._discarded = None
        return await asyncio.shield(self._inflight)

    async def _run(self, generation: int, discarded: Optional[asyncio.Future] = None) -> RefreshState:
        try:
            if discarded is not None and not discarded.done():
                logger.debug("Waiting for the fetch dropped by reset to settle")
                await asyncio.wait({discarded})

            ensure_fresh = getattr(self._credentials, 'ensure_fresh', None)
            if ensure_fresh is not None:
                await ensure_fresh()

            access_token = self._credentials.access_token
            if not access_token:
                logger.info("Not signed in, skipping refresh")
                return self._finish(generation, replace(self.state, refreshing=False))

            records = await self._source.list(access_token)
            tree = tuple(build_tree(records))
        except RemoteError as e:
            logger.warning("Refresh failed, keeping previous tasks: %s", e)
            return self._finish(generation, replace(self.state, refreshing=False, error=str(e)))
        except Exception as e:
            logger.error("Unexpected error refreshing tasks: %s", e)
            error = f"Unexpected error refreshing tasks: {e}"
            return self._finish(generation, replace(self.state, refreshing=False, error=error))
        finally:
            if self._inflight is asyncio.current_task():
                self._inflight = None

        logger.info("Refreshed %d task(s) in %d root(s)", count_nodes(tree), len(tree))
        return self._finish(
            generation,
            RefreshState(tree=tree, last_updated=self._clock(), error=None, refreshing=False)
        )

    def _finish(self, generation: int, state: RefreshState) -> RefreshState:
        if generation != self._generation:
            logger.info("Discarding refresh result started before reset")
            return self.state
        self._state.publish(state)
        return state

    def trigger(self, trigger: Trigger = Trigger.MANUAL) -> Optional[asyncio.Future]:
        """
        Schedule a refresh from synchronous code (event callbacks, UI handlers).

        Must be called with an event loop running.

        Returns:
            The scheduled task, or None if a focus trigger was debounced
        """
        if trigger is Trigger.FOCUS and self._debounced():
            return None

        task = asyncio.get_running_loop().create_task(self.refresh(trigger))
        self._scheduled.add(task)
        task.add_done_callback(self._scheduled.discard)
        return task

    def _debounced(self) -> bool:
        if self._focus_debounce <= 0:
            return False

        now = self._monotonic()
        if self._last_focus is not None and now - self._last_focus < self._focus_debounce:
            logger.debug("Ignoring focus trigger within %.1fs debounce", self._focus_debounce)
            return True
        self._last_focus = now
        return False

    def _on_focus(self, *args) -> None:
        self.trigger(Trigger.FOCUS)

    def attach(self, focus_signal: Signal) -> None:
        """Refresh every time ``focus_signal`` fires, until ``close()``."""
        self.close()
        self._detach_focus = focus_signal.subscribe(self._on_focus)

    def close(self) -> None:
        """Stop listening to the focus signal."""
        if self._detach_focus is not None:
            self._detach_focus()
            self._detach_focus = None

    def reset(self) -> None:
        """
        Forget the published tree, e.g. after sign-out.

        A fetch still in flight finishes in the background but its result is
        dropped; the next refresh waits for it before fetching again.
        """
        self._generation += 1
        if self.in_flight:
            self._discarded = self._inflight
        self._inflight = None
        self._last_focus = None
        self._state.publish(RefreshState())
