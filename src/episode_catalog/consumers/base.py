"""
Consumer Binding base

Shared lifecycle for the list, detail and metadata views: bus
subscription on mount, background reads tracked as tasks, a per-view
provenance flag, and an optional per-view offline opt-in.
"""
import asyncio
import logging
from typing import Awaitable, FrozenSet, Optional, Set

from episode_catalog.core.event_bus import ChangeBroadcastBus
from episode_catalog.core.events import ChangeEvent, ChangeKind
from episode_catalog.core.failover import Outcome, SourceMode, transition
from episode_catalog.core.results import WriteResult
from episode_catalog.consumers.request_token import RequestGate
from episode_catalog.services.catalog_service import EpisodeCatalogService


def write_notice(result: WriteResult, success_text: str) -> str:
    """Transient notification text for a write outcome"""
    if not result.success:
        return f"Error: {result.errors[0] if result.errors else result.error_type}"
    if result.has_warnings:
        return result.warnings[0]
    return success_text


class ConsumerBinding:
    """
    Base class for views that read through the catalog service

    Subclasses set `kinds` (event kinds to react to) and implement
    refresh() and, when kinds is non-empty, handle_event().

    Attributes:
        service: catalog facade; None for views that never read the catalog
        mode: starting failover state for this view's reads; None uses
            the policy default
        loading: a read is in flight
        from_offline: the last applied read came from the offline store
    """

    kinds: FrozenSet[ChangeKind] = frozenset()

    def __init__(
        self,
        service: Optional[EpisodeCatalogService],
        bus: ChangeBroadcastBus,
        name: str,
        mode: Optional[SourceMode] = None,
    ):
        self.service = service
        self.bus = bus
        self.name = name
        self.mode = mode
        self.loading = False
        self.from_offline = False

        self._gate = RequestGate()
        self._tasks: Set[asyncio.Task] = set()
        self._bus_token: Optional[int] = None
        self._mounted = False
        self.logger = logging.getLogger(f"consumer.{name}")

    @property
    def mounted(self) -> bool:
        return self._mounted

    def mount(self) -> None:
        """Subscribe and issue the initial read; needs a running loop"""
        if self._mounted:
            return
        self._mounted = True
        if self.kinds:
            self._bus_token = self.bus.subscribe(self.kinds, self.handle_event, name=self.name)
        self.on_mount()

    def unmount(self) -> None:
        if not self._mounted:
            return
        self._mounted = False
        if self._bus_token is not None:
            self.bus.unsubscribe(self._bus_token)
            self._bus_token = None
        self.on_unmount()
        for task in list(self._tasks):
            task.cancel()

    def on_mount(self) -> None:
        self.refresh_soon()

    def on_unmount(self) -> None:
        pass

    def handle_event(self, event: ChangeEvent) -> None:
        pass

    async def refresh(self) -> None:
        raise NotImplementedError

    def refresh_soon(self) -> None:
        self._spawn(self.refresh())

    def use_offline_data(self) -> None:
        """Serve this view from the offline store from now on"""
        self.mode = transition(self.mode or SourceMode.REMOTE_PREFERRED, Outcome.OFFLINE_OPT_IN)
        self.logger.info(f"'{self.name}' switched to offline data")
        self.refresh_soon()

    def use_remote_data(self) -> None:
        self.mode = transition(self.mode or SourceMode.REMOTE_PREFERRED, Outcome.RESET)
        self.refresh_soon()

    async def settle(self) -> None:
        """Wait for every background read started so far (and any they start)"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ─────────────────────────────────────────────────────────────
    # Request bookkeeping
    # ─────────────────────────────────────────────────────────────

    def _begin_request(self) -> int:
        self.loading = True
        return self._gate.issue()

    def _is_stale(self, token: int) -> bool:
        if self._gate.is_current(token):
            return False
        self.logger.debug(f"'{self.name}' discarding stale response (token={token})")
        return True

    def _finish_request(self, from_offline: bool) -> None:
        self.loading = False
        self.from_offline = from_offline

    def _spawn(self, coro: Awaitable) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.logger.error(f"'{self.name}' background read failed: {error}", exc_info=error)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self.name}, loading={self.loading}, "
            f"from_offline={self.from_offline})"
        )
