"""
Failover - remote first, offline store on failure

Per logical operation the policy walks a two-state machine:

    REMOTE_PREFERRED --remote failed / offline opt-in--> OFFLINE_FORCED

OFFLINE_FORCED is terminal for that operation only. The next operation
starts again from REMOTE_PREFERRED unless the caller opted into offline
mode, so a single failure never sticks globally.
"""

from datetime import datetime
from enum import Enum
from typing import Awaitable, Callable, Optional, TypeVar
import logging

from .event_bus import ChangeBroadcastBus
from .events import ChangeEvent
from .exceptions import CatalogError, RemoteError
from .results import Provenance, ReadResult, WriteResult

T = TypeVar("T")


class SourceMode(Enum):
    """Failover state of one logical operation"""

    REMOTE_PREFERRED = "remote-preferred"  # try remote, fall back on failure
    OFFLINE_FORCED = "offline-forced"  # serve from the offline store only


class Outcome(Enum):
    """Inputs to the transition function"""

    REMOTE_SUCCEEDED = "remote_succeeded"
    REMOTE_FAILED = "remote_failed"
    OFFLINE_OPT_IN = "offline_opt_in"
    RESET = "reset"


def transition(mode: SourceMode, outcome: Outcome) -> SourceMode:
    """
    The single transition function of the failover state machine

    Args:
        mode: current state
        outcome: what just happened

    Returns:
        next state
    """
    if outcome is Outcome.RESET:
        return SourceMode.REMOTE_PREFERRED
    if outcome is Outcome.OFFLINE_OPT_IN:
        return SourceMode.OFFLINE_FORCED
    if mode is SourceMode.OFFLINE_FORCED:
        return SourceMode.OFFLINE_FORCED
    if outcome is Outcome.REMOTE_FAILED:
        return SourceMode.OFFLINE_FORCED
    return SourceMode.REMOTE_PREFERRED


class FailoverPolicy:
    """
    Decides, per operation, which store serves it

    Reads: remote first; on RemoteError the equivalent offline call is
    made and its answer returned with offline provenance. The remote
    error is never re-raised.

    Writes: remote first; on RemoteError the equivalent offline mutation
    is made. Exactly one change event is published for a write that
    lands, tagged with the store it landed in, and a fallback adds a
    warning to the result.

    Usage:
        policy = FailoverPolicy(bus, name="catalog")

        result = await policy.read(
            "listEpisodes",
            remote=lambda: client.list_episodes(search, series),
            offline=lambda: store.list(search, series),
        )
        if result.from_offline:
            ...

    Attributes:
        default_mode: starting state when the caller does not pass one
    """

    def __init__(
        self,
        bus: ChangeBroadcastBus,
        offline_only: bool = False,
        name: Optional[str] = None,
    ):
        """
        Args:
            bus: channel write events are published on
            offline_only: application-wide offline opt-in
            name: policy name (for logging)
        """
        self.bus = bus
        self.name = name or "catalog"
        self.default_mode = (
            transition(SourceMode.REMOTE_PREFERRED, Outcome.OFFLINE_OPT_IN)
            if offline_only
            else SourceMode.REMOTE_PREFERRED
        )

        self._remote_successes = 0
        self._remote_failures = 0
        self._offline_reads = 0
        self._offline_writes = 0
        self._last_failure: Optional[str] = None
        self._last_failure_time: Optional[datetime] = None

        self.logger = logging.getLogger(f"failover.{self.name}")

    def force_offline(self) -> None:
        """Opt every following operation into offline mode"""
        self.default_mode = transition(self.default_mode, Outcome.OFFLINE_OPT_IN)
        self.logger.info(f"Failover '{self.name}': offline mode forced")

    def reset(self) -> None:
        """Return to remote-preferred operation"""
        self.default_mode = transition(self.default_mode, Outcome.RESET)
        self.logger.info(f"Failover '{self.name}': reset to remote-preferred")

    async def read(
        self,
        operation: str,
        remote: Callable[[], Awaitable[T]],
        offline: Callable[[], T],
        mode: Optional[SourceMode] = None,
    ) -> ReadResult[T]:
        """
        Run a read through the state machine

        Args:
            operation: operation name for logs
            remote: coroutine factory for the remote call
            offline: equivalent call on the offline store
            mode: starting state (defaults to default_mode)

        Returns:
            ReadResult tagged with the serving store
        """
        state = mode or self.default_mode
        remote_error = None

        if state is SourceMode.REMOTE_PREFERRED:
            try:
                data = await remote()
            except RemoteError as e:
                remote_error = str(e)
                state = self._record_failure(state, operation, e)
            else:
                self._record_success()
                return ReadResult(data=data, provenance=Provenance.REMOTE)

        self._offline_reads += 1
        self.logger.info(f"'{operation}' served from offline store")
        return ReadResult(
            data=offline(),
            provenance=Provenance.OFFLINE,
            remote_error=remote_error,
        )

    async def write(
        self,
        operation: str,
        remote: Callable[[], Awaitable[T]],
        offline: Callable[[], T],
        build_event: Callable[[T, Provenance], ChangeEvent],
        mode: Optional[SourceMode] = None,
    ) -> WriteResult[T]:
        """
        Run a write through the state machine

        Args:
            operation: operation name for logs
            remote: coroutine factory for the remote mutation
            offline: equivalent offline mutation; raises CatalogError
                (NotFound, ValidationFailed) when it cannot apply
            build_event: maps the write's value and provenance to the
                change event to publish
            mode: starting state (defaults to default_mode)

        Returns:
            WriteResult; success is False only when neither store took
            the write
        """
        state = mode or self.default_mode
        warnings = []

        if state is SourceMode.REMOTE_PREFERRED:
            try:
                data = await remote()
            except RemoteError as e:
                state = self._record_failure(state, operation, e)
                warnings.append(
                    f"Remote catalog unavailable ({e.message}); "
                    f"change saved to offline data"
                )
            else:
                self._record_success()
                self.bus.publish(build_event(data, Provenance.REMOTE))
                return WriteResult.success_result(data, Provenance.REMOTE)

        try:
            data = offline()
        except CatalogError as e:
            self.logger.warning(f"'{operation}' failed on offline store: {e}")
            return WriteResult.failure_result(
                str(e), error_type=type(e).__name__, warnings=warnings
            )

        self._offline_writes += 1
        for warning in warnings:
            self.logger.warning(f"'{operation}': {warning}")
        self.bus.publish(build_event(data, Provenance.OFFLINE))
        return WriteResult.success_result(data, Provenance.OFFLINE, warnings)

    def _record_success(self) -> None:
        self._remote_successes += 1

    def _record_failure(
        self, state: SourceMode, operation: str, error: RemoteError
    ) -> SourceMode:
        self._remote_failures += 1
        self._last_failure = str(error)
        self._last_failure_time = datetime.utcnow()
        self.logger.info(f"'{operation}' remote call failed, falling back: {error}")
        return transition(state, Outcome.REMOTE_FAILED)

    def get_stats(self) -> dict:
        """Counters for diagnostics"""
        return {
            "name": self.name,
            "default_mode": self.default_mode.value,
            "remote_successes": self._remote_successes,
            "remote_failures": self._remote_failures,
            "offline_reads": self._offline_reads,
            "offline_writes": self._offline_writes,
            "last_failure": self._last_failure,
            "last_failure_time": (
                self._last_failure_time.isoformat()
                if self._last_failure_time
                else None
            ),
        }

    def __repr__(self) -> str:
        return (
            f"FailoverPolicy(name={self.name}, mode={self.default_mode.value}, "
            f"failures={self._remote_failures})"
        )
