"""
ChangeBroadcastBus - in-process change notification

Pub/Sub channel that lets independent consumers react to record changes
without a shared state container.
"""

from collections import deque
from dataclasses import dataclass
from itertools import count
from typing import Callable, Deque, Dict, FrozenSet, Iterable, List, Optional, Tuple
import logging

from .events import ALL_KINDS, ChangeEvent, ChangeKind


# Handler signature
EventHandler = Callable[[ChangeEvent], None]
# Gate signature: False holds the event back
EventGate = Callable[[ChangeEvent], bool]


@dataclass(frozen=True)
class _Subscription:
    token: int
    kinds: FrozenSet[ChangeKind]
    handler: EventHandler
    name: str


class ChangeBroadcastBus:
    """
    Synchronous publish/subscribe channel for change events

    Delivery rules:
    - handlers run one after another, in registration order
    - each active subscriber gets an event at most once
    - no replay: a subscriber registered after a publish never sees it
    - a handler that raises is logged and skipped; remaining subscribers
      still receive the event
    - events published from inside a handler are queued and delivered
      after the current event, so every subscriber sees publish order
    - gates run before delivery; an event any gate rejects is dropped
      for every subscriber

    Usage:
        bus = ChangeBroadcastBus()

        def on_deleted(event):
            if isinstance(event, RecordDeleted):
                ...

        token = bus.subscribe({ChangeKind.DELETED}, on_deleted)
        bus.publish(RecordDeleted(id="42"))
        bus.unsubscribe(token)
    """

    def __init__(self):
        self._subscriptions: Dict[int, _Subscription] = {}
        self._tokens = count(1)
        self._queue: Deque[ChangeEvent] = deque()
        self._dispatching = False
        self._gates: Dict[int, Tuple[EventGate, str]] = {}
        self._published_count = 0
        self._held_back_count = 0
        self.logger = logging.getLogger("event_bus")

    def subscribe(
        self,
        kinds: Optional[Iterable[ChangeKind]],
        handler: EventHandler,
        name: Optional[str] = None,
    ) -> int:
        """
        Register a handler for a set of event kinds

        Args:
            kinds: kinds to receive; None subscribes to every kind
            handler: called synchronously with each matching event
            name: label used in log messages

        Returns:
            token to pass to unsubscribe()
        """
        kind_set = ALL_KINDS if kinds is None else frozenset(kinds)
        if not kind_set:
            raise ValueError("subscribe() needs at least one event kind")

        token = next(self._tokens)
        label = name or getattr(handler, "__qualname__", repr(handler))
        self._subscriptions[token] = _Subscription(token, kind_set, handler, label)
        self.logger.debug(
            f"Subscribed '{label}' (token={token}) to "
            f"{sorted(k.value for k in kind_set)}"
        )
        return token

    def unsubscribe(self, token: int) -> bool:
        """
        Remove a subscription

        Returns:
            True if removed, False if the token was unknown
        """
        subscription = self._subscriptions.pop(token, None)
        if subscription is None:
            return False
        self.logger.debug(f"Unsubscribed '{subscription.name}' (token={token})")
        return True

    def add_gate(self, gate: EventGate, name: Optional[str] = None) -> int:
        """
        Register a check that runs on every publish before delivery

        Returns:
            token to pass to remove_gate()
        """
        token = next(self._tokens)
        self._gates[token] = (gate, name or getattr(gate, "__qualname__", repr(gate)))
        return token

    def remove_gate(self, token: int) -> bool:
        return self._gates.pop(token, None) is not None

    def publish(self, event: ChangeEvent) -> None:
        """
        Deliver an event to every matching subscriber

        Returns once the event (and anything published by its handlers)
        has been delivered.
        """
        if not self._admit(event):
            return

        self._queue.append(event)
        if self._dispatching:
            return

        self._dispatching = True
        try:
            while self._queue:
                self._dispatch(self._queue.popleft())
        finally:
            self._dispatching = False

    def _admit(self, event: ChangeEvent) -> bool:
        for gate, name in list(self._gates.values()):
            try:
                admitted = gate(event)
            except Exception as e:
                self.logger.error(f"Event gate '{name}' failed: {e}", exc_info=True)
                continue
            if not admitted:
                self._held_back_count += 1
                self.logger.debug(f"Gate '{name}' held back: {event!r}")
                return False
        return True

    def _dispatch(self, event: ChangeEvent) -> None:
        self._published_count += 1
        self.logger.debug(f"Publishing: {event!r}")

        # Subscribers added during dispatch wait for the next event
        for subscription in list(self._subscriptions.values()):
            if subscription.token not in self._subscriptions:
                continue
            if event.kind not in subscription.kinds:
                continue
            self._safe_call(subscription, event)

    def _safe_call(self, subscription: _Subscription, event: ChangeEvent) -> None:
        """Call a handler, logging instead of propagating its exception"""
        try:
            subscription.handler(event)
        except Exception as e:
            self.logger.error(
                f"Event handler '{subscription.name}' failed for "
                f"'{event.kind.value}': {e}",
                exc_info=True,
            )

    def get_subscriber_count(self, kind: Optional[ChangeKind] = None) -> int:
        """Number of subscriptions, optionally only those receiving kind"""
        if kind is None:
            return len(self._subscriptions)
        return sum(1 for s in self._subscriptions.values() if kind in s.kinds)

    def subscriber_names(self) -> List[str]:
        return [s.name for s in self._subscriptions.values()]

    @property
    def published_count(self) -> int:
        return self._published_count

    @property
    def held_back_count(self) -> int:
        return self._held_back_count

    def __repr__(self) -> str:
        return (
            f"ChangeBroadcastBus(subscribers={len(self._subscriptions)}, "
            f"published={self._published_count})"
        )
