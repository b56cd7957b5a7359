"""
Subscription streams

Push notifications from the remote catalog over the graphql-transport-ws
websocket protocol, and the forwarder that republishes them on the
ChangeBroadcastBus. A dropped or failing stream is logged at INFO and
never affects the rest of the application.
"""
import asyncio
import json
import logging
import time
from collections import Counter, deque
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, Deque, Dict, Iterable, List, Optional, Tuple

from websockets.asyncio.client import connect as websocket_connect

from episode_catalog.core.event_bus import ChangeBroadcastBus
from episode_catalog.core.events import (
    ChangeEvent,
    ChangeKind,
    event_record_id,
    record_event,
)
from episode_catalog.core.exceptions import SubscriptionError
from episode_catalog.core.results import Provenance
from episode_catalog.remote import documents

logger = logging.getLogger(__name__)

SUBPROTOCOL = "graphql-transport-ws"
EVENT_SOURCE = "subscription"


@dataclass(frozen=True)
class SubscriptionTopic:
    """One server push stream"""
    operation_name: str
    field: str
    document: str
    kind: ChangeKind


SUBSCRIPTIONS = (
    SubscriptionTopic("OnCreateEpisode", "onCreateEpisode", documents.ON_CREATE, ChangeKind.CREATED),
    SubscriptionTopic("OnUpdateEpisode", "onUpdateEpisode", documents.ON_UPDATE, ChangeKind.UPDATED),
    SubscriptionTopic("OnDeleteEpisode", "onDeleteEpisode", documents.ON_DELETE, ChangeKind.DELETED),
)


class SubscriptionStream:
    """
    A single graphql-transport-ws subscription

    Usage:
        stream = SubscriptionStream(settings.catalog_ws_url, SUBSCRIPTIONS[0])
        async for event in stream.events():
            bus.publish(event)
    """

    def __init__(
        self,
        url: str,
        topic: SubscriptionTopic,
        api_key: str = "",
        connect: Optional[Callable[..., Any]] = None,
    ):
        """
        Args:
            url: websocket endpoint
            topic: which push stream to subscribe to
            api_key: sent in the connection_init payload
            connect: websocket connect factory (tests pass a fake)
        """
        self.url = url
        self.topic = topic
        self.api_key = api_key
        self._connect = connect or websocket_connect

    @property
    def name(self) -> str:
        return self.topic.field

    async def events(self) -> AsyncIterator[ChangeEvent]:
        """
        Connect, subscribe, and yield a change event per pushed message

        Ends when the server completes the subscription or closes the
        connection.

        Raises:
            SubscriptionError: handshake refused or server sent an error
        """
        async with self._connect(self.url, subprotocols=[SUBPROTOCOL]) as ws:
            await ws.send(json.dumps({
                "type": "connection_init",
                "payload": {"x-api-key": self.api_key} if self.api_key else {},
            }))
            ack = _decode(await ws.recv())
            if ack.get("type") != "connection_ack":
                raise SubscriptionError(
                    f"Expected connection_ack, got {ack.get('type')!r}", self.name
                )

            await ws.send(json.dumps({
                "id": "1",
                "type": "subscribe",
                "payload": {
                    "operationName": self.topic.operation_name,
                    "query": self.topic.document,
                },
            }))
            logger.info(f"Subscription '{self.name}' connected to {self.url}")

            async for raw in ws:
                message = _decode(raw)
                msg_type = message.get("type")

                if msg_type == "ping":
                    await ws.send(json.dumps({"type": "pong"}))
                elif msg_type == "next":
                    event = self._to_event(message.get("payload") or {})
                    if event is not None:
                        yield event
                elif msg_type == "error":
                    raise SubscriptionError(
                        f"Server error: {message.get('payload')}", self.name
                    )
                elif msg_type == "complete":
                    return

    def _to_event(self, payload: Dict[str, Any]) -> Optional[ChangeEvent]:
        item = (payload.get("data") or {}).get(self.topic.field)
        # onDeleteEpisode pushes the bare id
        record_id = item.get("id") if isinstance(item, dict) else item
        if not record_id:
            logger.debug(f"Subscription '{self.name}' pushed no id: {payload}")
            return None
        return record_event(
            self.topic.kind, str(record_id), Provenance.REMOTE, source=EVENT_SOURCE
        )

    def __repr__(self) -> str:
        return f"SubscriptionStream(name={self.name}, url={self.url})"


def _decode(raw: Any) -> Dict[str, Any]:
    try:
        message = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise SubscriptionError(f"Undecodable message: {raw!r}") from e
    if not isinstance(message, dict):
        raise SubscriptionError(f"Unexpected message: {raw!r}")
    return message


def subscription_streams(
    url: str,
    api_key: str = "",
    connect: Optional[Callable[..., Any]] = None,
) -> List[SubscriptionStream]:
    """The created/updated/deleted streams"""
    return [SubscriptionStream(url, topic, api_key, connect) for topic in SUBSCRIPTIONS]


class SubscriptionForwarder:
    """
    Republishes subscription pushes on the bus

    A remote write made through this process is announced locally by the
    failover policy, and the server pushes the same change back. The
    forwarder gates the bus so only one of the two reaches consumers,
    whichever order they arrive in: the first is delivered and the second
    is held back. Pending halves expire after echo_ttl seconds, so a push
    from another client for the same id is not swallowed later.

    Usage:
        forwarder = SubscriptionForwarder(subscription_streams(url, key), bus)
        forwarder.start()
        ...
        await forwarder.stop()
    """

    def __init__(
        self,
        streams: Iterable[SubscriptionStream],
        bus: ChangeBroadcastBus,
        echo_window: int = 64,
        echo_ttl: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.streams = list(streams)
        self.bus = bus
        self.echo_window = echo_window
        self.echo_ttl = echo_ttl
        self._clock = clock
        # (kind, id) -> unmatched halves, all from the same side
        self._pending: Dict[Tuple[ChangeKind, str], Deque[Tuple[str, float]]] = {}
        self._live_kinds: Counter = Counter()
        self._tasks: List[asyncio.Task] = []
        self._gate_token: Optional[int] = None
        self._forwarded = 0
        self._suppressed = 0

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def start(self) -> None:
        """Spawn one task per stream; must be called from a running loop"""
        if self._tasks:
            return
        self._gate_token = self.bus.add_gate(self._admit, name="subscription_echo")
        for stream in self.streams:
            self._live_kinds[stream.topic.kind] += 1
        self._tasks = [
            asyncio.create_task(self._pump(stream), name=f"subscription:{stream.name}")
            for stream in self.streams
        ]

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        if self._gate_token is not None:
            self.bus.remove_gate(self._gate_token)
            self._gate_token = None
        self._pending.clear()
        self._live_kinds.clear()

    async def _pump(self, stream: SubscriptionStream) -> None:
        try:
            async for event in stream.events():
                self.bus.publish(event)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.info(f"Subscription '{stream.name}' dropped: {e}")
        else:
            logger.info(f"Subscription '{stream.name}' closed")
        finally:
            self._stream_ended(stream.topic.kind)

    def _stream_ended(self, kind: ChangeKind) -> None:
        self._live_kinds[kind] -= 1
        if self._live_kinds[kind] > 0:
            return
        del self._live_kinds[kind]
        for key in [key for key in self._pending if key[0] is kind]:
            del self._pending[key]

    def _admit(self, event: ChangeEvent) -> bool:
        """Bus gate: hold back the second half of a write/push pair"""
        if event.provenance is not Provenance.REMOTE:
            return True
        record_id = event_record_id(event)
        if record_id is None:
            return True

        from_push = event.source == EVENT_SOURCE
        side = "push" if from_push else "local"
        key = (event.kind, record_id)
        now = self._clock()

        halves = self._pending.get(key)
        if halves:
            while halves and now - halves[0][1] > self.echo_ttl:
                halves.popleft()
            if not halves:
                del self._pending[key]
            elif halves[0][0] != side:
                halves.popleft()
                if not halves:
                    del self._pending[key]
                self._suppressed += 1
                logger.debug(f"Skipping echo of {side} change: {event!r}")
                return False

        if from_push:
            self._forwarded += 1
        # local halves only for kinds with a live stream
        if from_push or self._live_kinds.get(event.kind):
            self._remember(key, side, now)
        return True

    def _remember(self, key: Tuple[ChangeKind, str], side: str, now: float) -> None:
        self._pending.setdefault(key, deque()).append((side, now))
        while len(self._pending) > self.echo_window:
            del self._pending[next(iter(self._pending))]

    def get_stats(self) -> dict:
        return {
            "streams": [stream.name for stream in self.streams],
            "running": self.running,
            "forwarded": self._forwarded,
            "suppressed": self._suppressed,
            "pending": sum(len(halves) for halves in self._pending.values()),
        }
