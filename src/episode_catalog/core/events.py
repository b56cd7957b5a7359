"""
Change events

A closed set of event classes carried by the ChangeBroadcastBus.
Subscribers select by ChangeKind and dispatch with isinstance.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Union
from uuid import uuid4

from .results import Provenance


class ChangeKind(str, Enum):
    """Event names on the broadcast channel"""

    CREATED = "recordChanged:created"
    UPDATED = "recordChanged:updated"
    DELETED = "recordChanged:deleted"
    LIST_INVALIDATED = "listInvalidated"


RECORD_KINDS = frozenset({ChangeKind.CREATED, ChangeKind.UPDATED, ChangeKind.DELETED})
ALL_KINDS = frozenset(ChangeKind)


@dataclass(frozen=True)
class _BaseEvent:
    """
    Fields shared by every change event

    Attributes:
        provenance: store the change landed in
        source: component that published the event ("catalog_service",
            "subscription", ...)
        event_id: unique event id
        timestamp: publish time
    """

    provenance: Provenance = Provenance.REMOTE
    source: str = "catalog_service"
    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=datetime.utcnow)

    kind: ClassVar[ChangeKind]

    def payload(self) -> Dict[str, Any]:
        return {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind.value,
            "payload": self.payload(),
            "provenance": self.provenance.value,
            "source": self.source,
            "event_id": self.event_id,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class _RecordEvent(_BaseEvent):
    id: str = ""

    def payload(self) -> Dict[str, Any]:
        return {"id": self.id}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id}, provenance={self.provenance.value})"


@dataclass(frozen=True, repr=False)
class RecordCreated(_RecordEvent):
    kind: ClassVar[ChangeKind] = ChangeKind.CREATED


@dataclass(frozen=True, repr=False)
class RecordUpdated(_RecordEvent):
    kind: ClassVar[ChangeKind] = ChangeKind.UPDATED


@dataclass(frozen=True, repr=False)
class RecordDeleted(_RecordEvent):
    kind: ClassVar[ChangeKind] = ChangeKind.DELETED


@dataclass(frozen=True)
class ListInvalidated(_BaseEvent):
    """The set of records changed wholesale (offline store reset, reconnect)"""

    reason: str = ""

    kind: ClassVar[ChangeKind] = ChangeKind.LIST_INVALIDATED

    def payload(self) -> Dict[str, Any]:
        return {"reason": self.reason}


ChangeEvent = Union[RecordCreated, RecordUpdated, RecordDeleted, ListInvalidated]

_RECORD_EVENT_TYPES = {
    ChangeKind.CREATED: RecordCreated,
    ChangeKind.UPDATED: RecordUpdated,
    ChangeKind.DELETED: RecordDeleted,
}


def record_event(
    kind: ChangeKind,
    record_id: str,
    provenance: Provenance = Provenance.REMOTE,
    source: str = "catalog_service",
) -> ChangeEvent:
    """Build the record event class matching kind"""
    event_type = _RECORD_EVENT_TYPES.get(kind)
    if event_type is None:
        raise ValueError(f"Not a record event kind: {kind}")
    return event_type(id=record_id, provenance=provenance, source=source)


def event_record_id(event: ChangeEvent) -> Optional[str]:
    """Affected id, or None for list-level events"""
    if isinstance(event, (RecordCreated, RecordUpdated, RecordDeleted)):
        return event.id
    return None
