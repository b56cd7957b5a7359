"""
Core data-access infrastructure

Classes:
    ChangeBroadcastBus: in-process change notification
    FailoverPolicy: remote-first, offline-on-failure operation routing
    ReadResult / WriteResult: operation results tagged with provenance
    RecordCreated / RecordUpdated / RecordDeleted / ListInvalidated: change events
"""

from .exceptions import (
    CatalogError,
    RemoteError,
    RemoteUnavailable,
    RemoteRejected,
    NotFound,
    ValidationFailed,
    SubscriptionError,
    MetadataUnavailable,
    MetadataNotFound,
)
from .results import Provenance, ReadResult, WriteResult
from .events import (
    ChangeKind,
    ChangeEvent,
    RecordCreated,
    RecordUpdated,
    RecordDeleted,
    ListInvalidated,
    RECORD_KINDS,
    ALL_KINDS,
    record_event,
    event_record_id,
)
from .event_bus import ChangeBroadcastBus
from .failover import FailoverPolicy, SourceMode, Outcome, transition

__all__ = [
    # Exceptions
    "CatalogError",
    "RemoteError",
    "RemoteUnavailable",
    "RemoteRejected",
    "NotFound",
    "ValidationFailed",
    "SubscriptionError",
    "MetadataUnavailable",
    "MetadataNotFound",
    # Results
    "Provenance",
    "ReadResult",
    "WriteResult",
    # Events
    "ChangeKind",
    "ChangeEvent",
    "RecordCreated",
    "RecordUpdated",
    "RecordDeleted",
    "ListInvalidated",
    "RECORD_KINDS",
    "ALL_KINDS",
    "record_event",
    "event_record_id",
    # Communication
    "ChangeBroadcastBus",
    # Fault Tolerance
    "FailoverPolicy",
    "SourceMode",
    "Outcome",
    "transition",
]
