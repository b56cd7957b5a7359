"""
Offline Record Store

In-process collection of episode records used as the fallback source of
truth. All access happens on the event-loop thread, so there is no
locking. Callers publish change events after a successful mutation.
"""
import logging
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Union
from uuid import uuid4

from pydantic import ValidationError

from episode_catalog.core.exceptions import ValidationFailed
from episode_catalog.schemas.episode import EpisodeInput, EpisodeRecord, EpisodeUpdate

logger = logging.getLogger(__name__)


def validation_messages(error: ValidationError) -> List[str]:
    return [
        f"{'.'.join(str(p) for p in e['loc']) or 'input'}: {e['msg']}"
        for e in error.errors()
    ]


class OfflineRecordStore:
    """
    Mutable in-memory episode collection

    Records are kept in insertion order; list() preserves it.

    Usage:
        store = OfflineRecordStore(default_episodes())
        store.list(search_text="stranger")
        record = store.insert(EpisodeInput(series="Dark", title="Secrets",
                                           season_number=1, episode_number=1))
        store.update(record.id, {"description": "..."})
        store.delete(record.id)
    """

    def __init__(
        self,
        records: Optional[Iterable[EpisodeRecord]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        """
        Args:
            records: initial contents, also restored by reset()
            id_factory: generates ids for inserts without one
        """
        self._initial: List[EpisodeRecord] = list(records or [])
        self._id_factory = id_factory or (lambda: str(uuid4()))
        self._records: Dict[str, EpisodeRecord] = {}
        self.reset()

    # ─────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────

    def list(self, search_text: str = "", series_filter: str = "") -> List[EpisodeRecord]:
        """
        Filter records

        search_text: case-insensitive substring of title OR series
        series_filter: exact series match
        Both filters are ANDed; an empty filter matches everything.
        """
        needle = (search_text or "").lower()
        results = []
        for record in self._records.values():
            if needle and needle not in record.title.lower() and needle not in record.series.lower():
                continue
            if series_filter and record.series != series_filter:
                continue
            results.append(record)
        return results

    def get_by_id(self, record_id: str) -> Optional[EpisodeRecord]:
        return self._records.get(record_id)

    def list_distinct_series(self) -> List[str]:
        return sorted({record.series for record in self._records.values()})

    def list_seasons_for_series(self, series: str = "") -> List[int]:
        """Distinct season numbers, ascending; all records when series is empty"""
        return sorted({
            record.season_number
            for record in self._records.values()
            if not series or record.series == series
        })

    # ─────────────────────────────────────────────────────────────
    # Mutations
    # ─────────────────────────────────────────────────────────────

    def insert(self, record: Union[EpisodeInput, EpisodeRecord, Mapping]) -> EpisodeRecord:
        """
        Store a new record

        Raises:
            ValidationFailed: malformed input or id already present
        """
        try:
            if isinstance(record, Mapping):
                record = EpisodeInput.model_validate(record)
            record_id = record.id or self._id_factory()
            stored = EpisodeRecord.model_validate(
                {**record.model_dump(exclude={"id"}), "id": record_id}
            )
        except ValidationError as e:
            raise ValidationFailed(validation_messages(e), "insert") from e

        if stored.id in self._records:
            raise ValidationFailed([f"id already exists: {stored.id}"], "insert")

        self._records[stored.id] = stored
        logger.debug(f"Inserted episode {stored.id}")
        return stored

    def upsert(self, record: EpisodeRecord) -> EpisodeRecord:
        """Insert or replace by id"""
        self._records[record.id] = record
        return record

    def update(self, record_id: str, fields: Union[EpisodeUpdate, Mapping]) -> bool:
        """
        Merge the provided fields into an existing record

        Returns:
            False when record_id is absent (nothing changes)

        Raises:
            ValidationFailed: fields are malformed
        """
        existing = self._records.get(record_id)
        if existing is None:
            return False

        try:
            if isinstance(fields, Mapping):
                fields = EpisodeUpdate.model_validate(fields)
        except ValidationError as e:
            raise ValidationFailed(validation_messages(e), "update") from e

        self._records[record_id] = existing.model_copy(update=fields.changes())
        logger.debug(f"Updated episode {record_id}: {sorted(fields.changes())}")
        return True

    def delete(self, record_id: str) -> bool:
        """Remove a record; False when absent"""
        if self._records.pop(record_id, None) is None:
            return False
        logger.debug(f"Deleted episode {record_id}")
        return True

    def reset(self) -> None:
        """Restore the initial contents"""
        self._records = {record.id: record for record in self._initial}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._records

    def __repr__(self) -> str:
        return f"OfflineRecordStore(records={len(self._records)})"
