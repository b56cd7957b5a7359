"""
Episode Catalog Service

Resilient data access for episodes: every read and write goes through
the failover policy, which tries the remote catalog first and the
offline store on failure, and publishes one change event per write.
"""
import logging
from typing import List, Mapping, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ValidationError

from episode_catalog.core.event_bus import ChangeBroadcastBus
from episode_catalog.core.events import (
    ListInvalidated,
    RecordCreated,
    RecordDeleted,
    RecordUpdated,
)
from episode_catalog.core.exceptions import NotFound, ValidationFailed
from episode_catalog.core.failover import FailoverPolicy, SourceMode
from episode_catalog.core.results import Provenance, ReadResult, WriteResult
from episode_catalog.remote.client import RemoteCatalogClient
from episode_catalog.schemas.episode import EpisodeInput, EpisodeRecord, EpisodeUpdate
from episode_catalog.store.offline_store import OfflineRecordStore, validation_messages

logger = logging.getLogger(__name__)


class EpisodeCatalogService:
    """
    Episode reads and writes with automatic offline fallback

    Reads return a ReadResult whose provenance tells the caller which
    store answered. Writes return a WriteResult; success is False only
    when neither store could apply the write (e.g. unknown id).
    """

    def __init__(
        self,
        remote: RemoteCatalogClient,
        store: OfflineRecordStore,
        policy: FailoverPolicy,
        bus: ChangeBroadcastBus,
        mirror_remote_writes: bool = False,
    ):
        self.remote = remote
        self.store = store
        self.policy = policy
        self.bus = bus
        self.mirror_remote_writes = mirror_remote_writes

    # ─────────────────────────────────────────────────────────────
    # Reads
    # ─────────────────────────────────────────────────────────────

    async def list_episodes(
        self,
        search: str = "",
        series: str = "",
        mode: Optional[SourceMode] = None,
    ) -> ReadResult[List[EpisodeRecord]]:
        """Episodes matching search text (title or series) and exact series"""
        return await self.policy.read(
            "listEpisodes",
            remote=lambda: self.remote.list_episodes(search, series),
            offline=lambda: self.store.list(search, series),
            mode=mode,
        )

    async def get_episode(
        self,
        record_id: str,
        mode: Optional[SourceMode] = None,
    ) -> ReadResult[Optional[EpisodeRecord]]:
        """Single episode; data is None when the serving store lacks it"""
        return await self.policy.read(
            "getEpisodeById",
            remote=lambda: self.remote.get_episode_by_id(record_id),
            offline=lambda: self.store.get_by_id(record_id),
            mode=mode,
        )

    async def list_seasons(
        self,
        series: str = "",
        mode: Optional[SourceMode] = None,
    ) -> ReadResult[List[int]]:
        return await self.policy.read(
            "getSeasons",
            remote=lambda: self.remote.get_seasons(series),
            offline=lambda: self.store.list_seasons_for_series(series),
            mode=mode,
        )

    async def list_series(self, mode: Optional[SourceMode] = None) -> ReadResult[List[str]]:
        """Distinct series names, sorted"""

        async def remote_series() -> List[str]:
            episodes = await self.remote.list_episodes("", "")
            return sorted({episode.series for episode in episodes})

        return await self.policy.read(
            "listSeries",
            remote=remote_series,
            offline=self.store.list_distinct_series,
            mode=mode,
        )

    # ─────────────────────────────────────────────────────────────
    # Writes
    # ─────────────────────────────────────────────────────────────

    async def create_episode(
        self,
        data: Union[EpisodeInput, Mapping],
        mode: Optional[SourceMode] = None,
    ) -> WriteResult[EpisodeRecord]:
        """
        Create an episode

        An id is generated when the input has none, so the record keeps
        the same id whichever store takes it.

        Raises:
            ValidationFailed: data is not a valid episode
        """
        episode = self._coerce(EpisodeInput, data, "createEpisode")
        if not episode.id:
            episode = episode.model_copy(update={"id": str(uuid4())})
        record = EpisodeRecord.model_validate(episode.model_dump())

        async def remote_create() -> EpisodeRecord:
            new_id = await self.remote.create_episode(episode)
            return record.model_copy(update={"id": new_id})

        result = await self.policy.write(
            "createEpisode",
            remote=remote_create,
            offline=lambda: self.store.insert(record),
            build_event=lambda created, provenance: RecordCreated(
                id=created.id, provenance=provenance
            ),
            mode=mode,
        )
        if self._landed_remotely(result):
            self.store.upsert(result.data)
        return result

    async def update_episode(
        self,
        record_id: str,
        changes: Union[EpisodeUpdate, Mapping],
        mode: Optional[SourceMode] = None,
    ) -> WriteResult[str]:
        """
        Merge the provided fields into an existing episode

        Raises:
            ValidationFailed: changes are malformed
        """
        update = self._coerce(EpisodeUpdate, changes, "updateEpisode")

        def offline_update() -> str:
            if not self.store.update(record_id, update):
                raise NotFound(record_id, "updateEpisode")
            return record_id

        result = await self.policy.write(
            "updateEpisode",
            remote=lambda: self.remote.update_episode(record_id, update),
            offline=offline_update,
            build_event=lambda updated_id, provenance: RecordUpdated(
                id=updated_id, provenance=provenance
            ),
            mode=mode,
        )
        if self._landed_remotely(result):
            self.store.update(record_id, update)
        return result

    async def delete_episode(
        self,
        record_id: str,
        mode: Optional[SourceMode] = None,
    ) -> WriteResult[str]:
        """Remove an episode; fails with NotFound only when the offline store lacks it too"""

        async def remote_delete() -> str:
            if not await self.remote.delete_episode(record_id):
                logger.debug(f"Remote catalog had no episode {record_id} to delete")
            return record_id

        def offline_delete() -> str:
            if not self.store.delete(record_id):
                raise NotFound(record_id, "deleteEpisode")
            return record_id

        result = await self.policy.write(
            "deleteEpisode",
            remote=remote_delete,
            offline=offline_delete,
            build_event=lambda deleted_id, provenance: RecordDeleted(
                id=deleted_id, provenance=provenance
            ),
            mode=mode,
        )
        if self._landed_remotely(result):
            self.store.delete(record_id)
        return result

    # ─────────────────────────────────────────────────────────────
    # List-level notifications
    # ─────────────────────────────────────────────────────────────

    def invalidate_list(self, reason: str = "", provenance: Provenance = Provenance.REMOTE) -> None:
        """Tell every consumer the record set changed wholesale"""
        self.bus.publish(ListInvalidated(reason=reason, provenance=provenance))

    def reset_offline_store(self) -> None:
        """Restore the seed data and announce it"""
        self.store.reset()
        logger.info(f"Offline store reset ({len(self.store)} records)")
        self.invalidate_list("offline store reset", Provenance.OFFLINE)

    # ─────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────

    def _landed_remotely(self, result: WriteResult) -> bool:
        return (
            self.mirror_remote_writes
            and result.success
            and result.provenance is Provenance.REMOTE
        )

    @staticmethod
    def _coerce(model, data, operation: str):
        if isinstance(data, model):
            return data
        if isinstance(data, BaseModel):
            data = data.model_dump()
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise ValidationFailed(validation_messages(e), operation) from e

    def get_stats(self) -> dict:
        return {
            "offline_records": len(self.store),
            "mirror_remote_writes": self.mirror_remote_writes,
            "policy": self.policy.get_stats(),
        }
