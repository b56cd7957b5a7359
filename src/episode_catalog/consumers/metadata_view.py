"""
Metadata View

Show and episode enrichment for the current selection. Driven only by
selection changes; record mutations do not trigger a lookup.
"""
from typing import Callable, Optional

from episode_catalog.core.event_bus import ChangeBroadcastBus
from episode_catalog.core.failover import SourceMode
from episode_catalog.consumers.base import ConsumerBinding
from episode_catalog.consumers.selection import SelectionState
from episode_catalog.schemas.metadata import ShowMetadata
from episode_catalog.services.catalog_service import EpisodeCatalogService
from episode_catalog.services.metadata_service import MetadataLookupClient


class MetadataView(ConsumerBinding):
    """
    Attributes:
        show: series-level metadata (placeholder on lookup failure)
        episode_metadata: episode-level metadata (placeholder on failure)
    """

    def __init__(
        self,
        service: EpisodeCatalogService,
        bus: ChangeBroadcastBus,
        selection: SelectionState,
        lookup: MetadataLookupClient,
        name: str = "metadata",
        mode: Optional[SourceMode] = None,
    ):
        super().__init__(service, bus, name, mode)
        self.selection = selection
        self.lookup = lookup
        self.show: Optional[ShowMetadata] = None
        self.episode_metadata: Optional[ShowMetadata] = None
        self.lookups = 0
        self._unwatch: Optional[Callable[[], None]] = None

    def on_mount(self) -> None:
        self._unwatch = self.selection.watch(lambda _: self.refresh_soon())
        if self.selection.has_selection:
            self.refresh_soon()

    def on_unmount(self) -> None:
        if self._unwatch is not None:
            self._unwatch()
            self._unwatch = None

    async def refresh(self) -> None:
        token = self._begin_request()
        record_id = self.selection.selected_id
        series = self.selection.series

        if record_id is None:
            self.show = None
            self.episode_metadata = None
            self._finish_request(False)
            return

        result = await self.service.get_episode(record_id, mode=self.mode)
        record = result.data
        series = series or (record.series if record else None)

        show = await self.lookup.lookup_show(series) if series else None
        episode_metadata = None
        if record is not None:
            episode_metadata = await self.lookup.lookup_episode(
                record.imdb_id, record.season_number, record.episode_number, record.title
            )

        if self._is_stale(token):
            return
        self.lookups += 1
        self.show = show
        self.episode_metadata = episode_metadata
        self._finish_request(result.from_offline)
