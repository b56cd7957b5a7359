"""
Episode Detail View

Shows the selected episode. Clears itself when that episode is deleted;
other record changes are ignored.
"""
from typing import Callable, Mapping, Optional, Union

from episode_catalog.core.event_bus import ChangeBroadcastBus
from episode_catalog.core.events import ChangeEvent, ChangeKind, RecordDeleted
from episode_catalog.core.failover import SourceMode
from episode_catalog.core.results import WriteResult
from episode_catalog.consumers.base import ConsumerBinding, write_notice
from episode_catalog.consumers.selection import SelectionState
from episode_catalog.schemas.episode import EpisodeRecord, EpisodeUpdate
from episode_catalog.services.catalog_service import EpisodeCatalogService

NOT_FOUND_MESSAGE = "Episode not found."


class EpisodeDetailView(ConsumerBinding):
    """
    Attributes:
        record_id: id being displayed (follows the selection)
        episode: loaded record, None while loading or when not found
        not_found: the serving store had no record for record_id
        notice: transient text from the last delete/edit
    """

    kinds = frozenset({ChangeKind.DELETED})

    def __init__(
        self,
        service: EpisodeCatalogService,
        bus: ChangeBroadcastBus,
        selection: SelectionState,
        name: str = "episode_detail",
        mode: Optional[SourceMode] = None,
    ):
        super().__init__(service, bus, name, mode)
        self.selection = selection
        self.record_id: Optional[str] = None
        self.episode: Optional[EpisodeRecord] = None
        self.not_found = False
        self.notice: Optional[str] = None
        self._unwatch: Optional[Callable[[], None]] = None

    def on_mount(self) -> None:
        self._unwatch = self.selection.watch(self._on_selection)
        self._on_selection(self.selection)

    def on_unmount(self) -> None:
        if self._unwatch is not None:
            self._unwatch()
            self._unwatch = None

    def _on_selection(self, selection: SelectionState) -> None:
        self.record_id = selection.selected_id
        if self.record_id is None:
            self._clear()
        else:
            self.refresh_soon()

    def handle_event(self, event: ChangeEvent) -> None:
        if isinstance(event, RecordDeleted) and event.id == self.record_id:
            self.logger.debug(f"'{self.name}' displayed episode {event.id} was deleted")
            self.record_id = None
            self._clear()

    def _clear(self) -> None:
        # Drops any read still in flight for the old id
        self._gate.issue()
        self.episode = None
        self.not_found = False
        self.loading = False

    async def refresh(self) -> None:
        record_id = self.record_id
        if record_id is None:
            return
        token = self._begin_request()
        result = await self.service.get_episode(record_id, mode=self.mode)
        if self._is_stale(token):
            return
        self.episode = result.data
        self.not_found = result.data is None
        self._finish_request(result.from_offline)

    # ─────────────────────────────────────────────────────────────
    # Actions
    # ─────────────────────────────────────────────────────────────

    async def delete(self) -> Optional[WriteResult]:
        if self.record_id is None:
            return None
        result = await self.service.delete_episode(self.record_id, mode=self.mode)
        self.notice = write_notice(result, "Episode deleted successfully")
        return result

    async def edit(self, changes: Union[EpisodeUpdate, Mapping]) -> Optional[WriteResult]:
        if self.record_id is None:
            return None
        result = await self.service.update_episode(self.record_id, changes, mode=self.mode)
        self.notice = write_notice(result, "Episode updated successfully")
        if result.success:
            await self.refresh()
        return result

    # ─────────────────────────────────────────────────────────────
    # Rendering state
    # ─────────────────────────────────────────────────────────────

    @property
    def show_offline_banner(self) -> bool:
        return self.from_offline and self.episode is not None

    @property
    def message(self) -> Optional[str]:
        return NOT_FOUND_MESSAGE if self.not_found else None
