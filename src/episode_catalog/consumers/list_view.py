"""
Episode List View

Search, series and season filtered list of episodes. Re-queries on any
record change or list invalidation.
"""
import asyncio
from typing import List, Optional

from episode_catalog.core.event_bus import ChangeBroadcastBus
from episode_catalog.core.events import ALL_KINDS, ChangeEvent
from episode_catalog.core.failover import SourceMode
from episode_catalog.consumers.base import ConsumerBinding
from episode_catalog.consumers.debounce import Debouncer
from episode_catalog.consumers.selection import SelectionState
from episode_catalog.schemas.episode import EpisodeRecord
from episode_catalog.services.catalog_service import EpisodeCatalogService

EMPTY_MESSAGE = "No episodes found. Try adjusting your search criteria."


class EpisodeListView(ConsumerBinding):
    """
    Usage:
        view = EpisodeListView(service, bus, selection, debounce_seconds=0.4)
        view.mount()
        view.set_search("upside")      # debounced
        view.set_series("Stranger Things")
        view.set_season(2)
        await view.settle()
        view.labels
    """

    kinds = ALL_KINDS

    def __init__(
        self,
        service: EpisodeCatalogService,
        bus: ChangeBroadcastBus,
        selection: SelectionState,
        debounce_seconds: float = 0.4,
        name: str = "episode_list",
        mode: Optional[SourceMode] = None,
    ):
        super().__init__(service, bus, name, mode)
        self.selection = selection
        self.search_text = ""
        self.series_filter = ""
        self.season_filter: Optional[int] = None
        self.episodes: List[EpisodeRecord] = []
        self.seasons: List[int] = []
        self._debouncer: Debouncer[str] = Debouncer(debounce_seconds, self.apply_search)

    # ─────────────────────────────────────────────────────────────
    # Inputs
    # ─────────────────────────────────────────────────────────────

    def set_search(self, text: str) -> None:
        """Keystroke input; only the value left after the quiet period is queried"""
        self._debouncer.push(text)

    def apply_search(self, text: str) -> None:
        self.search_text = text
        self.refresh_soon()

    def set_series(self, series: str) -> None:
        self.series_filter = series or ""
        self.season_filter = None
        self.refresh_soon()

    def set_season(self, season: Optional[int]) -> None:
        self.season_filter = season
        self.refresh_soon()

    def select(self, record_id: str) -> None:
        series = next((e.series for e in self.episodes if e.id == record_id), None)
        self.selection.select(record_id, series)

    async def drain_search(self) -> None:
        await self._debouncer.drain()

    # ─────────────────────────────────────────────────────────────
    # Reads
    # ─────────────────────────────────────────────────────────────

    async def refresh(self) -> None:
        token = self._begin_request()
        episodes, seasons = await asyncio.gather(
            self.service.list_episodes(self.search_text, self.series_filter, mode=self.mode),
            self.service.list_seasons(self.series_filter, mode=self.mode),
        )
        if self._is_stale(token):
            return
        self.episodes = episodes.data
        self.seasons = seasons.data
        self._finish_request(episodes.from_offline or seasons.from_offline)

    def handle_event(self, event: ChangeEvent) -> None:
        self.logger.debug(f"'{self.name}' refreshing after {event!r}")
        self.refresh_soon()

    def on_unmount(self) -> None:
        self._debouncer.cancel()

    # ─────────────────────────────────────────────────────────────
    # Rendering state
    # ─────────────────────────────────────────────────────────────

    @property
    def visible_episodes(self) -> List[EpisodeRecord]:
        if self.season_filter is None:
            return list(self.episodes)
        return [e for e in self.episodes if e.season_number == self.season_filter]

    @property
    def labels(self) -> List[str]:
        return [episode.label for episode in self.visible_episodes]

    @property
    def empty_message(self) -> Optional[str]:
        if self.loading or self.visible_episodes:
            return None
        return EMPTY_MESSAGE

    @property
    def show_offline_banner(self) -> bool:
        return self.from_offline
