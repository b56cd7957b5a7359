"""
Popular Episodes View

Curated episodes enriched from the metadata service. Each entry is
looked up on its own, and a failed lookup falls back to placeholder
content for that entry only. Filtering by show and by search text is
client-side.
"""
import asyncio
from dataclasses import dataclass
from typing import Callable, List, Optional

from episode_catalog.core.event_bus import ChangeBroadcastBus
from episode_catalog.consumers.base import ConsumerBinding
from episode_catalog.schemas.metadata import PopularEpisode, PopularShow, ShowMetadata
from episode_catalog.services.metadata_service import MetadataLookupClient
from episode_catalog.store.seed import popular_episodes, popular_shows

POPULAR_EMPTY_MESSAGE = "No episodes found matching your criteria"


@dataclass(frozen=True)
class PopularItem:
    entry: PopularEpisode
    metadata: ShowMetadata

    @property
    def show_title(self) -> str:
        return self.entry.show_title

    @property
    def title(self) -> str:
        return self.metadata.title or self.entry.title

    @property
    def label(self) -> str:
        return f"{self.show_title}: {self.title} - S{self.entry.season}E{self.entry.episode}"


class PopularEpisodesView(ConsumerBinding):
    """
    Attributes:
        items: every curated entry with its metadata (or placeholder)
        show_filter: show title to narrow to; "" shows all
        search_text: matched case-insensitively against episode or show title
        selected: metadata of the last selected entry
    """

    def __init__(
        self,
        bus: ChangeBroadcastBus,
        lookup: MetadataLookupClient,
        on_select: Optional[Callable[[ShowMetadata], None]] = None,
        entries: Optional[List[PopularEpisode]] = None,
        shows: Optional[List[PopularShow]] = None,
        name: str = "popular_episodes",
    ):
        super().__init__(None, bus, name)
        self.lookup = lookup
        self.on_select = on_select
        self.entries = entries if entries is not None else popular_episodes()
        self.shows = shows if shows is not None else popular_shows()
        self.items: List[PopularItem] = []
        self.show_filter = ""
        self.search_text = ""
        self.selected: Optional[ShowMetadata] = None

    async def refresh(self) -> None:
        token = self._begin_request()
        metadata = await asyncio.gather(*(
            self.lookup.lookup_episode(entry.imdb_id, entry.season, entry.episode, entry.title)
            for entry in self.entries
        ))
        if self._is_stale(token):
            return
        self.items = [PopularItem(entry, meta) for entry, meta in zip(self.entries, metadata)]
        self._finish_request(False)

    def set_show(self, show_title: str) -> None:
        self.show_filter = show_title or ""

    def set_search(self, text: str) -> None:
        self.search_text = text or ""

    @property
    def show_titles(self) -> List[str]:
        return [show.title for show in self.shows]

    @property
    def visible_items(self) -> List[PopularItem]:
        needle = self.search_text.lower()
        return [
            item for item in self.items
            if (not self.show_filter or item.show_title == self.show_filter)
            and (not needle or needle in item.title.lower() or needle in item.show_title.lower())
        ]

    @property
    def labels(self) -> List[str]:
        return [item.label for item in self.visible_items]

    @property
    def empty_message(self) -> Optional[str]:
        if self.loading or self.visible_items:
            return None
        return POPULAR_EMPTY_MESSAGE

    def select(self, item: PopularItem) -> ShowMetadata:
        """Emit the entry's metadata to on_select"""
        self.selected = item.metadata
        if self.on_select is not None:
            self.on_select(item.metadata)
        return item.metadata
