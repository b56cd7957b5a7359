"""
Episode Manager application root

Owns every long-lived instance (bus, offline store, remote client,
failover policy, catalog service, selection, views, subscription
forwarder) and their lifecycle. Nothing in the package is a
module-level singleton.
"""
import logging
from typing import Iterable, Mapping, Optional, Union

from episode_catalog.config import Settings, get_settings
from episode_catalog.core.event_bus import ChangeBroadcastBus
from episode_catalog.core.failover import FailoverPolicy
from episode_catalog.core.results import WriteResult
from episode_catalog.consumers.base import write_notice
from episode_catalog.consumers.detail_view import EpisodeDetailView
from episode_catalog.consumers.list_view import EpisodeListView
from episode_catalog.consumers.metadata_view import MetadataView
from episode_catalog.consumers.popular_view import PopularEpisodesView
from episode_catalog.consumers.selection import SelectionState
from episode_catalog.remote.client import RemoteCatalogClient
from episode_catalog.remote.subscriptions import (
    SubscriptionForwarder,
    SubscriptionStream,
    subscription_streams,
)
from episode_catalog.schemas.episode import EpisodeBase, EpisodeInput, EpisodeUpdate
from episode_catalog.services.catalog_service import EpisodeCatalogService
from episode_catalog.services.metadata_service import MetadataLookupClient
from episode_catalog.store.offline_store import OfflineRecordStore
from episode_catalog.store.seed import default_episodes

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(settings: Settings) -> None:
    """Apply settings.log_level to the root logger"""
    level = logging.DEBUG if settings.debug else getattr(
        logging, settings.log_level.upper(), logging.INFO
    )
    logging.basicConfig(level=level, format=LOG_FORMAT)


class EpisodeManagerApp:
    """
    Usage:
        async with EpisodeManagerApp() as app:
            app.list_view.set_search("upside")
            await app.list_view.drain_search()
            await app.settle()
            app.list_view.select(app.list_view.episodes[0].id)

    Collaborators can be injected (tests pass a fake remote and lookup).
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        remote: Optional[RemoteCatalogClient] = None,
        lookup: Optional[MetadataLookupClient] = None,
        store: Optional[OfflineRecordStore] = None,
        streams: Optional[Iterable[SubscriptionStream]] = None,
    ):
        self.settings = settings or get_settings()
        s = self.settings

        self.bus = ChangeBroadcastBus()
        self.store = store or OfflineRecordStore(
            default_episodes() if s.seed_offline_store else None
        )
        self.remote = remote or RemoteCatalogClient(
            s.catalog_http_url, s.catalog_api_key, s.catalog_timeout_seconds
        )
        self.lookup = lookup or MetadataLookupClient(
            s.metadata_base_url, s.metadata_api_key, s.metadata_timeout_seconds
        )
        self.policy = FailoverPolicy(self.bus, offline_only=s.offline_only, name="catalog")
        self.service = EpisodeCatalogService(
            self.remote, self.store, self.policy, self.bus,
            mirror_remote_writes=s.mirror_remote_writes,
        )

        self.selection = SelectionState()
        self.list_view = EpisodeListView(
            self.service, self.bus, self.selection, s.search_debounce_seconds
        )
        self.detail_view = EpisodeDetailView(self.service, self.bus, self.selection)
        self.metadata_view = MetadataView(self.service, self.bus, self.selection, self.lookup)
        self.popular_view = PopularEpisodesView(self.bus, self.lookup)

        if streams is None:
            streams = (
                subscription_streams(s.catalog_ws_url, s.catalog_api_key)
                if s.enable_subscriptions
                else []
            )
        self.forwarder = SubscriptionForwarder(streams, self.bus)

        self.notice: Optional[str] = None
        self._started = False

    @property
    def catalog_views(self):
        return (self.list_view, self.detail_view, self.metadata_view)

    @property
    def views(self):
        return self.catalog_views + (self.popular_view,)

    async def start(self) -> None:
        if self._started:
            return
        self._started = True
        self.selection.bind(self.bus)
        for view in self.views:
            view.mount()
        if self.forwarder.streams:
            self.forwarder.start()
        logger.info(
            f"{self.settings.app_name} started (mode={self.policy.default_mode.value}, "
            f"subscriptions={len(self.forwarder.streams)})"
        )

    async def stop(self) -> None:
        if not self._started:
            return
        self._started = False
        await self.forwarder.stop()
        for view in self.views:
            view.unmount()
        await self.settle()
        self.selection.unbind()
        await self.remote.aclose()
        await self.lookup.aclose()
        logger.info(f"{self.settings.app_name} stopped")

    async def __aenter__(self) -> "EpisodeManagerApp":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    async def settle(self) -> None:
        """Wait for every view's background reads"""
        for view in self.views:
            await view.settle()

    # ─────────────────────────────────────────────────────────────
    # User actions
    # ─────────────────────────────────────────────────────────────

    async def submit_episode(
        self,
        fields: Union[EpisodeInput, EpisodeUpdate, Mapping],
        existing_id: Optional[str] = None,
    ) -> WriteResult:
        """
        Save the episode form: update when existing_id is given, else create

        On success the saved record becomes the selection. The transient
        notification text is left in self.notice.

        Raises:
            ValidationFailed: fields are not a valid episode
        """
        if existing_id:
            result = await self.service.update_episode(existing_id, fields)
            self.notice = write_notice(result, "Episode updated successfully")
            record_id = existing_id
        else:
            result = await self.service.create_episode(fields)
            self.notice = write_notice(result, "Episode created successfully")
            record_id = result.data.id if result.success else None

        if record_id is not None and result.success:
            series = self._submitted_series(fields, result)
            self.selection.select(record_id, series)
        return result

    def reload(self) -> None:
        """Reset the offline store to its seed data"""
        self.service.reset_offline_store()

    def use_offline_data(self) -> None:
        """Application-wide offline opt-in"""
        self.policy.force_offline()
        for view in self.catalog_views:
            view.refresh_soon()

    @staticmethod
    def _submitted_series(fields, result: WriteResult) -> Optional[str]:
        if isinstance(result.data, EpisodeBase):
            return result.data.series
        if isinstance(fields, Mapping):
            return fields.get("series")
        return getattr(fields, "series", None)

    def get_stats(self) -> dict:
        return {
            "service": self.service.get_stats(),
            "subscriptions": self.forwarder.get_stats(),
            "bus": {
                "subscribers": self.bus.get_subscriber_count(),
                "published": self.bus.published_count,
            },
        }
