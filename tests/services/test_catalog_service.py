"""
EpisodeCatalogService tests

Reads and writes through the failover policy against a fake remote
catalog and a seeded offline store.
"""

import pytest

from episode_catalog.core.events import (
    ListInvalidated,
    RecordCreated,
    RecordDeleted,
    RecordUpdated,
)
from episode_catalog.core.exceptions import ValidationFailed
from episode_catalog.core.failover import SourceMode
from episode_catalog.core.results import Provenance
from episode_catalog.schemas.episode import EpisodeInput
from episode_catalog.services.catalog_service import EpisodeCatalogService

NEW_EPISODE = {
    "series": "Dark",
    "title": "Secrets",
    "description": "A boy goes missing.",
    "season_number": 1,
    "episode_number": 1,
    "release_date": "2017-12-01",
    "imdb_id": "tt5753856",
}


# ─────────────────────────────────────────────────────────────────
# Read Tests
# ─────────────────────────────────────────────────────────────────


class TestReads:
    """Read path tests"""

    @pytest.mark.asyncio
    async def test_list_from_remote(self, service, remote):
        """Remote serves when available"""
        result = await service.list_episodes("stranger")

        assert len(result.data) == 10
        assert result.provenance is Provenance.REMOTE
        assert remote.queries("ListEpisodes") == [("stranger", "")]

    @pytest.mark.asyncio
    async def test_list_falls_back(self, service, remote):
        """Offline store serves when remote is down"""
        remote.available = False
        result = await service.list_episodes("upside")

        assert [e.title for e in result.data] == ["The Upside Down"]
        assert result.from_offline is True

    @pytest.mark.asyncio
    async def test_get_falls_back_to_matching_record(self, service, remote):
        """Fallback completeness: the offline record is returned"""
        remote.available = False
        result = await service.get_episode("8")

        assert result.data.title == "The Upside Down"
        assert result.from_offline is True

    @pytest.mark.asyncio
    async def test_get_missing_is_none(self, service, remote):
        """Absence is a value, not an error"""
        remote.available = False
        result = await service.get_episode("missing")

        assert result.data is None

    @pytest.mark.asyncio
    async def test_seasons_and_series(self, service, remote):
        """Seasons and series, remote then offline"""
        assert (await service.list_seasons("Stranger Things")).data == [1, 2]
        assert (await service.list_series()).data == ["Stranger Things"]

        remote.available = False
        seasons = await service.list_seasons("Stranger Things")
        series = await service.list_series()

        assert seasons.data == [1, 2] and seasons.from_offline
        assert series.data == ["Stranger Things"] and series.from_offline

    @pytest.mark.asyncio
    async def test_offline_mode_skips_remote(self, service, remote):
        """Explicit opt-in reads the offline store only"""
        result = await service.list_episodes(mode=SourceMode.OFFLINE_FORCED)

        assert result.from_offline is True
        assert remote.calls == []


# ─────────────────────────────────────────────────────────────────
# Write Tests
# ─────────────────────────────────────────────────────────────────


class TestWrites:
    """Write path tests"""

    @pytest.mark.asyncio
    async def test_create_remote(self, service, remote, store, recorded_events):
        """Remote create publishes one remote event and leaves the offline store alone"""
        result = await service.create_episode(NEW_EPISODE)

        assert result.success and result.provenance is Provenance.REMOTE
        assert remote.store.get_by_id(result.data.id) is not None
        assert store.get_by_id(result.data.id) is None
        assert [type(e) for e in recorded_events] == [RecordCreated]
        assert recorded_events[0].id == result.data.id

    @pytest.mark.asyncio
    async def test_create_fallback(self, service, remote, store, recorded_events):
        """Fallback create lands offline with one offline event and a warning"""
        remote.available = False
        result = await service.create_episode(NEW_EPISODE)

        assert result.success and result.from_offline
        assert result.has_warnings
        assert store.get_by_id(result.data.id).title == "Secrets"
        assert len(recorded_events) == 1
        assert recorded_events[0].provenance is Provenance.OFFLINE

    @pytest.mark.asyncio
    async def test_create_round_trip(self, service, remote):
        """Created record reads back field-equal through the same store"""
        remote.available = False
        created = await service.create_episode(EpisodeInput(**NEW_EPISODE))
        read = await service.get_episode(created.data.id)

        assert read.data.field_values() == EpisodeInput(**NEW_EPISODE).model_dump(exclude={"id"})

    @pytest.mark.asyncio
    async def test_create_invalid(self, service, recorded_events):
        """Malformed input raises before any store is touched"""
        with pytest.raises(ValidationFailed):
            await service.create_episode({**NEW_EPISODE, "season_number": 0})

        assert recorded_events == []

    @pytest.mark.asyncio
    async def test_update_partial(self, service, remote, recorded_events):
        """Updating only description leaves the rest unchanged"""
        before = remote.store.get_by_id("5")
        result = await service.update_episode("5", {"description": "X"})
        after = remote.store.get_by_id("5")

        assert result.success and result.data == "5"
        assert after.description == "X"
        assert after.model_dump(exclude={"description"}) == before.model_dump(exclude={"description"})
        assert [type(e) for e in recorded_events] == [RecordUpdated]

    @pytest.mark.asyncio
    async def test_update_fallback(self, service, remote, store, recorded_events):
        """Fallback update merges into the offline record"""
        remote.available = False
        result = await service.update_episode("5", {"title": "Renamed"})

        assert result.success and result.from_offline
        assert store.get_by_id("5").title == "Renamed"
        assert len(recorded_events) == 1

    @pytest.mark.asyncio
    async def test_update_unknown_everywhere(self, service, recorded_events):
        """Rejected remotely and absent offline: failure, no event"""
        result = await service.update_episode("missing", {"title": "Renamed"})

        assert not result
        assert result.error_type == "NotFound"
        assert recorded_events == []

    @pytest.mark.asyncio
    async def test_delete_remote_and_fallback(self, service, remote, store, recorded_events):
        """One deleted event per delete, whichever store took it"""
        first = await service.delete_episode("1")
        remote.available = False
        second = await service.delete_episode("2")

        assert first.provenance is Provenance.REMOTE
        assert second.provenance is Provenance.OFFLINE
        assert [(type(e), e.id) for e in recorded_events] == [
            (RecordDeleted, "1"),
            (RecordDeleted, "2"),
        ]
        assert "2" not in store

    @pytest.mark.asyncio
    async def test_delete_missing_offline(self, service, remote, recorded_events):
        """Fallback delete of an unknown id fails without an event"""
        remote.available = False
        result = await service.delete_episode("missing")

        assert result.error_type == "NotFound"
        assert recorded_events == []


class TestMirroring:
    """mirror_remote_writes tests"""

    @pytest.fixture
    def mirrored(self, remote, store, policy, bus):
        return EpisodeCatalogService(remote, store, policy, bus, mirror_remote_writes=True)

    @pytest.mark.asyncio
    async def test_remote_writes_copied_offline(self, mirrored, store, recorded_events):
        """Successful remote writes are mirrored without extra events"""
        created = await mirrored.create_episode(NEW_EPISODE)
        await mirrored.update_episode("6", {"description": "X"})
        await mirrored.delete_episode("7")

        assert store.get_by_id(created.data.id).title == "Secrets"
        assert store.get_by_id("6").description == "X"
        assert "7" not in store
        assert len(recorded_events) == 3


class TestListNotifications:
    """listInvalidated tests"""

    @pytest.mark.asyncio
    async def test_reset_offline_store(self, service, store, recorded_events):
        """Reset restores seed data and invalidates lists"""
        store.delete("1")
        service.reset_offline_store()

        assert len(store) == 10
        assert isinstance(recorded_events[-1], ListInvalidated)
        assert recorded_events[-1].provenance is Provenance.OFFLINE
