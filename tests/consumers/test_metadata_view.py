"""
MetadataView tests
"""

import pytest

from episode_catalog.consumers.metadata_view import MetadataView
from episode_catalog.core.events import RecordDeleted, RecordUpdated


@pytest.fixture
def metadata_view(service, bus, selection, lookup):
    return MetadataView(service, bus, selection, lookup)


class TestMetadataView:
    """MetadataView tests"""

    @pytest.mark.asyncio
    async def test_selection_drives_lookup(self, metadata_view, selection):
        """Show and episode metadata for the selected record"""
        metadata_view.mount()
        selection.select("1", series="Stranger Things")
        await metadata_view.settle()

        assert metadata_view.show.title == "Stranger Things"
        assert metadata_view.show.placeholder is False
        assert metadata_view.episode_metadata.season == "1"
        assert metadata_view.episode_metadata.placeholder is False

    @pytest.mark.asyncio
    async def test_series_resolved_from_record(self, metadata_view, selection):
        """Selection without a series uses the record's series"""
        metadata_view.mount()
        selection.select("1")
        await metadata_view.settle()

        assert metadata_view.show.title == "Stranger Things"

    @pytest.mark.asyncio
    async def test_placeholder_on_lookup_miss(self, metadata_view, selection):
        """Unknown episodes get placeholder content"""
        metadata_view.mount()
        selection.select("10", series="Stranger Things")
        await metadata_view.settle()

        assert metadata_view.episode_metadata.placeholder is True
        assert metadata_view.episode_metadata.plot == "Episode 2 of Season 2"

    @pytest.mark.asyncio
    async def test_ignores_record_mutations(self, metadata_view, selection, bus):
        """Record change events do not trigger a lookup"""
        metadata_view.mount()
        selection.select("1", series="Stranger Things")
        await metadata_view.settle()
        lookups = metadata_view.lookups

        bus.publish(RecordUpdated(id="1"))
        await metadata_view.settle()

        assert metadata_view.lookups == lookups
        assert bus.get_subscriber_count() == 1  # selection only

    @pytest.mark.asyncio
    async def test_cleared_selection_clears_metadata(self, metadata_view, selection, bus):
        """Deleting the selected record empties the view"""
        metadata_view.mount()
        selection.select("1", series="Stranger Things")
        await metadata_view.settle()

        bus.publish(RecordDeleted(id="1"))
        await metadata_view.settle()

        assert metadata_view.show is None
        assert metadata_view.episode_metadata is None
