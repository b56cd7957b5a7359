"""
MetadataLookupClient tests (httpx.MockTransport stands in for OMDb)
"""

import pytest
import httpx

from episode_catalog.core.exceptions import MetadataNotFound, MetadataUnavailable
from episode_catalog.services.metadata_service import MetadataLookupClient


def failing_lookup(handler) -> MetadataLookupClient:
    return MetadataLookupClient("https://omdb.test", transport=httpx.MockTransport(handler))


class TestFetch:
    """fetch_* tests"""

    @pytest.mark.asyncio
    async def test_fetch_show(self, lookup):
        """Title lookup maps OMDb fields"""
        show = await lookup.fetch_show("Stranger Things")

        assert show.title == "Stranger Things"
        assert show.imdb_rating == "8.7"
        assert show.genres == ["Drama", "Fantasy", "Horror"]
        assert show.placeholder is False

    @pytest.mark.asyncio
    async def test_fetch_episode(self, lookup):
        """Id + season/episode lookup"""
        episode = await lookup.fetch_episode("tt4574334", 1, 1)

        assert episode.season == "1"
        assert episode.media_type == "episode"

    @pytest.mark.asyncio
    async def test_not_found(self, lookup):
        """Response=False raises MetadataNotFound"""
        with pytest.raises(MetadataNotFound):
            await lookup.fetch_show("No Such Show")

    @pytest.mark.asyncio
    async def test_server_error(self):
        """Non-2xx raises MetadataUnavailable"""
        client = failing_lookup(lambda request: httpx.Response(500))

        with pytest.raises(MetadataUnavailable):
            await client.fetch_show("Stranger Things")

    @pytest.mark.asyncio
    async def test_api_key_sent(self):
        """apikey query parameter is added"""
        seen = []

        def handler(request):
            seen.append(request.url.params.get("apikey"))
            return httpx.Response(200, json={"Title": "X", "Response": "True"})

        client = MetadataLookupClient("https://omdb.test", api_key="abc",
                                      transport=httpx.MockTransport(handler))
        await client.fetch_show("X")

        assert seen == ["abc"]


class TestLookup:
    """lookup_* tests (never raise)"""

    @pytest.mark.asyncio
    async def test_show_placeholder_on_failure(self):
        """Failure substitutes placeholder content"""

        def handler(request):
            raise httpx.ConnectError("offline", request=request)

        show = await failing_lookup(handler).lookup_show("Dark")

        assert show.placeholder is True
        assert show.title == "Dark"
        assert show.plot == "No description available."
        assert show.poster.startswith("https://via.placeholder.com/300x450.png?text=Dark")

    @pytest.mark.asyncio
    async def test_episode_placeholder_on_not_found(self, lookup):
        """Unknown episode gets a season/episode placeholder"""
        episode = await lookup.lookup_episode("tt4574334", 2, 9, "Unknown")

        assert episode.placeholder is True
        assert episode.plot == "Episode 9 of Season 2"

    @pytest.mark.asyncio
    async def test_episode_without_external_id(self, lookup):
        """No external id means no request at all"""
        episode = await lookup.lookup_episode("", 1, 1, "Secrets")

        assert episode.placeholder is True


class TestSearch:
    """search_shows tests"""

    @pytest.mark.asyncio
    async def test_search_matches(self, lookup):
        """?s= rows are returned in service order"""
        results = await lookup.search_shows("stranger")

        assert [r.title for r in results] == ["Stranger Things", "Stranger Than Fiction"]
        assert results[0].imdb_id == "tt4574334"
        assert results[1].media_type == "movie"

    @pytest.mark.asyncio
    async def test_search_no_match_is_empty(self, lookup):
        """Response=False is an empty result, not an error"""
        assert await lookup.search_shows("zzz") == []

    @pytest.mark.asyncio
    async def test_search_failure_is_empty(self):
        """Transport failure also gives an empty result"""

        def handler(request):
            raise httpx.ConnectError("offline", request=request)

        assert await failing_lookup(handler).search_shows("stranger") == []
