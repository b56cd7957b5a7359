"""
Pytest Configuration and Fixtures

Provides the seeded stores, a controllable fake remote catalog, and the
wired data-access objects shared across test packages.
"""
import pytest
import httpx
from datetime import date

from episode_catalog.config import Settings
from episode_catalog.core.event_bus import ChangeBroadcastBus
from episode_catalog.core.exceptions import RemoteRejected, RemoteUnavailable
from episode_catalog.core.failover import FailoverPolicy
from episode_catalog.consumers.selection import SelectionState
from episode_catalog.schemas.episode import EpisodeRecord
from episode_catalog.services.catalog_service import EpisodeCatalogService
from episode_catalog.services.metadata_service import MetadataLookupClient
from episode_catalog.store.offline_store import OfflineRecordStore
from episode_catalog.store.seed import default_episodes


class FakeRemoteCatalog:
    """
    In-process stand-in for RemoteCatalogClient

    Holds its own records; set `available = False` to make every call
    raise RemoteUnavailable. Every call is recorded in `calls`.
    """

    def __init__(self, records=None):
        self.store = OfflineRecordStore(
            default_episodes() if records is None else records
        )
        self.available = True
        self.calls = []

    def _call(self, operation, *args):
        self.calls.append((operation,) + args)
        if not self.available:
            raise RemoteUnavailable("Connection refused", operation)

    def queries(self, operation):
        return [call[1:] for call in self.calls if call[0] == operation]

    async def list_episodes(self, search="", series=""):
        self._call("ListEpisodes", search, series)
        return self.store.list(search, series)

    async def get_episode_by_id(self, record_id):
        self._call("GetEpisode", record_id)
        return self.store.get_by_id(record_id)

    async def get_seasons(self, series=""):
        self._call("GetSeasons", series)
        return self.store.list_seasons_for_series(series)

    async def create_episode(self, episode):
        self._call("CreateEpisode", episode.id)
        return self.store.insert(episode).id

    async def update_episode(self, record_id, changes):
        self._call("UpdateEpisode", record_id)
        if not self.store.update(record_id, changes):
            raise RemoteRejected([f"Episode not found: {record_id}"], "UpdateEpisode")
        return record_id

    async def delete_episode(self, record_id):
        self._call("DeleteEpisode", record_id)
        return self.store.delete(record_id)

    async def aclose(self):
        pass


def omdb_handler(request: httpx.Request) -> httpx.Response:
    """Minimal OMDb: knows Stranger Things, its S1E1 episode, and a title search"""
    params = request.url.params
    if params.get("s"):
        if "stranger" not in params["s"].lower():
            return httpx.Response(200, json={"Response": "False", "Error": "Series not found!"})
        return httpx.Response(200, json={
            "Search": [
                {"Title": "Stranger Things", "Year": "2016–2025", "imdbID": "tt4574334",
                 "Type": "series", "Poster": "https://example.org/st.jpg"},
                {"Title": "Stranger Than Fiction", "Year": "2006", "imdbID": "tt0420223",
                 "Type": "movie", "Poster": "N/A"},
            ],
            "totalResults": "2",
            "Response": "True",
        })
    if params.get("t") == "Stranger Things":
        return httpx.Response(200, json={
            "Title": "Stranger Things",
            "Year": "2016–2025",
            "Genre": "Drama, Fantasy, Horror",
            "Plot": "When a young boy vanishes, a small town uncovers a mystery.",
            "Poster": "https://example.org/st.jpg",
            "imdbRating": "8.7",
            "imdbID": "tt4574334",
            "Type": "series",
            "totalSeasons": "5",
            "Response": "True",
        })
    if params.get("i") == "tt4574334" and params.get("Season") == "1" and params.get("Episode") == "1":
        return httpx.Response(200, json={
            "Title": "Chapter One: The Vanishing of Will Byers",
            "Season": "1",
            "Episode": "1",
            "Plot": "On his way home from a friend's house, young Will sees something terrifying.",
            "imdbRating": "8.5",
            "Type": "episode",
            "Response": "True",
        })
    return httpx.Response(200, json={"Response": "False", "Error": "Series or episode not found!"})


@pytest.fixture
def settings():
    """Settings isolated from the environment and .env"""
    return Settings(
        _env_file=None,
        catalog_api_key="test-key",
        enable_subscriptions=False,
        search_debounce_ms=20,
    )


@pytest.fixture
def bus():
    return ChangeBroadcastBus()


@pytest.fixture
def recorded_events(bus):
    """Every event published on the bus, in order"""
    events = []
    bus.subscribe(None, events.append, name="recorder")
    return events


@pytest.fixture
def store():
    return OfflineRecordStore(default_episodes())


@pytest.fixture
def remote():
    return FakeRemoteCatalog()


@pytest.fixture
def policy(bus):
    return FailoverPolicy(bus, name="test")


@pytest.fixture
def service(remote, store, policy, bus):
    return EpisodeCatalogService(remote, store, policy, bus)


@pytest.fixture
def selection(bus):
    state = SelectionState()
    state.bind(bus)
    return state


@pytest.fixture
def lookup():
    return MetadataLookupClient(
        "https://omdb.test", api_key="k", transport=httpx.MockTransport(omdb_handler)
    )


@pytest.fixture
def breaking_bad():
    return EpisodeRecord(
        id="bb-1",
        series="Breaking Bad",
        title="Pilot",
        description="A chemistry teacher turns to crime.",
        season_number=1,
        episode_number=1,
        release_date=date(2008, 1, 20),
        imdb_id="tt0903747",
    )
