"""
Subscriptions against a running stand-in server

The stand-in pushes a change before answering the mutation, so these
cover the order the forwarder meets in practice.
"""

import asyncio
from contextlib import asynccontextmanager

import pytest
import uvicorn

from episode_catalog.core.event_bus import ChangeBroadcastBus
from episode_catalog.core.events import RecordCreated, RecordUpdated
from episode_catalog.core.failover import FailoverPolicy
from episode_catalog.mock_server import create_app
from episode_catalog.remote.client import RemoteCatalogClient
from episode_catalog.remote.subscriptions import SubscriptionForwarder, subscription_streams
from episode_catalog.schemas.episode import EpisodeUpdate
from episode_catalog.services.catalog_service import EpisodeCatalogService
from episode_catalog.store.offline_store import OfflineRecordStore
from episode_catalog.store.seed import default_episodes


@asynccontextmanager
async def running_server(app):
    """Serve app on a free local port; yields host:port"""
    config = uvicorn.Config(app, host="127.0.0.1", port=0, log_level="warning", lifespan="off")
    server = uvicorn.Server(config)
    task = asyncio.create_task(server.serve())
    try:
        while not server.started:
            if task.done():
                task.result()
            await asyncio.sleep(0.01)
        port = server.servers[0].sockets[0].getsockname()[1]
        yield f"127.0.0.1:{port}"
    finally:
        server.should_exit = True
        await task


async def wait_until(predicate, timeout=5.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)


class TestLiveSubscriptions:
    """Write + push pairing over real HTTP and websocket connections"""

    @pytest.mark.asyncio
    async def test_one_event_per_remote_write(self):
        """A create announces once, and another client's update still arrives"""
        server_app = create_app(OfflineRecordStore(default_episodes()))
        bus = ChangeBroadcastBus()
        events = []
        bus.subscribe(None, events.append, name="recorder")

        async with running_server(server_app) as address:
            remote = RemoteCatalogClient(f"http://{address}/graphql")
            other_client = RemoteCatalogClient(f"http://{address}/graphql")
            service = EpisodeCatalogService(
                remote, OfflineRecordStore(default_episodes()), FailoverPolicy(bus), bus
            )
            forwarder = SubscriptionForwarder(subscription_streams(f"ws://{address}/graphql"), bus)
            forwarder.start()
            try:
                await wait_until(lambda: server_app.state.hub.count() == 3)

                result = await service.create_episode({
                    "series": "Dark", "title": "Secrets", "season_number": 1, "episode_number": 1,
                })
                await wait_until(lambda: forwarder.get_stats()["suppressed"] == 1)

                await other_client.update_episode(result.data.id, EpisodeUpdate(description="X"))
                await wait_until(lambda: any(isinstance(e, RecordUpdated) for e in events))
            finally:
                await forwarder.stop()
                await remote.aclose()
                await other_client.aclose()

        created = [e for e in events if isinstance(e, RecordCreated)]
        updated = [e for e in events if isinstance(e, RecordUpdated)]
        assert result.success
        assert [e.id for e in created] == [result.data.id]
        assert [(e.id, e.source) for e in updated] == [(result.data.id, "subscription")]
