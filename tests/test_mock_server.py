"""
Stand-in catalog service tests (FastAPI TestClient)
"""

import pytest
from fastapi.testclient import TestClient

from episode_catalog.mock_server import create_app
from episode_catalog.remote import documents
from episode_catalog.store.offline_store import OfflineRecordStore
from episode_catalog.store.seed import default_episodes


@pytest.fixture
def server_store():
    return OfflineRecordStore(default_episodes())


@pytest.fixture
def client(server_store):
    with TestClient(create_app(server_store)) as test_client:
        yield test_client


def graphql(client, operation, document, variables=None):
    return client.post("/graphql", json={
        "operationName": operation,
        "query": document,
        "variables": variables or {},
    })


class TestHttp:
    """POST /graphql and admin endpoints"""

    def test_health(self, client):
        """Health reports record count"""
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["episodes"] == 10

    def test_list_episodes(self, client):
        """ListEpisodes returns camelCase records"""
        response = graphql(client, "ListEpisodes", documents.LIST_EPISODES, {"search": "madmax"})
        items = response.json()["data"]["listEpisodes"]

        assert len(items) == 1
        assert items[0]["seasonNumber"] == 2
        assert items[0]["releaseDate"] == "2017-10-27"

    def test_get_seasons(self, client):
        """GetSeasons returns seasonNumber objects"""
        response = graphql(client, "GetSeasons", documents.GET_SEASONS, {"series": "Stranger Things"})

        assert response.json()["data"]["getSeasons"] == [{"seasonNumber": 1}, {"seasonNumber": 2}]

    def test_create_and_delete(self, client, server_store):
        """Mutations change the backing store"""
        created = graphql(client, "CreateEpisode", documents.CREATE_EPISODE, {"input": {
            "series": "Dark", "title": "Secrets", "seasonNumber": 1, "episodeNumber": 1,
        }}).json()
        new_id = created["data"]["createEpisode"]["id"]

        assert server_store.get_by_id(new_id).series == "Dark"

        deleted = graphql(client, "DeleteEpisode", documents.DELETE_EPISODE, {"id": new_id}).json()
        assert deleted["data"]["deleteEpisode"] == new_id
        assert new_id not in server_store

    def test_invalid_input_is_graphql_error(self, client):
        """Validation failures come back as errors, not 500s"""
        response = graphql(client, "CreateEpisode", documents.CREATE_EPISODE, {"input": {
            "series": "Dark", "title": "Secrets", "seasonNumber": 0, "episodeNumber": 1,
        }})

        assert response.status_code == 200
        assert response.json()["errors"]

    def test_unknown_operation(self, client):
        """Unknown operations produce an errors array"""
        response = graphql(client, "DropEverything", "mutation DropEverything { drop }")

        assert "Unknown operation" in response.json()["errors"][0]["message"]

    def test_outage_toggle(self, client):
        """Simulated outage answers 503 until switched off"""
        assert client.post("/admin/outage", json={"enabled": True}).json() == {"outage": True}
        assert graphql(client, "ListEpisodes", documents.LIST_EPISODES).status_code == 503
        assert client.get("/health").json()["status"] == "outage"

        client.post("/admin/outage", json={})
        assert graphql(client, "ListEpisodes", documents.LIST_EPISODES).status_code == 200

    def test_api_key_required(self, server_store):
        """Configured api key is enforced"""
        with TestClient(create_app(server_store, api_key="secret")) as client:
            assert graphql(client, "GetSeasons", documents.GET_SEASONS).status_code == 401

            response = client.post(
                "/graphql",
                json={"operationName": "GetSeasons", "query": documents.GET_SEASONS, "variables": {}},
                headers={"x-api-key": "secret"},
            )
            assert response.status_code == 200


class TestWebSocket:
    """graphql-transport-ws endpoint"""

    def test_handshake_and_ping(self, client):
        """connection_init is acknowledged and pings answered"""
        with client.websocket_connect("/graphql", subprotocols=["graphql-transport-ws"]) as ws:
            ws.send_json({"type": "connection_init", "payload": {}})
            assert ws.receive_json() == {"type": "connection_ack"}

            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}

    def test_delete_is_pushed(self, client):
        """Subscribers receive onDeleteEpisode after a delete mutation"""
        with client.websocket_connect("/graphql", subprotocols=["graphql-transport-ws"]) as ws:
            ws.send_json({"type": "connection_init", "payload": {}})
            ws.receive_json()
            ws.send_json({
                "id": "1",
                "type": "subscribe",
                "payload": {"operationName": "OnDeleteEpisode", "query": documents.ON_DELETE},
            })
            # ping round-trip guarantees the subscribe was processed
            ws.send_json({"type": "ping"})
            ws.receive_json()

            graphql(client, "DeleteEpisode", documents.DELETE_EPISODE, {"id": "5"})
            message = ws.receive_json()

        assert message == {
            "id": "1",
            "type": "next",
            "payload": {"data": {"onDeleteEpisode": "5"}},
        }

    def test_unknown_subscription(self, client):
        """Unknown subscriptions get an error message"""
        with client.websocket_connect("/graphql", subprotocols=["graphql-transport-ws"]) as ws:
            ws.send_json({"type": "connection_init", "payload": {}})
            ws.receive_json()
            ws.send_json({"id": "9", "type": "subscribe", "payload": {"query": "subscription { nope }"}})

            message = ws.receive_json()

        assert message["type"] == "error"
        assert message["id"] == "9"
