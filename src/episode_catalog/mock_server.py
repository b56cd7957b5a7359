"""
Stand-in remote catalog

A FastAPI app that speaks the catalog's GraphQL operations for local
development and tests. It dispatches on operationName rather than
parsing documents, and pushes subscription messages over the
graphql-transport-ws websocket protocol.

Run:
    python -m episode_catalog.mock_server
  Or:
    uvicorn episode_catalog.mock_server:app --reload --port 8000

  Then point the client at it with EPISODES_CATALOG_HTTP_URL=http://localhost:8000/graphql

Simulate an outage (every GraphQL call answers 503):
    curl -X POST localhost:8000/admin/outage -H 'content-type: application/json' -d '{"enabled": true}'
"""
import json
import logging
from typing import Any, Callable, Dict, Optional

from fastapi import FastAPI, Header, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from episode_catalog import __version__
from episode_catalog.core.exceptions import CatalogError
from episode_catalog.store.offline_store import OfflineRecordStore
from episode_catalog.store.seed import default_episodes

logger = logging.getLogger(__name__)

SUBPROTOCOL = "graphql-transport-ws"

SUBSCRIPTION_FIELDS = {
    "OnCreateEpisode": "onCreateEpisode",
    "OnUpdateEpisode": "onUpdateEpisode",
    "OnDeleteEpisode": "onDeleteEpisode",
}


class GraphQLRequest(BaseModel):
    operation_name: Optional[str] = Field(None, alias="operationName")
    query: str = ""
    variables: Dict[str, Any] = Field(default_factory=dict)


class OutageToggle(BaseModel):
    """enabled=None flips the current state"""
    enabled: Optional[bool] = None


class GraphQLFailure(Exception):
    """Turned into a GraphQL errors response"""


class SubscriptionHub:
    """Websocket subscriptions keyed by connection and subscription id"""

    def __init__(self):
        self.subscriptions: Dict[WebSocket, Dict[str, str]] = {}

    def add(self, websocket: WebSocket, subscription_id: str, field: str) -> None:
        self.subscriptions.setdefault(websocket, {})[subscription_id] = field

    def remove(self, websocket: WebSocket, subscription_id: str) -> None:
        self.subscriptions.get(websocket, {}).pop(subscription_id, None)

    def disconnect(self, websocket: WebSocket) -> None:
        self.subscriptions.pop(websocket, None)
        logger.debug(f"Subscriber disconnected. Total: {len(self.subscriptions)}")

    def count(self, field: Optional[str] = None) -> int:
        return sum(
            1
            for subs in self.subscriptions.values()
            for f in subs.values()
            if field is None or f == field
        )

    async def publish(self, field: str, value: Any) -> None:
        """Send a next message to every subscriber of field"""
        disconnected = []
        for websocket, subs in list(self.subscriptions.items()):
            for subscription_id, subscribed_field in list(subs.items()):
                if subscribed_field != field:
                    continue
                try:
                    await websocket.send_json({
                        "id": subscription_id,
                        "type": "next",
                        "payload": {"data": {field: value}},
                    })
                except Exception as e:
                    logger.info(f"Dropping subscriber after send failure: {e}")
                    disconnected.append(websocket)
                    break

        for websocket in disconnected:
            self.disconnect(websocket)


def _resolve_subscription_field(payload: Dict[str, Any]) -> Optional[str]:
    field = SUBSCRIPTION_FIELDS.get(payload.get("operationName") or "")
    if field:
        return field
    query = payload.get("query") or ""
    return next((f for f in SUBSCRIPTION_FIELDS.values() if f in query), None)


def create_app(
    store: Optional[OfflineRecordStore] = None,
    api_key: str = "",
) -> FastAPI:
    """
    Build the stand-in service

    Args:
        store: backing records (defaults to the seed episodes)
        api_key: when set, requests must carry it in x-api-key
    """
    store = store if store is not None else OfflineRecordStore(default_episodes())
    hub = SubscriptionHub()

    app = FastAPI(
        title="Episode Catalog (stand-in)",
        description="Local stand-in for the remote GraphQL episode catalog",
        version=__version__,
    )
    app.state.store = store
    app.state.hub = hub
    app.state.outage = False

    # ─────────────────────────────────────────────────────────────
    # Operation resolvers
    # ─────────────────────────────────────────────────────────────

    async def list_episodes(variables: Dict[str, Any]) -> Dict[str, Any]:
        records = store.list(variables.get("search") or "", variables.get("series") or "")
        return {"listEpisodes": [record.to_wire() for record in records]}

    async def get_episode(variables: Dict[str, Any]) -> Dict[str, Any]:
        record = store.get_by_id(str(variables.get("id", "")))
        return {"getEpisodeById": record.to_wire() if record else None}

    async def get_seasons(variables: Dict[str, Any]) -> Dict[str, Any]:
        seasons = store.list_seasons_for_series(variables.get("series") or "")
        return {"getSeasons": [{"seasonNumber": n} for n in seasons]}

    async def create_episode(variables: Dict[str, Any]) -> Dict[str, Any]:
        record = store.insert(variables.get("input") or {})
        await hub.publish("onCreateEpisode", record.to_wire())
        return {"createEpisode": {"id": record.id}}

    async def update_episode(variables: Dict[str, Any]) -> Dict[str, Any]:
        fields = dict(variables.get("input") or {})
        record_id = str(fields.pop("id", ""))
        if not store.update(record_id, fields):
            raise GraphQLFailure(f"Episode not found: {record_id}")
        await hub.publish("onUpdateEpisode", store.get_by_id(record_id).to_wire())
        return {"updateEpisode": {"id": record_id}}

    async def delete_episode(variables: Dict[str, Any]) -> Dict[str, Any]:
        record_id = str(variables.get("id", ""))
        if not store.delete(record_id):
            return {"deleteEpisode": None}
        await hub.publish("onDeleteEpisode", record_id)
        return {"deleteEpisode": record_id}

    resolvers: Dict[str, Callable] = {
        "ListEpisodes": list_episodes,
        "GetEpisode": get_episode,
        "GetSeasons": get_seasons,
        "CreateEpisode": create_episode,
        "UpdateEpisode": update_episode,
        "DeleteEpisode": delete_episode,
    }

    # ─────────────────────────────────────────────────────────────
    # Routes
    # ─────────────────────────────────────────────────────────────

    @app.get("/health")
    def health():
        return {
            "status": "outage" if app.state.outage else "ok",
            "episodes": len(store),
            "subscribers": hub.count(),
        }

    @app.post("/admin/outage")
    def toggle_outage(toggle: OutageToggle):
        app.state.outage = (
            not app.state.outage if toggle.enabled is None else toggle.enabled
        )
        logger.info(f"Simulated outage {'on' if app.state.outage else 'off'}")
        return {"outage": app.state.outage}

    @app.post("/graphql")
    async def graphql(
        body: GraphQLRequest,
        x_api_key: Optional[str] = Header(None),
    ):
        if app.state.outage:
            return JSONResponse(status_code=503, content={"detail": "Simulated outage"})
        if api_key and x_api_key != api_key:
            return JSONResponse(status_code=401, content={"detail": "Invalid API key"})

        resolver = resolvers.get(body.operation_name or "")
        if resolver is None:
            return {"data": None, "errors": [
                {"message": f"Unknown operation: {body.operation_name}"}
            ]}

        try:
            return {"data": await resolver(body.variables)}
        except (GraphQLFailure, CatalogError) as e:
            return {"data": None, "errors": [{"message": str(e)}]}

    @app.websocket("/graphql")
    async def graphql_ws(websocket: WebSocket):
        """
        graphql-transport-ws subset

        Client → Server: connection_init, subscribe, complete, ping
        Server → Client: connection_ack, next, error, pong
        """
        await websocket.accept(subprotocol=SUBPROTOCOL)
        try:
            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                except json.JSONDecodeError:
                    continue

                msg_type = message.get("type", "")
                if msg_type == "connection_init":
                    init = message.get("payload") or {}
                    if api_key and init.get("x-api-key") != api_key:
                        await websocket.close(code=4403)
                        return
                    await websocket.send_json({"type": "connection_ack"})
                elif msg_type == "ping":
                    await websocket.send_json({"type": "pong"})
                elif msg_type == "subscribe":
                    subscription_id = str(message.get("id", ""))
                    field = _resolve_subscription_field(message.get("payload") or {})
                    if field is None:
                        await websocket.send_json({
                            "id": subscription_id,
                            "type": "error",
                            "payload": [{"message": "Unknown subscription"}],
                        })
                    else:
                        hub.add(websocket, subscription_id, field)
                elif msg_type == "complete":
                    hub.remove(websocket, str(message.get("id", "")))
        except WebSocketDisconnect:
            pass
        finally:
            hub.disconnect(websocket)

    return app


app = create_app()


def main() -> None:
    import uvicorn

    from episode_catalog.app import configure_logging
    from episode_catalog.config import get_settings

    settings = get_settings()
    configure_logging(settings)
    uvicorn.run(
        create_app(api_key=settings.catalog_api_key),
        host=settings.mock_host,
        port=settings.mock_port,
    )


if __name__ == "__main__":
    main()
