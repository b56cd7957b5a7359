"""
Remote Catalog Client

Queries and mutations against the remote GraphQL catalog over HTTP.
Every call either returns a typed result or raises RemoteUnavailable /
RemoteRejected. There is no retry here; fallback belongs to the
failover policy.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from episode_catalog.core.exceptions import RemoteRejected, RemoteUnavailable
from episode_catalog.remote import documents
from episode_catalog.schemas.episode import EpisodeInput, EpisodeRecord, EpisodeUpdate

logger = logging.getLogger(__name__)


class RemoteCatalogClient:
    """
    GraphQL client for the episode catalog

    Usage:
        async with RemoteCatalogClient(settings.catalog_http_url, api_key) as client:
            episodes = await client.list_episodes(search="upside")
    """

    def __init__(
        self,
        endpoint: str,
        api_key: str = "",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            endpoint: GraphQL HTTP URL
            api_key: sent as the x-api-key header
            timeout: transport timeout in seconds
            transport: custom httpx transport (tests use httpx.ASGITransport)
        """
        self.endpoint = endpoint
        headers = {"x-api-key": api_key} if api_key else {}
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers=headers,
            transport=transport,
        )

    async def __aenter__(self) -> "RemoteCatalogClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def execute(
        self,
        operation_name: str,
        document: str,
        variables: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        POST one GraphQL operation

        Returns:
            the response's data object

        Raises:
            RemoteUnavailable: network error, non-2xx, malformed payload
            RemoteRejected: response carried a GraphQL errors array
        """
        body = {
            "operationName": operation_name,
            "query": document,
            "variables": variables or {},
        }
        logger.debug(f"{operation_name} -> {self.endpoint} {body['variables']}")

        try:
            response = await self._client.post(self.endpoint, json=body)
        except httpx.HTTPError as e:
            raise RemoteUnavailable(
                f"Transport error: {e.__class__.__name__}: {e}",
                operation_name,
                original_error=e,
            ) from e

        if not response.is_success:
            raise RemoteUnavailable(
                f"HTTP {response.status_code}",
                operation_name,
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise RemoteUnavailable(
                "Response is not valid JSON",
                operation_name,
                status_code=response.status_code,
                original_error=e,
            ) from e

        if not isinstance(payload, dict):
            raise RemoteUnavailable("Response is not a JSON object", operation_name)

        errors = payload.get("errors")
        if errors:
            raise RemoteRejected(
                [
                    e.get("message", str(e)) if isinstance(e, dict) else str(e)
                    for e in errors
                ],
                operation_name,
            )

        data = payload.get("data")
        if not isinstance(data, dict):
            raise RemoteUnavailable("Response has no data object", operation_name)
        return data

    # ─────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────

    async def list_episodes(self, search: str = "", series: str = "") -> List[EpisodeRecord]:
        data = await self.execute(
            "ListEpisodes",
            documents.LIST_EPISODES,
            {"search": search, "series": series},
        )
        items = data.get("listEpisodes")
        if not isinstance(items, list):
            raise RemoteUnavailable("listEpisodes is not a list", "ListEpisodes")
        try:
            return [EpisodeRecord.model_validate(item) for item in items]
        except ValidationError as e:
            raise RemoteUnavailable(
                f"Malformed episode in listEpisodes: {e.error_count()} error(s)",
                "ListEpisodes",
                original_error=e,
            ) from e

    async def get_episode_by_id(self, record_id: str) -> Optional[EpisodeRecord]:
        data = await self.execute("GetEpisode", documents.GET_EPISODE, {"id": record_id})
        item = data.get("getEpisodeById")
        if item is None:
            return None
        try:
            return EpisodeRecord.model_validate(item)
        except ValidationError as e:
            raise RemoteUnavailable(
                "Malformed episode in getEpisodeById",
                "GetEpisode",
                original_error=e,
            ) from e

    async def get_seasons(self, series: str = "") -> List[int]:
        """Distinct season numbers, ascending"""
        data = await self.execute("GetSeasons", documents.GET_SEASONS, {"series": series})
        items = data.get("getSeasons")
        if not isinstance(items, list):
            raise RemoteUnavailable("getSeasons is not a list", "GetSeasons")
        try:
            return sorted({int(item["seasonNumber"]) for item in items})
        except (KeyError, TypeError, ValueError) as e:
            raise RemoteUnavailable(
                "Malformed season in getSeasons", "GetSeasons", original_error=e
            ) from e

    # ─────────────────────────────────────────────────────────────
    # Mutations
    # ─────────────────────────────────────────────────────────────

    async def create_episode(self, episode: EpisodeInput) -> str:
        """Create an episode; returns the id the service stored it under"""
        data = await self.execute(
            "CreateEpisode", documents.CREATE_EPISODE, {"input": episode.to_wire()}
        )
        return self._mutation_id(data, "createEpisode", "CreateEpisode")

    async def update_episode(self, record_id: str, changes: EpisodeUpdate) -> str:
        data = await self.execute(
            "UpdateEpisode",
            documents.UPDATE_EPISODE,
            {"input": changes.to_wire(record_id)},
        )
        return self._mutation_id(data, "updateEpisode", "UpdateEpisode")

    async def delete_episode(self, record_id: str) -> bool:
        """Returns False when the service reports nothing was deleted"""
        data = await self.execute("DeleteEpisode", documents.DELETE_EPISODE, {"id": record_id})
        return bool(data.get("deleteEpisode"))

    @staticmethod
    def _mutation_id(data: Dict[str, Any], field: str, operation: str) -> str:
        result = data.get(field)
        if not isinstance(result, dict) or not result.get("id"):
            raise RemoteUnavailable(f"{field} returned no id", operation)
        return str(result["id"])

    def __repr__(self) -> str:
        return f"RemoteCatalogClient(endpoint={self.endpoint})"
