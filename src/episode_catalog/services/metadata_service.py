"""
Metadata Lookup

Best-effort enrichment from an OMDb-compatible service. The fetch_*
methods raise on failure; the lookup_* methods never do and substitute
placeholder content instead.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from episode_catalog.core.exceptions import MetadataNotFound, MetadataUnavailable
from episode_catalog.schemas.metadata import ShowMetadata, ShowSearchResult

logger = logging.getLogger(__name__)


class MetadataLookupClient:
    """OMDb-style HTTP client (?t=title, ?s=search, ?i=id&Season=&Episode=)"""

    def __init__(
        self,
        base_url: str = "https://www.omdbapi.com",
        api_key: str = "",
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/") + "/"
        self.api_key = api_key
        self._client = httpx.AsyncClient(timeout=httpx.Timeout(timeout), transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_show(self, title: str) -> ShowMetadata:
        """
        Show-level metadata by title

        Raises:
            MetadataNotFound: service answered Response=False
            MetadataUnavailable: transport or decoding failure
        """
        return await self._fetch({"t": title}, "fetch_show")

    async def fetch_episode(self, imdb_id: str, season: int, episode: int) -> ShowMetadata:
        """Episode-level metadata by external id plus season/episode"""
        return await self._fetch(
            {"i": imdb_id, "Season": season, "Episode": episode}, "fetch_episode"
        )

    async def search_shows(self, name: str) -> List[ShowSearchResult]:
        """Title search; empty when nothing matches or the service fails"""
        try:
            data = await self._get_json({"s": name}, "search_shows")
            return [ShowSearchResult.model_validate(item) for item in data.get("Search") or []]
        except MetadataNotFound:
            return []
        except MetadataUnavailable as e:
            logger.warning(f"Show search for '{name}' unavailable: {e}")
            return []
        except ValidationError as e:
            logger.warning(f"Show search for '{name}' returned malformed rows: {e}")
            return []

    async def lookup_show(self, title: str) -> ShowMetadata:
        try:
            return await self.fetch_show(title)
        except MetadataUnavailable as e:
            logger.warning(f"Show metadata for '{title}' unavailable, using placeholder: {e}")
            return ShowMetadata.placeholder_for(title)

    async def lookup_episode(
        self,
        imdb_id: str,
        season: int,
        episode: int,
        title: str = "",
    ) -> ShowMetadata:
        if not imdb_id:
            return ShowMetadata.placeholder_for(title, season, episode)
        try:
            return await self.fetch_episode(imdb_id, season, episode)
        except MetadataUnavailable as e:
            logger.warning(
                f"Episode metadata for {imdb_id} S{season}E{episode} unavailable, "
                f"using placeholder: {e}"
            )
            return ShowMetadata.placeholder_for(title, season, episode)

    async def _fetch(self, params: Dict[str, Any], operation: str) -> ShowMetadata:
        data = await self._get_json(params, operation)
        try:
            return ShowMetadata.model_validate(data)
        except ValidationError as e:
            raise MetadataUnavailable("Malformed metadata response", operation) from e

    async def _get_json(self, params: Dict[str, Any], operation: str) -> Dict[str, Any]:
        if self.api_key:
            params = {**params, "apikey": self.api_key}

        try:
            response = await self._client.get(self.base_url, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise MetadataUnavailable(f"{e.__class__.__name__}: {e}", operation) from e
        except ValueError as e:
            raise MetadataUnavailable("Response is not valid JSON", operation) from e

        if not isinstance(data, dict):
            raise MetadataUnavailable("Response is not a JSON object", operation)
        if data.get("Response") == "False":
            raise MetadataNotFound(data.get("Error") or "No match", operation)
        return data
