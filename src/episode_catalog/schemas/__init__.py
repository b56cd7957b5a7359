"""
Pydantic Schemas

Export all schemas for easy importing.
"""
from episode_catalog.schemas.episode import (
    EpisodeBase,
    EpisodeInput,
    EpisodeRecord,
    EpisodeUpdate,
)
from episode_catalog.schemas.metadata import (
    PopularEpisode,
    PopularShow,
    ShowMetadata,
    ShowSearchResult,
)

__all__ = [
    # Episode
    "EpisodeBase",
    "EpisodeInput",
    "EpisodeRecord",
    "EpisodeUpdate",
    # Metadata
    "ShowMetadata",
    "ShowSearchResult",
    "PopularShow",
    "PopularEpisode",
]
