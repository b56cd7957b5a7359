"""
Episode Schemas

Pydantic models for episode records, create input and partial updates.
Wire names are camelCase (seasonNumber, releaseDate, imdbId); Python
attributes are snake_case.
"""
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel
from typing import Annotated, Any, Dict, Optional
from datetime import date


def _blank_date_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


# Form input sends "" for an unset date
ReleaseDate = Annotated[Optional[date], BeforeValidator(_blank_date_to_none)]


class EpisodeBase(BaseModel):
    """Base episode schema"""
    series: str = Field(..., min_length=1, max_length=200)
    title: str = Field(..., min_length=1, max_length=500)
    description: str = ""
    season_number: int = Field(..., ge=1)
    episode_number: int = Field(..., ge=1)
    release_date: ReleaseDate = None
    imdb_id: str = Field("", max_length=20, description="External reference id")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        """Serialize with camelCase keys for the remote protocol"""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class EpisodeInput(EpisodeBase):
    """Create input; id is generated when omitted"""
    id: Optional[str] = None


class EpisodeRecord(EpisodeBase):
    """Stored episode"""
    id: str = Field(..., min_length=1)

    @property
    def label(self) -> str:
        """List row text, e.g. 'Stranger Things S1E2: The Weirdo on Maple Street'"""
        return f"{self.series} S{self.season_number}E{self.episode_number}: {self.title}"

    def field_values(self) -> Dict[str, Any]:
        """Attributes other than id, for round-trip comparisons"""
        return self.model_dump(exclude={"id"})


class EpisodeUpdate(BaseModel):
    """Partial update; only fields that were set are applied"""
    series: Optional[str] = Field(None, min_length=1, max_length=200)
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    season_number: Optional[int] = Field(None, ge=1)
    episode_number: Optional[int] = Field(None, ge=1)
    release_date: ReleaseDate = None
    imdb_id: Optional[str] = Field(None, max_length=20)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @model_validator(mode="after")
    def _required_fields_not_cleared(self) -> "EpisodeUpdate":
        # release_date is the only attribute that may be cleared
        for name in self.model_fields_set:
            if name != "release_date" and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> Dict[str, Any]:
        """Fields the caller provided, snake_case"""
        return self.model_dump(exclude_unset=True)

    def to_wire(self, record_id: str) -> Dict[str, Any]:
        """UpdateEpisodeInput payload"""
        payload = self.model_dump(by_alias=True, mode="json", exclude_unset=True)
        payload["id"] = record_id
        return payload
