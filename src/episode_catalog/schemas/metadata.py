"""
Metadata Schemas

Show and episode enrichment data from an OMDb-compatible service.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from urllib.parse import quote_plus

PLACEHOLDER_POSTER = "https://via.placeholder.com/300x450.png?text={text}"


class ShowMetadata(BaseModel):
    """Descriptive fields for a show or a single episode"""
    title: str = Field("", alias="Title")
    year: str = Field("N/A", alias="Year")
    genre: str = Field("N/A", alias="Genre")
    actors: str = Field("N/A", alias="Actors")
    plot: str = Field("N/A", alias="Plot")
    poster: str = Field("N/A", alias="Poster")
    imdb_rating: str = Field("N/A", alias="imdbRating")
    imdb_id: str = Field("", alias="imdbID")
    media_type: str = Field("", alias="Type")
    total_seasons: Optional[str] = Field(None, alias="totalSeasons")
    season: Optional[str] = Field(None, alias="Season")
    episode: Optional[str] = Field(None, alias="Episode")

    # Set on substitute content, never sent by the service
    placeholder: bool = False

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @property
    def genres(self) -> List[str]:
        if not self.genre or self.genre == "N/A":
            return []
        return [g.strip() for g in self.genre.split(",") if g.strip()]

    @classmethod
    def placeholder_for(
        cls,
        title: str,
        season: Optional[int] = None,
        episode: Optional[int] = None,
    ) -> "ShowMetadata":
        """Substitute content used when the lookup fails"""
        if season is not None and episode is not None:
            plot = f"Episode {episode} of Season {season}"
        else:
            plot = "No description available."
        return cls(
            title=title,
            plot=plot,
            poster=PLACEHOLDER_POSTER.format(text=quote_plus(title or "Unknown")),
            season=str(season) if season is not None else None,
            episode=str(episode) if episode is not None else None,
            placeholder=True,
        )


class ShowSearchResult(BaseModel):
    """One row of a title search (?s=)"""
    title: str = Field("", alias="Title")
    year: str = Field("N/A", alias="Year")
    imdb_id: str = Field("", alias="imdbID")
    poster: str = Field("N/A", alias="Poster")
    media_type: str = Field("", alias="Type")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class PopularShow(BaseModel):
    title: str
    imdb_id: str


class PopularEpisode(BaseModel):
    """Curated episode shown in the popular-episodes panel"""
    show_title: str
    imdb_id: str
    season: int = Field(..., gt=0)
    episode: int = Field(..., gt=0)
    title: str
