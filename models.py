# models.py
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

PAGE_SIZE = 10
NOT_AVAILABLE = "N/A"


class ErrorKind(Enum):
    NETWORK_FAILURE = "network_failure"
    NO_RESULTS = "no_results"
    PERSISTENCE = "persistence"


@dataclass(frozen=True)
class SearchError:
    """A failure reported by a service, with the message shown to the user."""
    kind: ErrorKind
    message: str


@dataclass
class Movie:
    """A single catalog entry as returned by a search."""
    imdb_id: str
    title: str
    year: str
    poster: str = NOT_AVAILABLE
    media_type: str = "movie"

    @property
    def has_poster(self) -> bool:
        return bool(self.poster) and self.poster != NOT_AVAILABLE

    @property
    def imdb_url(self) -> str:
        return f"https://www.imdb.com/title/{self.imdb_id}/"

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "Movie":
        """Parses an OMDb search record. Raises KeyError without an imdbID."""
        return cls(
            imdb_id=item["imdbID"],
            title=item.get("Title", NOT_AVAILABLE),
            year=item.get("Year", NOT_AVAILABLE),
            poster=item.get("Poster") or NOT_AVAILABLE,
            media_type=item.get("Type", "movie"),
        )

    def to_api(self) -> Dict[str, str]:
        """The OMDb-shaped record used for persistence."""
        return {
            "imdbID": self.imdb_id,
            "Title": self.title,
            "Year": self.year,
            "Poster": self.poster,
            "Type": self.media_type,
        }

    def as_movie(self) -> "Movie":
        return Movie(self.imdb_id, self.title, self.year, self.poster, self.media_type)


@dataclass
class MovieDetails(Movie):
    """Full record for one title, fetched on demand."""
    genre: str = NOT_AVAILABLE
    director: str = NOT_AVAILABLE
    actors: str = NOT_AVAILABLE
    plot: str = NOT_AVAILABLE
    rating: Optional[float] = None
    runtime: str = NOT_AVAILABLE
    released: str = NOT_AVAILABLE
    rated: str = NOT_AVAILABLE

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "MovieDetails":
        base = Movie.from_api(item)
        return cls(
            imdb_id=base.imdb_id,
            title=base.title,
            year=base.year,
            poster=base.poster,
            media_type=base.media_type,
            genre=item.get("Genre", NOT_AVAILABLE),
            director=item.get("Director", NOT_AVAILABLE),
            actors=item.get("Actors", NOT_AVAILABLE),
            plot=item.get("Plot", NOT_AVAILABLE),
            rating=_parse_rating(item.get("imdbRating")),
            runtime=item.get("Runtime", NOT_AVAILABLE),
            released=item.get("Released", NOT_AVAILABLE),
            rated=item.get("Rated", NOT_AVAILABLE),
        )


def _parse_rating(value: Optional[str]) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass
class SearchPage:
    """One page of search results plus the upstream total."""
    movies: List[Movie]
    total_results: int


@dataclass
class AppState:
    """A single object to hold the entire application state."""
    query: str = ""
    movies: List[Movie] = field(default_factory=list)
    page: int = 1
    total_results: int = 0
    loading: bool = False
    error_message: str = ""
    selected: Optional[MovieDetails] = None
    favorites: List[Movie] = field(default_factory=list)

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_results / PAGE_SIZE)

    @property
    def has_previous_page(self) -> bool:
        return self.page > 1

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @property
    def favorite_ids(self) -> set:
        return {m.imdb_id for m in self.favorites}
