"""Shared fixtures: an in-memory store and a scripted OMDb service."""

from __future__ import annotations

import threading
from typing import Dict, List, Optional, Tuple

import pytest

from models import ErrorKind, Movie, MovieDetails, SearchError, SearchPage
from services import FavoritesStore, LocalStorage
from state import AppController

MATRIX = Movie("tt0133093", "The Matrix", "1999", "https://img.example/matrix.jpg")
RELOADED = Movie("tt0234215", "The Matrix Reloaded", "2003")
REVOLUTIONS = Movie("tt0242653", "The Matrix Revolutions", "2003")


def make_details(movie: Movie, **overrides) -> MovieDetails:
    fields = dict(
        imdb_id=movie.imdb_id,
        title=movie.title,
        year=movie.year,
        poster=movie.poster,
        genre="Action, Sci-Fi",
        director="Lana Wachowski, Lilly Wachowski",
        actors="Keanu Reeves, Laurence Fishburne",
        plot="A hacker learns the truth about reality.",
        rating=8.7,
    )
    fields.update(overrides)
    return MovieDetails(**fields)


class FakeSearchService:
    """Scripted stand-in for MovieSearchService that records its calls."""

    def __init__(self) -> None:
        self.pages: Dict[Tuple[str, int], SearchPage] = {}
        self.details: Dict[str, MovieDetails] = {}
        self.failures: Dict[str, SearchError] = {}
        self.gates: Dict[str, threading.Event] = {}
        self.calls: List[tuple] = []
        self.closed = False

    def search(self, query: str, page: int = 1) -> Tuple[Optional[SearchPage], Optional[SearchError]]:
        self.calls.append(("search", query, page))
        gate = self.gates.get(query)
        if gate is not None:
            gate.wait(timeout=5)
        if query in self.failures:
            return None, self.failures[query]
        if (query, page) in self.pages:
            return self.pages[(query, page)], None
        return None, SearchError(ErrorKind.NO_RESULTS, "Movie not found!")

    def fetch_details(self, imdb_id: str) -> Tuple[Optional[MovieDetails], Optional[SearchError]]:
        self.calls.append(("details", imdb_id))
        if imdb_id in self.details:
            return self.details[imdb_id], None
        return None, self.failures.get(
            imdb_id, SearchError(ErrorKind.NO_RESULTS, "Incorrect IMDb ID.")
        )

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def storage() -> LocalStorage:
    store = LocalStorage(":memory:")
    yield store
    store.close()


@pytest.fixture()
def favorites_store(storage: LocalStorage) -> FavoritesStore:
    return FavoritesStore(storage)


@pytest.fixture()
def search_service() -> FakeSearchService:
    return FakeSearchService()


@pytest.fixture()
def controller(search_service: FakeSearchService, favorites_store: FavoritesStore) -> AppController:
    return AppController(search_service, favorites_store)
