# state.py
import asyncio
import itertools
from dataclasses import replace
from typing import Callable, List

from logger import get_logger
from models import AppState, Movie
from services import FavoritesStore, MovieSearchService

logger = get_logger(__name__)

StateListener = Callable[[AppState], None]


class AppController:
    """Owns the AppState and is the only thing that changes it.

    Every change replaces the state with a new AppState and hands it to each
    subscriber, so a renderer can diff the old and new snapshots. Network calls
    run in a worker thread; state is only ever touched on the event loop.

    Overlapping searches are resolved by request token: only the most recently
    issued search may apply its result. ``loading`` stays set until every
    outstanding call has settled.
    """

    def __init__(self, search_service: MovieSearchService, favorites_store: FavoritesStore):
        self.search_service = search_service
        self.favorites_store = favorites_store
        self.state = AppState(favorites=favorites_store.load())
        self._listeners: List[StateListener] = []
        self._search_tokens = itertools.count(1)
        self._latest_search = 0
        self._pending = 0

    def subscribe(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def _update(self, **changes) -> None:
        self.state = replace(self.state, **changes)
        for listener in self._listeners:
            listener(self.state)

    def _begin_call(self) -> None:
        self._pending += 1
        self._update(loading=True, error_message="")

    def _settle_call(self, **changes) -> None:
        self._pending -= 1
        self._update(loading=self._pending > 0, **changes)

    def set_query(self, text: str) -> None:
        self._update(query=text)

    async def run_search(self, page: int = 1) -> None:
        query = self.state.query
        if not query:
            return

        token = self._latest_search = next(self._search_tokens)
        self._begin_call()
        changes = {}
        try:
            result, error = await asyncio.to_thread(self.search_service.search, query, page)
            if token != self._latest_search:
                logger.debug("Dropping stale results for %r page %d", query, page)
            elif error:
                changes = dict(movies=[], total_results=0, error_message=error.message)
            else:
                changes = dict(movies=result.movies, total_results=result.total_results,
                               page=page, error_message="")
        finally:
            self._settle_call(**changes)

    async def view_details(self, imdb_id: str) -> None:
        self._begin_call()
        changes = {}
        try:
            details, error = await asyncio.to_thread(self.search_service.fetch_details, imdb_id)
            if error:
                changes = dict(error_message=error.message)
            else:
                changes = dict(selected=details)
        finally:
            self._settle_call(**changes)

    def close_details(self) -> None:
        self._update(selected=None)

    def is_favorite(self, imdb_id: str) -> bool:
        return any(m.imdb_id == imdb_id for m in self.state.favorites)

    def toggle_favorite(self, movie: Movie) -> None:
        """Adds or removes a movie, then writes the whole list through to storage."""
        if self.is_favorite(movie.imdb_id):
            favorites = [m for m in self.state.favorites if m.imdb_id != movie.imdb_id]
        else:
            favorites = self.state.favorites + [movie.as_movie()]

        error = self.favorites_store.save(favorites)
        if error:
            self._update(favorites=favorites, error_message=error.message)
        else:
            self._update(favorites=favorites)

    def close(self) -> None:
        self.search_service.close()
        self.favorites_store.close()
