# services.py
import json
import sqlite3
from typing import Any, Dict, List, Optional, Tuple

import httpx

from logger import get_logger
from models import ErrorKind, Movie, MovieDetails, SearchError, SearchPage

logger = get_logger(__name__)

SEARCH_FAILED_MESSAGE = "Error searching for movies."
DETAILS_FAILED_MESSAGE = "Error loading movie details."
SAVE_FAILED_MESSAGE = "Could not save favorites."
FAVORITES_KEY = "favorites"


class LocalStorage:
    """A string-keyed local store backed by a single SQLite table.

    A file that is not a readable SQLite database is left untouched and the
    store falls back to an in-memory database for this session.
    """
    def __init__(self, db_name: str):
        self.db_name = db_name
        try:
            self.conn = sqlite3.connect(db_name, check_same_thread=False)
            self.create_table()
        except sqlite3.DatabaseError as e:
            logger.warning("Cannot open %s (%s); favorites will not be kept", db_name, e)
            self.conn = sqlite3.connect(":memory:", check_same_thread=False)
            self.create_table()

    def create_table(self):
        """Creates the storage table if it doesn't exist."""
        with self.conn:
            self.conn.execute("""
                CREATE TABLE IF NOT EXISTS storage (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)

    def get_item(self, key: str) -> Optional[str]:
        row = self.conn.execute("SELECT value FROM storage WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def set_item(self, key: str, value: str) -> None:
        """Overwrites the value stored under key in a single transaction."""
        with self.conn:
            self.conn.execute(
                "INSERT OR REPLACE INTO storage (key, value) VALUES (?, ?)", (key, value)
            )

    def close(self):
        self.conn.close()


class FavoritesStore:
    """Mirrors the favorites list into local storage as one JSON array."""
    def __init__(self, storage: LocalStorage, key: str = FAVORITES_KEY):
        self.storage = storage
        self.key = key

    def load(self) -> List[Movie]:
        """Loads saved favorites. Missing or malformed data yields an empty list."""
        try:
            raw = self.storage.get_item(self.key)
        except sqlite3.Error:
            logger.warning("Could not read favorites from %s", self.key, exc_info=True)
            return []
        if not raw:
            return []
        try:
            records = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring malformed favorites data")
            return []
        if not isinstance(records, list):
            logger.warning("Ignoring favorites data that is not a list")
            return []

        favorites: Dict[str, Movie] = {}
        for record in records:
            try:
                movie = Movie.from_api(record)
            except (KeyError, TypeError, AttributeError):
                logger.debug("Skipping unreadable favorite entry: %r", record)
                continue
            favorites.setdefault(movie.imdb_id, movie)
        return list(favorites.values())

    def save(self, favorites: List[Movie]) -> Optional[SearchError]:
        """Overwrites the stored favorites, returning an error instead of raising."""
        try:
            self.storage.set_item(self.key, json.dumps([m.to_api() for m in favorites]))
        except sqlite3.Error as e:
            logger.error("Failed to save %d favorites: %s", len(favorites), e)
            return SearchError(ErrorKind.PERSISTENCE, SAVE_FAILED_MESSAGE)
        return None

    def close(self):
        self.storage.close()


class MovieSearchService:
    """A service to handle interactions with the OMDb API."""
    def __init__(self, api_key: str, base_url: str, timeout: float = 10.0,
                 client: Optional[httpx.Client] = None):
        self.api_key = api_key
        self.base_url = base_url
        self.client = client or httpx.Client(timeout=timeout)

    def search(self, query: str, page: int = 1) -> Tuple[Optional[SearchPage], Optional[SearchError]]:
        """Runs one search request and returns the page or the error."""
        data, error = self._request({"s": query, "page": page}, SEARCH_FAILED_MESSAGE)
        if error:
            return None, error
        try:
            movies = [Movie.from_api(item) for item in data.get("Search", [])]
            total = int(data.get("totalResults", len(movies)))
        except (KeyError, TypeError, ValueError, AttributeError):
            logger.warning("Unexpected search payload for %r", query, exc_info=True)
            return None, SearchError(ErrorKind.NETWORK_FAILURE, SEARCH_FAILED_MESSAGE)
        return SearchPage(movies=movies, total_results=total), None

    def fetch_details(self, imdb_id: str) -> Tuple[Optional[MovieDetails], Optional[SearchError]]:
        """Fetches the full record for one title."""
        data, error = self._request({"i": imdb_id, "plot": "full"}, DETAILS_FAILED_MESSAGE)
        if error:
            return None, error
        try:
            return MovieDetails.from_api(data), None
        except (KeyError, TypeError, AttributeError):
            logger.warning("Unexpected details payload for %s", imdb_id, exc_info=True)
            return None, SearchError(ErrorKind.NETWORK_FAILURE, DETAILS_FAILED_MESSAGE)

    def _request(self, params: Dict[str, Any], failure_message: str) -> Tuple[Optional[dict], Optional[SearchError]]:
        """Makes a single GET request. OMDb reports its own errors in the body."""
        logger.debug("OMDb request: %s", params)
        try:
            response = self.client.get(self.base_url, params={"apikey": self.api_key, **params})
            data = response.json()
        except httpx.HTTPError as e:
            logger.warning("OMDb request failed: %s", e)
            return None, SearchError(ErrorKind.NETWORK_FAILURE, failure_message)
        except ValueError:
            logger.warning("OMDb returned a non-JSON body (HTTP %s)", response.status_code)
            return None, SearchError(ErrorKind.NETWORK_FAILURE, failure_message)

        if not isinstance(data, dict):
            return None, SearchError(ErrorKind.NETWORK_FAILURE, failure_message)
        if data.get("Response") == "True":
            return data, None
        if "Error" in data:
            logger.info("OMDb error for %s: %s", params, data["Error"])
            return None, SearchError(ErrorKind.NO_RESULTS, data["Error"])
        logger.warning("OMDb replied HTTP %s without a usable body", response.status_code)
        return None, SearchError(ErrorKind.NETWORK_FAILURE, failure_message)

    def close(self):
        self.client.close()
