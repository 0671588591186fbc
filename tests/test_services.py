"""OMDb client parsing and error mapping, plus the favorites mirror."""

from __future__ import annotations

import json
import sqlite3
from typing import Any, Callable, Dict, List

import httpx
import pytest

from models import ErrorKind, Movie
from services import (DETAILS_FAILED_MESSAGE, SAVE_FAILED_MESSAGE,
                      SEARCH_FAILED_MESSAGE, FavoritesStore, LocalStorage,
                      MovieSearchService)
from tests.conftest import MATRIX, RELOADED

BASE_URL = "https://omdb.test/"


def _make_service(handler: Callable[[httpx.Request], httpx.Response]) -> MovieSearchService:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return MovieSearchService("test-key", BASE_URL, client=client)


def _json_handler(payload: Dict[str, Any], seen: List[httpx.Request], status: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(status, json=payload)

    return handler


SEARCH_PAYLOAD = {
    "Search": [
        {"Title": "The Matrix", "Year": "1999", "imdbID": "tt0133093", "Type": "movie",
         "Poster": "https://img.example/matrix.jpg"},
        {"Title": "The Matrix Reloaded", "Year": "2003", "imdbID": "tt0234215", "Type": "movie",
         "Poster": "N/A"},
        {"Title": "The Matrix Revolutions", "Year": "2003", "imdbID": "tt0242653", "Type": "movie",
         "Poster": "N/A"},
    ],
    "totalResults": "3",
    "Response": "True",
}


def test_search_sends_key_query_and_page() -> None:
    seen: List[httpx.Request] = []
    service = _make_service(_json_handler(SEARCH_PAYLOAD, seen))

    service.search("Matrix", 2)

    params = seen[0].url.params
    assert params["apikey"] == "test-key"
    assert params["s"] == "Matrix"
    assert params["page"] == "2"
    assert "i" not in params


def test_search_parses_items_and_total() -> None:
    service = _make_service(_json_handler(SEARCH_PAYLOAD, []))

    page, error = service.search("Matrix", 1)

    assert error is None
    assert page.total_results == 3
    assert [m.imdb_id for m in page.movies] == ["tt0133093", "tt0234215", "tt0242653"]
    assert page.movies[0].has_poster
    assert not page.movies[1].has_poster


def test_search_surfaces_upstream_message_verbatim() -> None:
    payload = {"Response": "False", "Error": "Movie not found!"}
    service = _make_service(_json_handler(payload, []))

    page, error = service.search("xyzxyz", 1)

    assert page is None
    assert error.kind is ErrorKind.NO_RESULTS
    assert error.message == "Movie not found!"


def test_invalid_key_reply_is_read_despite_401() -> None:
    payload = {"Response": "False", "Error": "Invalid API key!"}
    service = _make_service(_json_handler(payload, [], status=401))

    _, error = service.search("Matrix", 1)

    assert error.kind is ErrorKind.NO_RESULTS
    assert error.message == "Invalid API key!"


def test_transport_error_is_a_network_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    service = _make_service(handler)

    page, error = service.search("Matrix", 1)

    assert page is None
    assert error.kind is ErrorKind.NETWORK_FAILURE
    assert error.message == SEARCH_FAILED_MESSAGE


def test_non_json_body_is_a_network_failure() -> None:
    service = _make_service(lambda request: httpx.Response(502, text="<html>Bad Gateway</html>"))

    _, error = service.fetch_details("tt0133093")

    assert error.kind is ErrorKind.NETWORK_FAILURE
    assert error.message == DETAILS_FAILED_MESSAGE


def test_fetch_details_requests_full_plot_and_parses_record() -> None:
    seen: List[httpx.Request] = []
    payload = {
        "Title": "The Matrix", "Year": "1999", "imdbID": "tt0133093", "Type": "movie",
        "Poster": "N/A", "Genre": "Action, Sci-Fi", "Director": "Lana Wachowski, Lilly Wachowski",
        "Actors": "Keanu Reeves", "Plot": "Neo wakes up.", "imdbRating": "8.7",
        "Runtime": "136 min", "Response": "True",
    }
    service = _make_service(_json_handler(payload, seen))

    details, error = service.fetch_details("tt0133093")

    assert error is None
    assert seen[0].url.params["i"] == "tt0133093"
    assert seen[0].url.params["plot"] == "full"
    assert details.genre == "Action, Sci-Fi"
    assert details.actors == "Keanu Reeves"
    assert details.rating == 8.7
    assert details.runtime == "136 min"


def test_missing_rating_parses_as_none() -> None:
    payload = {"Title": "Obscure", "Year": "1950", "imdbID": "tt9999999",
               "imdbRating": "N/A", "Response": "True"}
    service = _make_service(_json_handler(payload, []))

    details, _ = service.fetch_details("tt9999999")

    assert details.rating is None


def test_favorites_load_empty_when_nothing_stored(favorites_store: FavoritesStore) -> None:
    assert favorites_store.load() == []


@pytest.mark.parametrize("raw", ["not json", "{\"imdbID\": \"tt1\"}", "42", "null"])
def test_favorites_load_tolerates_malformed_data(storage: LocalStorage, raw: str) -> None:
    storage.set_item("favorites", raw)

    assert FavoritesStore(storage).load() == []


def test_favorites_load_skips_bad_entries_and_duplicates(storage: LocalStorage) -> None:
    records = [MATRIX.to_api(), {"Title": "no id"}, "junk", MATRIX.to_api(), RELOADED.to_api()]
    storage.set_item("favorites", json.dumps(records))

    loaded = FavoritesStore(storage).load()

    assert [m.imdb_id for m in loaded] == [MATRIX.imdb_id, RELOADED.imdb_id]


def test_favorites_save_overwrites_whole_list(storage: LocalStorage, favorites_store: FavoritesStore) -> None:
    favorites_store.save([MATRIX, RELOADED])
    favorites_store.save([RELOADED])

    stored = json.loads(storage.get_item("favorites"))
    assert stored == [RELOADED.to_api()]
    assert stored[0]["imdbID"] == "tt0234215"
    assert favorites_store.load() == [RELOADED]


def test_favorites_save_reports_storage_failure() -> None:
    class BrokenStorage:
        def get_item(self, key: str) -> None:
            return None

        def set_item(self, key: str, value: str) -> None:
            raise sqlite3.OperationalError("database is locked")

    error = FavoritesStore(BrokenStorage()).save([MATRIX])

    assert error.kind is ErrorKind.PERSISTENCE
    assert error.message == SAVE_FAILED_MESSAGE


def test_local_storage_persists_across_connections(tmp_path) -> None:
    path = str(tmp_path / "favorites.db")
    first = LocalStorage(path)
    first.set_item("favorites", "[]")
    first.set_item("favorites", json.dumps([MATRIX.to_api()]))
    first.close()

    second = LocalStorage(path)
    try:
        assert FavoritesStore(second).load() == [Movie.from_api(MATRIX.to_api())]
    finally:
        second.close()


def test_corrupt_store_file_falls_back_to_empty(tmp_path) -> None:
    path = tmp_path / "favorites.db"
    garbage = b"\x00\x01 this is not an sqlite database \xff" * 64
    path.write_bytes(garbage)

    storage = LocalStorage(str(path))
    try:
        store = FavoritesStore(storage)
        assert store.load() == []
        assert store.save([MATRIX]) is None
        assert store.load() == [MATRIX]
    finally:
        storage.close()

    assert path.read_bytes() == garbage
