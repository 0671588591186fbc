# ui.py
from typing import List, Optional, Set

from textual.app import ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.message import Message
from textual.widgets import Button, Input, Label, Markdown, RichLog, Static

from models import AppState, Movie, MovieDetails


def pager_label(state: AppState) -> str:
    return f"Page {state.page} of {state.total_pages}"


def favorite_label(is_favorite: bool) -> str:
    return "★ Remove Favorite" if is_favorite else "☆ Favorite"


def format_details(details: MovieDetails) -> str:
    """Renders a detail record as Markdown for the details pane."""
    rating = f"{details.rating}/10" if details.rating is not None else "N/A"
    return (
        f"## {details.title}\n\n"
        f"- **Year**: {details.year}\n"
        f"- **Genre**: {details.genre}\n"
        f"- **Director**: {details.director}\n"
        f"- **Cast**: {details.actors}\n"
        f"- **Runtime**: {details.runtime}\n"
        f"- **Rating**: {rating}\n\n"
        f"{details.plot}\n\n"
        f"`{details.imdb_url}`"
    )


def format_favorites(favorites: List[Movie]) -> str:
    lines = [f"- {m.title} ({m.year})" for m in favorites]
    return "## ⭐ My Favorites\n\n" + "\n".join(lines)


class SearchControls(Static):
    """Widget for the search input and button."""
    class QueryChanged(Message):
        def __init__(self, query: str) -> None:
            self.query = query
            super().__init__()

    class SearchRequested(Message):
        pass

    def compose(self) -> ComposeResult:
        yield Input(placeholder="Type a movie title...", id="search-input")
        yield Button("Search", variant="primary", id="search-button")

    def on_input_changed(self, event: Input.Changed) -> None:
        event.stop()
        self.post_message(self.QueryChanged(event.value))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self.post_message(self.SearchRequested())

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        self.post_message(self.SearchRequested())


class StatusLine(Static):
    """Shows the loading indicator or the current error."""
    def __init__(self, **kwargs) -> None:
        super().__init__("", markup=False, **kwargs)

    def update_status(self, loading: bool, error_message: str) -> None:
        self.set_class(bool(error_message), "error")
        if error_message:
            self.update(error_message)
        elif loading:
            self.update("Loading...")
        else:
            self.update("")


class MovieCard(Static):
    """One search result with its details and favorite buttons."""
    class DetailsRequested(Message):
        def __init__(self, imdb_id: str) -> None:
            self.imdb_id = imdb_id
            super().__init__()

    class FavoriteToggled(Message):
        def __init__(self, movie: Movie) -> None:
            self.movie = movie
            super().__init__()

    def __init__(self, movie: Movie, is_favorite: bool) -> None:
        super().__init__(classes="movie-card")
        self.movie = movie
        self.is_favorite = is_favorite

    def compose(self) -> ComposeResult:
        poster = self.movie.poster if self.movie.has_poster else "No image"
        yield Label(poster, classes="poster", markup=False)
        yield Label(self.movie.title, classes="title", markup=False)
        yield Label(self.movie.year, classes="year", markup=False)
        yield Button("Details", variant="success", classes="details-button")
        yield Button(favorite_label(self.is_favorite), variant="error", classes="favorite-button")

    def set_favorite(self, is_favorite: bool) -> None:
        self.is_favorite = is_favorite
        if self.is_mounted:
            self.query_one(".favorite-button", Button).label = favorite_label(is_favorite)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        if event.button.has_class("details-button"):
            self.post_message(self.DetailsRequested(self.movie.imdb_id))
        else:
            self.post_message(self.FavoriteToggled(self.movie))


class ResultsGrid(VerticalScroll):
    """The grid of result cards."""
    def update_results(self, movies: List[Movie], favorite_ids: Set[str]) -> None:
        self.remove_children()
        self.mount_all([MovieCard(m, m.imdb_id in favorite_ids) for m in movies])

    def update_favorites(self, favorite_ids: Set[str]) -> None:
        for card in self.query(MovieCard):
            card.set_favorite(card.movie.imdb_id in favorite_ids)


class Pager(Horizontal):
    """Previous / next controls for the current search."""
    class PageRequested(Message):
        def __init__(self, page: int) -> None:
            self.page = page
            super().__init__()

    page = 1

    def compose(self) -> ComposeResult:
        yield Button("Previous", id="prev-page")
        yield Label("", id="page-label")
        yield Button("Next", id="next-page")

    def update_pager(self, state: AppState) -> None:
        self.page = state.page
        self.display = bool(state.movies)
        self.query_one("#page-label", Label).update(pager_label(state))
        self.query_one("#prev-page", Button).disabled = not state.has_previous_page
        self.query_one("#next-page", Button).disabled = not state.has_next_page

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        step = -1 if event.button.id == "prev-page" else 1
        self.post_message(self.PageRequested(self.page + step))


class DetailsPane(Static):
    """Widget to display details of the selected movie."""
    class CloseRequested(Message):
        pass

    details: Optional[MovieDetails] = None

    def compose(self) -> ComposeResult:
        yield Markdown()
        with Horizontal(classes="details-buttons"):
            yield Button(favorite_label(False), variant="error", id="favorite-details")
            yield Button("Close", id="close-details")

    def update_details(self, details: Optional[MovieDetails], is_favorite: bool) -> None:
        self.details = details
        self.display = details is not None
        if details:
            self.query_one(Markdown).update(format_details(details))
            self.query_one("#favorite-details", Button).label = favorite_label(is_favorite)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        if event.button.id == "close-details":
            self.post_message(self.CloseRequested())
        elif self.details:
            self.post_message(MovieCard.FavoriteToggled(self.details))


class FavoritesPanel(Static):
    """Lists saved favorites; hidden while there are none."""
    def compose(self) -> ComposeResult:
        yield Markdown()

    def update_favorites(self, favorites: List[Movie]) -> None:
        self.display = bool(favorites)
        if favorites:
            self.query_one(Markdown).update(format_favorites(favorites))


class LogPane(RichLog):
    """A dedicated widget for logging application events."""
    def add_message(self, message: str) -> None:
        self.write(message)
