# main.py
try:
    import pyperclip
except ImportError:
    pyperclip = None

from rich.markup import escape
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.reactive import reactive
from textual.widgets import Footer, Header, Input

from config import Config
from logger import get_logger, setup_logging
from models import AppState
from services import FavoritesStore, LocalStorage, MovieSearchService
from state import AppController
from ui import (DetailsPane, FavoritesPanel, LogPane, MovieCard, Pager,
                ResultsGrid, SearchControls, StatusLine)

logger = get_logger(__name__)


class MovieFinderApp(App):
    TITLE = "🎬 Movie Finder (OMDb)"
    BINDINGS = [
        ("d", "toggle_dark", "Toggle dark mode"),
        ("q", "quit", "Quit"),
        ("c", "copy_link", "Copy Link"),
        ("escape", "close_details", "Close Details"),
    ]
    CSS_PATH = "movie_finder.css"

    app_state = reactive(AppState(), always_update=True, init=False)

    def __init__(self, controller: AppController, config: Config):
        super().__init__()
        self.controller = controller
        self.config = config

    def compose(self) -> ComposeResult:
        yield Header()
        with Container(id="main-container"):
            yield SearchControls(id="search-controls")
            yield StatusLine(id="status")
            with Horizontal(id="app-grid"):
                with Vertical(id="left-pane"):
                    yield ResultsGrid(id="results-grid")
                    yield Pager(id="pager")
                with Vertical(id="right-pane"):
                    yield DetailsPane(id="details-pane")
                    yield FavoritesPanel(id="favorites-panel")
            yield LogPane(id="log", wrap=True, highlight=True, markup=True)
        yield Footer()

    def on_mount(self) -> None:
        log = self.query_one(LogPane)
        self.query_one(Input).focus()
        if self.config.OMDB_API_KEY:
            log.add_message("[green]✅ OMDb API key found.[/green]")
        else:
            log.add_message("[yellow]⚠️ OMDB_API_KEY is not set; searches will be rejected.[/yellow]")
        if not pyperclip:
            log.add_message("[yellow]⚠️ 'pyperclip' not installed.[/yellow]")
        self.controller.subscribe(self.on_state_changed)
        self.render_state(None, self.controller.state)
        log.add_message(f"⭐ Loaded {len(self.controller.state.favorites)} favorites.")

    def on_state_changed(self, state: AppState) -> None:
        self.app_state = state

    def watch_app_state(self, old_state: AppState, new_state: AppState) -> None:
        self.render_state(old_state, new_state)

    def render_state(self, old_state, new_state: AppState) -> None:
        favorite_ids = new_state.favorite_ids
        grid = self.query_one(ResultsGrid)
        if old_state is None or old_state.movies != new_state.movies:
            grid.update_results(new_state.movies, favorite_ids)
        else:
            grid.update_favorites(favorite_ids)
        self.query_one(StatusLine).update_status(new_state.loading, new_state.error_message)
        self.query_one(Pager).update_pager(new_state)
        selected = new_state.selected
        self.query_one(DetailsPane).update_details(
            selected, bool(selected) and selected.imdb_id in favorite_ids
        )
        self.query_one(FavoritesPanel).update_favorites(new_state.favorites)

        if old_state and new_state.error_message and new_state.error_message != old_state.error_message:
            self.query_one(LogPane).add_message(f"[red]❌ {escape(new_state.error_message)}[/red]")

    def action_copy_link(self) -> None:
        log = self.query_one(LogPane)
        if not pyperclip:
            log.add_message("[red]❌ 'pyperclip' not installed.[/red]")
            return
        selected = self.controller.state.selected
        if selected:
            pyperclip.copy(selected.imdb_url)
            log.add_message(f"📋 Copied link for '[b]{escape(selected.title)}[/b]'.")
        else:
            log.add_message("[yellow]⚠️ No movie open.[/yellow]")

    def action_close_details(self) -> None:
        self.controller.close_details()

    def on_search_controls_query_changed(self, message: SearchControls.QueryChanged) -> None:
        self.controller.set_query(message.query)

    def on_search_controls_search_requested(self, message: SearchControls.SearchRequested) -> None:
        self.start_search(1)

    def on_pager_page_requested(self, message: Pager.PageRequested) -> None:
        self.start_search(message.page)

    def on_movie_card_details_requested(self, message: MovieCard.DetailsRequested) -> None:
        self.run_worker(self.perform_view_details(message.imdb_id), group="details_worker")

    def on_movie_card_favorite_toggled(self, message: MovieCard.FavoriteToggled) -> None:
        movie = message.movie
        was_favorite = self.controller.is_favorite(movie.imdb_id)
        self.controller.toggle_favorite(movie)
        verb = "Removed" if was_favorite else "Added"
        self.query_one(LogPane).add_message(f"⭐ {verb} '[b]{escape(movie.title)}[/b]'.")

    def on_details_pane_close_requested(self, message: DetailsPane.CloseRequested) -> None:
        self.controller.close_details()

    def start_search(self, page: int) -> None:
        query = self.controller.state.query
        if not query:
            return
        self.query_one(LogPane).add_message(f"🔎 Searching for '{escape(query)}' (page {page})...")
        self.run_worker(self.perform_search(page), group="search_worker")

    async def perform_search(self, page: int) -> None:
        await self.controller.run_search(page)
        state = self.controller.state
        if state.movies and not state.error_message:
            self.query_one(LogPane).add_message(
                f"🎬 Showing {len(state.movies)} of {state.total_results} results."
            )

    async def perform_view_details(self, imdb_id: str) -> None:
        await self.controller.view_details(imdb_id)


def build_app(config: Config) -> MovieFinderApp:
    search_service = MovieSearchService(config.OMDB_API_KEY, config.OMDB_API_URL, config.REQUEST_TIMEOUT)
    favorites_store = FavoritesStore(LocalStorage(config.DATABASE_FILENAME))
    return MovieFinderApp(AppController(search_service, favorites_store), config)


def run() -> None:
    app_config = Config.from_env()
    setup_logging(app_config.LOG_LEVEL)
    app = build_app(app_config)
    logger.info("Starting with favorites at %s", app_config.DATABASE_FILENAME)

    try:
        app.run()
    finally:
        app.controller.close()


if __name__ == "__main__":
    run()
