"""Per-session view state machine and the shared application context."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from dataclasses import dataclass, field
from typing import Any, Literal

from ..config import Settings
from ..errors import AuthError, ViewTransitionError
from ..models import (
    AppView,
    Category,
    CustomMovieEntry,
    Movie,
    MovieForm,
    PlatformSettings,
    PlatformSettingsUpdate,
    User,
    UserForm,
)
from ..stable_catalogs import CATEGORY_TITLES
from .catalog_merge import MergedCatalog, merge_catalog, my_list_row
from .content_source import ContentSource
from .custom_registry import CustomRegistry, build_movie, revise_movie
from .search import DebouncedSearch
from .sessions import SessionTable
from .user_store import UserStore

logger = logging.getLogger(__name__)

DEFAULT_VIDEO_URL = (
    "http://commondatastorage.googleapis.com/gtv-videos-bucket/sample/BigBuckBunny.mp4"
)
LOADING_MESSAGE = "Loading AI curated content..."
SEARCHING_MESSAGE = "Ricerca nel database globale con Gemini..."
NO_RESULTS_MESSAGE = "Nessun risultato trovato."

AuthMode = Literal["login", "register"]


@dataclass
class AppContext:
    """Stores shared by every browser session, built once at start-up."""

    settings: Settings
    content: ContentSource
    users: UserStore = field(default_factory=UserStore)
    registry: CustomRegistry = field(default_factory=CustomRegistry)
    platform: PlatformSettings = field(init=False)
    sessions: SessionTable = field(init=False)

    def __post_init__(self) -> None:
        self.sessions = SessionTable(self.settings.max_sessions)
        self.platform = PlatformSettings(
            auth_background_url=self.settings.auth_background_url,
            subtitle=self.settings.platform_subtitle,
        )


class ViewController:
    """Routes one browser session between the auth, browse, watch and admin views."""

    def __init__(self, context: AppContext):
        self._context = context
        self.view: AppView = "auth"
        self.auth_mode: AuthMode = "login"
        self.auth_error: str | None = None
        self.selected_movie: Movie | None = None
        self.search_open = False
        self._user_id: str | None = None
        self._base: list[Category] | None = None
        self._fetch_task: asyncio.Task[None] | None = None
        self._fetch_generation = 0
        self._search = DebouncedSearch(
            context.content.search,
            delay_seconds=context.settings.search_debounce_seconds,
            min_length=context.settings.search_min_query_length,
        )

    # ------------------------------------------------------------------
    # State accessors

    @property
    def current_user(self) -> User | None:
        if self._user_id is None:
            return None
        return self._context.users.get(self._user_id)

    @property
    def is_loading(self) -> bool:
        """True while the base catalog for this session has not arrived."""

        return self._user_id is not None and self._base is None

    @property
    def search_query(self) -> str:
        return self._search.query

    @property
    def search_results(self) -> list[Movie]:
        return list(self._search.results)

    @property
    def catalog(self) -> MergedCatalog:
        """Merge the session's base catalog with custom entries and the user's list."""

        user = self.current_user
        my_list = user.my_list if user is not None else []
        if self._base is None:
            return MergedCatalog(my_list=my_list_row(my_list))
        return merge_catalog(self._base, self._context.registry.entries(), my_list)

    # ------------------------------------------------------------------
    # Authentication

    def set_auth_mode(self, mode: AuthMode) -> None:
        self._require_view("auth")
        self.auth_mode = mode
        self.auth_error = None

    def login(self, identifier: str, password: str) -> User:
        self._require_view("auth")
        self.auth_error = None
        try:
            user = self._context.users.authenticate(identifier, password)
        except AuthError as exc:
            self.auth_error = exc.message
            raise
        self._start_session(user)
        self.view = "admin" if user.is_admin else "browse"
        logger.info("User %s signed in to %s", user.id, self.view)
        return user

    def register(self, email: str, password: str, name: str) -> User:
        self._require_view("auth")
        self.auth_error = None
        try:
            user = self._context.users.register(email, password, name)
        except AuthError as exc:
            self.auth_error = exc.message
            raise
        self._start_session(user)
        self.view = "browse"
        return user

    def logout(self) -> None:
        if self.view == "auth":
            raise ViewTransitionError("No user is signed in")
        logger.info("User %s signed out", self._user_id)
        self._reset()

    # ------------------------------------------------------------------
    # Browsing

    def find_movie(self, movie_id: str) -> Movie:
        movie = self.catalog.find_movie(movie_id)
        if movie is None and self.selected_movie is not None:
            if self.selected_movie.id == movie_id:
                movie = self.selected_movie
        if movie is None:
            for candidate in self._search.results:
                if candidate.id == movie_id:
                    movie = candidate
                    break
        if movie is None:
            raise KeyError(f"Movie {movie_id} not found")
        return movie

    def select_movie(self, movie_id: str) -> Movie:
        self._require_view("browse")
        self.selected_movie = self.find_movie(movie_id)
        return self.selected_movie

    def close_movie(self) -> None:
        self.selected_movie = None

    def play(self, movie_id: str | None = None) -> Movie:
        self._require_view("browse")
        if movie_id is not None:
            self.selected_movie = self.find_movie(movie_id)
        if self.selected_movie is None:
            raise ViewTransitionError("Select a movie before playing")
        self.view = "watch"
        return self.selected_movie

    def back(self) -> None:
        self._require_view("watch")
        self.view = "browse"

    def toggle_my_list(self, movie_id: str) -> bool:
        user = self._require_user()
        movie = self.find_movie(movie_id)
        return self._context.users.toggle_list_membership(user.id, movie)

    # ------------------------------------------------------------------
    # Search overlay

    def open_search(self) -> None:
        self._require_view("browse")
        self.search_open = True
        self._search.reset()

    def close_search(self) -> None:
        self._require_view("browse")
        self.search_open = False
        self._search.reset()

    def toggle_search(self) -> None:
        if self.search_open:
            self.close_search()
        else:
            self.open_search()

    def set_search_query(self, query: str) -> None:
        self._require_view("browse")
        if not self.search_open:
            raise ViewTransitionError("Open the search bar before typing a query")
        self._search.update(query)

    # ------------------------------------------------------------------
    # Admin navigation and actions

    def preview(self) -> None:
        self._require_view("admin")
        self.view = "browse"

    def open_admin(self) -> None:
        self._require_view("browse")
        self._require_admin()
        self.search_open = False
        self._search.reset()
        self.view = "admin"

    def add_custom_movie(self, form: MovieForm) -> CustomMovieEntry:
        self._require_admin()
        movie = build_movie(
            title=form.title,
            description=form.description,
            genre=form.genre,
            year=form.year,
            duration=form.duration,
            video_url=form.video_url,
            thumbnail_url=form.thumbnail_url,
        )
        return self._context.registry.add(movie, form.category)

    def edit_custom_movie(self, movie_id: str, form: MovieForm) -> CustomMovieEntry:
        self._require_admin()
        entry = self._context.registry.get(movie_id)
        if entry is None:
            raise KeyError(f"Custom movie {movie_id} not found")
        supplied = {
            name: getattr(form, name)
            for name in form.model_fields_set
            if name != "category"
        }
        movie = revise_movie(entry.movie, **supplied)
        return self._context.registry.edit(movie_id, movie, form.category)

    def delete_custom_movie(self, movie_id: str) -> None:
        self._require_admin()
        self._context.registry.delete(movie_id)

    def create_user(self, form: UserForm) -> User:
        self._require_admin()
        return self._context.users.create(
            email=form.email,
            password=form.password,
            name=form.name,
            username=form.username,
            surname=form.surname,
            phone=form.phone,
        )

    def delete_user(self, user_id: str) -> None:
        admin = self._require_admin()
        if user_id == admin.id:
            raise PermissionError("Administrators cannot delete their own account")
        self._context.users.delete(user_id)

    def toggle_user_status(self, user_id: str) -> User:
        admin = self._require_admin()
        if user_id == admin.id:
            raise PermissionError("Administrators cannot suspend their own account")
        return self._context.users.toggle_paused(user_id)

    def update_platform_settings(self, update: PlatformSettingsUpdate) -> PlatformSettings:
        self._require_admin()
        platform = self._context.platform
        changes: dict[str, Any] = {}
        if update.auth_background_url:
            changes["auth_background_url"] = update.auth_background_url
        if update.subtitle is not None:
            changes["subtitle"] = update.subtitle
        self._context.platform = platform.model_copy(update=changes)
        return self._context.platform

    # ------------------------------------------------------------------
    # Presentation

    def snapshot(self) -> dict[str, Any]:
        """Return everything the rendering layer needs for the current view."""

        self._drop_missing_user()
        user = self.current_user
        catalog = self.catalog
        platform = self._context.platform

        payload: dict[str, Any] = {
            "view": self.view,
            "user": user.to_public() if user is not None else None,
            "platform": platform.to_payload(),
            "auth": {"mode": self.auth_mode, "error": self.auth_error},
            "browse": {
                "loading": self.is_loading,
                "loadingMessage": LOADING_MESSAGE if self.is_loading else None,
                "featured": self._featured_payload(catalog.featured),
                "rows": [row.to_payload() for row in catalog.rows()],
            },
            "search": {
                "open": self.search_open,
                "query": self._search.query,
                "pending": self._search.pending,
                "results": [
                    {**movie.to_payload(), "imageUrl": movie.search_card_image()}
                    for movie in self._search.results
                ],
                "emptyMessage": self._search_empty_message(),
            },
            "selected": self._selected_payload(user),
            "watch": self._watch_payload(),
        }
        if user is not None and user.is_admin:
            payload["admin"] = self._admin_payload(user)
        return payload

    async def wait_until_idle(self) -> None:
        """Wait for the pending catalog fetch and search requests."""

        if self._fetch_task is not None and not self._fetch_task.done():
            await asyncio.gather(self._fetch_task, return_exceptions=True)
        await self._search.wait_until_idle()

    async def aclose(self) -> None:
        if self._fetch_task is not None and not self._fetch_task.done():
            self._fetch_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._fetch_task
        await self._search.aclose()

    # ------------------------------------------------------------------
    # Internals

    def _start_session(self, user: User) -> None:
        self._user_id = user.id
        self.auth_mode = "login"
        self.selected_movie = None
        self._start_catalog_fetch()

    def _start_catalog_fetch(self) -> None:
        self._fetch_generation += 1
        generation = self._fetch_generation
        self._base = None

        async def _runner() -> None:
            categories = await self._context.content.fetch_catalog()
            if generation != self._fetch_generation:
                logger.info("Discarding catalog fetched for a previous session")
                return
            self._base = categories

        self._fetch_task = asyncio.create_task(_runner())

    def _reset(self) -> None:
        self._user_id = None
        self.view = "auth"
        self.auth_mode = "login"
        self.auth_error = None
        self._fetch_generation += 1
        self._base = None
        self.selected_movie = None
        self.search_open = False
        self._search.reset()

    def _drop_missing_user(self) -> None:
        if self._user_id is not None and self.current_user is None:
            logger.info("Account %s no longer exists, ending session", self._user_id)
            self._reset()

    def _require_view(self, *views: AppView) -> None:
        self._drop_missing_user()
        if self.view not in views:
            raise ViewTransitionError(
                f"Action not available from the {self.view} view"
            )

    def _require_user(self) -> User:
        self._drop_missing_user()
        user = self.current_user
        if user is None:
            raise ViewTransitionError("No user is signed in")
        return user

    def _require_admin(self) -> User:
        user = self._require_user()
        if not user.is_admin:
            raise PermissionError("Administrator role required")
        return user

    def _search_empty_message(self) -> str | None:
        if not self.search_open or self._search.results:
            return None
        if self._search.pending:
            return SEARCHING_MESSAGE
        if len(self._search.query) > self._context.settings.search_min_query_length:
            return NO_RESULTS_MESSAGE
        return None

    def _featured_payload(self, movie: Movie | None) -> dict[str, Any] | None:
        if movie is None:
            return None
        return {**movie.to_payload(), "heroImageUrl": movie.hero_image()}

    def _selected_payload(self, user: User | None) -> dict[str, Any] | None:
        movie = self.selected_movie
        if movie is None:
            return None
        return {
            "movie": movie.to_payload(),
            "inMyList": user.has_in_list(movie.id) if user is not None else False,
            "backdropUrl": movie.modal_backdrop(),
        }

    def _watch_payload(self) -> dict[str, Any] | None:
        if self.view != "watch":
            return None
        movie = self.selected_movie
        return {
            "title": movie.title if movie is not None else "Video",
            "videoUrl": (movie.video_url if movie is not None else None)
            or DEFAULT_VIDEO_URL,
        }

    def _admin_payload(self, admin: User) -> dict[str, Any]:
        users = []
        for account in self._context.users:
            is_self = account.id == admin.id
            users.append(
                {
                    **account.to_public(),
                    "controls": {
                        "canDelete": not is_self,
                        "canToggleStatus": not is_self,
                    },
                }
            )
        return {
            "categories": list(CATEGORY_TITLES),
            "movies": [entry.to_payload() for entry in self._context.registry.entries()],
            "users": users,
        }
